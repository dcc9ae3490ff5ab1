import re
import unicodedata


def normalize_slug(value: str) -> str:
    """"Acme Corp." -> "acme-corp" (minúsculas, números e hífen)."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"\s+", "-", value.strip())
    value = re.sub(r"-+", "-", value)

    return value.strip("-")
