import re
import unicodedata
from urllib.parse import quote


def attachment_disposition(filename: str) -> str:
    """Header Content-Disposition seguro para nomes livres (ex.: número da fatura).

    `filename=` leva só ASCII (headers são latin-1); o nome original vai em
    `filename*` (RFC 5987), que os navegadores preferem quando presente.
    """
    fallback = unicodedata.normalize("NFKD", filename or "")
    fallback = fallback.encode("ascii", "ignore").decode("ascii")
    fallback = re.sub(r"[^A-Za-z0-9._-]+", "_", fallback).strip("_") or "download"
    encoded = quote(filename or fallback, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
