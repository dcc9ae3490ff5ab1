from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from billmaster.core.errors import ValidationError


class ApiModel(BaseModel):
    """camelCase na borda HTTP, snake_case no Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def collect_changes(payload: BaseModel, *required: str, exclude: tuple[str, ...] = ("version",)) -> dict[str, Any]:
    """Campos enviados no PUT; campos obrigatórios não podem vir nulos."""
    changes = payload.model_dump(exclude_unset=True, exclude=set(exclude))
    for field in required:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{to_camel(field)} cannot be null")
    return changes
