from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_primitive(value: Any) -> str:
    """Coerce a server-supplied scalar to a string; anything else becomes ''."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return ""


class PageInfo(BaseModel):
    """
    One entry of ``query.pages`` from a ``prop=info&intoken=edit`` query.

    Fields the bot does not use are kept as model extras.
    """

    title: str = Field(..., min_length=1)
    edit_token: str = Field(default="", alias="edittoken")
    page_id: Optional[str] = Field(default=None, alias="pageid")

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
    )

    @field_validator("edit_token", mode="before")
    @classmethod
    def _coerce_token(cls, v: Any) -> str:
        return to_primitive(v)

    @field_validator("page_id", mode="before")
    @classmethod
    def _coerce_page_id(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return to_primitive(v) or None


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
