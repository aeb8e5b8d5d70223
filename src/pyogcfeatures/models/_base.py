"""Base model for OGC API - Features payloads.

Every response model inherits from :class:`OgcBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase keys (``numberMatched``)
  map automatically to snake_case fields.
* A ``raw`` dict that captures the original payload, so features can be
  republished exactly as the server sent them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class OgcBaseModel(BaseModel):
    """Frozen, lenient base for response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Stash the incoming payload unless ``raw`` was passed explicitly."""
        if not isinstance(values, dict):
            return values
        if "raw" in values:
            return values
        stashed = dict(values)
        stashed["raw"] = values
        return stashed
