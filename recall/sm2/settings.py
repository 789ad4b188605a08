"""
Algorithm settings.

Settings are immutable: the engine replaces the whole object on
update_settings() and never mutates it implicitly.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from recall.errors import ValidationError


class Settings(BaseModel):
    """
    Tunable SM-2 parameters.

    Note: easy_interval, hard_interval and again_interval are multipliers,
    not day counts, despite their names (kept for export compatibility).
    """
    algorithm: Literal["sm2"] = "sm2"
    graduating_interval: int = Field(default=1, ge=1, description="Days after the first correct review")
    easy_interval: float = Field(default=4.0, gt=0, description="Multiplier applied on quality 5")
    hard_interval: float = Field(default=0.5, gt=0, description="Multiplier applied on quality 2")
    again_interval: float = Field(default=0.2, ge=0, description="Multiplier applied to the interval on failure")
    interval_modifier: float = Field(default=1.0, gt=0, description="Global interval multiplier")
    min_interval: int = Field(default=1, ge=0, description="Lower interval bound (days)")
    max_interval: int = Field(default=365, ge=1, description="Upper interval bound (days)")

    class Config:
        frozen = True
        extra = "forbid"
        alias_generator = to_camel
        populate_by_name = True

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if self.min_interval > self.max_interval:
            raise ValueError("min_interval must not exceed max_interval")
        return self


DEFAULT_SETTINGS = Settings()


def build_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    base: Optional[Settings] = None
) -> Settings:
    """
    Merge overrides over a base Settings and validate the result.

    Keys may be snake_case or camelCase.

    Raises:
        ValidationError: if any key is unknown or any value is out of range
    """
    base = base or DEFAULT_SETTINGS
    if not overrides:
        return base
    if not isinstance(overrides, Mapping):
        raise ValidationError(f"Settings must be a mapping, got {type(overrides).__name__}")

    merged = base.model_dump()
    try:
        # Normalize aliases to field names before merging
        normalized = Settings.model_validate({**merged, **_to_field_names(overrides)})
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "settings") from exc
    return normalized


def _to_field_names(overrides: Mapping[str, Any]) -> dict[str, Any]:
    by_alias = {field.alias: name for name, field in Settings.model_fields.items() if field.alias}
    return {by_alias.get(key, key): value for key, value in overrides.items()}
