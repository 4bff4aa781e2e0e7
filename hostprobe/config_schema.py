from __future__ import annotations

from pydantic import BaseModel, ValidationError, field_validator


class OverrideConfig(BaseModel):
    """Version overrides read from the environment.

    An empty string means "not set"; any other value is returned by the
    matching probe verbatim.
    """

    windows: str = ""
    macos: str = ""
    linux: str = ""

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("windows", "macos", "linux", mode="before")
    @classmethod
    def _none_is_unset(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    def for_family(self, family: str) -> str:
        return getattr(self, family, "")


def validate_overrides(data: dict[str, object]) -> OverrideConfig:
    """Validate ``data`` against :class:`OverrideConfig`.

    Raises ``ValueError`` on validation errors.
    """
    try:
        return OverrideConfig(**data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
