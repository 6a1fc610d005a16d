"""Launch option models for the browser subprocess."""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from chromepipe.errors import InvalidConfiguration
from chromepipe.flags import FlagSetName


class ChromeArgs(BaseModel):
    """Structured override of the baseline flags."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    append: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()

    @field_validator("append", "remove", mode="before")
    @classmethod
    def _wrap_single_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value


class LaunchOptions(BaseModel):
    """How to launch the browser; consumed to produce a single command line.

    Bad values raise :class:`InvalidConfiguration` whether the options are
    constructed directly or through :meth:`from_mapping`.
    """

    model_config = ConfigDict(frozen=True)

    chrome_executable: str | None = None
    chrome_args: str | ChromeArgs | None = None
    no_sandbox: bool = False
    discard_stderr: bool = True
    flag_set: FlagSetName = "default"

    @model_validator(mode="wrap")
    @classmethod
    def _reject_invalid(cls, data: Any, handler: Callable[[Any], Any]) -> Any:
        try:
            return handler(data)
        except ValidationError as e:
            raise InvalidConfiguration(f"invalid launch options: {e}") from e

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LaunchOptions":
        """Validate a plain mapping, raising InvalidConfiguration on bad values."""
        return cls.model_validate(dict(data))
