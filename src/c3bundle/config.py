"""Loader configuration: pydantic schema plus YAML file loading."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from c3bundle.errors import ConfigError
from c3bundle.warning_policy import KNOWN_CODES, WarningPolicy

DEFAULT_MAX_DEPTH = 256


class LoaderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=512)
    binary_extension: str = ".c3b"
    text_extension: str = ".c3t"
    warn_as_error: list[str] = Field(default_factory=list)
    suppress: list[str] = Field(default_factory=list)

    @field_validator("binary_extension", "text_extension")
    @classmethod
    def _dotted_lowercase(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"extension must start with '.': {value!r}")
        return value.lower()

    @field_validator("warn_as_error", "suppress")
    @classmethod
    def _known_codes(cls, value: list[str]) -> list[str]:
        unknown = sorted(set(value) - KNOWN_CODES)
        if unknown:
            raise ValueError(f"unknown warning code(s): {unknown} (known: {sorted(KNOWN_CODES)})")
        return value

    def warning_policy(self) -> WarningPolicy | None:
        """Return the policy for the configured codes, or None if none are set."""
        if not self.warn_as_error and not self.suppress:
            return None
        return WarningPolicy(
            warn_as_error=frozenset(self.warn_as_error),
            suppress=frozenset(self.suppress),
        )


def _make_yaml() -> YAML:
    """Create a ruamel.yaml safe loader that errors on duplicate keys."""
    yml = YAML(typ="safe")
    yml.allow_duplicate_keys = False
    return yml


def load_config(source: str | Path) -> LoaderConfig:
    """Load a ``LoaderConfig`` from a YAML file path or raw YAML text.

    Raises:
        ConfigError: On unreadable files, YAML syntax errors or schema violations.
    """
    if isinstance(source, Path):
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}") from e
    else:
        text = source

    try:
        data = _make_yaml().load(text)
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config value must be a mapping")

    try:
        return LoaderConfig(**data)
    except PydanticValidationError as e:
        raise ConfigError(f"Config validation failed:\n{e}") from e
