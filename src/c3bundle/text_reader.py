"""Navigable value adapter over a parsed ``.c3t`` JSON document."""

from __future__ import annotations

import json
from typing import Any, Iterator

from c3bundle.errors import CyclicOrTooDeep, MalformedHeader

# Version token given to documents whose ``version`` field is an array.
LEGACY_TEXT_VERSION = "1.2"

_MISSING = object()


class TextValue:
    """One value of a text document, or the absence of one.

    Navigation never raises: indexing a missing key, an out-of-range element
    or a value of the wrong type yields an absent ``TextValue``. Coercions
    return ``None`` when the value is absent or has the wrong type.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any = _MISSING) -> None:
        self._value = value

    @classmethod
    def parse(cls, text: str | bytes) -> TextValue:
        """Parse a JSON document into its root value.

        Raises:
            MalformedHeader: If the document is not valid JSON.
            CyclicOrTooDeep: If its nesting exceeds the interpreter's recursion limit.
        """
        try:
            return cls(json.loads(text))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedHeader(f"Invalid text document: {e}") from e
        except RecursionError as e:
            raise CyclicOrTooDeep("Text document is nested too deeply") from e

    def __repr__(self) -> str:
        if self._value is _MISSING:
            return "TextValue(<missing>)"
        return f"TextValue({self._value!r})"

    @property
    def exists(self) -> bool:
        return self._value is not _MISSING

    @property
    def is_array(self) -> bool:
        return isinstance(self._value, list)

    @property
    def is_object(self) -> bool:
        return isinstance(self._value, dict)

    @property
    def raw(self) -> Any:
        return None if self._value is _MISSING else self._value

    def __getitem__(self, key: str) -> TextValue:
        if isinstance(self._value, dict) and key in self._value:
            return TextValue(self._value[key])
        return TextValue()

    def get(self, *keys: str) -> TextValue:
        """Return the first present key among ``keys``."""
        for key in keys:
            value = self[key]
            if value.exists:
                return value
        return TextValue()

    def at(self, index: int) -> TextValue:
        if isinstance(self._value, list) and 0 <= index < len(self._value):
            return TextValue(self._value[index])
        return TextValue()

    def count(self) -> int:
        return len(self._value) if isinstance(self._value, list) else 0

    def elements(self) -> Iterator[TextValue]:
        """Yield array elements in order; a single forward pass."""
        if isinstance(self._value, list):
            for item in self._value:
                yield TextValue(item)

    def as_str(self) -> str | None:
        return self._value if isinstance(self._value, str) else None

    def as_float(self) -> float | None:
        if isinstance(self._value, bool):
            return None
        if isinstance(self._value, (int, float)):
            return float(self._value)
        return None

    def as_int(self) -> int | None:
        if isinstance(self._value, bool):
            return None
        if isinstance(self._value, int):
            return self._value
        if isinstance(self._value, float) and self._value.is_integer():
            return int(self._value)
        return None

    def as_bool(self) -> bool | None:
        return self._value if isinstance(self._value, bool) else None

    def as_floats(self) -> list[float] | None:
        """Coerce an array of numbers; None if absent or any element is not a number."""
        if not isinstance(self._value, list):
            return None
        out: list[float] = []
        for item in self.elements():
            number = item.as_float()
            if number is None:
                return None
            out.append(number)
        return out


def read_version(root: TextValue) -> str | None:
    """Return the document's schema version token.

    An array-valued ``version`` field marks the oldest revision and maps to
    ``LEGACY_TEXT_VERSION`` without numeric coercion.
    """
    version = root["version"]
    if version.is_array:
        return LEGACY_TEXT_VERSION
    text = version.as_str()
    if text is not None:
        return text
    number = version.as_float()
    if number is not None:
        as_int = version.as_int()
        return f"{as_int}.0" if as_int is not None else repr(number)
    return None
