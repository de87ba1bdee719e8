"""Custom exception hierarchy for the bundle loader."""

from __future__ import annotations


class BundleError(Exception):
    """Base exception for all bundle decode failures.

    Carries the failure kind (class name), the bundle path and, where known,
    the id of the reference-table entry being decoded.
    """

    def __init__(self, message: str, *, path: str = "", reference_id: str | None = None) -> None:
        self.message = message
        self.path = path
        self.reference_id = reference_id
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        where = f" in bundle {self.path!r}" if self.path else ""
        ref = f" (reference {self.reference_id!r})" if self.reference_id else ""
        return f"{self.kind}: {self.message}{where}{ref}"


class MalformedHeader(BundleError):
    """Raised when the binary magic tag or root document is wrong."""


class TruncatedStream(BundleError):
    """Raised when a field cannot be fully read or a seek passes end-of-stream."""


class InvalidReference(BundleError):
    """Raised when a reference-table entry is unusable (e.g. empty id)."""


class UnknownEnumerationToken(BundleError):
    """Raised for an unrecognized type/format/semantic/usage/wrap-mode token."""


class MissingRequiredField(BundleError):
    """Raised when a required field is empty or zero."""


class CyclicOrTooDeep(BundleError):
    """Raised when a node or bone hierarchy cycles or exceeds the depth cap."""


class UnsupportedExtension(BundleError):
    """Raised when a bundle path has neither the binary nor the text extension."""


class SectionNotFound(BundleError):
    """Raised when a requested named section (e.g. an animation clip) is absent."""


class ConfigError(Exception):
    """Raised when a loader configuration file cannot be read or validated."""
