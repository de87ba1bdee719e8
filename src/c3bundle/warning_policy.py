"""Coded loader diagnostics and the policy that routes them.

A diagnostic is a recoverable oddity in a bundle. Each one carries a
W-code so callers can silence it or turn it into a hard failure per code.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from enum import Enum

from c3bundle.errors import BundleError

logger = logging.getLogger(__name__)

WARNING_CODES: dict[str, str] = {
    "W01": "bundle version unknown; decoded with the newest layout",
    "W02": "legacy node decode found no skin section",
    "W03": "animated bone without keyframes skipped",
    "W04": "legacy material list ended early by an empty texture path",
}
KNOWN_CODES: frozenset[str] = frozenset(WARNING_CODES)


class WarningAction(str, Enum):
    WARN = "warn"
    SUPPRESS = "suppress"
    RAISE = "raise"


class BundleWarning(UserWarning):
    """A coded diagnostic about one bundle file."""

    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.path = path
        where = f"{path}: " if path else ""
        super().__init__(f"[{code}] {where}{message}")


class PromotedWarning(BundleError):
    """A diagnostic whose code the policy turns into a failure."""


@dataclass(frozen=True)
class WarningPolicy:
    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()

    def action(self, code: str) -> WarningAction:
        # suppression wins when a code is listed twice
        if code in self.suppress:
            return WarningAction.SUPPRESS
        if code in self.warn_as_error:
            return WarningAction.RAISE
        return WarningAction.WARN


def emit_warning(
    code: str,
    message: str,
    *,
    policy: WarningPolicy | None = None,
    path: str = "",
) -> None:
    """Report diagnostic ``code`` for the bundle at ``path``.

    Without a policy every code warns. Raises ``PromotedWarning`` for codes the
    policy promotes; suppressed codes are only logged at debug level.
    """
    action = policy.action(code) if policy is not None else WarningAction.WARN
    if action is WarningAction.SUPPRESS:
        logger.debug("Suppressed [%s] %s", code, message)
        return
    if action is WarningAction.RAISE:
        raise PromotedWarning(f"[{code}] {message}", path=path)
    warnings.warn(BundleWarning(code, message, path), stacklevel=2)


def parse_code_list(raw: str) -> frozenset[str]:
    """Codes named in a comma-separated option value such as ``"W01, w03"``.

    Raises:
        ValueError: For a code outside ``KNOWN_CODES``.
    """
    codes = {token.strip().upper() for token in raw.split(",")} - {""}
    unknown = sorted(codes - KNOWN_CODES)
    if unknown:
        raise ValueError(f"Unknown warning code(s): {unknown} (known: {sorted(KNOWN_CODES)})")
    return frozenset(codes)
