"""Error taxonomy shared by the extractor, explorer client and reconciler."""
from __future__ import annotations


class VestingClaimsError(RuntimeError):
    """Base for every error that should abort a run with a non-zero exit."""


class MalformedReportError(VestingClaimsError):
    """Schedule report is unreadable or does not have the expected shape."""


class ConfigurationError(VestingClaimsError):
    """Missing API key, invalid address arguments and similar setup problems."""


class ApiOperationalError(VestingClaimsError):
    """The block explorer failed or answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: str | int | None = None,
        explorer_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.explorer_message = explorer_message


class InconclusiveEvidenceWarning(UserWarning):
    """A transaction produced no matching transfer log. Informational only."""

    def __init__(self, tx_hash: str, reason: str) -> None:
        super().__init__(f"{tx_hash}: {reason}")
        self.tx_hash = tx_hash
        self.reason = reason


__all__ = [
    "VestingClaimsError",
    "MalformedReportError",
    "ConfigurationError",
    "ApiOperationalError",
    "InconclusiveEvidenceWarning",
]
