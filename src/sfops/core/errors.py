"""Error taxonomy for sfops.

Every failure raised by the core derives from SfopsError so frontends can
catch one type and render it consistently.
"""

from __future__ import annotations

from typing import Any, Mapping


class SfopsError(RuntimeError):
    """Base class for all sfops errors."""


class ConstructionError(SfopsError):
    """Raised when a client is created without a target username."""


class ExecutionError(SfopsError):
    """Raised when the sfdx process cannot be spawned or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ParseError(SfopsError):
    """Raised when the sfdx output is not valid JSON."""


class ApplicationError(SfopsError):
    """Raised when the JSON payload reports a non-zero status."""

    def __init__(self, payload: Mapping[str, Any]):
        self.payload = payload
        self.status = payload.get("status")
        message = payload.get("message") or payload.get("name") or "unknown error"
        super().__init__(f"sfdx reported status {self.status}: {message}")


class SubmissionError(SfopsError):
    """Raised when a bulk job cannot be submitted or the response is malformed."""


class StatusCheckError(SfopsError):
    """Raised when asking for the status of a bulk job fails."""


class BulkJobFailedError(SfopsError):
    """Raised when a batch reports the Failed state (per-batch protocol)."""


class PollTimeoutError(SfopsError):
    """Raised when a configured polling bound is exceeded."""


class EmptyResultError(SfopsError):
    """Raised when a query-driven delete finds nothing to delete."""


class ConnectivityError(SfopsError):
    """Raised when the target org is not connected."""

    def __init__(self, connected_status: str):
        super().__init__(f"Org is not connected: {connected_status}")
        self.connected_status = connected_status
