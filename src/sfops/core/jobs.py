"""Core bulk job domain models.

This module defines the data structures observed while a Salesforce bulk
job runs: the job handle returned on submission, the aggregate status
summary reported for the whole job, and the per-batch state used by the
older status protocol. It is intentionally free of subprocess and CLI
concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from sfops.core.errors import StatusCheckError


class PollProtocol(str, Enum):
    """
    Protocol used to interpret bulk status responses.

    Values:
        AGGREGATE: Whole-job status summary (numberBatchesTotal etc.).
        BATCH: Legacy per-batch status with a single ``state`` field.
    """

    AGGREGATE = "aggregate"
    BATCH = "batch"


class BatchState(str, Enum):
    """
    Enumeration of the states a single batch can report (legacy protocol).

    Values:
        QUEUED: The batch is waiting to be processed.
        IN_PROGRESS: The batch is being processed.
        COMPLETED: The batch finished processing.
        FAILED: The batch could not be processed.
        NOT_PROCESSED: The batch will not be processed.
        UNKNOWN: The state could not be determined.
    """

    QUEUED = "Queued"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    NOT_PROCESSED = "NotProcessed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> BatchState:
        """Return the matching state, or UNKNOWN for unexpected values."""
        try:
            return cls(str(value))
        except ValueError:
            return cls.UNKNOWN


class JobOutcome(str, Enum):
    """Terminal outcome of a bulk job."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BulkJob:
    """
    Represents a submitted Salesforce bulk job.

    Attributes:
        job_id: Identifier of the bulk job.
        object_name: SObject the job operates on (e.g. Account).
        batch_count: Number of batches reported on submission.
        batch_id: Identifier of the first batch; only used by the legacy
                  per-batch protocol.
    """

    job_id: str
    object_name: str
    batch_count: int
    batch_id: str | None = None


def _as_int(value: Any) -> int:
    # sfdx reports the counters as strings in some versions
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class BulkJobStatus:
    """Aggregate batch counters for a whole bulk job."""

    total: int
    completed: int
    failed: int
    queued: int = 0
    in_progress: int = 0
    processing_time_ms: int = 0

    @classmethod
    def from_result(cls, result: Mapping[str, Any]) -> BulkJobStatus:
        """
        Build a status from a ``force:data:bulk:status`` result body.

        Raises:
            StatusCheckError: numberBatchesTotal is missing or not numeric,
                so completion cannot be decided.
        """
        raw_total = result.get("numberBatchesTotal")
        try:
            total = int(raw_total)
        except (TypeError, ValueError) as exc:
            raise StatusCheckError(
                f"bulk status has no usable numberBatchesTotal: {raw_total!r}"
            ) from exc
        return cls(
            total=total,
            completed=_as_int(result.get("numberBatchesCompleted")),
            failed=_as_int(result.get("numberBatchesFailed")),
            queued=_as_int(result.get("numberBatchesQueued")),
            in_progress=_as_int(result.get("numberBatchesInProgress")),
            processing_time_ms=_as_int(result.get("totalProcessingTime")),
        )

    @property
    def done(self) -> int:
        """Number of batches that are completed or failed."""
        return self.completed + self.failed

    @property
    def is_terminal(self) -> bool:
        """True once every batch is either completed or failed."""
        return self.done == self.total


@dataclass(frozen=True)
class BulkJobResult:
    """Final result of waiting for a bulk job."""

    job: BulkJob
    outcome: JobOutcome
    status: BulkJobStatus | None
    polls: int
