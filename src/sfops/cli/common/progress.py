"""Progress display for running bulk jobs."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from sfops.cli.common.output import console
from sfops.core.bulk import StatusCallback
from sfops.core.jobs import BulkJob, BulkJobStatus


def _batch_fields(status: BulkJobStatus) -> dict[str, int]:
    """Map a status summary onto the fields shown next to the bar."""
    return {
        "failures": status.failed,
        "queued": status.queued,
        "in_progress": status.in_progress,
    }


@contextmanager
def batch_progress(enabled: bool = True) -> Iterator[StatusCallback | None]:
    """
    Yield a status callback that renders batch progress per bulk job.

    Shows one bar per job (done/total batches) with failure, queued and
    in-progress counters. Yields None when disabled so callers can pass the
    result straight to the client.
    """
    if not enabled:
        yield None
        return

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}[/]"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("failures=[bold red]{task.fields[failures]}[/]"),
        TextColumn("[dim]queued={task.fields[queued]} running={task.fields[in_progress]}[/]"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    task_ids: dict[str, TaskID] = {}

    def _on_status(job: BulkJob, status: BulkJobStatus) -> None:
        if job.job_id not in task_ids:
            task_ids[job.job_id] = progress.add_task(
                f"{job.object_name} ({job.job_id})",
                total=max(status.total, 1),
                failures=0,
                queued=0,
                in_progress=0,
            )
        progress.update(
            task_ids[job.job_id],
            total=max(status.total, 1),
            completed=status.done,
            **_batch_fields(status),
        )

    with progress:
        yield _on_status
