"""Bulk job submission and status polling.

This module drives a Salesforce bulk job from submission to a terminal
state. Polling is an explicit loop with a fixed interval: submission strictly
precedes the first status check and every status check finishes before the
next one is scheduled. Without configured bounds polling continues until the
job reaches a terminal state or a status check fails.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable

from sfops.core.errors import (
    BulkJobFailedError,
    PollTimeoutError,
    SfopsError,
    StatusCheckError,
    SubmissionError,
)
from sfops.core.executor import CommandRunner
from sfops.core.jobs import (
    BatchState,
    BulkJob,
    BulkJobResult,
    BulkJobStatus,
    JobOutcome,
    PollProtocol,
)
from sfops.core.log import ClientLog

StatusCallback = Callable[[BulkJob, BulkJobStatus], None]
Sleeper = Callable[[float], Awaitable[Any]]


def parse_submission(payload: dict[str, Any], object_name: str) -> BulkJob:
    """
    Extract the job handle from a bulk upsert/delete response.

    The result body is a list of batch descriptors; the job id is taken
    from the first descriptor and the batch count is the list length.

    Raises:
        SubmissionError: The result body does not have the expected shape.
    """
    result = payload.get("result")
    if not isinstance(result, list) or not result:
        raise SubmissionError(
            f"Bulk request for {object_name} returned no batch descriptors"
        )
    first = result[0]
    if not isinstance(first, dict) or not first.get("jobId"):
        raise SubmissionError(
            f"Bulk request for {object_name} returned a batch without jobId"
        )
    batch_id = first.get("id")
    return BulkJob(
        job_id=str(first["jobId"]),
        object_name=object_name,
        batch_count=len(result),
        batch_id=str(batch_id) if batch_id else None,
    )


class BulkJobPoller:
    """Submits bulk jobs and waits for them to finish."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        poll_interval: float = 10.0,
        protocol: PollProtocol = PollProtocol.AGGREGATE,
        max_polls: int | None = None,
        max_wait: float | None = None,
        log: ClientLog | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.runner = runner
        self.poll_interval = poll_interval
        self.protocol = protocol
        self.max_polls = max_polls
        self.max_wait = max_wait
        self.log = log or ClientLog()
        self._sleep = sleep
        self._clock = clock

    async def submit(self, command: str, object_name: str) -> BulkJob:
        """Issue the bulk command and return the submitted job handle."""
        try:
            payload = await self.runner.execute(command)
        except SfopsError as exc:
            raise SubmissionError(
                f"Bulk request for {object_name} failed: {exc}"
            ) from exc

        status = payload.get("status")
        if self.protocol is PollProtocol.AGGREGATE and status not in (0, None):
            raise SubmissionError(
                f"Received non-zero status code back, message: {payload.get('message')}"
            )

        job = parse_submission(payload, object_name)
        if job.batch_id and self.protocol is PollProtocol.BATCH:
            self.log.info(
                f"issued bulk request to object ({object_name}) - id {job.batch_id}, "
                f"jobId {job.job_id}, batch count: {job.batch_count}"
            )
        else:
            self.log.info(
                f"issued bulk request to object ({object_name}) - jobId {job.job_id}, "
                f"batch count: {job.batch_count}"
            )
        self.log.verbose(json.dumps(payload))
        return job

    async def submit_bulk_job(
        self,
        command: str,
        object_name: str,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """
        Submit a bulk job and block until it reaches a terminal state.

        Args:
            command: Bulk upsert/delete command line.
            object_name: SObject the job operates on.
            on_status: Optional callback invoked with every observed status.

        Returns:
            The BulkJobResult of the finished job.

        Raises:
            SubmissionError: The job could not be submitted.
            StatusCheckError: A status check failed.
            BulkJobFailedError: The batch failed (per-batch protocol).
            PollTimeoutError: max_polls or max_wait was exceeded.
        """
        job = await self.submit(command, object_name)
        return await self.wait_for_job(job, on_status=on_status)

    async def wait_for_job(
        self,
        job: BulkJob,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """Poll the job at a fixed interval until it is terminal."""
        started = self._clock()
        polls = 0

        while True:
            if self.max_polls is not None and polls >= self.max_polls:
                raise PollTimeoutError(
                    f"bulk jobId {job.job_id} not done after {polls} status checks"
                )
            if self.max_wait is not None and self._clock() - started >= self.max_wait:
                raise PollTimeoutError(
                    f"bulk jobId {job.job_id} not done after {self.max_wait:g}s"
                )

            await self._sleep(self.poll_interval)
            polls += 1

            if self.protocol is PollProtocol.BATCH:
                outcome = await self._check_batch(job)
                if outcome is not None:
                    return BulkJobResult(job=job, outcome=outcome, status=None, polls=polls)
                continue

            status = await self._check_job(job)
            if on_status is not None:
                on_status(job, status)
            if status.is_terminal:
                if status.failed:
                    self.log.warning(
                        f"bulk jobId {job.job_id} finished with {status.failed} "
                        f"failed batch(es) of {status.total}"
                    )
                self.log.info(
                    f"hurrah - bulk jobId {job.job_id} is done "
                    f"({status.processing_time_ms} ms)"
                )
                return BulkJobResult(
                    job=job, outcome=JobOutcome.COMPLETED, status=status, polls=polls
                )
            self.log.info(
                f"bulk jobId {job.job_id} not done yet... {status.done} batches of "
                f"{status.total} are done (completed or failed) - continuing to wait..."
            )

    async def _status(self, command: str, job: BulkJob) -> dict[str, Any]:
        try:
            payload = await self.runner.execute(command)
        except SfopsError as exc:
            raise StatusCheckError(
                f"status check for bulk jobId {job.job_id} failed: {exc}"
            ) from exc
        if payload.get("status") not in (0, None):
            raise StatusCheckError(
                f"non-zero status when asking for status of bulk jobId {job.job_id} "
                f"- message: {payload.get('message')}"
            )
        return payload

    async def _check_job(self, job: BulkJob) -> BulkJobStatus:
        self.log.info(f"asking for overall status for bulk jobId {job.job_id}")
        payload = await self._status(f"force:data:bulk:status --jobid {job.job_id}", job)
        result = payload.get("result")
        if not isinstance(result, dict):
            raise StatusCheckError(
                f"unexpected status response for bulk jobId {job.job_id}"
            )
        status = BulkJobStatus.from_result(result)
        self.log.verbose(
            f"current bulk status, numberBatchesTotal: {status.total}, "
            f"numberBatchesCompleted: {status.completed}, "
            f"numberBatchesFailed: {status.failed}, "
            f"numberBatchesQueued: {status.queued}, "
            f"numberBatchesInProgress: {status.in_progress}"
        )
        return status

    async def _check_batch(self, job: BulkJob) -> JobOutcome | None:
        if not job.batch_id:
            raise StatusCheckError(
                f"bulk jobId {job.job_id} has no batch id to check"
            )
        self.log.info(f"asking for bulk status for id {job.batch_id}, jobId {job.job_id}")
        payload = await self._status(
            f"force:data:bulk:status --batchid {job.batch_id} --jobid {job.job_id}", job
        )
        result = payload.get("result")
        descriptor = result[0] if isinstance(result, list) and result else result
        if not isinstance(descriptor, dict):
            raise StatusCheckError(
                f"unexpected status response for bulk jobId {job.job_id}"
            )
        state = BatchState.parse(descriptor.get("state"))
        self.log.info(
            f"received bulk status for id {job.batch_id}, jobId {job.job_id} "
            f"- state: {state.value}"
        )
        self.log.verbose(json.dumps(payload))

        if state is BatchState.COMPLETED:
            return JobOutcome.COMPLETED
        if state is BatchState.FAILED:
            raise BulkJobFailedError(
                f"batch {job.batch_id} of bulk jobId {job.job_id} failed"
            )
        return None
