"""Public facade for Salesforce DX bulk data operations.

SfdxClient binds one target username to a command executor and a bulk job
poller, and composes them into the operations callers use: bulk upsert and
delete, query-driven delete, SOQL queries, raw commands and the org
connectivity check. All operations are coroutines.
"""

from __future__ import annotations

import os
import tempfile
from typing import Any

from sfops.core.bulk import BulkJobPoller, StatusCallback
from sfops.core.config import Settings
from sfops.core.errors import (
    ApplicationError,
    ConnectivityError,
    ConstructionError,
    EmptyResultError,
    ParseError,
)
from sfops.core.executor import CommandExecutor, CommandRunner, failed_status
from sfops.core.jobs import BulkJobResult, PollProtocol
from sfops.core.log import ClientLog, LogSink

CONNECTED = "Connected"


def sanitize_soql(soql: str) -> str:
    """Replace double quotes so the query can be wrapped in double quotes."""
    return soql.replace('"', "'")


def write_delete_file(path: str, ids: list[str]) -> None:
    """Write a bulk delete CSV: a quoted ``"Id"`` header then one id per line."""
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write('"Id"\n')
        for record_id in ids:
            fh.write(f"{record_id}\n")


class SfdxClient:
    """Runs bulk data operations against one org through sfdx."""

    def __init__(
        self,
        username: str,
        verbose: bool = False,
        *,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        poller: BulkJobPoller | None = None,
        logger: LogSink | None = None,
    ):
        if not username:
            raise ConstructionError("Missing username")
        self.username = username
        self.verbose = verbose
        self.settings = settings or Settings.from_env()
        self.log = ClientLog(logger, verbose)

        self.runner: CommandRunner = runner or CommandExecutor(
            username,
            sfdx_bin=self.settings.sfdx_bin,
            check_status=self.settings.protocol is PollProtocol.AGGREGATE,
            log=self.log,
        )
        self.poller = poller or BulkJobPoller(
            self.runner,
            poll_interval=self.settings.poll_interval,
            protocol=self.settings.protocol,
            max_polls=self.settings.max_polls,
            max_wait=self.settings.max_wait,
            log=self.log,
        )

    async def bulk_upsert(
        self,
        object_name: str,
        filename: str,
        external_id: str,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """Bulk upsert records of object_name from a CSV file."""
        return await self.bulk_request(
            f"force:data:bulk:upsert -s {object_name} -f {filename} -i {external_id}",
            object_name,
            on_status=on_status,
        )

    async def bulk_delete(
        self,
        object_name: str,
        filename: str,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """Bulk delete records of object_name using ids from a CSV file."""
        return await self.bulk_request(
            f"force:data:bulk:delete -s {object_name} -f {filename}",
            object_name,
            on_status=on_status,
        )

    async def bulk_request(
        self,
        command: str,
        object_name: str,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """Submit a bulk command and wait for the job to finish."""
        return await self.poller.submit_bulk_job(command, object_name, on_status=on_status)

    async def soql_query(self, soql: str, tooling: bool = False) -> dict[str, Any]:
        """
        Run a SOQL query through ``force:data:soql:query``.

        Double quotes in the query are replaced by single quotes; nothing
        else is escaped.

        Args:
            soql: SOQL query.
            tooling: Query the Tooling API instead of the data API.
        """
        command = f'force:data:soql:query -q "{sanitize_soql(soql)}"'
        if tooling:
            command += " -t"
        return await self.runner.execute(command)

    async def data_soql_query(self, soql: str) -> dict[str, Any]:
        return await self.soql_query(soql, tooling=False)

    async def tooling_soql_query(self, soql: str) -> dict[str, Any]:
        return await self.soql_query(soql, tooling=True)

    async def query_records(self, soql: str, tooling: bool = False) -> list[dict[str, Any]]:
        """
        Run a query and return only its records.

        Raises:
            ApplicationError: The payload reports a failure status.
            ParseError: The result body is not a query result object.
        """
        payload = await self.soql_query(soql, tooling=tooling)
        if failed_status(payload):
            raise ApplicationError(payload)
        result = payload.get("result")
        if not isinstance(result, dict):
            raise ParseError("query returned no result object")
        records = result.get("records") or []
        if not isinstance(records, list):
            raise ParseError("query result records is not a list")
        return list(records)

    async def bulk_query_and_delete(
        self,
        object_name: str,
        where: str,
        on_status: StatusCallback | None = None,
    ) -> BulkJobResult:
        """
        Query ids with a WHERE clause and bulk delete the matching records.

        The ids are written to a temporary CSV which is removed once the
        delete finished, whether it succeeded or not. The WHERE clause is
        passed through unvalidated.

        Raises:
            EmptyResultError: The query matched no records.
        """
        self.log.info(f"issuing SOQL using WHERE clause of '{where}' on {object_name} object")
        records = await self.query_records(f"SELECT Id FROM {object_name} WHERE {where}")
        self.log.info(f"received {len(records)} records")
        if not records:
            raise EmptyResultError(f"No {object_name} records match WHERE {where}")

        fd, path = tempfile.mkstemp(prefix="sfops-delete-", suffix=".csv")
        os.close(fd)
        try:
            write_delete_file(path, [str(r["Id"]) for r in records])
            self.log.verbose(f"wrote CSV file {path} with {object_name} Ids to delete")
            return await self.bulk_delete(object_name, path, on_status=on_status)
        finally:
            os.remove(path)

    async def execute_raw_command(self, command: str) -> dict[str, Any]:
        """Run any sfdx command and return its JSON payload."""
        return await self.runner.execute(command)

    async def ensure_org_connected(self) -> None:
        """
        Verify that the target username points at a connected org.

        A missing ``connectedStatus`` is treated as connected.

        Raises:
            ConnectivityError: The org reports any status but Connected.
        """
        payload = await self.runner.execute("force:org:display")
        if failed_status(payload):
            raise ApplicationError(payload)
        result = payload.get("result") or {}
        if "connectedStatus" in result and result["connectedStatus"] != CONNECTED:
            raise ConnectivityError(str(result["connectedStatus"]))
