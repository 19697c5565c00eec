import asyncio
import logging
import os
import shlex
import tempfile

import pytest

from sfops.core.client import SfdxClient, sanitize_soql
from sfops.core.config import Settings
from sfops.core.errors import (
    ApplicationError,
    ConnectivityError,
    ConstructionError,
    EmptyResultError,
    ExecutionError,
    ParseError,
    SubmissionError,
)
from sfops.core.jobs import JobOutcome, PollProtocol


class _Runner:
    """Answers sfdx commands by prefix and snapshots bulk delete CSV files."""

    def __init__(self, *, records=None, org=None, delete_error=None):
        self.records = records or []
        self.org = org if org is not None else {"connectedStatus": "Connected"}
        self.delete_error = delete_error
        self.commands: list[str] = []
        self.delete_files: list[str] = []
        self.delete_lines: list[str] = []

    async def execute(self, command: str):
        self.commands.append(command)
        if command.startswith("force:data:soql:query"):
            return {"status": 0, "result": {"totalSize": len(self.records), "records": self.records}}
        if command.startswith("force:data:bulk:delete"):
            args = shlex.split(command)
            path = args[args.index("-f") + 1]
            self.delete_files.append(path)
            with open(path, encoding="utf-8") as fh:
                self.delete_lines = fh.read().splitlines()
            if self.delete_error:
                raise self.delete_error
            return {"status": 0, "result": [{"id": "751A", "jobId": "750A"}]}
        if command.startswith("force:data:bulk:upsert"):
            return {"status": 0, "result": [{"id": "751A", "jobId": "750B"}]}
        if command.startswith("force:data:bulk:status"):
            return {
                "status": 0,
                "result": {"numberBatchesTotal": 1, "numberBatchesCompleted": 1, "numberBatchesFailed": 0},
            }
        if command.startswith("force:org:display"):
            return {"status": 0, "result": self.org}
        raise AssertionError(f"unexpected command {command}")


@pytest.fixture
def isolated_tmpdir(tmp_path, monkeypatch):
    tmp_dir = tmp_path / "tmp"
    tmp_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_dir))
    return tmp_dir


def _client(runner, **kwargs):
    return SfdxClient("me@example.com", settings=Settings(poll_interval=0), runner=runner, **kwargs)


def test_client_requires_username():
    with pytest.raises(ConstructionError, match="Missing username"):
        SfdxClient("", settings=Settings())


def test_bulk_upsert_builds_command_and_waits():
    runner = _Runner()
    result = asyncio.run(_client(runner).bulk_upsert("Account", "accounts.csv", "Ext_Id__c"))

    assert runner.commands[0] == "force:data:bulk:upsert -s Account -f accounts.csv -i Ext_Id__c"
    assert runner.commands[1] == "force:data:bulk:status --jobid 750B"
    assert result.outcome is JobOutcome.COMPLETED


def test_query_and_delete_writes_csv_and_removes_it(isolated_tmpdir):
    runner = _Runner(records=[{"Id": "001"}, {"Id": "002"}])

    result = asyncio.run(_client(runner).bulk_query_and_delete("Account", "Name LIKE 'tmp%'"))

    assert result.job.job_id == "750A"
    assert runner.commands[0] == "force:data:soql:query -q \"SELECT Id FROM Account WHERE Name LIKE 'tmp%'\""
    assert runner.delete_lines == ['"Id"', "001", "002"]
    assert not os.path.exists(runner.delete_files[0])
    assert list(isolated_tmpdir.iterdir()) == []


def test_query_and_delete_removes_csv_when_delete_fails(isolated_tmpdir):
    runner = _Runner(records=[{"Id": "001"}, {"Id": "002"}], delete_error=ExecutionError("boom"))

    with pytest.raises(SubmissionError, match="boom"):
        asyncio.run(_client(runner).bulk_query_and_delete("Account", "Name = 'x'"))

    assert runner.delete_lines == ['"Id"', "001", "002"]
    assert not os.path.exists(runner.delete_files[0])


def test_query_and_delete_with_no_records_does_not_delete(isolated_tmpdir):
    runner = _Runner(records=[])

    with pytest.raises(EmptyResultError):
        asyncio.run(_client(runner).bulk_query_and_delete("Account", "Name = 'nothing'"))

    assert len(runner.commands) == 1
    assert runner.delete_files == []
    assert list(isolated_tmpdir.iterdir()) == []


def test_soql_query_sanitizes_double_quotes_and_supports_tooling():
    runner = _Runner()
    client = _client(runner)

    asyncio.run(client.data_soql_query('SELECT Id FROM Account WHERE Name = "Acme"'))
    asyncio.run(client.tooling_soql_query("SELECT Id FROM ApexClass"))

    assert runner.commands == [
        "force:data:soql:query -q \"SELECT Id FROM Account WHERE Name = 'Acme'\"",
        'force:data:soql:query -q "SELECT Id FROM ApexClass" -t',
    ]


def test_sanitize_soql_leaves_single_quotes():
    assert sanitize_soql("Name = 'a' OR Name = \"b\"") == "Name = 'a' OR Name = 'b'"


def test_execute_raw_command_passes_through():
    runner = _Runner()
    payload = asyncio.run(_client(runner).execute_raw_command("force:org:display"))

    assert payload["result"]["connectedStatus"] == "Connected"


def test_ensure_org_connected_resolves_when_connected():
    asyncio.run(_client(_Runner()).ensure_org_connected())


def test_ensure_org_connected_treats_missing_status_as_connected():
    asyncio.run(_client(_Runner(org={"username": "me"})).ensure_org_connected())


def test_ensure_org_connected_rejects_with_reported_status():
    runner = _Runner(org={"connectedStatus": "RefreshTokenAuthError"})

    with pytest.raises(ConnectivityError) as exc_info:
        asyncio.run(_client(runner).ensure_org_connected())

    assert exc_info.value.connected_status == "RefreshTokenAuthError"


def test_verbose_messages_only_for_verbose_clients():
    class _Sink:
        def __init__(self):
            self.records: list[tuple[int, str]] = []

        def log(self, level: int, msg: str) -> None:
            self.records.append((level, msg))

    quiet, chatty = _Sink(), _Sink()
    records = [{"Id": "001"}]
    asyncio.run(_client(_Runner(records=records), logger=quiet).bulk_query_and_delete("Account", "Id != null"))
    asyncio.run(
        SfdxClient(
            "me", True, settings=Settings(poll_interval=0), runner=_Runner(records=records), logger=chatty
        ).bulk_query_and_delete("Account", "Id != null")
    )

    assert all(level >= logging.INFO for level, _ in quiet.records)
    assert any(level == logging.DEBUG for level, _ in chatty.records)
    assert all(msg.startswith("SFDX - ") for _, msg in chatty.records)


class _FixedRunner:
    """Answers every command with the same payload."""

    def __init__(self, payload):
        self.payload = payload
        self.commands: list[str] = []

    async def execute(self, command: str):
        self.commands.append(command)
        return self.payload


def _batch_client(runner):
    settings = Settings(poll_interval=0, protocol=PollProtocol.BATCH)
    return SfdxClient("me@example.com", settings=settings, runner=runner)


def test_failed_query_is_not_mistaken_for_no_records(isolated_tmpdir):
    runner = _FixedRunner({"status": 1, "message": "INVALID_FIELD: bad where"})

    with pytest.raises(ApplicationError, match="INVALID_FIELD"):
        asyncio.run(_batch_client(runner).bulk_query_and_delete("Account", "Nmae = 'x'"))

    assert len(runner.commands) == 1
    assert list(isolated_tmpdir.iterdir()) == []


@pytest.mark.parametrize(
    "payload",
    [
        {"status": 0, "result": [{"Id": "001"}]},
        {"status": 0},
        {"status": 0, "result": {"records": {"Id": "001"}}},
    ],
)
def test_query_records_rejects_unexpected_result_shapes(payload):
    with pytest.raises(ParseError):
        asyncio.run(_batch_client(_FixedRunner(payload)).query_records("SELECT Id FROM Account"))


def test_ensure_org_connected_surfaces_failed_display():
    runner = _FixedRunner({"status": 1, "message": "No authorization information found"})

    with pytest.raises(ApplicationError, match="No authorization"):
        asyncio.run(_batch_client(runner).ensure_org_connected())
