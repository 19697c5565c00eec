import asyncio
import tempfile

import pytest

from sfops.core.errors import ApplicationError, ExecutionError, ParseError
from sfops.core.executor import CommandExecutor, parse_payload


@pytest.fixture
def isolated_tmpdir(tmp_path, monkeypatch):
    tmp_dir = tmp_path / "tmp"
    tmp_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_dir))
    return tmp_dir


def test_execute_returns_payload_and_normalizes_command(fake_sfdx, isolated_tmpdir):
    bin_path, args_file = fake_sfdx({"status": 0, "result": {"connectedStatus": "Connected"}})
    executor = CommandExecutor("me@example.com", sfdx_bin=bin_path)

    payload = asyncio.run(executor.execute("force:org:display"))

    assert payload["result"]["connectedStatus"] == "Connected"
    assert args_file.read_text().split() == [
        "force:org:display",
        "--json",
        "--targetusername",
        "me@example.com",
    ]
    assert list(isolated_tmpdir.iterdir()) == []


def test_execute_rejects_embedded_failure_status(fake_sfdx, isolated_tmpdir):
    bin_path, _ = fake_sfdx({"status": 1, "message": "No org configuration found"})
    executor = CommandExecutor("me", sfdx_bin=bin_path)

    with pytest.raises(ApplicationError, match="No org configuration found") as exc_info:
        asyncio.run(executor.execute("force:org:display"))

    assert exc_info.value.payload["status"] == 1
    assert list(isolated_tmpdir.iterdir()) == []


def test_execute_without_status_check_returns_failed_payload(fake_sfdx, isolated_tmpdir):
    bin_path, _ = fake_sfdx({"status": 1, "message": "boom"})
    executor = CommandExecutor("me", sfdx_bin=bin_path, check_status=False)

    payload = asyncio.run(executor.execute("force:org:display"))

    assert payload["status"] == 1


def test_execute_raises_on_nonzero_exit(fake_sfdx, isolated_tmpdir):
    bin_path, _ = fake_sfdx("", exit_code=3, stderr="bad things")
    executor = CommandExecutor("me", sfdx_bin=bin_path)

    with pytest.raises(ExecutionError) as exc_info:
        asyncio.run(executor.execute("force:org:display"))

    assert exc_info.value.returncode == 3
    assert "bad things" in exc_info.value.stderr
    assert list(isolated_tmpdir.iterdir()) == []


def test_execute_raises_parse_error_on_malformed_output(fake_sfdx, isolated_tmpdir):
    bin_path, _ = fake_sfdx("this is not json")
    executor = CommandExecutor("me", sfdx_bin=bin_path)

    with pytest.raises(ParseError):
        asyncio.run(executor.execute("force:org:display"))

    assert list(isolated_tmpdir.iterdir()) == []


def test_execute_reads_large_output(fake_sfdx, isolated_tmpdir):
    batches = [{"id": f"751{i:05d}", "jobId": "750A", "state": "Queued"} for i in range(5000)]
    bin_path, _ = fake_sfdx({"status": 0, "result": batches})
    executor = CommandExecutor("me", sfdx_bin=bin_path)

    payload = asyncio.run(executor.execute("force:data:bulk:upsert -s Account -f a.csv -i Id"))

    assert len(payload["result"]) == 5000


@pytest.mark.parametrize("raw", ["", "   ", "[1, 2]"])
def test_parse_payload_rejects_non_objects(raw: str):
    with pytest.raises(ParseError):
        parse_payload(raw)
