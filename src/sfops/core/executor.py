"""Command execution and JSON extraction for sfdx.

sfdx output can be very large (thousands of batch statuses), so stdout is
written to a temporary file rather than read from a pipe, then parsed as
JSON. The temporary file is always removed once the command finished.
"""

from __future__ import annotations

import asyncio
import json
import tempfile
from typing import Any, Protocol

from sfops.core.commands import normalize_command
from sfops.core.errors import ApplicationError, ExecutionError, ParseError
from sfops.core.log import ClientLog


class CommandRunner(Protocol):
    """Interface for running sfdx commands used by the poller and client."""

    async def execute(self, command: str) -> dict[str, Any]:
        """Run a command and return the parsed JSON payload."""
        ...


class CommandExecutor:
    """Runs sfdx commands in a shell and returns their JSON payload."""

    def __init__(
        self,
        username: str,
        *,
        sfdx_bin: str = "sfdx",
        check_status: bool = True,
        log: ClientLog | None = None,
    ):
        """
        Create an executor bound to one target username.

        Args:
            username: Target username or alias appended to every command.
            sfdx_bin: sfdx binary name or path.
            check_status: When True a payload with ``status > 0`` raises
                ApplicationError. When False the payload is returned as is
                and the caller inspects the status.
            log: Logging capability; defaults to the ``sfops`` logger.
        """
        self.username = username
        self.sfdx_bin = sfdx_bin
        self.check_status = check_status
        self.log = log or ClientLog()

    def normalize(self, command: str) -> str:
        """Return the command with binary, JSON flag and username applied."""
        return normalize_command(command, self.username, self.sfdx_bin)

    async def execute(self, command: str) -> dict[str, Any]:
        """
        Run a command through the shell and return its JSON payload.

        Raises:
            ExecutionError: The process could not be spawned or exited non-zero.
            ParseError: The output was empty or not valid JSON.
            ApplicationError: The payload reports a failure status (only when
                check_status is enabled).
        """
        self.log.verbose(f"received command: {command}")
        normalized = self.normalize(command)
        if normalized != command:
            self.log.verbose(f"command (modified): {normalized}")

        with tempfile.NamedTemporaryFile(
            mode="w+b", prefix="sfops-", suffix=".json"
        ) as out_file:
            try:
                proc = await asyncio.create_subprocess_shell(
                    normalized,
                    stdout=out_file,
                    stderr=asyncio.subprocess.PIPE,
                )
                _, stderr = await proc.communicate()
            except OSError as exc:
                self.log.verbose("command could not be started in shell")
                raise ExecutionError(f"Failed to run '{normalized}': {exc}") from exc

            if proc.returncode != 0:
                self.log.verbose("command resulted in error in shell")
                err_text = stderr.decode(errors="replace").strip()
                raise ExecutionError(
                    f"Command '{normalized}' exited with code {proc.returncode}"
                    + (f": {err_text}" if err_text else ""),
                    returncode=proc.returncode,
                    stderr=err_text,
                )
            self.log.verbose("command succeeded in shell")

            out_file.seek(0)
            raw = out_file.read().decode("utf-8", errors="replace")

        payload = parse_payload(raw)
        if self.check_status and failed_status(payload):
            raise ApplicationError(payload)
        return payload


def parse_payload(raw: str) -> dict[str, Any]:
    """Parse sfdx JSON output, raising ParseError on anything but an object."""
    if not raw.strip():
        raise ParseError("sfdx produced no output")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"sfdx output is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError("sfdx output is not a JSON object")
    return payload


def failed_status(payload: dict[str, Any]) -> bool:
    """Return True if the payload carries an integer status above zero."""
    status = payload.get("status")
    return isinstance(status, int) and not isinstance(status, bool) and status > 0
