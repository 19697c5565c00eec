"""Normalization of sfdx command lines.

Every command sent to sfdx must start with the binary, request JSON output
and name the target username exactly once. Detection is token based so
normalizing an already normalized command is a no-op.
"""

from __future__ import annotations

import re

DEFAULT_BIN = "sfdx"
JSON_FLAG = "--json"
USERNAME_FLAGS = ("-u", "--targetusername")

_JSON_RE = re.compile(r"(?:^|\s)--json(?:\s|$)")
_USERNAME_RE = re.compile(r"(?:^|\s)(?:-u|--targetusername)(?:\s|=)")


def has_json_flag(command: str) -> bool:
    """Return True if the command already requests JSON output."""
    return bool(_JSON_RE.search(command))


def has_username_flag(command: str) -> bool:
    """Return True if the command already names a target username."""
    return bool(_USERNAME_RE.search(command))


def normalize_command(command: str, username: str, sfdx_bin: str = "sfdx") -> str:
    """
    Normalize a command line for execution through sfdx.

    - Replaces a leading bare ``sfdx`` with sfdx_bin when they differ.
    - Prefixes the sfdx binary when the command does not start with it.
    - Appends ``--json`` when no JSON flag is present.
    - Appends ``--targetusername <username>`` when neither ``-u`` nor
      ``--targetusername`` is present.

    Args:
        command: Command line, with or without the binary prefix.
        username: Target username or alias of the connected org.
        sfdx_bin: Binary name or path to prefix.

    Returns:
        The normalized command line.
    """
    normalized = command.strip()
    if sfdx_bin != DEFAULT_BIN and (
        normalized == DEFAULT_BIN or normalized.startswith(f"{DEFAULT_BIN} ")
    ):
        normalized = normalized[len(DEFAULT_BIN) :].lstrip()
    if normalized != sfdx_bin and not normalized.startswith(f"{sfdx_bin} "):
        normalized = f"{sfdx_bin} {normalized}"
    if not has_json_flag(normalized):
        normalized = f"{normalized} {JSON_FLAG}"
    if not has_username_flag(normalized):
        normalized = f"{normalized} --targetusername {username}"
    return normalized
