from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))


@pytest.fixture
def fake_sfdx(tmp_path: Path):
    """
    Write a fake sfdx script that prints a canned payload and exits with a code.

    Returns a factory ``make(payload, exit_code=0) -> (bin_path, args_file)``.
    The script records its arguments in args_file.
    """

    def make(payload, exit_code: int = 0, stderr: str = ""):
        out_file = tmp_path / "payload.out"
        out_file.write_text(payload if isinstance(payload, str) else json.dumps(payload))
        args_file = tmp_path / "args.txt"
        script = tmp_path / "sfdx"
        script.write_text(
            "#!/bin/sh\n"
            f'echo "$@" > "{args_file}"\n'
            f'cat "{out_file}"\n'
            + (f'echo "{stderr}" >&2\n' if stderr else "")
            + f"exit {exit_code}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script), args_file

    return make
