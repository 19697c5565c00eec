"""Runtime settings for sfops.

Settings are read from environment variables so that the same values apply
to the CLI and to library use. Invalid values fall back to the defaults
instead of failing, like the jobs cache TTL handling in the adapters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from sfops.core.jobs import PollProtocol

SFDX_BIN_ENV = "SFOPS_SFDX_BIN"
POLL_INTERVAL_ENV = "SFOPS_POLL_INTERVAL"
MAX_POLLS_ENV = "SFOPS_MAX_POLLS"
MAX_WAIT_ENV = "SFOPS_MAX_WAIT"
PROTOCOL_ENV = "SFOPS_PROTOCOL"

DEFAULT_SFDX_BIN = "sfdx"
DEFAULT_POLL_INTERVAL_SECONDS = 10.0


def _positive_float(raw: str | None, default: float | None) -> float | None:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _positive_int(raw: str | None, default: int | None) -> int | None:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """
    Configuration shared by the executor and the bulk job poller.

    Attributes:
        sfdx_bin: Name or path of the sfdx binary prefixed to commands.
        poll_interval: Seconds to wait before each bulk status check.
        max_polls: Optional cap on status checks per job (None = unbounded).
        max_wait: Optional cap in seconds on time spent polling one job.
        protocol: Bulk status protocol (aggregate whole-job or legacy batch).
    """

    sfdx_bin: str = DEFAULT_SFDX_BIN
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_polls: int | None = None
    max_wait: float | None = None
    protocol: PollProtocol = PollProtocol.AGGREGATE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables (os.environ by default)."""
        env = os.environ if environ is None else environ

        sfdx_bin = (env.get(SFDX_BIN_ENV) or "").strip() or DEFAULT_SFDX_BIN

        raw_protocol = (env.get(PROTOCOL_ENV) or "").strip().lower()
        try:
            protocol = PollProtocol(raw_protocol) if raw_protocol else PollProtocol.AGGREGATE
        except ValueError:
            protocol = PollProtocol.AGGREGATE

        return cls(
            sfdx_bin=sfdx_bin,
            poll_interval=_positive_float(
                env.get(POLL_INTERVAL_ENV), DEFAULT_POLL_INTERVAL_SECONDS
            ),
            max_polls=_positive_int(env.get(MAX_POLLS_ENV), None),
            max_wait=_positive_float(env.get(MAX_WAIT_ENV), None),
            protocol=protocol,
        )
