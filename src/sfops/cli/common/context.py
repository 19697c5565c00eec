"""Application context management for the CLI."""

import logging
from dataclasses import dataclass

from rich.logging import RichHandler

from sfops.cli.common.exits import die
from sfops.cli.common.output import console
from sfops.core.client import SfdxClient
from sfops.core.config import Settings
from sfops.core.errors import ConstructionError


@dataclass
class AppContext:
    """Application context holding the settings and the sfdx client."""

    username: str
    verbose: bool
    settings: Settings
    client: SfdxClient


def configure_logging(verbose: bool) -> None:
    """Route the sfops logger through rich at INFO, or DEBUG when verbose."""
    logger = logging.getLogger("sfops")
    logger.handlers.clear()
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def build_context(username: str | None, verbose: bool = False) -> AppContext:
    """Build and return the application context with settings and client.

    Args:
        username: Target username or alias of the org.
        verbose: Enable verbose logging of commands and payloads.

    Returns:
        AppContext: Application context with a configured client.
    """
    configure_logging(verbose)
    settings = Settings.from_env()
    try:
        client = SfdxClient(username or "", verbose, settings=settings)
    except ConstructionError:
        die(
            "Missing target username: pass --target-username or set SFOPS_TARGET_USERNAME",
            code=2,
        )
    return AppContext(
        username=client.username, verbose=verbose, settings=settings, client=client
    )
