"""Commands for checking the target org."""

import asyncio

import typer

from sfops.cli.common.context import AppContext
from sfops.cli.common.exits import exit_from_exc
from sfops.cli.common.output import out
from sfops.core.errors import SfopsError

app = typer.Typer(help="Inspect the target org", no_args_is_help=True)


@app.command()
def check(ctx: typer.Context):
    """
    Verify that the target username points at a connected org.
    """
    appctx: AppContext = ctx.obj

    try:
        with out.status("Checking org connection..."):
            asyncio.run(appctx.client.ensure_org_connected())
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    out.success(f"Org for {appctx.username} is connected")
