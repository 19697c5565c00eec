"""CLI application for Salesforce DX bulk data operations."""

import asyncio

import typer

from sfops.cli.commands.data import app as data_app
from sfops.cli.commands.org import app as org_app
from sfops.cli.common.context import AppContext, build_context
from sfops.cli.common.exits import exit_from_exc
from sfops.cli.common.options import UsernameOpt, VerboseOpt
from sfops.cli.common.output import out
from sfops.core.errors import SfopsError

app = typer.Typer(
    help="sfops - Salesforce DX bulk data operations tooling",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    username: str | None = UsernameOpt,
    verbose: bool = VerboseOpt,
):
    """Build the shared sfdx client once per invocation."""
    ctx.obj = build_context(username, verbose)


@app.command("exec")
def exec_command(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="sfdx command, e.g. 'force:limits:api:display'"),
):
    """
    Run a raw sfdx command and print its JSON result.
    """
    appctx: AppContext = ctx.obj

    try:
        with out.status("Running sfdx..."):
            payload = asyncio.run(appctx.client.execute_raw_command(command))
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    out.json(payload)


app.add_typer(org_app, name="org", help="Check the target org connection.")
app.add_typer(data_app, name="data", help="Bulk upsert / delete / query records.")


if __name__ == "__main__":
    app()
