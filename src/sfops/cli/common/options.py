"""Common CLI options for the CLI."""

import typer

UsernameOpt = typer.Option(
    None,
    "--target-username",
    "-u",
    envvar="SFOPS_TARGET_USERNAME",
    help="Username or alias of the target org (as known to sfdx)",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log sfdx commands and raw JSON responses",
)

ToolingOpt = typer.Option(
    False,
    "--tooling",
    "-t",
    help="Query the Tooling API instead of the data API",
)

ExternalIdOpt = typer.Option(
    ...,
    "--external-id",
    "-i",
    help="External id field used to match records",
)

WhereOpt = typer.Option(
    ...,
    "--where",
    "-w",
    help="SOQL WHERE clause selecting the records to delete (not escaped)",
)

ConfirmOpt = typer.Option(
    True,
    "--confirm/--no-confirm",
    help="Ask for confirmation before deleting records",
)

WatchOpt = typer.Option(
    True,
    "--watch/--no-watch",
    help="Show a live batch progress bar while the bulk job runs",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show how many records would be deleted, but don't delete anything",
)
