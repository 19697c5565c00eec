"""Commands for bulk data operations."""

import asyncio
from pathlib import Path

import typer

from sfops.cli.common.context import AppContext
from sfops.cli.common.exits import exit_from_exc, ok_exit, warn_exit
from sfops.cli.common.options import (
    ConfirmOpt,
    DryRunOpt,
    ExternalIdOpt,
    ToolingOpt,
    WatchOpt,
    WhereOpt,
)
from sfops.cli.common.output import out
from sfops.cli.common.progress import batch_progress
from sfops.core.errors import EmptyResultError, SfopsError
from sfops.core.jobs import BulkJobResult

app = typer.Typer(help="Bulk upsert / delete / query Salesforce data", no_args_is_help=True)


def _report(result: BulkJobResult) -> None:
    out.job_result_table(result, title="Bulk job")
    if result.status and result.status.failed:
        out.warn(
            f"{result.status.failed} of {result.status.total} batch(es) failed; "
            "check the job in Setup > Bulk Data Load Jobs"
        )
    else:
        out.success(f"Bulk job {result.job.job_id} completed")


def _require_file(path: Path) -> None:
    if not path.is_file():
        warn_exit(f"File not found: {path}", code=2)


@app.command()
def upsert(
    ctx: typer.Context,
    object_name: str = typer.Argument(..., help="SObject name, e.g. Account"),
    file: Path = typer.Argument(..., help="CSV file with the records"),
    external_id: str = ExternalIdOpt,
    watch: bool = WatchOpt,
):
    """
    Bulk upsert records from a CSV file and wait for the job.
    """
    appctx: AppContext = ctx.obj
    _require_file(file)

    try:
        with batch_progress(watch) as on_status:
            result = asyncio.run(
                appctx.client.bulk_upsert(object_name, str(file), external_id, on_status)
            )
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    _report(result)


@app.command()
def delete(
    ctx: typer.Context,
    object_name: str = typer.Argument(..., help="SObject name, e.g. Account"),
    file: Path = typer.Argument(..., help='CSV file with an "Id" column'),
    confirm: bool = ConfirmOpt,
    watch: bool = WatchOpt,
):
    """
    Bulk delete records using ids from a CSV file and wait for the job.
    """
    appctx: AppContext = ctx.obj
    _require_file(file)

    if confirm and not out.confirm(f"Delete {object_name} records listed in {file}?"):
        ok_exit("Cancelled")

    try:
        with batch_progress(watch) as on_status:
            result = asyncio.run(appctx.client.bulk_delete(object_name, str(file), on_status))
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    _report(result)


@app.command("query-delete")
def query_delete(
    ctx: typer.Context,
    object_name: str = typer.Argument(..., help="SObject name, e.g. Account"),
    where: str = WhereOpt,
    confirm: bool = ConfirmOpt,
    watch: bool = WatchOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Query record ids with a WHERE clause and bulk delete them.
    """
    appctx: AppContext = ctx.obj
    soql = f"SELECT Id FROM {object_name} WHERE {where}"

    if dry_run or confirm:
        try:
            with out.status("Counting records..."):
                records = asyncio.run(appctx.client.query_records(soql))
        except SfopsError as exc:
            exit_from_exc(exc, message=str(exc))

        if not records:
            warn_exit(f"No {object_name} records match the WHERE clause", code=0)

        out.kv({"object": object_name, "where": where, "records": len(records)})

        if dry_run:
            warn_exit("Dry-run enabled: no records were deleted", code=0)

        if not out.confirm(f"Delete {len(records)} {object_name} record(s)?"):
            ok_exit("Cancelled")

    try:
        with batch_progress(watch) as on_status:
            result = asyncio.run(
                appctx.client.bulk_query_and_delete(object_name, where, on_status)
            )
    except EmptyResultError as exc:
        warn_exit(str(exc), code=0)
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    _report(result)


@app.command()
def query(
    ctx: typer.Context,
    soql: str = typer.Argument(..., help="SOQL query"),
    tooling: bool = ToolingOpt,
):
    """
    Run a SOQL query and show the records.
    """
    appctx: AppContext = ctx.obj

    try:
        with out.status("Running query..."):
            records = asyncio.run(appctx.client.query_records(soql, tooling=tooling))
    except SfopsError as exc:
        exit_from_exc(exc, message=str(exc))

    if not records:
        warn_exit("No records found", code=0)

    out.records_table(records, title=f"{len(records)} record(s)")
