"""
Command-line interface for the MVP planner.

Loads the planning spreadsheet (remote Google Sheet, a local workbook, or a
directory of CSV exports), applies any assignments and measure toggles given
on the command line, and prints or writes the results.
"""

import click
import datetime
import json
import logging
import pathlib
import sys
import typing

from collections import namedtuple
from stairval.notepad import Notepad

from .engine import InvalidTargetError, PlanningEngine
from .loader import load_csv_directory, load_workbook_as_collections, write_csv_directory
from .record_store import COLLECTION_NAMES, KEY_COLUMNS
from .selection_index import ToggleResult
from .sheets import SheetsClient, SheetsFetchError

AuditEntry = namedtuple("AuditEntry", ["step", "collection", "message", "level"])


@click.group()
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def main(verbose_logging: bool, log_file_path: typing.Optional[str]):
    """MVP planner: assign clinicians to MVPs, pick measures, export the plan."""
    _configure_logging(verbose_logging, log_file_path)


def source_options(command):
    """Options shared by every command that needs the planning data."""
    command = click.option(
        "--sheet-id",
        default=None,
        envvar="MVP_SHEET_ID",
        help="Google Sheet id to fetch from (default: MVP_SHEET_ID or the built-in sheet)",
    )(command)
    command = click.option(
        "-w",
        "--workbook",
        "workbook_path",
        type=click.Path(exists=True, dir_okay=False),
        help="read collections from the worksheets of a local Excel workbook",
    )(command)
    command = click.option(
        "-c",
        "--csv-dir",
        "csv_dir",
        type=click.Path(exists=True, file_okay=False),
        help="read collections from <collection>.csv files in this directory",
    )(command)
    return command


@main.command(name="download")
@click.option(
    "-d",
    "--data-path",
    "data_dir",
    default="data",
    type=click.Path(file_okay=False),
    help="where to save the CSV exports (default: data)",
)
@click.option("--sheet-id", default=None, envvar="MVP_SHEET_ID", help="Google Sheet id to fetch from")
def download(data_dir: str, sheet_id: typing.Optional[str]):
    """
    Download every collection of the planning sheet as <collection>.csv.
    """
    client = SheetsClient(sheet_id=sheet_id)
    click.echo(f"Downloading {len(COLLECTION_NAMES)} collections from sheet {client.sheet_id} …")
    try:
        collections = client.fetch_all()
    except SheetsFetchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    written = write_csv_directory(collections, data_dir)
    click.echo(f"Saved {len(written)} CSV files to {data_dir}")


@main.command(name="audit")
@source_options
@click.option("-r", "--json", "as_json", is_flag=True, help="emit the audit as JSON")
def audit(csv_dir, workbook_path, sheet_id, as_json: bool):
    """Report row counts and missing key columns per collection."""
    collections = _read_collections(csv_dir, workbook_path, sheet_id)
    entries = preprocess(collections)
    if as_json:
        click.echo(json.dumps([entry._asdict() for entry in entries], indent=2))
        return
    click.echo(f"{'COLLECTION':15} {'STEP':15} {'LEVEL':7} MESSAGE")
    for entry in entries:
        line = f"{entry.collection:15} {entry.step:15} {entry.level:7} {entry.message}"
        # color by level
        if entry.level == "error":
            line = click.style(line, fg="red")
        elif entry.level in ("warn", "warning"):
            line = click.style(line, fg="yellow")
        click.echo(line)


@main.command(name="unassigned")
@source_options
@click.option("--specialty", default=None, help="only show this specialty")
@click.option("--search", default=None, help="case-insensitive match on name, specialty or NPI")
def unassigned(csv_dir, workbook_path, sheet_id, specialty, search):
    """List active clinicians not yet assigned to any MVP."""
    engine = _load_engine(csv_dir, workbook_path, sheet_id)
    pool = engine.unassigned_clinicians()
    shown = engine.filter_clinicians(pool, specialty=specialty, search=search)
    for clinician in shown:
        click.echo(
            f"{clinician.clinician_id:8} {clinician.display_name:30} "
            f"{clinician.specialty or 'No specialty':25} NPI: {clinician.npi}"
        )
    if not pool:
        click.echo("All clinicians assigned")
    click.echo(
        f"Found {len(pool)} unassigned clinicians out of {len(engine.clinicians())} total"
        + (f" ({len(shown)} shown)" if len(shown) != len(pool) else "")
    )


@main.command(name="stats")
@source_options
def stats(csv_dir, workbook_path, sheet_id):
    """Print clinician and MVP totals."""
    engine = _load_engine(csv_dir, workbook_path, sheet_id)
    totals = engine.stats()
    click.echo(f"Active clinicians: {totals.total_active_clinicians}")
    click.echo(f"Assigned clinicians: {totals.total_assigned}")
    click.echo(f"Active MVPs: {totals.active_grouping_count}")
    for mvp in engine.active_groupings():
        summary = engine.grouping_summary(mvp.mvp_id)
        click.echo(
            f"  {mvp.title}: {summary.clinician_count} clinicians, "
            f"{summary.selected_count}/{summary.required_count} measures ({summary.member_preview})"
        )


@main.command(name="report")
@source_options
@click.option(
    "-a",
    "--assign",
    "assignments",
    multiple=True,
    metavar="MVP_ID=ID[,ID...]",
    help="assign clinicians to an MVP before reporting (repeatable)",
)
@click.option(
    "-t",
    "--toggle",
    "toggles",
    multiple=True,
    metavar="MVP_ID=MEASURE_ID",
    help="select or deselect a measure for an MVP (repeatable, applied in order)",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="where to write the plan (default: mvp_plans/<timestamp>/mvp-strategic-plan.txt)",
)
@click.option("--organization", envvar="MVP_ORGANIZATION", default=None, help="organization named in the title")
@click.option(
    "--generated-on",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="date printed in the plan (default: today)",
)
def report(csv_dir, workbook_path, sheet_id, assignments, toggles, output_path, organization, generated_on):
    """
    Build the strategic plan:
      - apply each --assign, then each --toggle, in the order given
      - write the plan text file and summarize what was written
    """
    engine = _load_engine(csv_dir, workbook_path, sheet_id)

    try:
        for mvp_id, ids in (_split_pair(value, "--assign") for value in assignments):
            clinician_ids = [i.strip() for i in ids.split(",") if i.strip()]
            conflicts = engine.assigned_elsewhere(mvp_id, clinician_ids)
            added = engine.bulk_assign(mvp_id, clinician_ids)
            click.echo(f"Assigned {added} clinicians to {engine.grouping(mvp_id).title}")
            for clinician_id, other_mvp in conflicts.items():
                click.echo(
                    f"Warning: clinician {clinician_id} is already assigned to {other_mvp}; not reassigned",
                    err=True,
                )
        for mvp_id, measure_id in (_split_pair(value, "--toggle") for value in toggles):
            result = engine.toggle_measure(mvp_id, measure_id)
            if result is ToggleResult.AT_CAPACITY:
                click.echo(
                    f"Warning: {mvp_id} already has {engine.required_count(mvp_id)} measures; "
                    f"{measure_id} not selected",
                    err=True,
                )
    except InvalidTargetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    text = engine.build_report(
        generated_on=generated_on.date() if generated_on else None,
        organization=organization,
    )
    out = pathlib.Path(output_path) if output_path else _prepare_output_dir() / "mvp-strategic-plan.txt"
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as out_f:
        out_f.write(text)

    click.echo(f"Wrote plan for {len(engine.active_groupings())} MVPs to {out}")


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _split_pair(value: str, option: str) -> tuple[str, str]:
    key, sep, rest = value.partition("=")
    if not sep or not key.strip() or not rest.strip():
        raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint=option)
    return key.strip(), rest.strip()


def _read_collections(
    csv_dir: typing.Optional[str],
    workbook_path: typing.Optional[str],
    sheet_id: typing.Optional[str],
) -> dict[str, list[dict[str, str]]]:
    # pick the source: local CSVs, local workbook, or the remote sheet
    if csv_dir and workbook_path:
        raise click.UsageError("Use either --csv-dir or --workbook, not both")
    if csv_dir:
        return load_csv_directory(csv_dir)
    if workbook_path:
        return load_workbook_as_collections(workbook_path)
    try:
        return SheetsClient(sheet_id=sheet_id).fetch_all()
    except SheetsFetchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _load_engine(
    csv_dir: typing.Optional[str],
    workbook_path: typing.Optional[str],
    sheet_id: typing.Optional[str],
) -> PlanningEngine:
    engine = PlanningEngine()
    notepad = engine.load(_read_collections(csv_dir, workbook_path, sheet_id))
    _report_issues(notepad)
    return engine


def _report_issues(notepad: Notepad):
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in load:", err=True)
        for err in notepad.errors():
            click.echo(f"- {err}", err=True)
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in load:", err=True)
        for w in notepad.warnings():
            click.echo(f"- {w}", err=True)


def _prepare_output_dir() -> pathlib.Path:
    # use YYYY-MM-DD_HH-MM-SS for human-readable timestamps
    timestamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_dir = pathlib.Path.cwd() / "mvp_plans" / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def preprocess(collections: typing.Mapping[str, typing.Sequence[typing.Mapping[str, str]]]) -> list[AuditEntry]:
    """
    Run lightweight audits on each collection:
      - row counts
      - presence of the key columns the planner relies on
    """
    entries: list[AuditEntry] = []

    # Step 1: row counts
    for name in COLLECTION_NAMES:
        if name not in collections:
            entries.append(AuditEntry(step="count-rows", collection=name, message="missing", level="warning"))
            continue
        entries.append(AuditEntry(
            step="count-rows",
            collection=name,
            message=f"{len(collections[name])} rows",
            level="info",
        ))

    # Step 2: key columns
    for name, required in KEY_COLUMNS.items():
        records = collections.get(name)
        if not records:
            continue
        columns = set().union(*(record.keys() for record in records))
        missing = sorted(required - columns)
        if missing:
            entries.append(AuditEntry(
                step="key-columns",
                collection=name,
                message=f"missing {missing}",
                level="error",
            ))
    return entries


if __name__ == "__main__":
    main()
