"""CLI for the ``bill_convert`` package.

This module exposes callable command handlers (``cmd_convert``,
``cmd_check``) that return process exit codes, and a Typer-based console
interface wrapping them. A local ``.env`` is loaded with ``python-dotenv``
before any command runs (``BILL_CONVERT_LOG_LEVEL`` is the only variable
consulted). Business logic lives in :mod:`bill_convert.api`.

Exit codes: ``0`` success, ``1`` conversion/validation failure, ``2``
configuration error (unknown member or log level, bad rules file, no inputs).
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .errors import BillConvertError, ConfigError, LedgerValidationError
from .logging_setup import configure_logging
from .models import Provider, parse_member

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def _print_violations(err: LedgerValidationError) -> None:
    print(f"Error: {err}", file=sys.stderr)
    for v in err.violations:
        print(f"  {v.describe()}", file=sys.stderr)
    if err.summary is not None:
        print(err.summary.render(), file=sys.stderr)


def cmd_convert(
    *,
    alipay: Sequence[Path] = (),
    wechat: Sequence[Path] = (),
    output: Path = Path("output.csv"),
    member: str,
    rules_path: Path | None = None,
    include_source: bool = True,
    skip_bad_rows: bool = False,
) -> int:
    """Convert the given bills into one ledger CSV at ``output``.

    Errors are written to stderr and a non-zero exit status is returned. The
    output file is only written when every bill converts and the merged
    ledger validates. With ``skip_bad_rows`` unconvertible rows are reported
    and left out instead of aborting the run.
    """

    # Local imports keep ``--help`` fast
    from .api import BillSource, convert_bills
    from .ingest.rules import load_rules_file

    try:
        selected = parse_member(member)
        if not alipay and not wechat:
            raise ConfigError("no input bills given; pass --alipay and/or --wechat")
        rules = load_rules_file(rules_path) if rules_path is not None else None
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except BillConvertError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    sources = [BillSource.of(Provider.ALIPAY, p) for p in alipay]
    sources += [BillSource.of(Provider.WECHAT, p) for p in wechat]

    try:
        report = convert_bills(
            sources,
            selected,
            output,
            include_source=include_source,
            rules=rules,
            skip_bad_rows=skip_bad_rows,
        )
    except LedgerValidationError as e:
        _print_violations(e)
        print("Output not written; fix the rules above and rerun.", file=sys.stderr)
        return EXIT_FAILURE
    except BillConvertError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    for res in report.results:
        print(
            f"{res.source.provider.value}: {res.source.path} -> "
            f"{res.stats.emitted} records ({res.stats.skipped} skipped)"
        )
        for err in res.errors:
            print(f"  dropped: {err}", file=sys.stderr)
    print(report.summary.render())
    print(f"Wrote {report.summary.total} records to {report.output}")
    return EXIT_OK


def cmd_check(ledger_path: Path) -> int:
    """Re-read a ledger CSV, validate it and print its summary."""

    from .api import check_ledger
    from .writer import read_ledger

    try:
        summary = check_ledger(read_ledger(ledger_path))
    except LedgerValidationError as e:
        _print_violations(e)
        return EXIT_FAILURE
    except BillConvertError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(summary.render())
    return EXIT_OK


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Convert Alipay / WeChat Pay bill exports into a single iCost ledger CSV. "
        "Loads a local .env before running."
    ),
)


@app.command("convert")
def convert_cmd(
    member: Annotated[
        str,
        typer.Option("--member", "-m", help="Household member owning the bills (yang, han)."),
    ],
    alipay: Annotated[
        list[Path] | None,
        typer.Option("--alipay", help="Alipay bill CSV (GBK). Repeatable.", dir_okay=False),
    ] = None,
    wechat: Annotated[
        list[Path] | None,
        typer.Option("--wechat", help="WeChat Pay bill CSV (UTF-8). Repeatable.", dir_okay=False),
    ] = None,
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Ledger CSV to (over)write.", dir_okay=False)
    ] = Path("output.csv"),
    rules: Annotated[
        Path | None,
        typer.Option("--rules", help="JSON file with extra category rules.", dir_okay=False),
    ] = None,
    source_column: Annotated[
        bool,
        typer.Option(
            "--source-column/--no-source-column", help="Append the provider (来源) column."
        ),
    ] = True,
    skip_bad_rows: Annotated[
        bool,
        typer.Option(
            "--skip-bad-rows", help="Leave out rows whose amount or date cannot be parsed."
        ),
    ] = False,
) -> None:
    """Convert bills into one ledger; nothing is written if any check fails."""

    code = cmd_convert(
        alipay=alipay or (),
        wechat=wechat or (),
        output=output,
        member=member,
        rules_path=rules,
        include_source=source_column,
        skip_bad_rows=skip_bad_rows,
    )
    raise typer.Exit(code)


@app.command("check")
def check_cmd(
    ledger_path: Annotated[Path, typer.Argument(help="Ledger CSV produced by convert.")],
) -> None:
    """Validate an existing ledger CSV and print its summary."""

    raise typer.Exit(cmd_check(ledger_path))


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING... (env BILL_CONVERT_LOG_LEVEL)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(EXIT_CONFIG) from e


if __name__ == "__main__":  # pragma: no cover
    app()
