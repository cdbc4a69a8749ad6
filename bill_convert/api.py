"""Public orchestration for converting bill exports into one ledger.

The run is atomic: every bill is read and converted first, row-level format
failures from all files are collected, the merged ledger is validated, and
only then is the output written. Any failure along the way leaves the output
path untouched. Collected row failures end the run unless the caller opts in
to ``skip_bad_rows``, in which case those rows are left out and reported on
each :class:`BillResult`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from .assembler import LedgerSummary, assemble, summarize
from .errors import BillFormatError
from .ingest.adapters import ConversionStats, get_adapter
from .ingest.reader import BillReader
from .ingest.rules import CategoryRule, RulesFile
from .logging_setup import get_logger
from .models import LedgerRecord, Member, Provider
from .writer import write_ledger

_logger = get_logger("bill_convert.api")


@dataclass(frozen=True, slots=True)
class BillSource:
    provider: Provider
    path: Path

    @classmethod
    def of(cls, provider: Provider, path: str | PathLike[str]) -> BillSource:
        return cls(provider=provider, path=Path(path))


@dataclass(slots=True)
class BillResult:
    source: BillSource
    records: list[LedgerRecord] = field(default_factory=list)
    errors: list[BillFormatError] = field(default_factory=list)
    stats: ConversionStats = field(default_factory=ConversionStats)


@dataclass(frozen=True, slots=True)
class ConversionReport:
    output: Path
    results: tuple[BillResult, ...]
    summary: LedgerSummary


def _rules_for(provider: Provider, rules: RulesFile | None) -> list[CategoryRule]:
    return rules.rules_for(provider) if rules is not None else []


def load_bill(
    source: BillSource,
    member: Member,
    *,
    rules: RulesFile | None = None,
) -> BillResult:
    """Read and convert one bill file.

    Row-scoped failures (bad amount, strict-policy date) are collected on
    :attr:`BillResult.errors` and the row is dropped. ``BillIOError`` and
    file-level ``BillFormatError`` (undecodable bytes, missing header)
    propagate.
    """

    adapter = get_adapter(source.provider, _rules_for(source.provider, rules))
    reader = BillReader(
        source.path, encoding=adapter.encoding, header_marker=adapter.header_marker
    )
    result = BillResult(source=source)
    result.records.extend(
        adapter.convert_rows(reader, member, errors=result.errors, stats=result.stats)
    )
    if not reader.header_found:
        raise BillFormatError(
            f"{source.path}: header row containing {adapter.header_marker!r} not found; "
            f"is this a {adapter.label} bill?",
            provider=adapter.label,
        )
    _logger.info(
        "api:bill_loaded path=%s provider=%s emitted=%d skipped=%d errors=%d",
        source.path,
        source.provider.value,
        result.stats.emitted,
        result.stats.skipped,
        len(result.errors),
    )
    return result


def convert_bills(
    sources: Sequence[BillSource],
    member: Member,
    output: str | PathLike[str],
    *,
    include_source: bool = True,
    rules: RulesFile | None = None,
    skip_bad_rows: bool = False,
) -> ConversionReport:
    """Convert ``sources`` into a single ledger at ``output``.

    Raises ``BillFormatError`` listing every row-level failure across all
    files (unless ``skip_bad_rows``), ``LedgerValidationError`` when the merged
    ledger is structurally invalid, and ``BillIOError`` on read/write
    failures. Nothing is written unless every stage succeeds.
    """

    results = [load_bill(src, member, rules=rules) for src in sources]

    row_errors = [err for res in results for err in res.errors]
    if row_errors and skip_bad_rows:
        _logger.warning("api:bad_rows_skipped count=%d", len(row_errors))
    elif row_errors:
        details = "\n".join(f"  {err}" for err in row_errors)
        raise BillFormatError(f"{len(row_errors)} row(s) could not be converted:\n{details}")

    records = assemble(res.records for res in results)
    write_ledger(output, records, include_source=include_source)
    return ConversionReport(
        output=Path(output),
        results=tuple(results),
        summary=summarize(records),
    )


def check_ledger(records: Iterable[LedgerRecord]) -> LedgerSummary:
    """Validate an existing ledger and return its summary.

    Raises ``LedgerValidationError`` when any record is invalid.
    """

    ordered = assemble([records])
    return summarize(ordered)


__all__ = [
    "BillSource",
    "BillResult",
    "ConversionReport",
    "load_bill",
    "convert_bills",
    "check_ledger",
]
