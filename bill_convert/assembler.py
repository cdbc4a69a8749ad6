"""Merge, order and validate ledger records before they are written.

- :func:`merge_records` concatenates per-file batches and stable-sorts them
  newest first by the canonical date string (zero-padded, field-ordered, so
  lexical order is time order).
- :func:`validate_records` scans the whole collection and returns every
  :class:`Violation`; each one is also logged as a warning.
- :func:`assemble` does both and raises ``LedgerValidationError`` when any
  violation exists, so partially invalid output is never persisted. The
  error carries the summary of the rejected ledger.
- :func:`summarize` tallies records by type and lists records that need a
  manual follow-up (unresolved transfer targets, unknown types).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .errors import LedgerValidationError
from .logging_setup import get_logger
from .models import UNRESOLVED_ACCOUNT, LedgerRecord, TransactionType

_logger = get_logger("bill_convert.assembler")


@dataclass(frozen=True, slots=True)
class Violation:
    index: int
    record: LedgerRecord
    problem: str

    def describe(self) -> str:
        r = self.record
        return f"#{self.index} {r.date} {r.source} {r.type} {r.amount}: {self.problem}"


@dataclass(slots=True)
class LedgerSummary:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    unresolved_transfers: list[LedgerRecord] = field(default_factory=list)
    unknown_types: list[LedgerRecord] = field(default_factory=list)

    @property
    def needs_followup(self) -> bool:
        return bool(self.unresolved_transfers or self.unknown_types)

    def render(self) -> str:
        lines = [f"records: {self.total}"]
        for t in TransactionType:
            lines.append(f"  {t.value}: {self.by_type.get(t.value, 0)}")
        for label, count in self.by_type.items():
            if not TransactionType.is_known(label):
                lines.append(f"  {label or '<empty>'}: {count}")
        if self.unresolved_transfers:
            lines.append("transfers needing a target account:")
            for r in self.unresolved_transfers:
                target = r.account2 or "<empty>"
                lines.append(
                    f"  {r.date} {r.source} {r.amount} {r.account1} -> {target} ({r.remark})"
                )
        if self.unknown_types:
            lines.append("records with an unknown type:")
            lines.extend(
                f"  {r.date} {r.source} {r.type or '<empty>'} {r.amount} ({r.remark})"
                for r in self.unknown_types
            )
        return "\n".join(lines)


def merge_records(batches: Iterable[Iterable[LedgerRecord]]) -> list[LedgerRecord]:
    merged: list[LedgerRecord] = []
    for batch in batches:
        merged.extend(batch)
    # sorted() is stable with reverse=True: equal dates keep input order.
    return sorted(merged, key=lambda r: r.date, reverse=True)


def _problems(record: LedgerRecord) -> list[str]:
    problems: list[str] = []
    if not record.date:
        problems.append("date is empty")
    if not TransactionType.is_known(record.type):
        problems.append(f"unknown transaction type {record.type!r}")
    if not record.account1:
        problems.append("account1 is empty")
    if record.type == TransactionType.TRANSFER.value:
        if not record.account2:
            problems.append("transfer without account2")
        if record.category1 or record.category2:
            problems.append("transfer carries a category")
    if record.amount < 0:
        problems.append("amount is negative")
    return problems


def validate_records(records: Sequence[LedgerRecord]) -> list[Violation]:
    violations: list[Violation] = []
    for i, record in enumerate(records):
        for problem in _problems(record):
            v = Violation(index=i, record=record, problem=problem)
            _logger.warning("assembler:invalid_record %s", v.describe())
            violations.append(v)
    return violations


def assemble(batches: Iterable[Iterable[LedgerRecord]]) -> list[LedgerRecord]:
    """Merge and sort ``batches``; raise ``LedgerValidationError`` on any violation."""

    records = merge_records(batches)
    violations = validate_records(records)
    if violations:
        _logger.error(
            "assembler:validation_failed records=%d violations=%d",
            len(records),
            len(violations),
        )
        raise LedgerValidationError(violations, summary=summarize(records))
    return records


def summarize(records: Iterable[LedgerRecord]) -> LedgerSummary:
    summary = LedgerSummary()
    counts: Counter[str] = Counter()
    for r in records:
        summary.total += 1
        counts[r.type] += 1
        if r.type == TransactionType.TRANSFER.value and r.account2 in ("", UNRESOLVED_ACCOUNT):
            summary.unresolved_transfers.append(r)
        if not TransactionType.is_known(r.type):
            summary.unknown_types.append(r)
    summary.by_type = dict(counts)
    return summary


__all__ = [
    "Violation",
    "LedgerSummary",
    "merge_records",
    "validate_records",
    "assemble",
    "summarize",
]
