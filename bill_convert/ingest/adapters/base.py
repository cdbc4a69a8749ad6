"""Shared row -> ledger pipeline for provider adapters.

Every provider runs the same ordered steps; subclasses only supply data:

1. extraction via :class:`ColumnMap`
2. amount parsing (``BillFormatError`` on failure)
3. carve-outs, then skip rules (rows dropped with a DEBUG diagnostic)
4. direction reclassification
5. account resolution: compound split, canonical names, member suffix
6. category inference (skipped for transfers)
7. remark composition
8. date normalization under the adapter's :class:`DatePolicy`

Adapters are stateless apart from the extra category rules passed at
construction, so one instance can convert any number of files.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import ClassVar

from ...errors import BillFormatError
from ...logging_setup import get_logger
from ...models import (
    DEFAULT_CURRENCY,
    UNCATEGORIZED,
    LedgerRecord,
    Member,
    Provider,
    TransactionType,
)
from ..rules import (
    CategoryRule,
    Draft,
    RawRow,
    Reclassification,
    SkipRule,
    split_category_rules,
)
from ..utils import field_at, format_ledger_date, parse_amount

_logger = get_logger("bill_convert.ingest.adapters")


class DatePolicy(StrEnum):
    # Unparsable timestamps fail the row
    STRICT = "strict"
    # Unparsable timestamps are passed through unchanged with a warning
    LENIENT = "lenient"


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Zero-based column positions; ``None`` means the provider has no such column."""

    time: int
    declared_type: int | None
    counterparty: int | None
    description: int | None
    direction: int
    amount: int
    account: int | None
    status: int | None
    remark: int | None

    def extract(self, fields: Sequence[str]) -> RawRow:
        return RawRow(
            time=field_at(fields, self.time),
            declared_type=field_at(fields, self.declared_type),
            counterparty=field_at(fields, self.counterparty),
            description=field_at(fields, self.description),
            direction=field_at(fields, self.direction),
            amount_text=field_at(fields, self.amount),
            account=field_at(fields, self.account),
            status=field_at(fields, self.status),
            remark=field_at(fields, self.remark),
        )


@dataclass(slots=True)
class ConversionStats:
    emitted: int = 0
    skipped: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)
    manual_followups: int = 0

    def note_skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1


class SourceAdapter:
    """Base class holding the pipeline; subclasses fill in the tables."""

    provider: ClassVar[Provider]
    label: ClassVar[str]
    encoding: ClassVar[str]
    header_marker: ClassVar[str] = "交易时间"
    columns: ClassVar[ColumnMap]
    date_formats: ClassVar[tuple[str, ...]]
    date_policy: ClassVar[DatePolicy] = DatePolicy.STRICT

    carve_outs: ClassVar[tuple[Reclassification, ...]] = ()
    skip_rules: ClassVar[tuple[SkipRule, ...]] = ()
    reclassifications: ClassVar[tuple[Reclassification, ...]] = ()

    account_aliases: ClassVar[Mapping[str, str]] = {}
    shared_accounts: ClassVar[frozenset[str]] = frozenset()
    compound_account_separator: ClassVar[str | None] = None

    category_rules: ClassVar[tuple[CategoryRule, ...]] = ()
    currency_glyphs: ClassVar[Mapping[str, str]] = {}
    remark_separator: ClassVar[str] = ": "

    def __init__(self, extra_category_rules: Iterable[CategoryRule] = ()):
        extra_cp, extra_remark = split_category_rules(list(extra_category_rules))
        builtin_cp, builtin_remark = split_category_rules(self.category_rules)
        # User counterparty rules win over built-ins; user remark rules run last.
        self._counterparty_rules = [*extra_cp, *builtin_cp]
        self._remark_rules = [*builtin_remark, *extra_remark]

    # ---- pipeline ---------------------------------------------------------

    def convert_rows(
        self,
        rows: Iterable[Sequence[str]],
        member: Member,
        *,
        errors: list[BillFormatError] | None = None,
        stats: ConversionStats | None = None,
    ) -> Iterator[LedgerRecord]:
        """Yield one record per convertible row.

        Row-scoped ``BillFormatError``s are appended to ``errors`` when given
        (and the row dropped); otherwise they propagate and end the iteration.
        """

        for fields in rows:
            try:
                record = self.convert_row(fields, member, stats=stats)
            except BillFormatError as exc:
                if errors is None:
                    raise
                _logger.error("adapter:row_failed provider=%s error=%s", self.label, exc)
                errors.append(exc)
                continue
            if record is not None:
                if stats is not None:
                    stats.emitted += 1
                yield record

    def convert_row(
        self,
        fields: Sequence[str],
        member: Member,
        *,
        stats: ConversionStats | None = None,
    ) -> LedgerRecord | None:
        row = self.columns.extract(fields)

        try:
            amount = parse_amount(row.amount_text)
        except ValueError as exc:
            raise BillFormatError(str(exc), provider=self.label, time=row.time) from exc

        draft = Draft(type=row.direction, account1=row.account)

        for rule in self.carve_outs:
            if rule.when.matches(row, draft, amount):
                rule.then.apply(row, draft)
                _logger.debug(
                    "adapter:carve_out provider=%s time=%s rule=%s",
                    self.label,
                    row.time,
                    rule.name,
                )
                break

        for skip in self.skip_rules:
            if skip.when.matches(row, draft, amount):
                _logger.debug(
                    "adapter:row_skipped provider=%s time=%s reason=%s row=%r",
                    self.label,
                    row.time,
                    skip.reason,
                    list(fields),
                )
                if stats is not None:
                    stats.note_skip(skip.reason)
                return None

        for rule in self.reclassifications:
            if rule.when.matches(row, draft, amount):
                rule.then.apply(row, draft)
                break

        if draft.needs_manual_account:
            _logger.warning(
                "adapter:manual_account_needed provider=%s time=%s description=%s "
                "hint=fill in the transfer target account by hand",
                self.label,
                row.time,
                row.description,
            )
            if stats is not None:
                stats.manual_followups += 1

        account1 = self.resolve_account(draft.account1, member)
        account2 = self.resolve_account(draft.account2, member)

        if draft.type == TransactionType.TRANSFER.value:
            category1, category2 = "", ""
        else:
            category1, category2 = self.categorize(row, draft.type, amount)

        remark = draft.remark if draft.remark is not None else self.compose_remark(row)

        return LedgerRecord(
            date=self.normalize_date(row.time),
            type=draft.type,
            amount=amount,
            category1=category1,
            category2=category2,
            account1=account1,
            account2=account2,
            remark=remark,
            currency=self.currency_for(row.amount_text),
            tag="",
            source=self.label,
        )

    # ---- overridable steps -------------------------------------------------

    def resolve_account(self, raw: str, member: Member) -> str:
        account = raw.strip()
        if not account:
            return ""
        if self.compound_account_separator:
            account = account.split(self.compound_account_separator, 1)[0].strip()
        account = self.account_aliases.get(account, account)
        if account in self.shared_accounts:
            account += member.suffix
        return account

    def categorize(self, row: RawRow, direction: str, amount: Decimal) -> tuple[str, str]:
        category1, category2 = UNCATEGORIZED, ""
        ctx = {
            "counterparty": row.counterparty,
            "remark": self.category_text(row),
            "direction": direction,
            "amount": amount,
        }
        for rule in self._counterparty_rules:
            if rule.matches(**ctx):
                category1, category2 = rule.category1, rule.category2
                break
        for rule in self._remark_rules:
            if rule.matches(**ctx):
                category1, category2 = rule.category1, rule.category2
        return category1, category2

    def category_text(self, row: RawRow) -> str:
        """Text that remark-based category rules are matched against."""
        return row.description

    def compose_remark(self, row: RawRow) -> str:
        return f"{row.description}{self.remark_separator}{row.remark}"

    def currency_for(self, amount_text: str) -> str:
        head = amount_text.strip()[:1]
        return self.currency_glyphs.get(head, DEFAULT_CURRENCY)

    def normalize_date(self, raw: str) -> str:
        try:
            return format_ledger_date(raw, self.date_formats)
        except ValueError as exc:
            if self.date_policy is DatePolicy.STRICT:
                raise BillFormatError(str(exc), provider=self.label, time=raw) from exc
            _logger.warning(
                "adapter:date_passthrough provider=%s raw=%r", self.label, raw
            )
            return raw


__all__ = ["SourceAdapter", "ColumnMap", "DatePolicy", "ConversionStats"]
