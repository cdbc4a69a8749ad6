"""Table-driven rule types used by the provider adapters.

Provider quirks are expressed as data rather than branches so that a new
pattern is one more table entry:

- :class:`RowMatch` is a conjunction of optional predicates over a raw row and
  the in-progress classification.
- :class:`Reclassification` pairs a match with a :class:`RowAction` that
  overrides direction, accounts and/or remark.
- :class:`SkipRule` drops a row with a diagnostic reason.
- :class:`CategoryRule` assigns ``category1``/``category2``.

User category rules can be supplied in a JSON file (see
:func:`load_rules_file`), validated with pydantic.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import BillIOError, ConfigError
from ..models import Provider, TransactionType, parse_provider


@dataclass(frozen=True, slots=True)
class RawRow:
    """Named fields pulled out of one provider row (step 1 of the pipeline)."""

    time: str
    declared_type: str
    counterparty: str
    description: str
    direction: str
    amount_text: str
    account: str
    status: str
    remark: str


@dataclass(slots=True)
class Draft:
    """Mutable classification state threaded through the rule tables."""

    type: str
    account1: str
    account2: str = ""
    # Set when a reclassification replaces the composed remark entirely
    remark: str | None = None
    needs_manual_account: bool = False


@dataclass(frozen=True, slots=True)
class RowMatch:
    """All set predicates must hold. ``direction``/``account`` test the draft."""

    direction: str | None = None
    status_in: tuple[str, ...] = ()
    declared_type_contains: str | None = None
    description_equals: str | None = None
    description_contains: tuple[str, ...] = ()
    account_equals: str | None = None
    account_contains: str | None = None
    zero_amount: bool = False

    def matches(self, row: RawRow, draft: Draft, amount: Decimal) -> bool:
        if self.direction is not None and draft.type != self.direction:
            return False
        if self.status_in and row.status not in self.status_in:
            return False
        if (
            self.declared_type_contains is not None
            and self.declared_type_contains not in row.declared_type
        ):
            return False
        if self.description_equals is not None and row.description != self.description_equals:
            return False
        if any(p not in row.description for p in self.description_contains):
            return False
        if self.account_equals is not None and draft.account1 != self.account_equals:
            return False
        if self.account_contains is not None and self.account_contains not in draft.account1:
            return False
        if self.zero_amount and amount != 0:
            return False
        return True


@dataclass(frozen=True, slots=True)
class RowAction:
    type: TransactionType | None = None
    account1: str | None = None
    account2: str | None = None
    remark_from_declared_type: bool = False
    needs_manual_account: bool = False

    def apply(self, row: RawRow, draft: Draft) -> None:
        if self.type is not None:
            draft.type = self.type.value
        if self.account1 is not None:
            draft.account1 = self.account1
        if self.account2 is not None:
            draft.account2 = self.account2
        if self.remark_from_declared_type:
            draft.remark = row.declared_type
        if self.needs_manual_account:
            draft.needs_manual_account = True


@dataclass(frozen=True, slots=True)
class Reclassification:
    name: str
    when: RowMatch
    then: RowAction


@dataclass(frozen=True, slots=True)
class SkipRule:
    reason: str
    when: RowMatch


@dataclass(frozen=True, slots=True)
class CategoryRule:
    """Assign categories when ``pattern`` is found in ``field``.

    ``exact`` requires equality instead of a substring match. ``direction``,
    ``remark_contains`` and the amount bounds narrow the rule further.
    """

    field: Literal["counterparty", "remark"]
    pattern: str
    category1: str
    category2: str = ""
    exact: bool = False
    direction: TransactionType | None = None
    remark_contains: str | None = None
    amount_below: Decimal | None = None
    amount_at_least: Decimal | None = None

    def matches(self, *, counterparty: str, remark: str, direction: str, amount: Decimal) -> bool:
        text = counterparty if self.field == "counterparty" else remark
        hit = text == self.pattern if self.exact else self.pattern in text
        if not hit:
            return False
        if self.direction is not None and direction != self.direction.value:
            return False
        if self.remark_contains is not None and self.remark_contains not in remark:
            return False
        if self.amount_below is not None and not amount < self.amount_below:
            return False
        if self.amount_at_least is not None and not amount >= self.amount_at_least:
            return False
        return True


# ---------------------------------------------------------------------------
# User rules file
# ---------------------------------------------------------------------------


class CategoryRuleModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    provider: Provider | None = None
    field: Literal["counterparty", "remark"]
    pattern: str
    category1: str
    category2: str = ""
    exact: bool = False
    direction: TransactionType | None = None

    @field_validator("provider", mode="before")
    @classmethod
    def _provider_alias(cls, v: object) -> object:
        if isinstance(v, str):
            try:
                return parse_provider(v)
            except ConfigError as exc:
                raise ValueError(str(exc)) from exc
        return v

    @field_validator("direction", mode="before")
    @classmethod
    def _direction_label(cls, v: object) -> object:
        if isinstance(v, str):
            return TransactionType(v)
        return v

    @field_validator("pattern", "category1")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    def to_rule(self) -> CategoryRule:
        return CategoryRule(
            field=self.field,
            pattern=self.pattern,
            category1=self.category1,
            category2=self.category2,
            exact=self.exact,
            direction=self.direction,
        )


class RulesFile(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    category_rules: list[CategoryRuleModel] = []

    def rules_for(self, provider: Provider) -> list[CategoryRule]:
        return [
            m.to_rule()
            for m in self.category_rules
            if m.provider is None or m.provider is provider
        ]


def load_rules_file(path: str | PathLike[str]) -> RulesFile:
    """Read and validate a JSON rules file.

    Raises ``BillIOError`` when unreadable and ``ConfigError`` when the content
    is not valid JSON or does not match the schema.
    """

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise BillIOError(f"cannot read rules file {p}: {exc}") from exc
    try:
        return RulesFile.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigError(f"rules file {p} is invalid: {exc}") from exc


def split_category_rules(
    rules: Sequence[CategoryRule],
) -> tuple[list[CategoryRule], list[CategoryRule]]:
    """Partition ``rules`` into (counterparty rules, remark rules), keeping order."""

    by_counterparty = [r for r in rules if r.field == "counterparty"]
    by_remark = [r for r in rules if r.field == "remark"]
    return by_counterparty, by_remark


__all__ = [
    "RawRow",
    "Draft",
    "RowMatch",
    "RowAction",
    "Reclassification",
    "SkipRule",
    "CategoryRule",
    "CategoryRuleModel",
    "RulesFile",
    "load_rules_file",
    "split_category_rules",
]
