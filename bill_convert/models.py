"""Ledger record model and the closed vocabularies used across the pipeline.

The ledger schema mirrors the iCost import template. Field order (exact):

    - date: ``YYYY年MM月DD日 HH:MM:SS``
    - type: one of :class:`TransactionType` (kept as ``str`` so that unknown
      provider values survive until validation reports them)
    - amount: non-negative ``Decimal``; direction is carried by ``type``
    - category1 / category2: free text, always empty for transfers
    - account1: debited account (or credited account for income)
    - account2: target account, transfers only
    - remark, currency, tag
    - source: provider label, used for diagnostics and the optional column
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from .errors import ConfigError


class TransactionType(StrEnum):
    EXPENSE = "支出"
    INCOME = "收入"
    TRANSFER = "转账"
    REFUND = "退款"

    @classmethod
    def is_known(cls, value: str) -> bool:
        return any(value == t.value for t in cls)


class Member(StrEnum):
    """Household members whose shared wallet accounts need disambiguation."""

    YANG = "yang"
    HAN = "han"

    @property
    def suffix(self) -> str:
        return _MEMBER_SUFFIXES[self]


_MEMBER_SUFFIXES: dict[Member, str] = {
    Member.YANG: "-杨",
    Member.HAN: "-韩",
}


class Provider(StrEnum):
    ALIPAY = "alipay"
    WECHAT = "wechat"


# Aliases accepted on the command line and in rules files
_PROVIDER_ALIASES: dict[str, Provider] = {
    "alipay": Provider.ALIPAY,
    "zhifubao": Provider.ALIPAY,
    "wechat": Provider.WECHAT,
    "weixin": Provider.WECHAT,
}


def parse_member(value: str) -> Member:
    key = value.strip().lower()
    try:
        return Member(key)
    except ValueError:
        allowed = ", ".join(m.value for m in Member)
        raise ConfigError(
            f"unknown household member {value!r} (expected one of: {allowed})"
        ) from None


def parse_provider(value: str) -> Provider:
    key = value.strip().lower()
    provider = _PROVIDER_ALIASES.get(key)
    if provider is None:
        allowed = ", ".join(sorted(_PROVIDER_ALIASES))
        raise ConfigError(f"unknown provider {value!r} (expected one of: {allowed})")
    return provider


DEFAULT_CURRENCY = "CNY"
_CENT = Decimal("0.01")
# ``category1`` value when no category rule matches
UNCATEGORIZED = "未知"
# ``account2`` placeholder for transfers whose target must be filled in by hand
UNRESOLVED_ACCOUNT = "未知"

LEDGER_HEADER: tuple[str, ...] = (
    "日期",
    "类型",
    "金额",
    "一级分类",
    "二级分类",
    "账户1",
    "账户2",
    "备注",
    "货币",
    "标签",
)
SOURCE_HEADER = "来源"


def format_amount(d: Decimal) -> str:
    """Render ``d`` with exactly two decimals.

    Raises ``ValueError`` when that would change the value (sub-cent digits)
    and ``decimal.InvalidOperation`` when ``d`` is too large to quantize.
    """

    q = d.quantize(_CENT)
    if q != d:
        raise ValueError(f"amount {d} has more than two decimals")
    return f"{q:.2f}"


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """A single canonical ledger row, created once per input row."""

    date: str
    type: str
    amount: Decimal
    category1: str
    category2: str
    account1: str
    account2: str
    remark: str
    currency: str = DEFAULT_CURRENCY
    tag: str = ""
    source: str = ""

    def to_row(self, *, include_source: bool = True) -> list[str]:
        row = [
            self.date,
            self.type,
            format_amount(self.amount),
            self.category1,
            self.category2,
            self.account1,
            self.account2,
            self.remark,
            self.currency,
            self.tag,
        ]
        if include_source:
            row.append(self.source)
        return row


__all__ = [
    "TransactionType",
    "Member",
    "Provider",
    "parse_member",
    "parse_provider",
    "LedgerRecord",
    "LEDGER_HEADER",
    "SOURCE_HEADER",
    "DEFAULT_CURRENCY",
    "UNCATEGORIZED",
    "UNRESOLVED_ACCOUNT",
    "format_amount",
]
