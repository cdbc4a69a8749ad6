"""Adapter for WeChat Pay (微信支付) bill exports.

UTF-8 CSV (optionally with BOM) whose header row follows a preamble::

    交易时间,交易类型,交易对方,商品,收/支,金额(元),支付方式,当前状态,交易单号,商户单号,备注

Amounts carry a currency glyph (``¥12.00``). Timestamps appear either as
``YYYY-MM-DD HH:MM:SS`` or, in older exports, ``YYYY/MM/DD HH:MM``; anything
else is passed through unchanged with a warning.

The remark is ``"<goods>: <counterparty>"``.
"""

from __future__ import annotations

from typing import ClassVar

from ...models import Provider, TransactionType
from ..rules import CategoryRule, RawRow, Reclassification, RowAction, RowMatch, SkipRule
from .base import ColumnMap, DatePolicy, SourceAdapter

CHANGE = "零钱"
CHANGE_PLUS = "微信零钱通"
NOT_APPLICABLE = "/"

SKIP_RULES: tuple[SkipRule, ...] = (
    SkipRule("fully refunded", RowMatch(status_in=("已全额退款",))),
)

RECLASSIFICATIONS: tuple[Reclassification, ...] = (
    Reclassification(
        name="sweep_into_change_plus",
        when=RowMatch(direction=NOT_APPLICABLE, declared_type_contains="转入零钱通"),
        then=RowAction(
            type=TransactionType.TRANSFER,
            account1=CHANGE,
            account2=CHANGE_PLUS,
            remark_from_declared_type=True,
        ),
    ),
    Reclassification(
        name="deposited_to_change",
        when=RowMatch(status_in=("已存入零钱",), account_equals=NOT_APPLICABLE),
        then=RowAction(type=TransactionType.INCOME, account1=CHANGE),
    ),
)

CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("counterparty", "禹泉水处理设备", "账单", "水费"),
    CategoryRule("counterparty", "北京市顺义区妇幼保健院", "医疗", "门诊"),
    CategoryRule("counterparty", "易寄件", "杂项", "快递费"),
    CategoryRule("counterparty", "顺义鑫绿都生活超市后沙峪店", "食材", "蔬菜"),
    CategoryRule("counterparty", "永辉超市", "食材", "蔬菜"),
    CategoryRule("remark", "霸王茶姬", "餐饮", "饮料"),
)


class WeChatAdapter(SourceAdapter):
    provider: ClassVar[Provider] = Provider.WECHAT
    label: ClassVar[str] = "微信"
    encoding: ClassVar[str] = "utf-8-sig"
    columns: ClassVar[ColumnMap] = ColumnMap(
        time=0,
        declared_type=1,
        counterparty=2,
        description=3,
        direction=4,
        amount=5,
        account=6,
        status=7,
        remark=None,
    )
    date_formats: ClassVar[tuple[str, ...]] = ("%Y-%m-%d %H:%M:%S", "%Y/%m/%d %H:%M")
    date_policy: ClassVar[DatePolicy] = DatePolicy.LENIENT

    skip_rules = SKIP_RULES
    reclassifications = RECLASSIFICATIONS

    shared_accounts = frozenset({CHANGE, CHANGE_PLUS})

    category_rules = CATEGORY_RULES
    currency_glyphs = {"¥": "CNY", "￥": "CNY"}

    def compose_remark(self, row: RawRow) -> str:
        return f"{row.description}{self.remark_separator}{row.counterparty}"


__all__ = ["WeChatAdapter"]
