"""Adapter for Alipay (支付宝) transaction exports.

File layout
-----------
GB18030/GBK encoded CSV. A multi-line preamble precedes the header row, which
starts with ``交易时间``::

    交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态,
    交易订单号,商家订单号,备注

Timestamps are ``YYYY-MM-DD HH:MM:SS`` and amounts are bare decimals. Dates
are parsed strictly: a malformed timestamp fails the row.

Direction semantics
-------------------
``收/支`` is one of ``支出``/``收入``/``不计收支``. "Not counted" rows are
dropped except for the carve-outs below (Yu'E Bao payouts become income, the
automatic sweep into Yu'E Bao becomes a transfer).
"""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from ...models import UNRESOLVED_ACCOUNT, Provider, TransactionType
from ..rules import CategoryRule, Reclassification, RowAction, RowMatch, SkipRule
from .base import ColumnMap, DatePolicy, SourceAdapter

NOT_COUNTED = "不计收支"
WALLET = "支付宝零钱"
YUEBAO = "余额宝"

_EXPENSE = TransactionType.EXPENSE
_INCOME = TransactionType.INCOME

CARVE_OUTS: tuple[Reclassification, ...] = (
    Reclassification(
        name="yuebao_payout",
        when=RowMatch(direction=NOT_COUNTED, description_contains=(YUEBAO, "收益发放")),
        then=RowAction(type=TransactionType.INCOME),
    ),
    Reclassification(
        name="yuebao_auto_sweep",
        when=RowMatch(direction=NOT_COUNTED, description_contains=("余额宝-自动转入",)),
        then=RowAction(type=TransactionType.TRANSFER, account1=WALLET, account2=YUEBAO),
    ),
)

SKIP_RULES: tuple[SkipRule, ...] = (
    SkipRule("family card", RowMatch(direction=NOT_COUNTED, account_contains="亲情卡")),
    SkipRule("paid by others", RowMatch(direction=NOT_COUNTED, account_contains="他人代付")),
    SkipRule("not counted", RowMatch(direction=NOT_COUNTED)),
    SkipRule("transaction closed", RowMatch(status_in=("已关闭", "交易关闭"))),
    SkipRule("zero amount", RowMatch(zero_amount=True)),
)

RECLASSIFICATIONS: tuple[Reclassification, ...] = (
    Reclassification(
        name="refund_success",
        when=RowMatch(status_in=("退款成功",)),
        then=RowAction(type=TransactionType.REFUND),
    ),
    Reclassification(
        name="credit_card_repayment",
        when=RowMatch(status_in=("还款成功",), description_equals="信用卡还款"),
        then=RowAction(
            type=TransactionType.TRANSFER,
            account2=UNRESOLVED_ACCOUNT,
            needs_manual_account=True,
        ),
    ),
)


def _cp(pattern: str, category1: str, category2: str = "", **kw) -> CategoryRule:
    return CategoryRule("counterparty", pattern, category1, category2, exact=True, **kw)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    # Beijing transit card: bus fares stay under 2 yuan.
    _cp("北京一卡通", "交通", "公交", amount_below=Decimal("2")),
    _cp("北京一卡通", "交通", "地铁"),
    _cp("饿了么", "餐饮", "外卖"),
    _cp("兴全基金管理有限公司", "资本", "投资收入", direction=_INCOME),
    _cp("兴全基金管理有限公司", "资本", "投资亏损", direction=_EXPENSE),
    _cp("中国移动", "账单", "电话费", remark_contains="话费充值"),
    _cp("蚂蚁森林", "意外收入"),
    _cp("Steam", "网络", "游戏"),
    _cp("众博康健大药房", "医疗", "药品"),
    _cp("北京永辉超市有限公司", "食材", "蔬菜"),
    _cp("北京大学口腔医院", "医疗", "牙齿"),
    _cp("淮南牛肉汤", "餐饮", "三餐"),
    _cp("汤鲜生浦项中心店", "餐饮", "三餐"),
    _cp("滴滴出行（北京）网络平台技术有限公司", "交通", "打车"),
    CategoryRule("remark", "电费", "账单", "电费"),
    CategoryRule("remark", "火车票", "交通", "火车"),
)


class AlipayAdapter(SourceAdapter):
    provider: ClassVar[Provider] = Provider.ALIPAY
    label: ClassVar[str] = "支付宝"
    encoding: ClassVar[str] = "gb18030"
    columns: ClassVar[ColumnMap] = ColumnMap(
        time=0,
        declared_type=1,
        counterparty=2,
        description=4,
        direction=5,
        amount=6,
        account=7,
        status=8,
        remark=11,
    )
    date_formats: ClassVar[tuple[str, ...]] = ("%Y-%m-%d %H:%M:%S",)
    date_policy: ClassVar[DatePolicy] = DatePolicy.STRICT

    carve_outs = CARVE_OUTS
    skip_rules = SKIP_RULES
    reclassifications = RECLASSIFICATIONS

    account_aliases = {"账户余额": WALLET}
    shared_accounts = frozenset({WALLET, YUEBAO})
    compound_account_separator = "&"

    category_rules = CATEGORY_RULES


__all__ = ["AlipayAdapter"]
