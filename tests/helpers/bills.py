"""Builders for synthetic Alipay / WeChat Pay bill exports.

Each builder reproduces the real file shape: a human-readable preamble, the
``交易时间`` header row, then data rows, encoded the way the provider does
(GBK for Alipay, UTF-8 with BOM for WeChat Pay).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

ALIPAY_PREAMBLE = (
    "------------------------------------------------------------------------------------",
    "导出信息：",
    "姓名：杨某",
    "支付宝账户：yang@example.com",
    "起始时间：[2024-03-01 00:00:00]    终止时间：[2024-03-31 23:59:59]",
    "导出交易类型：[全部]",
    "共25笔记录",
    "------------------------支付宝（中国）网络技术有限公司  电子客户回单------------------------",
)
ALIPAY_HEADER = (
    "交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态,"
    "交易订单号,商家订单号,备注,"
)

WECHAT_PREAMBLE = (
    "微信支付账单明细,,,,,,,,",
    "微信昵称：[小韩],,,,,,,,",
    "起始时间：[2024-03-01 00:00:00] 终止时间：[2024-03-31 23:59:59],,,,,,,,",
    "导出类型：[全部],,,,,,,,",
    "共15笔记录,,,,,,,,",
    ",,,,,,,,",
    "----------------------微信支付账单明细列表--------------------,,,,,,,,",
)
WECHAT_HEADER = "交易时间,交易类型,交易对方,商品,收/支,金额(元),支付方式,当前状态,交易单号,商户单号,备注"


def alipay_fields(
    time: str,
    counterparty: str,
    description: str,
    direction: str,
    amount: str,
    account: str,
    status: str = "交易成功",
    *,
    category: str = "日用百货",
    remark: str = "",
) -> list[str]:
    return [
        time,
        category,
        counterparty,
        "/",
        description,
        direction,
        amount,
        account,
        status,
        "2024030122001400001",
        "",
        remark,
        "",
    ]


def wechat_fields(
    time: str,
    trade_type: str,
    counterparty: str,
    goods: str,
    direction: str,
    amount: str,
    account: str,
    status: str = "支付成功",
) -> list[str]:
    return [
        time,
        trade_type,
        counterparty,
        goods,
        direction,
        amount,
        account,
        status,
        "4200002024030112345678",
        "10000000000000001",
        "/",
    ]


def _render(preamble: Sequence[str], header: str, rows: Sequence[Sequence[str]]) -> str:
    lines = [*preamble, header, *(",".join(r) for r in rows)]
    return "\n".join(lines) + "\n"


def write_alipay_bill(path: Path, rows: Sequence[Sequence[str]]) -> Path:
    path.write_bytes(_render(ALIPAY_PREAMBLE, ALIPAY_HEADER, rows).encode("gbk"))
    return path


def write_wechat_bill(path: Path, rows: Sequence[Sequence[str]]) -> Path:
    path.write_bytes(_render(WECHAT_PREAMBLE, WECHAT_HEADER, rows).encode("utf-8-sig"))
    return path


def alipay_month(count: int = 10) -> list[list[str]]:
    """``count`` plain expense rows, one per day starting 2024-03-01."""

    return [
        alipay_fields(
            f"2024-03-{day:02d} 12:{day:02d}:00",
            "饿了么",
            f"外卖订单{day}",
            "支出",
            f"{day}.50",
            "账户余额",
        )
        for day in range(1, count + 1)
    ]


def wechat_month(count: int = 15) -> list[list[str]]:
    """``count`` plain expense rows, one per day starting 2024-03-01."""

    return [
        wechat_fields(
            f"2024-03-{day:02d} 08:30:{day:02d}",
            "商户消费",
            "永辉超市(顺义店)",
            f"蔬菜{day}",
            "支出",
            f"¥{day}.00",
            "零钱",
        )
        for day in range(1, count + 1)
    ]
