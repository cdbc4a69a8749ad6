"""Provider adapters and the registry used to look them up."""

from __future__ import annotations

from collections.abc import Iterable

from ...models import Provider
from ..rules import CategoryRule
from .alipay_csv import AlipayAdapter
from .base import ColumnMap, ConversionStats, DatePolicy, SourceAdapter
from .wechat_csv import WeChatAdapter

ADAPTERS: dict[Provider, type[SourceAdapter]] = {
    Provider.ALIPAY: AlipayAdapter,
    Provider.WECHAT: WeChatAdapter,
}


def get_adapter(
    provider: Provider, extra_category_rules: Iterable[CategoryRule] = ()
) -> SourceAdapter:
    return ADAPTERS[provider](extra_category_rules)


__all__ = [
    "ADAPTERS",
    "AlipayAdapter",
    "WeChatAdapter",
    "SourceAdapter",
    "ColumnMap",
    "ConversionStats",
    "DatePolicy",
    "get_adapter",
]
