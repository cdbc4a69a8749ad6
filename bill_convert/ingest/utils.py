"""Field-level helpers shared by the provider adapters.

- ``field_at``: positional access that tolerates short rows.
- ``parse_amount``: strip currency glyphs / grouping separators into a
  non-negative ``Decimal`` with at most two decimals.
- ``format_ledger_date``: re-render a provider timestamp in the canonical
  ``YYYY年MM月DD日 HH:MM:SS`` form.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

# Everything up to the first digit: currency glyphs, signs, spaces.
_AMOUNT_PREFIX_RE = re.compile(r"^\D*")
# Whole yuan with at most two decimals (fen); no exponents.
_AMOUNT_RE = re.compile(r"^\d+(\.\d{1,2})?$")


def field_at(fields: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(fields):
        return ""
    return fields[index]


def parse_amount(raw: str) -> Decimal:
    """Return the magnitude embedded in ``raw`` (e.g. ``"¥1,234.50"`` -> ``1234.50``).

    Raises ``ValueError`` for anything but plain digits with at most two
    decimals (sub-cent values and exponent notation included); callers attach
    the row context.
    """

    s = _AMOUNT_PREFIX_RE.sub("", raw.strip()).replace(",", "").strip()
    if not _AMOUNT_RE.match(s):
        raise ValueError(f"unsupported amount format: {raw!r}")
    return Decimal(s)


def render_ledger_date(dt: datetime) -> str:
    return (
        f"{dt.year:04d}年{dt.month:02d}月{dt.day:02d}日 "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )


def format_ledger_date(raw: str, formats: Sequence[str]) -> str:
    """Parse ``raw`` with the first matching ``strptime`` format and re-render it.

    Raises ``ValueError`` when no format matches.
    """

    s = " ".join(raw.split())
    for fmt in formats:
        try:
            dt = datetime.strptime(s, fmt)
        except ValueError:
            continue
        return render_ledger_date(dt)
    raise ValueError(f"unsupported date-time format: {raw!r}")


__all__ = ["field_at", "parse_amount", "format_ledger_date", "render_ledger_date"]
