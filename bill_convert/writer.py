"""Serialize ledger records to the iCost import CSV and read them back.

Output contract
---------------
- UTF-8, ``\\n`` line endings, minimal quoting (stdlib :mod:`csv`).
- Header row :data:`~bill_convert.models.LEDGER_HEADER`, optionally followed
  by the ``来源`` (source) column.
- Every row is rendered in memory first, then written to ``<output>.tmp``
  and moved over the destination with ``os.replace``. A record that cannot
  be rendered (``BillFormatError``) or a failed write (``BillIOError``)
  leaves any existing output untouched.

:func:`read_ledger` parses that format back into :class:`LedgerRecord`
objects (used by ``bill-convert check`` and by round-trip tests).
"""

from __future__ import annotations

import contextlib
import csv
import io
import os
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path

from .errors import BillFormatError, BillIOError
from .logging_setup import get_logger
from .models import LEDGER_HEADER, SOURCE_HEADER, LedgerRecord

_logger = get_logger("bill_convert.writer")


def ledger_header(*, include_source: bool = True) -> list[str]:
    header = list(LEDGER_HEADER)
    if include_source:
        header.append(SOURCE_HEADER)
    return header


def _render(records: Iterable[LedgerRecord], *, include_source: bool) -> tuple[str, int]:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(ledger_header(include_source=include_source))
    count = 0
    for record in records:
        try:
            row = record.to_row(include_source=include_source)
        except (ValueError, InvalidOperation) as exc:
            raise BillFormatError(
                f"cannot write amount {record.amount}: {exc}",
                provider=record.source or None,
                time=record.date or None,
            ) from exc
        writer.writerow(row)
        count += 1
    return buf.getvalue(), count


def write_ledger(
    path: str | PathLike[str],
    records: Iterable[LedgerRecord],
    *,
    include_source: bool = True,
) -> int:
    """Write ``records`` to ``path`` and return the number of rows written."""

    p = Path(path)
    text, count = _render(records, include_source=include_source)

    tmp = p.with_name(p.name + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8", newline="")
        os.replace(tmp, p)
    except OSError as exc:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise BillIOError(f"cannot write ledger file {p}: {exc}") from exc
    _logger.info("writer:ledger_written path=%s rows=%d", p, count)
    return count


def read_ledger(path: str | PathLike[str]) -> list[LedgerRecord]:
    """Parse a ledger written by :func:`write_ledger`.

    Raises ``BillIOError`` when the file cannot be read and ``BillFormatError``
    when the header or a row does not match the canonical schema.
    """

    p = Path(path)
    try:
        with p.open(encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
    except OSError as exc:
        raise BillIOError(f"cannot read ledger file {p}: {exc}") from exc
    except (UnicodeDecodeError, csv.Error) as exc:
        raise BillFormatError(f"{p} is not a UTF-8 ledger CSV: {exc}") from exc

    if not rows:
        raise BillFormatError(f"{p} is empty; expected a ledger header row")
    header, body = rows[0], rows[1:]
    if header == ledger_header(include_source=True):
        width = len(LEDGER_HEADER) + 1
    elif header == ledger_header(include_source=False):
        width = len(LEDGER_HEADER)
    else:
        raise BillFormatError(f"{p}: unexpected ledger header {header!r}")

    records: list[LedgerRecord] = []
    for line_no, row in enumerate(body, start=2):
        if not any(row):
            continue
        if len(row) != width:
            raise BillFormatError(f"{p}:{line_no}: expected {width} columns, got {len(row)}")
        try:
            amount = Decimal(row[2])
        except InvalidOperation as exc:
            raise BillFormatError(f"{p}:{line_no}: invalid amount {row[2]!r}") from exc
        records.append(
            LedgerRecord(
                date=row[0],
                type=row[1],
                amount=amount,
                category1=row[3],
                category2=row[4],
                account1=row[5],
                account2=row[6],
                remark=row[7],
                currency=row[8],
                tag=row[9],
                source=row[10] if width > len(LEDGER_HEADER) else "",
            )
        )
    return records


__all__ = ["ledger_header", "write_ledger", "read_ledger"]
