"""Decode a provider bill export and expose its data rows.

Bill exports start with a human-readable preamble (account holder, export
period, disclaimers) above the real column header. The reader scans forward
until a row whose first column contains the provider's header marker
(``"交易时间"`` for both supported providers) and yields every following row
as a list of whitespace-trimmed fields.

Contract
--------
- Rows may have any number of fields; short rows are not an error (callers
  read missing columns as ``""``).
- Entirely blank rows are dropped.
- When the marker never appears, zero rows are yielded and
  :attr:`BillReader.header_found` stays ``False``; deciding whether that is
  fatal is left to the caller.
- ``BillIOError`` when the file cannot be opened; ``BillFormatError`` when its
  bytes do not decode with the declared encoding or the CSV is malformed.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from os import PathLike
from pathlib import Path

from ..errors import BillFormatError, BillIOError
from ..logging_setup import get_logger

_logger = get_logger("bill_convert.ingest.reader")


class BillReader:
    """Lazy row iterator over one bill file."""

    def __init__(self, path: str | PathLike[str], *, encoding: str, header_marker: str):
        self.path = Path(path)
        self.encoding = encoding
        self.header_marker = header_marker
        self.header_found = False
        self.header: list[str] = []
        self.preamble_lines = 0

    def __iter__(self) -> Iterator[list[str]]:
        try:
            f = self.path.open(encoding=self.encoding, newline="")
        except OSError as exc:
            raise BillIOError(f"cannot open bill file {self.path}: {exc}") from exc

        with f:
            reader = csv.reader(f)
            try:
                for raw in reader:
                    fields = [c.strip() for c in raw]
                    if not self.header_found:
                        if fields and self.header_marker in fields[0]:
                            self.header_found = True
                            self.header = fields
                            _logger.debug(
                                "reader:header_found path=%s preamble_lines=%d",
                                self.path,
                                self.preamble_lines,
                            )
                        else:
                            self.preamble_lines += 1
                        continue
                    if not any(fields):
                        continue
                    yield fields
            except UnicodeDecodeError as exc:
                raise BillFormatError(
                    f"{self.path} is not valid {self.encoding} "
                    f"(line {reader.line_num + 1}): {exc.reason}"
                ) from exc
            except csv.Error as exc:
                raise BillFormatError(
                    f"malformed CSV in {self.path} at line {reader.line_num}: {exc}"
                ) from exc
            except OSError as exc:
                raise BillIOError(f"failed reading bill file {self.path}: {exc}") from exc

        if not self.header_found:
            _logger.warning(
                "reader:header_missing path=%s marker=%s lines_scanned=%d",
                self.path,
                self.header_marker,
                self.preamble_lines,
            )


def read_bill_rows(
    path: str | PathLike[str], *, encoding: str, header_marker: str
) -> Iterator[list[str]]:
    """Convenience wrapper yielding the data rows of ``path``."""

    yield from BillReader(path, encoding=encoding, header_marker=header_marker)


__all__ = ["BillReader", "read_bill_rows"]
