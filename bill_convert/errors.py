"""Exception hierarchy shared by the ingest, assembly and output stages."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .assembler import LedgerSummary, Violation


class BillConvertError(Exception):
    """Base class for every failure the converter reports to its caller."""


class BillIOError(BillConvertError):
    """A bill or ledger file could not be opened, read or written."""


class BillFormatError(BillConvertError):
    """Input content could not be interpreted.

    Raised for unparsable amounts, dates rejected by a strict adapter, bills
    whose header row never appears, and undecodable bytes. ``provider`` and
    ``time`` identify the offending row when the failure is row-scoped.
    """

    def __init__(self, message: str, *, provider: str | None = None, time: str | None = None):
        prefix = " ".join(p for p in (time, provider) if p)
        super().__init__(f"{prefix}: {message}" if prefix else message)
        self.provider = provider
        self.time = time


class LedgerValidationError(BillConvertError):
    """The merged ledger failed structural validation; nothing was written.

    ``summary`` tallies the whole rejected ledger so the failure report can
    show counts by type and the records needing follow-up.
    """

    def __init__(
        self, violations: Sequence[Violation], *, summary: LedgerSummary | None = None
    ):
        self.violations = list(violations)
        self.summary = summary
        super().__init__(f"ledger validation failed with {len(self.violations)} violation(s)")


class ConfigError(BillConvertError):
    """An unrecognized selector or malformed rules file was supplied."""


__all__ = [
    "BillConvertError",
    "BillIOError",
    "BillFormatError",
    "LedgerValidationError",
    "ConfigError",
]
