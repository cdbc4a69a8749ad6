"""Public interface for the ``bill_convert`` package.

Re-exports the orchestration API and the ledger model. There is no runtime
logic here, only symbol re-exports.
"""

from .api import (
    BillResult,
    BillSource,
    ConversionReport,
    check_ledger,
    convert_bills,
    load_bill,
)
from .assembler import LedgerSummary, Violation, assemble, summarize
from .errors import (
    BillConvertError,
    BillFormatError,
    BillIOError,
    ConfigError,
    LedgerValidationError,
)
from .models import LedgerRecord, Member, Provider, TransactionType
from .writer import read_ledger, write_ledger

__all__ = [
    # API
    "load_bill",
    "convert_bills",
    "check_ledger",
    "assemble",
    "summarize",
    "write_ledger",
    "read_ledger",
    # Models / types
    "BillSource",
    "BillResult",
    "ConversionReport",
    "LedgerRecord",
    "LedgerSummary",
    "Violation",
    "Member",
    "Provider",
    "TransactionType",
    # Errors
    "BillConvertError",
    "BillIOError",
    "BillFormatError",
    "LedgerValidationError",
    "ConfigError",
]
