"""
Custom exceptions for the stock ledger.
"""
from core_backend.exceptions import InvalidArgument


class ImmutableLedgerEntryError(InvalidArgument):
    """Raised when code tries to edit or delete a ledger entry."""
    code = "ledger_entry_immutable"

    def default_message(self):
        return "Stock ledger entries cannot be modified or deleted; record a correcting entry instead"
