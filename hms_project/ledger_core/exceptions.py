class LedgerError(Exception):
    """Base class for every business failure raised by the ledger engine."""


class NotFound(LedgerError):
    """Raised when an entity is missing or not visible to the tenant."""


class TenantMismatch(NotFound):
    """Raised when a record exists but belongs to another company."""


class InvalidAmount(LedgerError):
    """Raised for negative amounts, or zero where a positive value is required."""


class OverpaymentError(LedgerError):
    """Raised when a payment exceeds the remaining patient liability."""


class PeriodClosedError(LedgerError):
    """Raised when a posting date is not inside an OPEN period of an OPEN year."""


class NoOpenPeriod(PeriodClosedError):
    pass


class UnbalancedEntryError(LedgerError):
    """Raised when an AccountingEntry fails the double-entry balance check."""


class OverlappingShiftError(LedgerError):
    """Raised when a cashier shift window overlaps an already closed one."""


class ImmutableRecordError(LedgerError):
    """Raised on an attempt to alter or delete a posted entry, payment or shift."""


class SystemAccountNotConfigured(LedgerError):
    """Raised when no active account is bound to a system account key."""


class InvalidStateError(LedgerError):
    pass
