# core/exceptions.py
"""
Error taxonomy shared by the rent ledger.

Every failure inside an allocation run surfaces as one of these. The store
raises the infrastructure ones (StoreUnavailable, ConcurrentModification);
the engine and the cadence helpers raise the data ones.
"""


class LedgerError(Exception):
    """Base class for all rent ledger failures."""


class InvalidAmount(LedgerError, ValueError):
    """Non-positive or malformed money input. Rejected before the store is touched."""


class UnsupportedCadence(LedgerError, ValueError):
    def __init__(self, cadence):
        self.cadence = cadence
        super().__init__(f"Unsupported rent cadence: {cadence!r}")


class StoreUnavailable(LedgerError):
    """The period store could not be reached or timed out. Safe to retry."""


class ConcurrentModification(LedgerError):
    """Another allocation run changed the same rows first. Safe to retry."""


class PaymentNotFound(LedgerError):
    def __init__(self, payment_id):
        self.payment_id = payment_id
        super().__init__(f"Payment #{payment_id} does not exist")


class PaymentMismatch(LedgerError, ValueError):
    """The request does not match the stored payment (other tenant or other amount)."""
