# coding: utf-8
"""Exceptions raised (or recorded) while reconciling the transaction ledger.
"""

__all__ = [
    "LedgerError",
    "MalformedTransaction",
    "DataQualityError",
    "ConfigurationError",
    "RepositoryError",
]


class LedgerError(Exception):
    """ Base class for Exceptions defined in this package """


class MalformedTransaction(LedgerError, ValueError):
    """Exception raised when a Transaction lacks data the ledger can't do without.

    Args:
        transaction: the transaction instance that couldn't be applied.
        msg: Error message detailing the defect.

    Attributes:
        transaction: the transaction instance that couldn't be applied.
        msg: Error message detailing the defect.
    """

    def __init__(self, transaction, msg: str) -> None:
        self.transaction = transaction
        self.msg = msg
        super(MalformedTransaction, self).__init__(f"{transaction} malformed: {msg}")


class DataQualityError(LedgerError):
    """A Transaction inconsistent with position history, e.g. an oversell.

    Never raised out of the ledger; recorded as an OrphanTransaction instead.
    """


class ConfigurationError(LedgerError):
    """Asset metadata can't be resolved, e.g. an unparseable option symbol."""


class RepositoryError(LedgerError):
    """A transaction/position repository read or write failed."""
