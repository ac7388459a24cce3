# coding: utf-8
"""
Data structures for tracking units/cost history of one portfolio's assets.

Each Lot tracks the current state of a particular bunch of units - (side, units,
price).  Lots live only in the FIFO queue of a ledger.CostBasisLedger for the
duration of a computation pass; they are never persisted, and can always be
recomputed from the Transactions.

A Lot is tagged with its Side.  LONG lots hold bought units, and their price is
per-unit cost.  SHORT lots hold option units sold to open, and their price is the
per-unit premium received.  Lot.units is always a positive magnitude; the sign
convention lives in Side, never in the number.

Each Lot keeps a reference to its opening Transaction, i.e. the Transaction
which created it.

Gains link opening Transactions to realizing Transactions.  To compute realized
P&L from a Gain instance, use Gain.amount, which is already signed and net of the
realizing Transaction's fees attributable to the slice.

Lots and Transactions are immutable; changes to a Lot are reflected in a
newly-created Lot, leaving the old Lot undisturbed.
"""

__all__ = [
    "Transaction",
    "TransactionType",
    "Side",
    "Lot",
    "Gain",
    "OrphanTransaction",
    "Position",
]


# stdlib imports
from decimal import Decimal
import datetime as _datetime
import enum
from typing import NamedTuple, Any, Optional, Union


# local imports
from costbasis import models
from .errors import DataQualityError


class Transaction(NamedTuple):
    """The models.Transaction interface, detached from the database.

    Used for ledger records created outside the repository, e.g. option
    expirations synthesized by inventory.expiration.

    Attributes:
        id: transaction unique identifier.
        portfolio_id: portfolio that owns the transaction.
        asset_id: asset identifier; transactions are grouped per asset.
        symbol: ticker, or OCC option symbol for options.
        asset_class: models.AssetClass member.
        kind: models.TransactionKind member.
        quantity: positive magnitude of units (options in underlying shares).
        price: per-unit price (per-unit amount for dividends).
        occurred_at: trade date/time.
        fees: commissions charged; None if not recorded.
        currency: currency denomination of price (ISO 4217 code).
        strategy: strategy tag, e.g. models.COVERED_CALL.
    """

    id: Any
    portfolio_id: Any
    asset_id: Any
    symbol: str
    asset_class: models.AssetClass
    kind: models.TransactionKind
    quantity: Decimal
    price: Decimal
    occurred_at: _datetime.datetime
    fees: Optional[Decimal] = None
    currency: str = "USD"
    strategy: Optional[str] = None


TransactionType = Union[models.Transaction, Transaction]
"""Type alias for classes implementing the Transaction interface."""


@enum.unique
class Side(enum.Enum):
    LONG = 1
    SHORT = -1


class Lot(NamedTuple):
    """Cost basis container for one open slice of a position.

    Attributes:
        side: LONG (bought units) or SHORT (option units sold to open).
        units: remaining amount of the Lot; always positive.
        price: per-unit cost (LONG) or per-unit premium received (SHORT).
        opentransaction: transaction that opened the Lot.
    """

    side: Side
    units: Decimal
    price: Decimal
    opentransaction: TransactionType

    @property
    def signed_units(self) -> Decimal:
        return self.units * self.side.value

    @property
    def cost(self) -> Decimal:
        """Signed basis: positive cost for LONG, negative premium for SHORT."""
        return self.signed_units * self.price


class Gain(NamedTuple):
    """Binds realizing Transaction to the Lot slice it closed.

    Dividends, premium received on opening short Lots and the fees of opening
    buys realize P&L without closing anything; their Gains have `lot` set to
    None.

    Attributes:
        lot: Lot slice for which P&L is realized, or None.
        transaction: Transaction instance realizing P&L.
        units: amount realized.
        price: per-unit cash amount of the realizing transaction.
        amount: realized P&L, signed.
    """

    lot: Optional[Lot]
    transaction: TransactionType
    units: Decimal
    price: Decimal
    amount: Decimal


class OrphanTransaction(NamedTuple):
    """A Transaction that couldn't be matched against known Lots.

    Orphans are retained for diagnostics and excluded from P&L totals.

    Attributes:
        transaction: the Transaction that couldn't be applied.
        symbol: the Transaction's symbol.
        requested: units the Transaction tried to close.
        available: units actually available to close.
        reason: human-readable explanation.
    """

    transaction: TransactionType
    symbol: str
    requested: Decimal
    available: Decimal
    reason: str

    @property
    def transaction_id(self):
        return self.transaction.id

    @property
    def error(self) -> DataQualityError:
        return DataQualityError(
            f"{self.reason}: symbol={self.symbol} requested={self.requested} "
            f"available={self.available} transaction={self.transaction_id} "
            f"date={self.transaction.occurred_at}"
        )


class Position(NamedTuple):
    """Holding derived from a ledger pass, ready for the repository.

    Attributes:
        portfolio_id: owning portfolio.
        asset_id: held asset.
        symbol: asset symbol.
        quantity: signed units; negative for net short options.
        average_cost: total_cost / quantity.
        total_cost: signed cost basis of the open Lots.
        realized: cumulative realized P&L over the asset's history.
        is_active: False once the position is closed.
    """

    portfolio_id: Any
    asset_id: Any
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    total_cost: Decimal
    realized: Decimal
    is_active: bool = True
