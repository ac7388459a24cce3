# coding: utf-8
"""FIFO cost-basis matching over one (portfolio, asset) transaction stream.

Create a CostBasisLedger, optionally seeded with the open Lots carried over from
before the stream begins, and call its book() method with each Transaction in
order.  The ledger never reorders Transactions; same-day Transactions are
applied in the order given.

Booking is impure: the ledger's Lot queue and running totals are mutated in
place, and the realized Gains are returned.  Lots themselves are immutable;
partially closing a Lot replaces it with a smaller copy.

Equities only ever hold LONG Lots.  Options may go short: selling more than the
long units held opens a SHORT Lot whose premium is realized at once, and the
later buyback or expiration retires it.

Data-quality problems (e.g. selling shares that were never bought) never raise.
The offending Transaction is recorded as an OrphanTransaction, logged, and left
out of all totals; booking continues with the next Transaction.  Only malformed
Transactions raise MalformedTransaction.
"""

__all__ = ["CostBasisLedger", "replay"]


# stdlib imports
from decimal import Decimal
import logging
from typing import Callable, Dict, Iterable, List, Optional


# local imports
from costbasis import models
from . import classifiers, functions
from .errors import MalformedTransaction
from .fees import fee_for
from .predicates import isLong, isShort
from .types import (
    Gain,
    Lot,
    OrphanTransaction,
    Position,
    Side,
    TransactionType,
)


class CostBasisLedger:
    """Open Lots plus running realized P&L for a single asset.

    Args:
        lots: open Lots carried from before the first booked Transaction,
              oldest first.  Not mutated; the ledger works on a copy.
        classifier: covered-call classifier, cf. inventory.classifiers.
        per_contract: option fee per contract, used for Transactions that
                      don't record their own fees.

    Attributes:
        lots: open Lots in FIFO order.
        realized: cumulative realized P&L (dividends included).
        dividends: realized P&L coming from dividends.
        fees: fees charged by booked (non-orphan) Transactions.
        gains: every Gain realized so far.
        orphans: Transactions that couldn't be applied.
    """

    def __init__(
        self,
        lots: Optional[Iterable[Lot]] = None,
        *,
        classifier: Optional[classifiers.ClassifierType] = None,
        per_contract: Optional[Decimal] = None,
    ) -> None:
        self.lots: List[Lot] = list(lots or [])
        self.classifier = classifier or classifiers.tagged
        self.per_contract = per_contract
        self.realized = Decimal("0")
        self.dividends = Decimal("0")
        self.fees = Decimal("0")
        self.gains: List[Gain] = []
        self.orphans: List[OrphanTransaction] = []

    @property
    def long_units(self) -> Decimal:
        return functions.sum_units(self.lots, isLong)

    @property
    def short_units(self) -> Decimal:
        return functions.sum_units(self.lots, isShort)

    @property
    def quantity(self) -> Decimal:
        """Signed net units; negative when net short."""
        return self.long_units - self.short_units

    @property
    def is_short(self) -> bool:
        return self.quantity < 0

    @property
    def total_cost(self) -> Decimal:
        return functions.sum_cost(self.lots)

    @property
    def average_cost(self) -> Decimal:
        """Weighted-average cost (premium, if short) per unit of open Lots."""
        quantity = self.quantity
        if quantity == 0:
            return Decimal("0")
        return self.total_cost / quantity

    def position(self, portfolio_id, asset_id, symbol: str) -> Position:
        quantity = self.quantity
        return Position(
            portfolio_id=portfolio_id,
            asset_id=asset_id,
            symbol=symbol,
            quantity=quantity,
            average_cost=self.average_cost,
            total_cost=self.total_cost,
            realized=self.realized,
            is_active=quantity != 0,
        )

    def fee(self, transaction: TransactionType) -> Decimal:
        """Fees recorded on the Transaction, else the commission schedule's."""
        if transaction.fees is not None:
            return Decimal(transaction.fees)
        if transaction.kind in (models.TransactionKind.BUY, models.TransactionKind.SELL):
            return fee_for(
                transaction.asset_class, transaction.quantity, self.per_contract
            )
        return Decimal("0")

    def book(self, transaction: TransactionType) -> List[Gain]:
        """Apply one Transaction to the Lot queue.

        Returns:
            Gains realized by the Transaction (empty for orphans and for
            opening buys without fees).

        Raises:
            MalformedTransaction: if the Transaction is missing its symbol,
                                  asset class or kind, or its quantity isn't
                                  positive.
        """
        validate(transaction)

        handlers: Dict[
            models.TransactionKind, Callable[[TransactionType, Decimal], List[Gain]]
        ] = {
            models.TransactionKind.BUY: self._book_buy,
            models.TransactionKind.SELL: self._book_sell,
            models.TransactionKind.DIVIDEND: self._book_dividend,
            models.TransactionKind.OPTION_EXPIRED: self._book_expiration,
        }
        orphaned = len(self.orphans)
        fee = self.fee(transaction)
        gains = handlers[transaction.kind](transaction, fee)

        if len(self.orphans) == orphaned:
            self.fees += fee
        self.gains.extend(gains)
        self.realized += sum((gain.amount for gain in gains), Decimal("0"))
        return gains

    def book_all(self, transactions: Iterable[TransactionType]) -> "CostBasisLedger":
        for transaction in transactions:
            self.book(transaction)
        return self

    def _book_buy(self, transaction: TransactionType, fee: Decimal) -> List[Gain]:
        if transaction.asset_class is models.AssetClass.OPTION and self.is_short:
            if self.classifier(transaction, self):
                return self._book_buyback(transaction, fee)
            return self._book_buy_to_close(transaction, fee)

        self.lots.append(
            Lot(
                side=Side.LONG,
                units=transaction.quantity,
                price=transaction.price,
                opentransaction=transaction,
            )
        )
        if not fee:
            return []
        # Opening fees are realized at once; Lot cost stays at the fill price.
        return [
            Gain(
                lot=None,
                transaction=transaction,
                units=transaction.quantity,
                price=transaction.price,
                amount=-fee,
            )
        ]

    def _book_buyback(self, transaction: TransactionType, fee: Decimal) -> List[Gain]:
        """Covered-call buyback: the whole payment is realized against premium."""
        covered, self.lots = functions.part_units(
            self.lots, predicate=isShort, max_units=transaction.quantity
        )
        covered_units = functions.sum_units(covered)
        if covered_units < transaction.quantity:
            logging.warning(
                "Covered-call buyback exceeds open short: symbol=%s requested=%s "
                "available=%s transaction=%s date=%s",
                transaction.symbol,
                transaction.quantity,
                covered_units,
                transaction.id,
                transaction.occurred_at,
            )
        payment = transaction.quantity * transaction.price + fee
        return [
            Gain(
                lot=None,
                transaction=transaction,
                units=transaction.quantity,
                price=transaction.price,
                amount=-payment,
            )
        ]

    def _book_buy_to_close(
        self, transaction: TransactionType, fee: Decimal
    ) -> List[Gain]:
        """Retire SHORT Lots; premium was already realized when they opened."""
        closed, self.lots = functions.part_units(
            self.lots, predicate=isShort, max_units=transaction.quantity
        )
        gains = [
            Gain(
                lot=lot,
                transaction=transaction,
                units=lot.units,
                price=transaction.price,
                amount=-lot.units * transaction.price,
            )
            for lot in closed
        ]

        excess = transaction.quantity - functions.sum_units(closed)
        if excess > 0:
            self.lots.append(
                Lot(
                    side=Side.LONG,
                    units=excess,
                    price=transaction.price,
                    opentransaction=transaction,
                )
            )
        return _charge(gains, fee)

    def _book_sell(self, transaction: TransactionType, fee: Decimal) -> List[Gain]:
        available = self.long_units
        is_option = transaction.asset_class is models.AssetClass.OPTION

        if available < transaction.quantity and not is_option:
            return self._quarantine(
                transaction,
                available,
                "sell exceeds units held",
            )

        closed, self.lots = functions.part_units(
            self.lots, predicate=isLong, max_units=transaction.quantity
        )
        gains = [
            Gain(
                lot=lot,
                transaction=transaction,
                units=lot.units,
                price=transaction.price,
                amount=(transaction.price - lot.price) * lot.units,
            )
            for lot in closed
        ]

        # Only options get here with units left over: sell to open.
        opened = transaction.quantity - functions.sum_units(closed)
        if opened > 0:
            lot = Lot(
                side=Side.SHORT,
                units=opened,
                price=transaction.price,
                opentransaction=transaction,
            )
            self.lots.append(lot)
            gains.append(
                Gain(
                    lot=None,
                    transaction=transaction,
                    units=opened,
                    price=transaction.price,
                    amount=opened * transaction.price,
                )
            )
        return _charge(gains, fee)

    def _book_expiration(
        self, transaction: TransactionType, fee: Decimal
    ) -> List[Gain]:
        """Close up to `quantity` units at a price of zero."""
        if transaction.asset_class is not models.AssetClass.OPTION:
            return self._quarantine(
                transaction, self.quantity, "expiration of a non-option asset"
            )

        quantity = self.quantity
        if quantity == 0:
            return self._quarantine(
                transaction, quantity, "expiration with no open position"
            )

        side = isShort if quantity < 0 else isLong
        if transaction.quantity > abs(quantity):
            logging.warning(
                "Expiration exceeds open position: symbol=%s requested=%s "
                "available=%s transaction=%s date=%s",
                transaction.symbol,
                transaction.quantity,
                abs(quantity),
                transaction.id,
                transaction.occurred_at,
            )

        expired, self.lots = functions.part_units(
            self.lots, predicate=side, max_units=transaction.quantity
        )
        # Expiring worthless loses a long Lot's cost; a short Lot's premium
        # was realized when it opened, so it leaves without further P&L.
        gains = [
            Gain(
                lot=lot,
                transaction=transaction,
                units=lot.units,
                price=Decimal("0"),
                amount=-lot.cost if lot.side is Side.LONG else Decimal("0"),
            )
            for lot in expired
        ]
        return _charge(gains, fee)

    def _book_dividend(self, transaction: TransactionType, fee: Decimal) -> List[Gain]:
        amount = transaction.quantity * transaction.price - fee
        self.dividends += amount
        return [
            Gain(
                lot=None,
                transaction=transaction,
                units=transaction.quantity,
                price=transaction.price,
                amount=amount,
            )
        ]

    def _quarantine(
        self, transaction: TransactionType, available: Decimal, reason: str
    ) -> List[Gain]:
        orphan = OrphanTransaction(
            transaction=transaction,
            symbol=transaction.symbol,
            requested=transaction.quantity,
            available=available,
            reason=reason,
        )
        self.orphans.append(orphan)
        logging.warning(
            "Orphan transaction (%s): symbol=%s requested=%s available=%s "
            "transaction=%s date=%s",
            reason,
            orphan.symbol,
            orphan.requested,
            orphan.available,
            transaction.id,
            transaction.occurred_at,
        )
        return []


def _charge(gains: List[Gain], fee: Decimal) -> List[Gain]:
    """Deduct a Transaction's fee from the first Gain it realized."""
    if not gains or not fee:
        return gains
    first = gains[0]
    return [first._replace(amount=first.amount - fee)] + gains[1:]


def validate(transaction: TransactionType) -> None:
    """Raise MalformedTransaction unless the ledger can book the Transaction."""
    if not getattr(transaction, "symbol", None):
        raise MalformedTransaction(transaction, "missing symbol")
    if not isinstance(getattr(transaction, "asset_class", None), models.AssetClass):
        raise MalformedTransaction(transaction, "missing asset class")
    if not isinstance(getattr(transaction, "kind", None), models.TransactionKind):
        raise MalformedTransaction(transaction, "missing transaction kind")
    if transaction.quantity is None or transaction.quantity <= 0:
        raise MalformedTransaction(
            transaction, f"quantity must be positive, not {transaction.quantity}"
        )
    if transaction.price is None:
        raise MalformedTransaction(transaction, "missing price")
    if transaction.occurred_at is None:
        raise MalformedTransaction(transaction, "missing date")


def replay(
    transactions: Iterable[TransactionType],
    lots: Optional[Iterable[Lot]] = None,
    **kwargs,
) -> CostBasisLedger:
    """Book a whole stream into a fresh ledger and return it."""
    return CostBasisLedger(lots, **kwargs).book_all(transactions)
