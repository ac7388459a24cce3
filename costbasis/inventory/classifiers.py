# coding: utf-8
"""
Covered-call classification for option buys that close a short position.

A classifier is any callable accepting (transaction, ledger) and returning True
if the transaction is a covered-call buyback.  The ledger only consults it for
option buys made while the position is net short.

Transactions booked after strategy tagging was introduced carry
models.COVERED_CALL in their `strategy` attribute, which `tagged` trusts.  Older
data isn't tagged; UnderlyingOwnershipClassifier infers the strategy from
whether the portfolio owned enough of the underlying that day.  That inference
is a heuristic and can misclassify.
"""

__all__ = ["ClassifierType", "tagged", "UnderlyingOwnershipClassifier"]


# stdlib imports
from collections import defaultdict
from decimal import Decimal
import datetime as _datetime
import logging
from typing import Any, Callable, Iterable, List, Mapping, Tuple


# local imports
from costbasis import models
from .types import TransactionType
from .errors import ConfigurationError
from .symbols import parse_option_symbol


ClassifierType = Callable[[TransactionType, Any], bool]


def tagged(transaction: TransactionType, ledger: Any = None) -> bool:
    """Trust the transaction's strategy tag, and nothing else."""
    return transaction.strategy == models.COVERED_CALL


class UnderlyingOwnershipClassifier:
    """Classify untagged call buybacks by same-day ownership of the underlying.

    Args:
        transactions: the portfolio's full transaction history; only equity
                      buys/sells are used, to track underlying share counts.
    """

    def __init__(self, transactions: Iterable[TransactionType]) -> None:
        holdings: Mapping[str, List[Tuple[_datetime.date, Decimal]]]
        holdings = defaultdict(list)
        for tx in transactions:
            if tx.asset_class is models.AssetClass.OPTION:
                continue
            if tx.kind is models.TransactionKind.BUY:
                delta = tx.quantity
            elif tx.kind is models.TransactionKind.SELL:
                delta = -tx.quantity
            else:
                continue
            holdings[tx.symbol.upper()].append((tx.occurred_at.date(), delta))
        self.holdings = holdings

    def owned(self, underlying: str, asof: _datetime.date) -> Decimal:
        """Shares of `underlying` held at the end of day `asof`."""
        return sum(
            (delta for date, delta in self.holdings.get(underlying, []) if date <= asof),
            Decimal("0"),
        )

    def __call__(self, transaction: TransactionType, ledger: Any = None) -> bool:
        if tagged(transaction, ledger):
            return True

        try:
            option = parse_option_symbol(transaction.symbol)
        except ConfigurationError as err:
            logging.warning("Covered-call check skipped for %s: %s", transaction.id, err)
            return False

        if option.type != "call":
            return False

        owned = self.owned(option.underlying, transaction.occurred_at.date())
        return owned >= transaction.quantity
