# coding: utf-8
"""Auto-expiration of option positions left open past their expiration date.

The passage of time is booked as an explicit option_expired Transaction rather
than patched up when positions are displayed, so every downstream computation
sees the same ledger.
"""

__all__ = ["synthesize_expiration"]


# stdlib imports
from decimal import Decimal
import datetime as _datetime
import logging
from typing import Optional, Sequence


# local imports
from costbasis import models
from .ledger import replay
from .symbols import parse_option_symbol
from .types import Transaction, TransactionType


#  Options stop trading at the close on their expiration date.
EXPIRATION_TIME = _datetime.time(23, 59, 59)


def synthesize_expiration(
    transactions: Sequence[TransactionType],
    asof: _datetime.date,
    **kwargs,
) -> Optional[Transaction]:
    """Create the option_expired Transaction for a lapsed, still-open option.

    Args:
        transactions: one option asset's full stream, in booking order.
        asof: today's date; the option has lapsed if it expired before this.
        kwargs: passed through to CostBasisLedger to size the open position.

    Returns:
        An option_expired Transaction for the whole open quantity, dated at the
        end of the expiration day; or None if nothing needs expiring.

    Raises:
        ConfigurationError: if the option symbol can't be parsed.
    """
    if not transactions:
        return None

    last = transactions[-1]
    if last.asset_class is not models.AssetClass.OPTION:
        return None

    option = parse_option_symbol(last.symbol)
    if option.expiration >= asof:
        return None

    quantity = replay(transactions, **kwargs).quantity
    if quantity == 0:
        return None

    expired = Transaction(
        id=f"{last.asset_id}:expired:{option.expiration.isoformat()}",
        portfolio_id=last.portfolio_id,
        asset_id=last.asset_id,
        symbol=last.symbol,
        asset_class=models.AssetClass.OPTION,
        kind=models.TransactionKind.OPTION_EXPIRED,
        quantity=abs(quantity),
        price=Decimal("0"),
        occurred_at=_datetime.datetime.combine(option.expiration, EXPIRATION_TIME),
        fees=Decimal("0"),
        currency=last.currency,
    )
    logging.info(
        "Synthesized expiration: symbol=%s quantity=%s expiration=%s",
        last.symbol,
        quantity,
        option.expiration,
    )
    return expired
