# coding: utf-8
"""
Functions used as filter predicates to select Lots from positions.
"""

__all__ = ["PredicateType", "isLong", "isShort", "onSide"]


# stdlib imports
from typing import Callable


# local imports
from .types import Lot, Side


PredicateType = Callable[[Lot], bool]


def onSide(side: Side) -> PredicateType:
    """Factory for functions that select Lots on one side of the market.

    Args:
        side: Side.LONG or Side.SHORT.

    Returns:
        Filter function accepting a Lot instance and returning bool.
    """

    def matchSide(lot: Lot) -> bool:
        return lot.side is side

    return matchSide


isLong = onSide(Side.LONG)
isShort = onSide(Side.SHORT)
