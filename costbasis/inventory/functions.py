# coding: utf-8
"""Base functions used by inventory.ledger to mutate the FIFO Lot queue.
"""


__all__ = ["part_units", "sum_units", "sum_cost"]


# stdlib imports
from decimal import Decimal
import functools
from typing import Tuple, List, Iterable, Callable, Optional


# local imports
from costbasis import utils
from .types import Lot
from . import predicates


def part_units(
    position: List[Lot],
    predicate: Optional[predicates.PredicateType] = None,
    max_units: Optional[Decimal] = None,
) -> Tuple[List[Lot], List[Lot]]:
    """Partition Lots according to some predicate, limiting max units taken.

    Lots are taken from the front of `position`, so a position kept in FIFO order
    gives up its oldest Lots first.  Both returned lists preserve input order.

    Args:
        position: list of Lots in queue order.
        predicate: filter function that accepts a Lot instance and returns bool,
                   e.g. predicates.isLong.  By default, matches everything.
        max_units: limit of units matching predicate to take (positive).
                   By default, take all units that match predicate.

    Returns:
        (matching Lots, nonmatching Lots)
    """

    if predicate is None:
        predicate = utils.matchEverything

    Accumulator = Tuple[List[Lot], List[Lot], Optional[Decimal]]

    def make_accum(
        predicate: predicates.PredicateType
    ) -> Callable[[Accumulator, Lot], Accumulator]:
        """Factory to produce accumulator function from predicate"""

        def accum_part(accum: Accumulator, lot: Lot) -> Accumulator:
            taken, left, units_remain = accum

            # Failing the predicate trumps any consideration of max_units.
            if not predicate(lot):
                left.append(lot)
            # All cases below here have matched the predicate.
            # Now consider max_units constraint.
            elif units_remain is None:
                # args passed in max_units=None -> take all predicate matches
                taken.append(lot)
            elif units_remain <= 0:
                # max_units already filled; we're done.
                left.append(lot)
            elif lot.units <= units_remain:
                # Taking the whole Lot won't exceed max_units (but might reach it).
                units_remain -= lot.units
                taken.append(lot)
            else:
                # The Lot more than suffices to fulfill max_units -> split the Lot
                taken.append(lot._replace(units=units_remain))
                left.append(lot._replace(units=lot.units - units_remain))
                units_remain = Decimal("0")

            return taken, left, units_remain

        return accum_part

    initial: Accumulator = ([], [], max_units)
    taken, left, _ = functools.reduce(make_accum(predicate), position, initial)
    return taken, left


def sum_units(
    lots: Iterable[Lot], predicate: Optional[predicates.PredicateType] = None
) -> Decimal:
    """Total (unsigned) units of the Lots matching predicate."""
    if predicate is None:
        predicate = utils.matchEverything
    return sum((lot.units for lot in lots if predicate(lot)), Decimal("0"))


def sum_cost(lots: Iterable[Lot]) -> Decimal:
    """Total signed cost basis of the Lots (short premium counts negative)."""
    return sum((lot.cost for lot in lots), Decimal("0"))
