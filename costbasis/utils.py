"""
Utility functions used by costbasis modules
"""
import calendar
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP
import datetime
from typing import Any, Callable, Iterable, Iterator, List, Tuple, Union


def matchEverything(element: Any) -> bool:
    """Degenerate predicate that always return True"""
    return True


def groupby_stable(
    key: Callable[[Any], Any], iterable: Iterable
) -> "OrderedDict[Any, List]":
    """Group entries by key, keeping first-seen key order and input order within
    each group (unlike itertools.groupby, input needn't be sorted).
    """
    groups: OrderedDict = OrderedDict()
    for element in iterable:
        groups.setdefault(key(element), []).append(element)
    return groups


def round_decimal(number: Union[int, Decimal], power: int = -4) -> Decimal:
    """Convert to Decimal; round to units if possible, else round to desired exponent.
    """
    d = Decimal(number)
    return (
        d.quantize(Decimal(1))
        if d == d.to_integral_value()
        else d.quantize(Decimal("10") ** power, rounding=ROUND_HALF_UP)
    )


def month_days(year: int, month: int) -> List[datetime.date]:
    """Every calendar date in the month (month is 1-12)."""
    ndays = calendar.monthrange(year, month)[1]
    return [datetime.date(year, month, day) for day in range(1, ndays + 1)]


def iter_months(
    start: Tuple[int, int], end: Tuple[int, int]
) -> Iterator[Tuple[int, int]]:
    """Yield (year, month) from start through end inclusive."""
    year, month = start
    while (year, month) <= end:
        yield year, month
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
