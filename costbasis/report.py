# coding: utf-8
"""Flatten P&L summaries, positions and orphans into tablib.Dataset tables.

Each record is first "flattened" into an un-nested intermediate sequence
(FlatDay, FlatOrphan, FlatPosition), then "exported", i.e. attributes are
formatted for display (amounts rounded, enums turned into their values).

The exported rows are packed, with headers taken from the flat record's fields,
into a tablib.Dataset that callers serialize however they like, e.g.
dataset.export("csv").  This module doesn't perform any reading or writing.
"""
__all__ = [
    "FlatDay",
    "FlatOrphan",
    "FlatPosition",
    "flatten_summary",
    "flatten_orphans",
    "flatten_positions",
]

# stdlib imports
from decimal import Decimal
import datetime as _datetime
from typing import Iterable, NamedTuple, Tuple

# 3rd party imports
import tablib

# local imports
from costbasis import utils
from costbasis.daily import DailyPLRecord, MonthlyPLSummary
from costbasis.inventory import OrphanTransaction, Position


class FlatDay(NamedTuple):
    date: _datetime.date
    realized: Decimal
    dividends: Decimal
    fees: Decimal
    volume: Decimal
    transactions: int
    orphans: int
    category: str


class FlatOrphan(NamedTuple):
    date: _datetime.datetime
    transaction: str
    symbol: str
    kind: str
    requested: Decimal
    available: Decimal
    reason: str


class FlatPosition(NamedTuple):
    asset: str
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    total_cost: Decimal
    realized: Decimal


def flatten_summary(summary: MonthlyPLSummary) -> tablib.Dataset:
    """One row per calendar day of a MonthlyPLSummary, plus a totals row."""
    dataset = tablib.Dataset(
        headers=FlatDay._fields,
        title=f"{summary.month_name} {summary.year}",
    )
    for day in summary.days:
        dataset.append(export_flat(flatten_day(day)))

    totals = FlatDay(
        date=None,
        realized=summary.realized,
        dividends=summary.dividends,
        fees=summary.fees,
        volume=summary.volume,
        transactions=summary.transaction_count,
        orphans=len(summary.orphans),
        category="total",
    )
    dataset.append(export_flat(totals))
    return dataset


def flatten_day(day: DailyPLRecord) -> FlatDay:
    return FlatDay(
        date=day.date,
        realized=day.realized,
        dividends=day.dividends,
        fees=day.fees,
        volume=day.volume,
        transactions=day.transaction_count,
        orphans=len(day.orphans),
        category=day.category.value,
    )


def flatten_orphans(orphans: Iterable[OrphanTransaction]) -> tablib.Dataset:
    """Operator diagnostics: one row per OrphanTransaction."""
    dataset = tablib.Dataset(headers=FlatOrphan._fields, title="Orphans")
    for orphan in orphans:
        flat = FlatOrphan(
            date=orphan.transaction.occurred_at,
            transaction=str(orphan.transaction_id),
            symbol=orphan.symbol,
            kind=orphan.transaction.kind.value,
            requested=orphan.requested,
            available=orphan.available,
            reason=orphan.reason,
        )
        dataset.append(export_flat(flat))
    return dataset


def flatten_positions(positions: Iterable[Position]) -> tablib.Dataset:
    """One row per open Position."""
    dataset = tablib.Dataset(headers=FlatPosition._fields, title="Positions")
    for position in positions:
        if position.quantity == 0:
            continue
        flat = FlatPosition(
            asset=str(position.asset_id),
            symbol=position.symbol,
            quantity=position.quantity,
            average_cost=position.average_cost,
            total_cost=position.total_cost,
            realized=position.realized,
        )
        dataset.append(export_flat(flat))
    return dataset


def export_flat(flat: NamedTuple) -> Tuple:
    """Convert a flat record into a row (tuple) ready for serialization.

    Do the minimum work such that the values look right when tablib.Dataset
    type-converts them during serialization: Decimals are rounded to cents.
    """
    return tuple(
        utils.round_decimal(value, power=-2) if isinstance(value, Decimal) else value
        for value in flat
    )
