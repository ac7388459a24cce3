# coding: utf-8
"""Daily and monthly realized P&L for calendar-style display.

For a (portfolio, year, month), every Transaction dated before the month is
replayed only to seed each asset's opening Lot queue; nothing before the month
is reported.  The month's Transactions are then booked one calendar day at a
time, carrying each asset's Lots across day boundaries, and every day's change
in realized P&L becomes a DailyPLRecord - including days with no activity.

Because the per-day figures are deltas of a single running ledger per asset,
the month's daily realized P&L always sums to a whole-month ledger pass from
the same seed.

Portfolios are never mixed before FIFO matching: combine() adds up monthly
summaries that were computed per portfolio.
"""

__all__ = [
    "Category",
    "categorize",
    "DailyPLRecord",
    "MonthlyPLSummary",
    "DailyPLAggregator",
    "combine",
]


# stdlib imports
import calendar
from collections import defaultdict
import datetime as _datetime
from decimal import Decimal
import enum
import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple


# local imports
from costbasis import models, utils
from costbasis.config import CONFIG
from costbasis.inventory import (
    ConfigurationError,
    CostBasisLedger,
    OrphanTransaction,
    TransactionType,
    replay,
    synthesize_expiration,
)
from costbasis.reconcile import ClassifierFactory, tagged_only


ZERO = Decimal("0")


@enum.unique
class Category(enum.Enum):
    NO_TRANSACTIONS = "no-transactions"
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    NEGATIVE = "negative"


def categorize(net: Decimal, has_transactions: bool, threshold: Decimal) -> Category:
    """Calendar color category for a day's net P&L."""
    if not has_transactions:
        return Category.NO_TRANSACTIONS
    if abs(net) <= threshold:
        return Category.NEUTRAL
    return Category.POSITIVE if net > 0 else Category.NEGATIVE


class DailyPLRecord(NamedTuple):
    """Realized P&L for one calendar day.

    Attributes:
        date: the calendar day.
        realized: realized P&L booked that day, dividends included.
        dividends: the part of `realized` that came from dividends.
        fees: fees charged by that day's booked Transactions.
        volume: traded value (quantity * price) of booked buys and sells.
        transaction_count: all Transactions dated that day, orphans included.
        transactions: those Transactions, in booking order.
        orphans: that day's Transactions that couldn't be applied.
        category: Category member.
    """

    date: _datetime.date
    realized: Decimal
    dividends: Decimal
    fees: Decimal
    volume: Decimal
    transaction_count: int
    transactions: Tuple[TransactionType, ...]
    orphans: Tuple[OrphanTransaction, ...]
    category: Category

    @property
    def net(self) -> Decimal:
        return self.realized

    @property
    def has_transactions(self) -> bool:
        return self.transaction_count > 0


class MonthlyPLSummary(NamedTuple):
    """One DailyPLRecord per calendar day of a month, plus month totals.

    Attributes:
        year: calendar year.
        month: calendar month, 1-12.
        days: DailyPLRecords, first of the month to last.
        realized: total realized P&L, dividends included.
        dividends: total dividends.
        fees: total fees.
        volume: total traded value.
        transaction_count: total Transactions.
        days_with_transactions: days with any Transaction.
        profitable_days: days categorized POSITIVE.
        loss_days: days categorized NEGATIVE.
        orphans: the month's OrphanTransactions.
    """

    year: int
    month: int
    days: Tuple[DailyPLRecord, ...]
    realized: Decimal
    dividends: Decimal
    fees: Decimal
    volume: Decimal
    transaction_count: int
    days_with_transactions: int
    profitable_days: int
    loss_days: int
    orphans: Tuple[OrphanTransaction, ...]

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    @property
    def net(self) -> Decimal:
        return self.realized

    def day(self, date: _datetime.date) -> DailyPLRecord:
        if (date.year, date.month) != (self.year, self.month):
            raise ValueError(f"{date} isn't in {self.month_name} {self.year}")
        return self.days[date.day - 1]


def summarize_days(year: int, month: int, days: Sequence[DailyPLRecord]) -> MonthlyPLSummary:
    """Roll DailyPLRecords up into a MonthlyPLSummary."""
    return MonthlyPLSummary(
        year=year,
        month=month,
        days=tuple(days),
        realized=sum((day.realized for day in days), ZERO),
        dividends=sum((day.dividends for day in days), ZERO),
        fees=sum((day.fees for day in days), ZERO),
        volume=sum((day.volume for day in days), ZERO),
        transaction_count=sum(day.transaction_count for day in days),
        days_with_transactions=sum(1 for day in days if day.has_transactions),
        profitable_days=sum(1 for day in days if day.category is Category.POSITIVE),
        loss_days=sum(1 for day in days if day.category is Category.NEGATIVE),
        orphans=tuple(orphan for day in days for orphan in day.orphans),
    )


class _DayTally:
    """Mutable per-day accumulator used while replaying a month."""

    def __init__(self) -> None:
        self.realized = ZERO
        self.dividends = ZERO
        self.fees = ZERO
        self.volume = ZERO
        self.orphans: List[OrphanTransaction] = []


class DailyPLAggregator:
    """Month-at-a-time replay of a portfolio's ledger.

    Args:
        repository: cf. costbasis.repository.Repository.
        threshold: |net P&L| at or below which a day is NEUTRAL.
                   By default, the configured [pnl] neutral_threshold.
        classifier_factory: cf. reconcile.PositionReconciler.
        per_contract: option fee per contract for Transactions without fees.
        clock: returns today's date, for expiring lapsed options.
    """

    def __init__(
        self,
        repository,
        *,
        threshold: Optional[Decimal] = None,
        classifier_factory: Optional[ClassifierFactory] = None,
        per_contract: Optional[Decimal] = None,
        clock: Optional[Callable[[], _datetime.date]] = None,
    ) -> None:
        self.repository = repository
        self.threshold = CONFIG.neutral_threshold if threshold is None else threshold
        self.classifier_factory = classifier_factory or tagged_only
        self.per_contract = per_contract
        self.clock = clock or _datetime.date.today

    def monthly(self, portfolio_id, year: int, month: int) -> MonthlyPLSummary:
        """P&L summary of one portfolio for one month (1-12).

        Raises:
            RepositoryError: if transactions can't be read.
        """
        transactions = list(self.repository.list_transactions(portfolio_id))
        logging.info(
            "Aggregating P&L: portfolio=%s month=%04d-%02d transactions=%d",
            portfolio_id,
            year,
            month,
            len(transactions),
        )
        return self.summarize(transactions, year, month)

    def day(self, portfolio_id, date: _datetime.date) -> DailyPLRecord:
        """P&L record of one portfolio for one calendar day."""
        return self.monthly(portfolio_id, date.year, date.month).day(date)

    def trend(
        self, portfolio_id, start: Tuple[int, int], end: Tuple[int, int]
    ) -> List[MonthlyPLSummary]:
        """Monthly summaries from (year, month) `start` through `end` inclusive."""
        return [
            self.monthly(portfolio_id, year, month)
            for year, month in utils.iter_months(start, end)
        ]

    def combined(self, portfolio_ids, year: int, month: int) -> MonthlyPLSummary:
        """Sum of independently computed per-portfolio summaries."""
        return combine(
            [self.monthly(pid, year, month) for pid in portfolio_ids],
            threshold=self.threshold,
            year=year,
            month=month,
        )

    def summarize(
        self, transactions: Sequence[TransactionType], year: int, month: int
    ) -> MonthlyPLSummary:
        """Replay `transactions` (one portfolio, booking order) for one month."""
        if not 1 <= month <= 12:
            raise ValueError(f"month must be 1-12, not {month}")

        days = utils.month_days(year, month)
        first = days[0]
        options = {
            "classifier": self.classifier_factory(transactions),
            "per_contract": self.per_contract,
        }

        streams = utils.groupby_stable(lambda tx: tx.asset_id, transactions)
        tallies: Dict[_datetime.date, _DayTally] = defaultdict(_DayTally)
        booked: Dict[_datetime.date, List[TransactionType]] = defaultdict(list)
        for stream in streams.values():
            stream = self._expire(stream, options)
            before = [tx for tx in stream if tx.occurred_at.date() < first]
            ledger = CostBasisLedger(replay(before, **options).lots, **options)

            bydate = utils.groupby_stable(lambda tx: tx.occurred_at.date(), stream)
            for date in days:
                for transaction in bydate.get(date, []):
                    self._book(ledger, transaction, tallies[date])
                    booked[date].append(transaction)

        # Report each day's Transactions in input order, not per asset.
        order = {id(tx): index for index, tx in enumerate(transactions)}

        records = []
        for date in days:
            tally = tallies[date]
            transactions_ = tuple(
                sorted(booked[date], key=lambda tx: order.get(id(tx), len(order)))
            )
            records.append(
                DailyPLRecord(
                    date=date,
                    realized=tally.realized,
                    dividends=tally.dividends,
                    fees=tally.fees,
                    volume=tally.volume,
                    transaction_count=len(transactions_),
                    transactions=transactions_,
                    orphans=tuple(tally.orphans),
                    category=categorize(
                        tally.realized, bool(transactions_), self.threshold
                    ),
                )
            )

        summary = summarize_days(year, month, records)
        logging.debug(
            "P&L %s %d: realized=%s days=%d orphans=%d",
            summary.month_name,
            year,
            summary.realized,
            summary.days_with_transactions,
            len(summary.orphans),
        )
        return summary

    def _expire(self, stream: List[TransactionType], options: dict) -> List[TransactionType]:
        try:
            expired = synthesize_expiration(stream, self.clock(), **options)
        except ConfigurationError as err:
            logging.warning(
                "Auto-expiration skipped: asset=%s symbol=%s: %s",
                stream[-1].asset_id,
                stream[-1].symbol,
                err,
            )
            return stream
        return stream if expired is None else stream + [expired]

    @staticmethod
    def _book(ledger: CostBasisLedger, transaction: TransactionType, tally: _DayTally) -> None:
        realized, dividends, fees = ledger.realized, ledger.dividends, ledger.fees
        orphaned = len(ledger.orphans)

        ledger.book(transaction)

        tally.realized += ledger.realized - realized
        tally.dividends += ledger.dividends - dividends
        tally.fees += ledger.fees - fees
        if len(ledger.orphans) > orphaned:
            tally.orphans.extend(ledger.orphans[orphaned:])
        elif transaction.kind in (models.TransactionKind.BUY, models.TransactionKind.SELL):
            tally.volume += transaction.quantity * transaction.price


def combine(
    summaries: Sequence[MonthlyPLSummary],
    threshold: Optional[Decimal] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> MonthlyPLSummary:
    """Add up per-portfolio MonthlyPLSummaries for the same month, by date.

    Args:
        summaries: MonthlyPLSummaries, each computed for a single portfolio.
        threshold: NEUTRAL threshold for re-categorizing the summed days.
        year, month: the month, required only if `summaries` may be empty.

    Raises:
        ValueError: if the summaries cover different months.
    """
    if threshold is None:
        threshold = CONFIG.neutral_threshold

    months = {(summary.year, summary.month) for summary in summaries}
    if len(months) > 1:
        raise ValueError(f"Can't combine summaries of different months: {sorted(months)}")
    if months:
        year, month = months.pop()
    if year is None or month is None:
        raise ValueError("combine() needs year/month when there are no summaries")

    records = []
    for index, date in enumerate(utils.month_days(year, month)):
        daily = [summary.days[index] for summary in summaries]
        realized = sum((day.realized for day in daily), ZERO)
        count = sum(day.transaction_count for day in daily)
        records.append(
            DailyPLRecord(
                date=date,
                realized=realized,
                dividends=sum((day.dividends for day in daily), ZERO),
                fees=sum((day.fees for day in daily), ZERO),
                volume=sum((day.volume for day in daily), ZERO),
                transaction_count=count,
                transactions=tuple(tx for day in daily for tx in day.transactions),
                orphans=tuple(orphan for day in daily for orphan in day.orphans),
                category=categorize(realized, count > 0, threshold),
            )
        )
    return summarize_days(year, month, records)
