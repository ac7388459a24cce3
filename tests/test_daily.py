# coding: utf-8
"""
Unit tests for costbasis.daily
"""
# stdlib imports
import unittest
from decimal import Decimal
from datetime import date


# local imports
from costbasis import utils
from costbasis.inventory import CostBasisLedger, replay
from costbasis.daily import (
    Category,
    categorize,
    DailyPLAggregator,
    combine,
)
from common import (
    MemoryRepository,
    make_transaction,
    BUY,
    SELL,
    DIVIDEND,
    OPTION,
)


CALL = "X240419C00050000"


def option(kind, quantity, price, occurred_at, symbol=CALL, **kwargs):
    return make_transaction(
        kind, quantity, price, occurred_at, symbol=symbol, asset_class=OPTION, **kwargs
    )


def history(portfolio_id="pf1"):
    return [
        make_transaction(BUY, "10", "10", (2024, 2, 15), portfolio_id=portfolio_id),
        make_transaction(BUY, "5", "20", (2024, 3, 4), portfolio_id=portfolio_id),
        make_transaction(SELL, "12", "15", (2024, 3, 5), portfolio_id=portfolio_id),
        make_transaction(DIVIDEND, "3", "1", (2024, 3, 7), portfolio_id=portfolio_id),
        make_transaction(SELL, "100", "9", (2024, 3, 12), symbol="Z", portfolio_id=portfolio_id),
        make_transaction(SELL, "3", "18", (2024, 3, 15), portfolio_id=portfolio_id),
        option(SELL, "100", "2", (2024, 3, 20), portfolio_id=portfolio_id),
        make_transaction(BUY, "1", "30", (2024, 4, 2), portfolio_id=portfolio_id),
    ]


class CategorizeTestCase(unittest.TestCase):
    def testCategorize(self):
        threshold = Decimal("0.01")
        self.assertIs(categorize(Decimal("0"), False, threshold), Category.NO_TRANSACTIONS)
        self.assertIs(categorize(Decimal("5"), False, threshold), Category.NO_TRANSACTIONS)
        self.assertIs(categorize(Decimal("0"), True, threshold), Category.NEUTRAL)
        self.assertIs(categorize(Decimal("0.01"), True, threshold), Category.NEUTRAL)
        self.assertIs(categorize(Decimal("-0.01"), True, threshold), Category.NEUTRAL)
        self.assertIs(categorize(Decimal("0.02"), True, threshold), Category.POSITIVE)
        self.assertIs(categorize(Decimal("-0.02"), True, threshold), Category.NEGATIVE)


class MonthlyTestCase(unittest.TestCase):
    def setUp(self):
        self.repository = MemoryRepository(history())
        self.aggregator = DailyPLAggregator(
            self.repository,
            threshold=Decimal("0.01"),
            per_contract=Decimal("0.75"),
            clock=lambda: date(2024, 3, 31),
        )
        self.summary = self.aggregator.monthly("pf1", 2024, 3)

    def testEveryCalendarDay(self):
        summary = self.summary
        self.assertEqual((summary.year, summary.month), (2024, 3))
        self.assertEqual(summary.month_name, "March")
        self.assertEqual(len(summary.days), 31)
        self.assertEqual(
            [day.date for day in summary.days], utils.month_days(2024, 3)
        )

        empty = summary.day(date(2024, 3, 1))
        self.assertIs(empty.category, Category.NO_TRANSACTIONS)
        self.assertEqual(empty.realized, 0)
        self.assertEqual(empty.transactions, ())
        self.assertFalse(empty.has_transactions)

    def testDailyFigures(self):
        summary = self.summary

        buy = summary.day(date(2024, 3, 4))
        self.assertEqual(buy.realized, 0)
        self.assertEqual(buy.volume, Decimal("100"))
        self.assertIs(buy.category, Category.NEUTRAL)

        # Closes the February Lot first
        fifo = summary.day(date(2024, 3, 5))
        self.assertEqual(fifo.realized, Decimal("40"))
        self.assertEqual(fifo.net, Decimal("40"))
        self.assertIs(fifo.category, Category.POSITIVE)

        dividend = summary.day(date(2024, 3, 7))
        self.assertEqual(dividend.realized, Decimal("3"))
        self.assertEqual(dividend.dividends, Decimal("3"))
        self.assertEqual(dividend.volume, 0)

        orphaned = summary.day(date(2024, 3, 12))
        self.assertEqual(orphaned.transaction_count, 1)
        self.assertEqual(len(orphaned.orphans), 1)
        self.assertEqual(orphaned.realized, 0)
        self.assertEqual(orphaned.volume, 0)
        self.assertIs(orphaned.category, Category.NEUTRAL)

        loss = summary.day(date(2024, 3, 15))
        self.assertEqual(loss.realized, Decimal("-6"))
        self.assertIs(loss.category, Category.NEGATIVE)

        premium = summary.day(date(2024, 3, 20))
        self.assertEqual(premium.realized, Decimal("199.25"))
        self.assertEqual(premium.fees, Decimal("0.75"))

    def testMonthTotals(self):
        summary = self.summary
        self.assertEqual(summary.realized, Decimal("236.25"))
        self.assertEqual(summary.net, summary.realized)
        self.assertEqual(summary.dividends, Decimal("3"))
        self.assertEqual(summary.fees, Decimal("0.75"))
        self.assertEqual(summary.volume, Decimal("534"))
        self.assertEqual(summary.transaction_count, 6)
        self.assertEqual(summary.days_with_transactions, 6)
        self.assertEqual(summary.profitable_days, 3)
        self.assertEqual(summary.loss_days, 1)
        self.assertEqual(len(summary.orphans), 1)
        self.assertEqual(summary.orphans[0].symbol, "Z")

    def testDailySumMatchesWholeMonthPass(self):
        """
        Daily realized P&L adds up to one ledger pass over the month from the
        same opening Lots.
        """
        transactions = history()
        first, last = date(2024, 3, 1), date(2024, 3, 31)
        expected = Decimal("0")
        streams = utils.groupby_stable(lambda tx: tx.asset_id, transactions)
        for stream in streams.values():
            before = [tx for tx in stream if tx.occurred_at.date() < first]
            during = [tx for tx in stream if first <= tx.occurred_at.date() <= last]
            seed = replay(before).lots
            ledger = CostBasisLedger(seed, per_contract=Decimal("0.75"))
            ledger.book_all(during)
            expected += ledger.realized

        daily = sum((day.realized for day in self.summary.days), Decimal("0"))
        self.assertEqual(daily, expected)
        self.assertEqual(self.summary.realized, expected)

    def testDayOutsideMonth(self):
        with self.assertRaises(ValueError):
            self.summary.day(date(2024, 4, 1))

    def testDay(self):
        record = self.aggregator.day("pf1", date(2024, 3, 5))
        self.assertEqual(record.date, date(2024, 3, 5))
        self.assertEqual(record.realized, Decimal("40"))

    def testBadMonth(self):
        with self.assertRaises(ValueError):
            self.aggregator.monthly("pf1", 2024, 13)
        with self.assertRaises(ValueError):
            self.aggregator.monthly("pf1", 2024, 0)

    def testTrend(self):
        trend = self.aggregator.trend("pf1", (2024, 1), (2024, 4))
        self.assertEqual([(s.year, s.month) for s in trend], [(2024, m) for m in range(1, 5)])
        self.assertEqual(len(trend[1].days), 29)
        self.assertEqual(trend[0].transaction_count, 0)
        self.assertEqual(trend[1].transaction_count, 1)
        self.assertEqual(trend[1].realized, 0)
        self.assertEqual(trend[2].realized, Decimal("236.25"))
        self.assertEqual(trend[3].transaction_count, 1)

    def testTrendAcrossYearEnd(self):
        trend = self.aggregator.trend("pf1", (2023, 11), (2024, 2))
        self.assertEqual(
            [(s.year, s.month) for s in trend],
            [(2023, 11), (2023, 12), (2024, 1), (2024, 2)],
        )

    def testTransactionsInInputOrder(self):
        repository = MemoryRepository(
            [
                make_transaction(BUY, "1", "10", (2024, 3, 4, 9), symbol="B"),
                make_transaction(BUY, "1", "10", (2024, 3, 4, 10), symbol="A"),
                make_transaction(BUY, "1", "10", (2024, 3, 4, 11), symbol="B"),
            ]
        )
        aggregator = DailyPLAggregator(repository, clock=lambda: date(2024, 3, 31))
        record = aggregator.day("pf1", date(2024, 3, 4))
        self.assertEqual(
            [tx.occurred_at.hour for tx in record.transactions], [9, 10, 11]
        )


class FeeTestCase(unittest.TestCase):
    def setUp(self):
        repository = MemoryRepository(
            [
                make_transaction(BUY, "10", "10", (2024, 3, 4), fees="5"),
                make_transaction(SELL, "10", "10", (2024, 3, 6), fees="5"),
            ]
        )
        aggregator = DailyPLAggregator(
            repository, threshold=Decimal("0.01"), clock=lambda: date(2024, 3, 31)
        )
        self.summary = aggregator.monthly("pf1", 2024, 3)

    def testBuyOnlyDayPaysItsFee(self):
        record = self.summary.day(date(2024, 3, 4))
        self.assertEqual(record.fees, Decimal("5"))
        self.assertEqual(record.net, Decimal("-5"))
        self.assertIs(record.category, Category.NEGATIVE)

    def testMonthNetIncludesEveryFee(self):
        self.assertEqual(self.summary.fees, Decimal("10"))
        self.assertEqual(self.summary.net, Decimal("-10"))
        self.assertEqual(self.summary.day(date(2024, 3, 6)).net, Decimal("-5"))


class ExpirationTestCase(unittest.TestCase):
    def testLapsedOptionExpiresOnExpirationDay(self):
        repository = MemoryRepository(
            [option(BUY, "200", "1.5", (2024, 3, 1), symbol="X240315C00050000", fees="0")]
        )
        aggregator = DailyPLAggregator(
            repository, threshold=Decimal("0.01"), clock=lambda: date(2024, 4, 1)
        )
        summary = aggregator.monthly("pf1", 2024, 3)

        expired = summary.day(date(2024, 3, 15))
        self.assertEqual(expired.realized, Decimal("-300"))
        self.assertIs(expired.category, Category.NEGATIVE)
        self.assertEqual(summary.realized, Decimal("-300"))

    def testUnparseableSymbolSkipsExpiration(self):
        repository = MemoryRepository(
            [option(SELL, "100", "2", (2024, 3, 1), symbol="X MAR24 50 C", fees="0")]
        )
        aggregator = DailyPLAggregator(repository, clock=lambda: date(2024, 6, 1))
        with self.assertLogs(level="WARNING"):
            summary = aggregator.monthly("pf1", 2024, 3)
        self.assertEqual(summary.realized, Decimal("200"))


class CombineTestCase(unittest.TestCase):
    def setUp(self):
        self.repository = MemoryRepository(
            history("pf1")
            + [
                make_transaction(BUY, "10", "10", (2024, 3, 1), symbol="Q", portfolio_id="pf2"),
                make_transaction(SELL, "10", "9", (2024, 3, 5), symbol="Q", portfolio_id="pf2"),
            ]
        )
        self.aggregator = DailyPLAggregator(
            self.repository,
            threshold=Decimal("0.01"),
            per_contract=Decimal("0.75"),
            clock=lambda: date(2024, 3, 31),
        )

    def testCombined(self):
        pf1 = self.aggregator.monthly("pf1", 2024, 3)
        pf2 = self.aggregator.monthly("pf2", 2024, 3)
        combined = self.aggregator.combined(["pf1", "pf2"], 2024, 3)

        self.assertEqual(combined.realized, pf1.realized + pf2.realized)
        self.assertEqual(combined.transaction_count, 8)

        day = combined.day(date(2024, 3, 5))
        self.assertEqual(day.realized, Decimal("30"))
        self.assertEqual(day.transaction_count, 2)

        first = combined.day(date(2024, 3, 1))
        self.assertIs(first.category, Category.NEUTRAL)
        self.assertEqual(combined.days_with_transactions, 7)

    def testPortfoliosMatchedSeparately(self):
        """
        Lots bought in one portfolio can't be sold in another.
        """
        repository = MemoryRepository(
            [
                make_transaction(BUY, "10", "10", (2024, 3, 1), portfolio_id="pf1"),
                make_transaction(SELL, "10", "12", (2024, 3, 2), portfolio_id="pf2"),
            ]
        )
        aggregator = DailyPLAggregator(repository, clock=lambda: date(2024, 3, 31))
        combined = aggregator.combined(["pf1", "pf2"], 2024, 3)
        self.assertEqual(combined.realized, 0)
        self.assertEqual(len(combined.orphans), 1)

    def testMixedMonths(self):
        march = self.aggregator.monthly("pf1", 2024, 3)
        april = self.aggregator.monthly("pf1", 2024, 4)
        with self.assertRaises(ValueError):
            combine([march, april])

    def testEmpty(self):
        summary = combine([], year=2024, month=2)
        self.assertEqual(len(summary.days), 29)
        self.assertEqual(summary.realized, 0)
        self.assertEqual(summary.days_with_transactions, 0)

        with self.assertRaises(ValueError):
            combine([])


if __name__ == "__main__":
    unittest.main()
