# coding: utf-8
"""
Unit tests for costbasis.inventory.classifiers
"""
# stdlib imports
import unittest
from decimal import Decimal
from datetime import date


# local imports
from costbasis import models
from costbasis.inventory import tagged, UnderlyingOwnershipClassifier, replay
from common import make_transaction, BUY, SELL, DIVIDEND, OPTION


CALL = "AAPL240419C00180000"
PUT = "AAPL240419P00160000"


def option(kind, quantity, price, occurred_at, symbol=CALL, **kwargs):
    return make_transaction(
        kind, quantity, price, occurred_at, symbol=symbol, asset_class=OPTION, **kwargs
    )


class TaggedTestCase(unittest.TestCase):
    def testTagged(self):
        tx = option(BUY, "100", "1", (2024, 3, 5), strategy=models.COVERED_CALL)
        self.assertTrue(tagged(tx))
        self.assertFalse(tagged(tx._replace(strategy=None)))
        self.assertFalse(tagged(tx._replace(strategy="spread")))


class UnderlyingOwnershipTestCase(unittest.TestCase):
    def setUp(self):
        self.history = [
            make_transaction(BUY, "200", "170", (2024, 3, 1), symbol="AAPL"),
            make_transaction(DIVIDEND, "100", "0.24", (2024, 3, 2), symbol="AAPL"),
            option(SELL, "100", "2", (2024, 3, 1)),
            make_transaction(SELL, "160", "175", (2024, 3, 11), symbol="AAPL"),
        ]
        self.classifier = UnderlyingOwnershipClassifier(self.history)

    def testOwned(self):
        self.assertEqual(self.classifier.owned("AAPL", date(2024, 2, 29)), 0)
        self.assertEqual(self.classifier.owned("AAPL", date(2024, 3, 1)), Decimal("200"))
        self.assertEqual(self.classifier.owned("AAPL", date(2024, 3, 11)), Decimal("40"))
        self.assertEqual(self.classifier.owned("MSFT", date(2024, 3, 11)), 0)

    def testCallCoveredByShares(self):
        buy = option(BUY, "100", "0.5", (2024, 3, 8))
        self.assertTrue(self.classifier(buy))

    def testCallNotCovered(self):
        # Only 40 shares left after the 3/11 sale
        buy = option(BUY, "100", "0.5", (2024, 3, 12))
        self.assertFalse(self.classifier(buy))

    def testPutNeverCovered(self):
        buy = option(BUY, "100", "0.5", (2024, 3, 8), symbol=PUT)
        self.assertFalse(self.classifier(buy))

    def testTagTrumpsOwnership(self):
        buy = option(BUY, "100", "0.5", (2024, 3, 12), strategy=models.COVERED_CALL)
        self.assertTrue(self.classifier(buy))

    def testUnparseableSymbol(self):
        buy = option(BUY, "100", "0.5", (2024, 3, 8), symbol="AAPL MAR24 180 C")
        with self.assertLogs(level="WARNING"):
            self.assertFalse(self.classifier(buy))

    def testLedgerExpensesCoveredBuyback(self):
        ledger = replay(
            [
                option(SELL, "100", "2", (2024, 3, 1), fees="0"),
                option(BUY, "150", "0.5", (2024, 3, 8), fees="0"),
            ],
            classifier=self.classifier,
        )
        # Whole 150-share payment expensed; nothing left open
        self.assertEqual(ledger.realized, Decimal("200") - Decimal("75"))
        self.assertEqual(ledger.quantity, 0)


if __name__ == "__main__":
    unittest.main()
