# coding: utf-8
""" Reusable test elements """
# stdlib imports
import inspect
import itertools
from decimal import Decimal
from datetime import datetime


# 3rd party imports
from sqlalchemy import create_engine


# local imports
from costbasis.config import CONFIG
from costbasis import database, models
from costbasis.inventory import Transaction, RepositoryError
from costbasis.repository import Repository


DB_URI = CONFIG.test_db_uri
DB_STATE = {
    "engine": create_engine(DB_URI),
}


def logPoint(context):
    """" Utility function to trace control flow """
    callingFunction = inspect.stack()[1][3]
    print("in %s - %s()" % (context, callingFunction))


def setUpModule():
    """
    Called once, before anything else in this module
    """
    #  logPoint('module {}'.format(__name__))
    engine = DB_STATE["engine"]

    # Drop all to get an empty database free of old crud just in case
    database.Base.metadata.drop_all(engine)

    # Create everything
    database.Base.metadata.create_all(engine)


def tearDownModule():
    """ Called once, after everything else in this module """
    #  logPoint('module {}'.format(__name__))
    database.Base.metadata.drop_all(DB_STATE["engine"])


class RollbackMixin(object):
    """ Mixin to roll back database changes during test

    Nothing under test commits; it only flushes.  Rolling back the session
    after each test method discards everything it wrote.
    """

    def setUp(self):
        """ Called multiple times, before every test method """
        #  self.logPoint()
        self.session = database.Session(bind=DB_STATE["engine"])

    def tearDown(self):
        """ Called multiple times, after every test method """
        self.session.rollback()
        self.session.close()

    def logPoint(self):
        """ Utility method to trace control flow """
        callingFunction = inspect.stack()[1][3]
        currentTest = self.id().split(".")[-1]
        print("in {} - {}()".format(currentTest, callingFunction))


_ids = itertools.count(1)


def make_transaction(
    kind,
    quantity,
    price,
    occurred_at,
    symbol="X",
    asset_class=models.AssetClass.STOCK,
    asset_id=None,
    portfolio_id="pf1",
    fees=None,
    strategy=None,
    id=None,
):
    """Build an inventory.Transaction; numbers may be given as str/int."""
    if isinstance(occurred_at, tuple):
        occurred_at = datetime(*occurred_at)
    return Transaction(
        id=next(_ids) if id is None else id,
        portfolio_id=portfolio_id,
        asset_id=symbol if asset_id is None else asset_id,
        symbol=symbol,
        asset_class=asset_class,
        kind=kind,
        quantity=Decimal(quantity),
        price=Decimal(price),
        occurred_at=occurred_at,
        fees=None if fees is None else Decimal(fees),
        strategy=strategy,
    )


BUY = models.TransactionKind.BUY
SELL = models.TransactionKind.SELL
DIVIDEND = models.TransactionKind.DIVIDEND
EXPIRED = models.TransactionKind.OPTION_EXPIRED
STOCK = models.AssetClass.STOCK
OPTION = models.AssetClass.OPTION


class MemoryRepository(Repository):
    """In-memory Repository keyed by portfolio_id."""

    def __init__(self, transactions=()):
        self.transactions = list(transactions)
        self.positions = {}
        self.reads = 0

    def list_transactions(self, portfolio_id):
        self.reads += 1
        return sorted(
            (tx for tx in self.transactions if tx.portfolio_id == portfolio_id),
            key=lambda tx: tx.occurred_at,
        )

    def list_positions(self, portfolio_id):
        return [
            position
            for (pid, _), position in sorted(self.positions.items())
            if pid == portfolio_id
        ]

    def upsert_position(self, position):
        self.positions[(position.portfolio_id, position.asset_id)] = position

    def delete_position(self, portfolio_id, asset_id):
        self.positions.pop((portfolio_id, asset_id), None)


class BrokenRepository(MemoryRepository):
    """MemoryRepository whose writes always fail."""

    def upsert_position(self, position):
        raise RepositoryError("connection reset")

    def delete_position(self, portfolio_id, asset_id):
        raise RepositoryError("connection reset")
