# coding: utf-8
"""
Persisted ledger transactions and derived positions.

models.Transaction exposes the same attributes as inventory.types.Transaction,
so persisted rows can be fed straight into the inventory ledger.
"""
# stdlib imports
import enum
import logging


# 3rd party imports
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    Boolean,
    Enum,
)
from sqlalchemy.sql.schema import UniqueConstraint, CheckConstraint
from ofxtools.models.i18n import CURRENCY_CODES


# Local imports
from costbasis.database import Base


@enum.unique
class AssetClass(enum.Enum):
    STOCK = "stock"
    ETF = "etf"
    REIT = "reit"
    CRYPTO = "crypto"
    FOREX = "forex"
    OPTION = "option"


@enum.unique
class TransactionKind(enum.Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    OPTION_EXPIRED = "option_expired"


COVERED_CALL = "covered_call"


def _enum_values(enumclass):
    return [member.value for member in enumclass]


CurrencyType = Enum(*CURRENCY_CODES, name="currency_type")
AssetClassType = Enum(
    AssetClass, name="asset_class", values_callable=_enum_values
)
TransactionKindType = Enum(
    TransactionKind, name="transaction_kind", values_callable=_enum_values
)


class Mergeable(object):
    """Mixin implementing merge() classmethod.
    """

    signature = NotImplemented

    @classmethod
    def merge(cls, session, **kwargs):
        """
        Query DB for unique persisted instance matching given values for
        signature attributes; if found, update it with the remaining
        attributes from kwargs, else insert a new instance.
        """
        if cls.signature is NotImplemented:
            raise NotImplementedError
        sig = {k: v for k, v in kwargs.items() if k in cls.signature}
        instance = session.query(cls).filter_by(**sig).one_or_none()
        if instance is None:
            instance = cls(**kwargs)
            msg = "Created {}".format(instance)
        else:
            for attr, value in kwargs.items():
                setattr(instance, attr, value)
            msg = "Updated {}".format(instance)
        logging.info(msg)
        session.add(instance)
        return instance


class Transaction(Base):
    """Append-only ledger record: buy, sell, dividend or option expiration.
    """

    id = Column(Integer, primary_key=True)
    portfolio_id = Column(String, nullable=False, index=True)
    asset_id = Column(String, nullable=False)
    symbol = Column(String, nullable=False)
    asset_class = Column(AssetClassType, nullable=False)
    kind = Column(TransactionKindType, nullable=False)
    # Positive magnitude; direction comes from `kind`.  Options are
    # denominated in underlying shares (1 contract = 100).
    quantity = Column(Numeric, nullable=False)
    price = Column(Numeric, nullable=False)
    # NULL means "not recorded"; the fee calculator supplies it.
    fees = Column(Numeric)
    currency = Column(CurrencyType, nullable=False, default="USD")
    occurred_at = Column(DateTime, nullable=False)
    strategy = Column(String)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="positive_quantity"),
        {"comment": "Portfolio transaction ledger"},
    )


class Position(Base, Mergeable):
    """Holding derived from the transaction ledger; never edited by hand.
    """

    id = Column(Integer, primary_key=True)
    portfolio_id = Column(String, nullable=False)
    asset_id = Column(String, nullable=False)
    symbol = Column(String, nullable=False)
    # Negative for net short option exposure
    quantity = Column(Numeric, nullable=False)
    average_cost = Column(Numeric, nullable=False)
    total_cost = Column(Numeric, nullable=False)
    realized = Column(Numeric, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("portfolio_id", "asset_id"),
        {"comment": "Current holdings rebuilt from the transaction ledger"},
    )

    signature = ("portfolio_id", "asset_id")
