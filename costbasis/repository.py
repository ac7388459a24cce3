# coding: utf-8
"""
Transaction/position storage used by the reconciler and the P&L aggregator.

The engine only needs the four methods of Repository.  SqlRepository implements
them on a SQLAlchemy session over the tables in costbasis.models; any other
storage can be plugged in by implementing the same interface.

Failures surface as inventory.RepositoryError.  Nothing here retries, and
nothing here commits: the caller owns the session's transaction.
"""

__all__ = ["Repository", "SqlRepository"]


# stdlib imports
import abc
import functools
from typing import Iterable, List


# 3rd party imports
from sqlalchemy.exc import SQLAlchemyError


# local imports
from costbasis import models
from costbasis.inventory import Position, RepositoryError, TransactionType


class Repository(abc.ABC):
    """Collaborator interface for ledger storage."""

    @abc.abstractmethod
    def list_transactions(self, portfolio_id) -> List[TransactionType]:
        """Transactions ascending by occurred_at, stable on ties."""

    @abc.abstractmethod
    def list_positions(self, portfolio_id) -> List:
        """Currently stored positions."""

    @abc.abstractmethod
    def upsert_position(self, position: Position) -> None:
        """Insert or replace the position for (portfolio_id, asset_id)."""

    @abc.abstractmethod
    def delete_position(self, portfolio_id, asset_id) -> None:
        """Remove the position for (portfolio_id, asset_id), if any."""


def translate_errors(method):
    """Decorator re-raising SQLAlchemy failures as RepositoryError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as err:
            raise RepositoryError(f"{method.__name__} failed: {err}") from err

    return wrapper


class SqlRepository(Repository):
    """Repository backed by a SQLAlchemy session.

    Args:
        session: sqlalchemy.orm.Session bound to a database holding the
                 costbasis.models tables.
    """

    def __init__(self, session) -> None:
        self.session = session

    @translate_errors
    def list_transactions(self, portfolio_id) -> List[models.Transaction]:
        return (
            self.session.query(models.Transaction)
            .filter_by(portfolio_id=portfolio_id)
            .order_by(models.Transaction.occurred_at, models.Transaction.id)
            .all()
        )

    @translate_errors
    def list_positions(self, portfolio_id) -> List[models.Position]:
        return (
            self.session.query(models.Position)
            .filter_by(portfolio_id=portfolio_id)
            .order_by(models.Position.asset_id)
            .all()
        )

    @translate_errors
    def upsert_position(self, position: Position) -> None:
        models.Position.merge(self.session, **position._asdict())
        self.session.flush()

    @translate_errors
    def delete_position(self, portfolio_id, asset_id) -> None:
        (
            self.session.query(models.Position)
            .filter_by(portfolio_id=portfolio_id, asset_id=asset_id)
            .delete()
        )
        self.session.flush()

    @translate_errors
    def add_transactions(
        self, transactions: Iterable[TransactionType]
    ) -> List[models.Transaction]:
        """Persist ledger records, e.g. imported trades or synthesized expirations.

        The Transactions' own ids are discarded; the database assigns new ones.
        """
        rows = [
            models.Transaction(
                portfolio_id=tx.portfolio_id,
                asset_id=tx.asset_id,
                symbol=tx.symbol,
                asset_class=tx.asset_class,
                kind=tx.kind,
                quantity=tx.quantity,
                price=tx.price,
                fees=tx.fees,
                currency=tx.currency,
                occurred_at=tx.occurred_at,
                strategy=tx.strategy,
            )
            for tx in transactions
        ]
        self.session.add_all(rows)
        self.session.flush()
        return rows
