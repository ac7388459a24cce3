# coding: utf-8
"""Rebuild a portfolio's positions from its full transaction history.

Reconciliation always starts from an empty Lot queue and replays every
Transaction of every asset; it never patches stored positions incrementally.
All positions are computed in memory before the first write, so a failure
during computation leaves the stored positions untouched.

Results carry an explicit status so callers decide what to do with imperfect
data:

    * SUCCEEDED - every Transaction booked cleanly.
    * DEGRADED - positions were written, but some Transactions were orphaned
      or some option symbols couldn't be parsed (see `errors`).
    * FAILED - the repository failed; `error` holds the RepositoryError.
"""

__all__ = ["Status", "Reconciliation", "ReconcileResult", "PositionReconciler"]


# stdlib imports
from collections import OrderedDict
import datetime as _datetime
from decimal import Decimal
import enum
import logging
from typing import Callable, List, NamedTuple, Optional, Sequence


# local imports
from costbasis import utils
from costbasis.inventory import (
    ClassifierType,
    ConfigurationError,
    LedgerError,
    OrphanTransaction,
    Position,
    RepositoryError,
    Transaction,
    TransactionType,
    replay,
    synthesize_expiration,
    tagged,
)


ClassifierFactory = Callable[[Sequence[TransactionType]], ClassifierType]


def tagged_only(transactions: Sequence[TransactionType]) -> ClassifierType:
    """Default ClassifierFactory: trust strategy tags only."""
    return tagged


@enum.unique
class Status(enum.Enum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"


class Reconciliation(NamedTuple):
    """In-memory outcome of replaying a portfolio's ledger.

    Attributes:
        portfolio_id: the portfolio replayed.
        positions: Position for every asset with transactions, keyed by
                   asset_id in first-seen order (closed positions included,
                   with quantity zero).
        orphans: Transactions left out of all totals.
        expirations: option_expired Transactions synthesized for lapsed options.
        errors: ConfigurationErrors for assets whose metadata couldn't be resolved.
    """

    portfolio_id: object
    positions: "OrderedDict[object, Position]"
    orphans: List[OrphanTransaction]
    expirations: List[Transaction]
    errors: List[LedgerError]


class ReconcileResult(NamedTuple):
    """Outcome of PositionReconciler.reconcile().

    Attributes:
        status: Status member.
        portfolio_id: the portfolio reconciled.
        upserted: Positions written.
        deleted: asset_ids whose stored positions were removed.
        orphans: Transactions left out of all totals.
        expirations: option_expired Transactions synthesized for lapsed options.
        errors: data-quality and configuration errors behind a DEGRADED status.
        error: the RepositoryError behind a FAILED status.
    """

    status: Status
    portfolio_id: object
    upserted: Sequence[Position] = ()
    deleted: Sequence[object] = ()
    orphans: Sequence[OrphanTransaction] = ()
    expirations: Sequence[Transaction] = ()
    errors: Sequence[LedgerError] = ()
    error: Optional[RepositoryError] = None

    @property
    def ok(self) -> bool:
        return self.status is not Status.FAILED

    def raise_for_status(self) -> "ReconcileResult":
        """Re-raise the RepositoryError of a FAILED result; else return self."""
        if self.error is not None:
            raise self.error
        return self


class PositionReconciler:
    """Full-rebuild entry point for a portfolio's positions.

    Args:
        repository: cf. costbasis.repository.Repository.
        classifier_factory: builds the covered-call classifier from the
                            portfolio's transactions, e.g.
                            inventory.UnderlyingOwnershipClassifier.
                            By default, trust strategy tags only.
        per_contract: option fee per contract for Transactions without fees.
        clock: returns today's date; lapsed options are expired as of it.
    """

    def __init__(
        self,
        repository,
        *,
        classifier_factory: Optional[ClassifierFactory] = None,
        per_contract: Optional[Decimal] = None,
        clock: Optional[Callable[[], _datetime.date]] = None,
    ) -> None:
        self.repository = repository
        self.classifier_factory = classifier_factory or tagged_only
        self.per_contract = per_contract
        self.clock = clock or _datetime.date.today

    def compute(self, portfolio_id) -> Reconciliation:
        """Replay the portfolio's ledger in memory; write nothing.

        Raises:
            RepositoryError: if transactions can't be read.
            MalformedTransaction: if a Transaction can't be booked at all.
        """
        transactions = list(self.repository.list_transactions(portfolio_id))
        options = {
            "classifier": self.classifier_factory(transactions),
            "per_contract": self.per_contract,
        }
        today = self.clock()

        positions: "OrderedDict[object, Position]" = OrderedDict()
        orphans: List[OrphanTransaction] = []
        expirations: List[Transaction] = []
        errors: List[LedgerError] = []

        streams = utils.groupby_stable(lambda tx: tx.asset_id, transactions)
        for asset_id, stream in streams.items():
            try:
                expired = synthesize_expiration(stream, today, **options)
            except ConfigurationError as err:
                logging.warning(
                    "Auto-expiration skipped: portfolio=%s asset=%s symbol=%s: %s",
                    portfolio_id,
                    asset_id,
                    stream[-1].symbol,
                    err,
                )
                errors.append(err)
                expired = None

            if expired is not None:
                stream = stream + [expired]
                expirations.append(expired)

            ledger = replay(stream, **options)
            positions[asset_id] = ledger.position(
                portfolio_id, asset_id, stream[-1].symbol
            )
            orphans.extend(ledger.orphans)

        return Reconciliation(
            portfolio_id=portfolio_id,
            positions=positions,
            orphans=orphans,
            expirations=expirations,
            errors=errors,
        )

    def reconcile(self, portfolio_id) -> ReconcileResult:
        """Recompute every position of the portfolio and write the results.

        Nonzero positions are upserted; positions that came back to exactly
        zero, and stored positions for assets without transactions, are deleted.

        Raises:
            MalformedTransaction: if a Transaction can't be booked at all.
        """
        try:
            reconciliation = self.compute(portfolio_id)
            stored = [
                position.asset_id
                for position in self.repository.list_positions(portfolio_id)
            ]

            upserted: List[Position] = []
            deleted: List[object] = []
            for asset_id, position in reconciliation.positions.items():
                if position.quantity != 0:
                    self.repository.upsert_position(position)
                    upserted.append(position)
                elif asset_id in stored:
                    self.repository.delete_position(portfolio_id, asset_id)
                    deleted.append(asset_id)

            for asset_id in stored:
                if asset_id not in reconciliation.positions:
                    logging.info(
                        "Deleting stale position: portfolio=%s asset=%s",
                        portfolio_id,
                        asset_id,
                    )
                    self.repository.delete_position(portfolio_id, asset_id)
                    deleted.append(asset_id)
        except RepositoryError as err:
            logging.error("Reconciliation failed: portfolio=%s: %s", portfolio_id, err)
            return ReconcileResult(
                status=Status.FAILED, portfolio_id=portfolio_id, error=err
            )

        errors = [orphan.error for orphan in reconciliation.orphans]
        errors.extend(reconciliation.errors)
        status = Status.DEGRADED if errors else Status.SUCCEEDED
        logging.info(
            "Reconciled portfolio=%s status=%s upserted=%d deleted=%d orphans=%d",
            portfolio_id,
            status.value,
            len(upserted),
            len(deleted),
            len(reconciliation.orphans),
        )
        return ReconcileResult(
            status=status,
            portfolio_id=portfolio_id,
            upserted=upserted,
            deleted=deleted,
            orphans=reconciliation.orphans,
            expirations=reconciliation.expirations,
            errors=errors,
        )
