# coding: utf-8
from .types import (
    Transaction,
    TransactionType,
    Side,
    Lot,
    Gain,
    OrphanTransaction,
    Position,
)
from .errors import (
    LedgerError,
    MalformedTransaction,
    DataQualityError,
    ConfigurationError,
    RepositoryError,
)
from .fees import CONTRACT_MULTIPLIER, fee_for
from .symbols import OptionSymbol, parse_option_symbol
from .predicates import PredicateType, isLong, isShort, onSide
from .functions import part_units, sum_units, sum_cost
from .classifiers import ClassifierType, tagged, UnderlyingOwnershipClassifier
from .ledger import CostBasisLedger, replay
from .expiration import synthesize_expiration
