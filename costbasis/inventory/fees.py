# coding: utf-8
"""
Commission schedule applied when a Transaction doesn't record its own fees.
"""

__all__ = ["CONTRACT_MULTIPLIER", "fee_for"]


# stdlib imports
from decimal import Decimal
from typing import Optional


# local imports
from costbasis import models
from costbasis.config import CONFIG


#  One option contract controls 100 shares of the underlying.
CONTRACT_MULTIPLIER = Decimal("100")


def fee_for(
    asset_class: models.AssetClass,
    quantity: Decimal,
    per_contract: Optional[Decimal] = None,
) -> Decimal:
    """Compute the fee for trading `quantity` units of an asset class.

    Args:
        asset_class: models.AssetClass member.
        quantity: units traded; options are denominated in underlying shares,
                  so 2 contracts are passed as 200.
        per_contract: option fee per contract.  By default, use the configured
                      [fees] option_contract_fee.

    Returns:
        Zero for everything but options; (quantity / 100) * per_contract for options.
    """
    if asset_class is not models.AssetClass.OPTION:
        return Decimal("0")

    if per_contract is None:
        per_contract = CONFIG.option_contract_fee

    contracts = abs(Decimal(quantity)) / CONTRACT_MULTIPLIER
    return contracts * per_contract
