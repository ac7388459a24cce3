# coding: utf-8
"""
Option symbol parsing, e.g. 'AAPL250117C00150000'.

Format: underlying root (1-6 letters) + expiration YYMMDD + C/P + strike in
thousandths of a dollar, zero-padded to 8 digits.
"""

__all__ = ["OptionSymbol", "OPTION_SYMBOL_REGEX", "parse_option_symbol"]


# stdlib imports
from decimal import Decimal
import datetime as _datetime
import re
from typing import NamedTuple


# local imports
from .errors import ConfigurationError


OPTION_SYMBOL_REGEX = re.compile(
    r"""
    ^(?P<underlying>[A-Z]{1,6})
    (?P<yy>\d{2})(?P<mm>\d{2})(?P<dd>\d{2})
    (?P<type>[CP])
    (?P<strike>\d{8})$
    """,
    re.VERBOSE,
)


class OptionSymbol(NamedTuple):
    underlying: str
    expiration: _datetime.date
    type: str  # 'call' or 'put'
    strike: Decimal


def parse_option_symbol(symbol: str) -> OptionSymbol:
    """Split an option symbol into its components.

    Raises:
        ConfigurationError: if `symbol` doesn't match the format, or encodes a
                            date that doesn't exist.
    """
    match = OPTION_SYMBOL_REGEX.match((symbol or "").strip().upper())
    if match is None:
        raise ConfigurationError(f"Unparseable option symbol '{symbol}'")

    try:
        expiration = _datetime.date(
            2000 + int(match.group("yy")),
            int(match.group("mm")),
            int(match.group("dd")),
        )
    except ValueError as err:
        raise ConfigurationError(
            f"Option symbol '{symbol}' has invalid expiration: {err}"
        ) from err

    return OptionSymbol(
        underlying=match.group("underlying"),
        expiration=expiration,
        type={"C": "call", "P": "put"}[match.group("type")],
        strike=Decimal(match.group("strike")) / 1000,
    )
