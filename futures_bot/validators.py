"""
Input validators for trade configuration and pricing arguments.

Every public function raises ``InvalidInputError`` (a ``ValueError``)
with a human-readable message when validation fails.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidInputError

# Binance Futures symbols are uppercase alphanumeric (e.g. BTCUSDT, ETHUSDT).
_SYMBOL_RE = re.compile(r"^[A-Z0-9]{2,20}$")
_ASSET_RE = re.compile(r"^[A-Z0-9]{2,10}$")

Number = Union[Decimal, int, float, str]


def validate_symbol(symbol: str) -> str:
    """Return the uppercased symbol or raise on invalid format."""
    symbol = str(symbol).strip().upper()
    if not _SYMBOL_RE.match(symbol):
        raise InvalidInputError(
            f"Invalid symbol '{symbol}'. "
            "Expected uppercase alphanumeric (e.g. BTCUSDT)."
        )
    return symbol


def validate_asset(asset: str) -> str:
    """Return the uppercased asset code (e.g. ``USDT``) or raise."""
    asset = str(asset).strip().upper()
    if not _ASSET_RE.match(asset):
        raise InvalidInputError(f"Invalid asset '{asset}'. Expected e.g. USDT.")
    return asset


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert *value* to ``Decimal`` via its string form."""
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {name} '{value}'. Must be a number.")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"Invalid {name} '{value}'. Must be a number.")
    if not result.is_finite():
        raise InvalidInputError(f"Invalid {name} '{value}'. Must be finite.")
    return result


def validate_positive_decimal(value: Number, name: str = "value") -> Decimal:
    """
    Return a positive ``Decimal`` or raise.

    Raises
    ------
    InvalidInputError
        If *value* is not a valid positive number.
    """
    result = to_decimal(value, name)
    if result <= 0:
        raise InvalidInputError(f"{name.capitalize()} must be positive, got {result}.")
    return result


def validate_non_negative_decimal(value: Number, name: str = "value") -> Decimal:
    """Return a ``Decimal`` >= 0 or raise."""
    result = to_decimal(value, name)
    if result < 0:
        raise InvalidInputError(f"{name.capitalize()} must not be negative, got {result}.")
    return result


def validate_rate(value: Number, name: str = "rate") -> Decimal:
    """Return a fractional rate (``0 <= rate < 1``) as ``Decimal``."""
    result = to_decimal(value, name)
    if not (0 <= result < 1):
        raise InvalidInputError(
            f"{name.capitalize()} must be a fraction in [0, 1), got {result}."
        )
    return result


def _validate_int(value: Union[int, str], name: str) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {name} '{value}'. Must be an integer.")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidInputError(f"Invalid {name} '{value}'. Must be an integer.")


def validate_leverage(leverage: Union[int, str]) -> int:
    """Return the leverage as a positive ``int`` or raise."""
    result = _validate_int(leverage, "leverage")
    if result <= 0:
        raise InvalidInputError(f"Leverage must be positive, got {result}.")
    return result


def validate_stop_loss_times(stop_loss_times: Union[int, str]) -> int:
    """Return the stop-loss counter as an ``int`` >= 0 or raise."""
    result = _validate_int(stop_loss_times, "stop-loss count")
    if result < 0:
        raise InvalidInputError(f"Stop-loss count must not be negative, got {result}.")
    return result
