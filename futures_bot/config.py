"""
Immutable configuration for the futures bot helpers.

Configuration is read once at start-up from environment variables
(entry points call ``load_dotenv`` first, so a ``.env`` file works too)
and then passed explicitly to the objects that need it.

Trade variables (required unless a default is shown)::

    QUOTE_CURRENCY      e.g. USDT
    SYMBOL              e.g. BTCUSDT
    LEVERAGE            positive integer
    TP_SL_RATE          take-profit / stop-loss band as a fraction of margin
    INITIAL_QUANTITY    quantity of the first order
    FEE_RATE            taker fee, default 0.0004
    QUANTITY_STEP       lot-size step, default 0.001
    PRICE_TICK          price tick, default 0.1

Client variables::

    BINANCE_API_KEY, BINANCE_API_SECRET    required
    BINANCE_BASE_URL                       default https://fapi.binance.com
    HTTP_TIMEOUT                           seconds, default 10
    HTTP_MAX_RETRIES                       default 3
    HTTP_RETRY_BASE_DELAY                  seconds, default 1.0

Notification variables::

    LINE_NOTIFY_TOKEN                      optional
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .errors import ConfigError, InvalidInputError
from .validators import (
    validate_asset,
    validate_leverage,
    validate_non_negative_decimal,
    validate_positive_decimal,
    validate_rate,
    validate_symbol,
)

DEFAULT_BASE_URL = "https://fapi.binance.com"
DEFAULT_FEE_RATE = Decimal("0.0004")
DEFAULT_QUANTITY_STEP = Decimal("0.001")
DEFAULT_PRICE_TICK = Decimal("0.1")


@dataclass(frozen=True)
class TradeConfig:
    """Static trade parameters shared by every pricing call."""

    quote_currency: str
    symbol: str
    leverage: int
    tp_sl_rate: Decimal
    initial_quantity: Decimal
    fee_rate: Decimal = DEFAULT_FEE_RATE
    quantity_step: Decimal = DEFAULT_QUANTITY_STEP
    price_tick: Decimal = DEFAULT_PRICE_TICK

    def __post_init__(self) -> None:
        # Normalise in place; frozen dataclasses need object.__setattr__.
        set_ = object.__setattr__
        set_(self, "quote_currency", validate_asset(self.quote_currency))
        set_(self, "symbol", validate_symbol(self.symbol))
        set_(self, "leverage", validate_leverage(self.leverage))
        set_(self, "tp_sl_rate",
             validate_non_negative_decimal(self.tp_sl_rate, "TP/SL rate"))
        set_(self, "initial_quantity",
             validate_positive_decimal(self.initial_quantity, "initial quantity"))
        set_(self, "fee_rate", validate_rate(self.fee_rate, "fee rate"))
        set_(self, "quantity_step",
             validate_positive_decimal(self.quantity_step, "quantity step"))
        set_(self, "price_tick", validate_positive_decimal(self.price_tick, "price tick"))


@dataclass(frozen=True)
class ClientSettings:
    """Credentials and transport settings for the REST client."""

    api_key: str
    api_secret: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    max_retries: int = 3
    retry_base_delay: float = 1.0

    def __repr__(self) -> str:
        return (
            f"ClientSettings(api_key='***', api_secret='***', base_url={self.base_url!r}, "
            f"timeout={self.timeout}, max_retries={self.max_retries}, "
            f"retry_base_delay={self.retry_base_delay})"
        )


@dataclass(frozen=True)
class NotifySettings:
    """Where to deliver alerts. ``None`` token means log-only."""

    line_notify_token: Optional[str] = None


# ── Loaders ────────────────────────────────────────────────────────────────


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable {name}.")
    return value


def _optional(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name, "").strip()
    return value or None


def load_trade_config(env: Optional[Mapping[str, str]] = None) -> TradeConfig:
    """
    Build a ``TradeConfig`` from environment variables.

    Raises
    ------
    ConfigError
        If a required variable is missing or any value is invalid.
    """
    env = os.environ if env is None else env
    kwargs = {
        "quote_currency": _require(env, "QUOTE_CURRENCY"),
        "symbol": _require(env, "SYMBOL"),
        "leverage": _require(env, "LEVERAGE"),
        "tp_sl_rate": _require(env, "TP_SL_RATE"),
        "initial_quantity": _require(env, "INITIAL_QUANTITY"),
    }
    for field, var in (
        ("fee_rate", "FEE_RATE"),
        ("quantity_step", "QUANTITY_STEP"),
        ("price_tick", "PRICE_TICK"),
    ):
        value = _optional(env, var)
        if value is not None:
            kwargs[field] = value

    try:
        return TradeConfig(**kwargs)
    except InvalidInputError as exc:
        raise ConfigError(f"Invalid trade configuration: {exc}") from exc


def load_client_settings(env: Optional[Mapping[str, str]] = None) -> ClientSettings:
    """Build ``ClientSettings`` from environment variables."""
    env = os.environ if env is None else env
    api_key = _optional(env, "BINANCE_API_KEY")
    api_secret = _optional(env, "BINANCE_API_SECRET")
    if not api_key or not api_secret:
        raise ConfigError(
            "Missing API credentials. Set BINANCE_API_KEY and BINANCE_API_SECRET "
            "in a .env file or as environment variables."
        )

    try:
        timeout = float(_optional(env, "HTTP_TIMEOUT") or 10.0)
        max_retries = int(_optional(env, "HTTP_MAX_RETRIES") or 3)
        retry_base_delay = float(_optional(env, "HTTP_RETRY_BASE_DELAY") or 1.0)
    except ValueError as exc:
        raise ConfigError(f"Invalid HTTP setting: {exc}") from exc
    if timeout <= 0 or max_retries < 0 or retry_base_delay < 0:
        raise ConfigError(
            "HTTP_TIMEOUT must be positive; HTTP_MAX_RETRIES and "
            "HTTP_RETRY_BASE_DELAY must not be negative."
        )

    return ClientSettings(
        api_key=api_key,
        api_secret=api_secret,
        base_url=_optional(env, "BINANCE_BASE_URL") or DEFAULT_BASE_URL,
        timeout=timeout,
        max_retries=max_retries,
        retry_base_delay=retry_base_delay,
    )


def load_notify_settings(env: Optional[Mapping[str, str]] = None) -> NotifySettings:
    """Build ``NotifySettings`` from environment variables."""
    env = os.environ if env is None else env
    return NotifySettings(line_notify_token=_optional(env, "LINE_NOTIFY_TOKEN"))
