"""
futures_bot — Pricing and exchange helpers for a Binance Futures bot.

Submodules
----------
pricing         Order sizing and TP/SL price derivation.
client          REST client with HMAC-SHA256 authentication and retry.
signing         Request signer.
planner         Combines exchange data with the pricing engine.
notifications   Best-effort alerts (LINE Notify or log).
config          Immutable configuration loaded from the environment.
errors          Transient / permanent / invalid-input error taxonomy.
validators      Input validation and Decimal coercion.
logging_config  Dual-output logging (console + rotating file).
"""

from futures_bot.client import BinanceAPIError, BinanceFuturesClient
from futures_bot.config import (
    ClientSettings,
    NotifySettings,
    TradeConfig,
    load_client_settings,
    load_notify_settings,
    load_trade_config,
)
from futures_bot.errors import (
    ConfigError,
    FuturesBotError,
    InvalidInputError,
    PermanentError,
    RequestTimeoutError,
    TransientError,
    is_fatal,
)
from futures_bot.notifications import NotificationSink, build_notifier
from futures_bot.planner import OrderPlan, OrderPlanner
from futures_bot.pricing import PricingEngine, Side, TPSLPrices, opposite
from futures_bot.signing import RequestSigner

__all__ = [
    "BinanceAPIError",
    "BinanceFuturesClient",
    "ClientSettings",
    "ConfigError",
    "FuturesBotError",
    "InvalidInputError",
    "NotificationSink",
    "NotifySettings",
    "OrderPlan",
    "OrderPlanner",
    "PermanentError",
    "PricingEngine",
    "RequestSigner",
    "RequestTimeoutError",
    "Side",
    "TPSLPrices",
    "TradeConfig",
    "TransientError",
    "build_notifier",
    "is_fatal",
    "load_client_settings",
    "load_notify_settings",
    "load_trade_config",
    "opposite",
]
