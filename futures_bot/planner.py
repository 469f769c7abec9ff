"""
Order planning.

Bridges the exchange clients and the pure ``PricingEngine``: fetches the
market and account data a decision needs, then derives the next order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, TypeVar, Union

from .errors import is_fatal
from .notifications import LogNotificationSink, NotificationSink
from .pricing import (
    PricingEngine,
    Side,
    TPSLPrices,
    opposite,
    side_from_long_short_ratio,
)

logger = logging.getLogger("futures_bot")

T = TypeVar("T")

FATAL_MESSAGE = "API error, bot stopped!"
LONG_SHORT_PERIOD = "5m"


class MarketDataClient(Protocol):
    def get_mark_price(self, symbol: str) -> Decimal: ...

    def get_long_short_ratio(self, symbol: str, period: str = ...) -> Decimal: ...


class AccountClient(Protocol):
    def get_available_balance(self, asset: str) -> Decimal: ...


@dataclass(frozen=True)
class OrderPlan:
    """Everything needed to open the next position."""

    symbol: str
    side: Side
    quantity: str
    mark_price: Decimal
    prices: TPSLPrices

    @property
    def close_side(self) -> str:
        """Exchange side of the TP/SL closing orders."""
        return opposite(self.side).order_side


class OrderPlanner:
    """Combines market data, account data and the pricing engine."""

    def __init__(
        self,
        engine: PricingEngine,
        market: MarketDataClient,
        account: AccountClient,
        notifier: Optional[NotificationSink] = None,
    ):
        self.engine = engine
        self.market = market
        self.account = account
        self.notifier = notifier if notifier is not None else LogNotificationSink()

    @property
    def symbol(self) -> str:
        return self.engine.config.symbol

    def mark_price(self) -> Decimal:
        return self.market.get_mark_price(self.symbol)

    def available_balance(self) -> Decimal:
        return self.account.get_available_balance(self.engine.config.quote_currency)

    def suggest_side(self) -> Side:
        """Side the top traders are leaning towards."""
        ratio = self.market.get_long_short_ratio(self.symbol, LONG_SHORT_PERIOD)
        side = side_from_long_short_ratio(ratio)
        logger.info("Long/short ratio %s -> %s", ratio, side.value)
        return side

    def available_quantity(self) -> Decimal:
        """Largest quantity the free balance can open right now."""
        balance = self.available_balance()
        mark_price = self.mark_price()
        return self.engine.compute_available_quantity(balance, mark_price)

    def plan_next_order(
        self,
        stop_loss_times: int,
        side: Union[Side, str, None] = None,
    ) -> OrderPlan:
        """
        Derive the next order after *stop_loss_times* consecutive stop-losses.

        The side is taken from the long/short ratio when not given.
        """
        side = self.suggest_side() if side is None else Side.parse(side)
        quantity = self.engine.compute_quantity(stop_loss_times)
        mark_price = self.mark_price()
        prices = self.engine.compute_tpsl_prices(side, stop_loss_times, mark_price)

        plan = OrderPlan(
            symbol=self.symbol,
            side=side,
            quantity=self.engine.format_quantity(quantity),
            mark_price=mark_price,
            prices=prices,
        )
        logger.info(
            "Planned %s %s %s @ mark %s  tp=%s sl=%s",
            side.value, plan.quantity, plan.symbol, mark_price,
            prices.take_profit_price, prices.stop_loss_price,
        )
        return plan

    def guard(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run *operation*, alerting before a fatal error propagates.

        Transient errors are logged and re-raised so the caller can retry
        later; fatal ones also trigger a best-effort notification.
        """
        try:
            return operation(*args, **kwargs)
        except Exception as exc:
            if not is_fatal(exc):
                logger.warning("Transient failure, retry later: %s", exc)
                raise
            logger.error("Fatal error: %s", exc)
            self.notifier.notify(f"{FATAL_MESSAGE} {exc}")
            raise
