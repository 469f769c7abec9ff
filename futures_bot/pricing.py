"""
Order sizing and take-profit / stop-loss price derivation.

The bot doubles its position after every stop-loss, and widens the
TP/SL band by the round-trip fee cost for each prior stop-loss so
that a win recovers the accumulated fee drag.

All arithmetic is done in ``Decimal``; prices are rounded half away from
zero to the configured tick, quantities are truncated to the lot step.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, DecimalException, localcontext
from enum import Enum
from typing import Optional, Union

from .config import TradeConfig
from .errors import InvalidInputError
from .validators import (
    Number,
    to_decimal,
    validate_leverage,
    validate_non_negative_decimal,
    validate_positive_decimal,
    validate_stop_loss_times,
)

logger = logging.getLogger("futures_bot")


class Side(Enum):
    """Position direction."""

    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def order_side(self) -> str:
        """Side of the opening order as the exchange names it."""
        return "BUY" if self is Side.LONG else "SELL"

    @classmethod
    def parse(cls, value: Union["Side", str]) -> "Side":
        """Accept a ``Side``, ``LONG``/``SHORT`` or ``BUY``/``SELL``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name in ("LONG", "BUY"):
                return cls.LONG
            if name in ("SHORT", "SELL"):
                return cls.SHORT
        raise InvalidInputError(
            f"Invalid side '{value}'. Must be one of: LONG, SHORT, BUY, SELL."
        )


def opposite(side: Side) -> Side:
    """Return the other side. Anything but a ``Side`` is rejected."""
    if side is Side.LONG:
        return Side.SHORT
    if side is Side.SHORT:
        return Side.LONG
    raise InvalidInputError(f"Invalid side '{side}'. Must be Side.LONG or Side.SHORT.")


def side_from_long_short_ratio(ratio: Number) -> Side:
    """Follow the top traders: LONG when longs outnumber shorts."""
    ratio = validate_positive_decimal(ratio, "long/short ratio")
    return Side.LONG if ratio > 1 else Side.SHORT


@dataclass(frozen=True)
class TPSLPrices:
    """Trigger prices formatted for the exchange."""

    take_profit_price: str
    stop_loss_price: str


def _decimals(step: Decimal) -> int:
    exponent = step.normalize().as_tuple().exponent
    return max(0, -exponent)


def round_to_step(value: Decimal, step: Decimal, rounding: str) -> Decimal:
    """Round *value* to a multiple of *step* and fix its exponent.

    Runs with enough precision to keep every integer digit of *value*.
    """
    decimals = _decimals(step)
    with localcontext() as ctx:
        ctx.prec = max(
            ctx.prec,
            value.adjusted() + abs(step.adjusted()) + decimals + len(step.as_tuple().digits) + 2,
        )
        try:
            units = (value / step).to_integral_value(rounding=rounding)
            return (units * step).quantize(Decimal(1).scaleb(-decimals))
        except DecimalException as exc:
            raise InvalidInputError(f"{value} is out of range for step {step}.") from exc


class PricingEngine:
    """Pure pricing functions bound to one ``TradeConfig``."""

    def __init__(self, config: TradeConfig):
        self.config = config

    # ── sizing ─────────────────────────────────────────────────────────

    def compute_quantity(self, stop_loss_times: int) -> Decimal:
        """
        Quantity of the next order: ``initial_quantity * 2 ** stop_loss_times``.

        No ceiling is applied; the caller decides how many doublings to allow.
        """
        stop_loss_times = validate_stop_loss_times(stop_loss_times)
        initial = self.config.initial_quantity
        with localcontext() as ctx:
            if initial.adjusted() + stop_loss_times * math.log10(2) + 1 > ctx.Emax:
                raise InvalidInputError(
                    f"Quantity after {stop_loss_times} stop-losses is out of range."
                )
            # 2**n has at most n + 1 digits
            ctx.prec = max(ctx.prec, len(initial.as_tuple().digits) + stop_loss_times + 1)
            return initial * (2 ** stop_loss_times)

    def compute_available_quantity(
        self,
        balance: Number,
        mark_price: Number,
        leverage: Optional[int] = None,
    ) -> Decimal:
        """
        Largest quantity the balance can open at *mark_price*.

        ``balance * leverage / mark_price`` truncated to the lot step.
        *leverage* defaults to the configured one.
        """
        balance = validate_non_negative_decimal(balance, "balance")
        mark_price = validate_positive_decimal(mark_price, "mark price")
        leverage = self.config.leverage if leverage is None else validate_leverage(leverage)

        available_funds = balance * leverage
        return round_to_step(
            available_funds / mark_price, self.config.quantity_step, ROUND_DOWN
        )

    # ── TP / SL ────────────────────────────────────────────────────────

    def order_cost_rate(self) -> Decimal:
        """Round-trip fee cost expressed as a rate of margin."""
        return self.config.leverage * self.config.fee_rate * 2

    def tpsl_rate(self, stop_loss_times: int) -> Decimal:
        """TP/SL band as a rate of margin, widened for prior stop-losses."""
        stop_loss_times = validate_stop_loss_times(stop_loss_times)
        return self.config.tp_sl_rate + self.order_cost_rate() * (stop_loss_times + 1)

    def compute_tpsl_prices(
        self,
        side: Union[Side, str],
        stop_loss_times: int,
        mark_price: Number,
    ) -> TPSLPrices:
        """
        Take-profit and stop-loss trigger prices around *mark_price*.

        Raises
        ------
        InvalidInputError
            On a non-positive mark price, an unknown side, or a band so
            wide the lower price would not be positive.  A non-positive
            leverage is rejected earlier, when ``TradeConfig`` is built.
        """
        side = Side.parse(side)
        stop_loss_times = validate_stop_loss_times(stop_loss_times)
        mark_price = validate_positive_decimal(mark_price, "mark price")

        move = self.tpsl_rate(stop_loss_times) / self.config.leverage
        tick = self.config.price_tick
        higher = round_to_step(mark_price * (1 + move), tick, ROUND_HALF_UP)
        lower = round_to_step(mark_price * (1 - move), tick, ROUND_HALF_UP)
        if lower <= 0:
            raise InvalidInputError(
                f"TP/SL band {move:%} is too wide for mark price {mark_price}."
            )

        if side is Side.LONG:
            prices = TPSLPrices(self.format_price(higher), self.format_price(lower))
        else:
            prices = TPSLPrices(self.format_price(lower), self.format_price(higher))

        logger.debug(
            "TP/SL for %s x%d @ %s: tp=%s sl=%s",
            side.value, stop_loss_times, mark_price,
            prices.take_profit_price, prices.stop_loss_price,
        )
        return prices

    # ── formatting ─────────────────────────────────────────────────────

    def format_price(self, value: Number) -> str:
        """Price string at the tick's precision."""
        price = round_to_step(to_decimal(value, "price"), self.config.price_tick, ROUND_HALF_UP)
        return f"{price:f}"

    def format_quantity(self, value: Number) -> str:
        """Quantity string at the lot step's precision, truncated."""
        quantity = round_to_step(
            to_decimal(value, "quantity"), self.config.quantity_step, ROUND_DOWN
        )
        return f"{quantity:f}"
