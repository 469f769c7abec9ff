"""Tests for OrderPlanner with in-memory collaborators."""

from decimal import Decimal
from typing import List

import pytest

from futures_bot.errors import InvalidInputError, PermanentError, TransientError
from futures_bot.notifications import NotificationSink
from futures_bot.planner import OrderPlanner
from futures_bot.pricing import PricingEngine, Side


class FakeExchange:
    """Serves fixed market and account data."""

    def __init__(self, mark_price="100", ratio="1.2", balance="1000"):
        self.mark_price = Decimal(mark_price)
        self.ratio = Decimal(ratio)
        self.balance = Decimal(balance)
        self.calls: List[tuple] = []

    def get_mark_price(self, symbol: str) -> Decimal:
        self.calls.append(("mark", symbol))
        return self.mark_price

    def get_long_short_ratio(self, symbol: str, period: str = "5m") -> Decimal:
        self.calls.append(("ratio", symbol, period))
        return self.ratio

    def get_available_balance(self, asset: str) -> Decimal:
        self.calls.append(("balance", asset))
        return self.balance


class RecordingSink(NotificationSink):
    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def planner(engine: PricingEngine, exchange: FakeExchange, sink: RecordingSink) -> OrderPlanner:
    return OrderPlanner(engine, market=exchange, account=exchange, notifier=sink)


def test_available_quantity(planner, exchange) -> None:
    exchange.mark_price = Decimal("50000")
    assert planner.available_quantity() == Decimal("0.2")
    assert ("balance", "USDT") in exchange.calls
    assert ("mark", "BTCUSDT") in exchange.calls


def test_suggest_side_follows_ratio(planner, exchange) -> None:
    assert planner.suggest_side() is Side.LONG
    exchange.ratio = Decimal("0.9")
    assert planner.suggest_side() is Side.SHORT
    assert ("ratio", "BTCUSDT", "5m") in exchange.calls


def test_plan_next_order_with_suggested_side(planner) -> None:
    plan = planner.plan_next_order(0)

    assert plan.symbol == "BTCUSDT"
    assert plan.side is Side.LONG
    assert plan.close_side == "SELL"
    assert plan.quantity == "0.001"
    assert plan.mark_price == Decimal("100")
    assert plan.prices.take_profit_price == "103.1"
    assert plan.prices.stop_loss_price == "96.9"


def test_plan_next_order_with_forced_side(planner, exchange) -> None:
    plan = planner.plan_next_order(3, side="SELL")

    assert plan.side is Side.SHORT
    assert plan.close_side == "BUY"
    assert plan.quantity == "0.008"
    # rate = 0.3 + 0.008 * 4 = 0.332 -> +/-3.32%
    assert plan.prices.take_profit_price == "96.7"
    assert plan.prices.stop_loss_price == "103.3"
    assert not any(call[0] == "ratio" for call in exchange.calls)


def test_guard_returns_result(planner, sink) -> None:
    assert planner.guard(lambda x: x * 2, 21) == 42
    assert sink.messages == []


def test_guard_notifies_on_fatal_error(planner, sink) -> None:
    def boom():
        raise PermanentError("Invalid API-key")

    with pytest.raises(PermanentError):
        planner.guard(boom)
    assert len(sink.messages) == 1
    assert "Invalid API-key" in sink.messages[0]


def test_guard_notifies_on_invalid_input(planner, sink) -> None:
    with pytest.raises(InvalidInputError):
        planner.guard(planner.plan_next_order, -1, Side.LONG)
    assert len(sink.messages) == 1


def test_guard_does_not_notify_on_transient_error(planner, sink) -> None:
    def flaky():
        raise TransientError("rate limited")

    with pytest.raises(TransientError):
        planner.guard(flaky)
    assert sink.messages == []


@pytest.mark.parametrize("side, close", [(Side.LONG, "SELL"), (Side.SHORT, "BUY")])
def test_close_side_is_opposite_order_side(planner, side: Side, close: str) -> None:
    assert planner.plan_next_order(0, side=side).close_side == close
