"""Shared test fixtures for the futures bot helpers."""

import json
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from futures_bot.config import ClientSettings, TradeConfig
from futures_bot.pricing import PricingEngine


def make_response(status_code: int = 200, body: Any = None) -> MagicMock:
    """A stand-in for ``requests.Response`` carrying a JSON body."""
    response = MagicMock(spec=requests.Response)
    text = json.dumps(body) if body is not None else ""
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.content = text.encode("utf-8")
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def trade_config() -> TradeConfig:
    """BTCUSDT at 10x, 30% TP/SL band, Binance taker fee."""
    return TradeConfig(
        quote_currency="USDT",
        symbol="BTCUSDT",
        leverage=10,
        tp_sl_rate=Decimal("0.3"),
        initial_quantity=Decimal("0.001"),
        fee_rate=Decimal("0.0004"),
    )


@pytest.fixture
def engine(trade_config: TradeConfig) -> PricingEngine:
    return PricingEngine(trade_config)


@pytest.fixture
def client_settings() -> ClientSettings:
    return ClientSettings(
        api_key="test-api-key",
        api_secret="test-api-secret",
        base_url="https://fapi.test",
        timeout=3.0,
        max_retries=2,
        retry_base_delay=1.0,
    )


@pytest.fixture
def session() -> MagicMock:
    """Fake ``requests.Session``; set ``request.side_effect`` per test."""
    fake = MagicMock(spec=requests.Session)
    fake.headers = {}
    return fake


@pytest.fixture
def respond():
    """Factory fixture wrapping ``make_response``."""
    return make_response
