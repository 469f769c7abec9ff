"""Tests for order sizing and TP/SL price derivation."""

from decimal import Decimal

import pytest

from futures_bot.config import TradeConfig
from futures_bot.errors import InvalidInputError
from futures_bot.pricing import (
    PricingEngine,
    Side,
    TPSLPrices,
    opposite,
    side_from_long_short_ratio,
)


class TestSide:
    def test_opposite(self) -> None:
        assert opposite(Side.LONG) is Side.SHORT
        assert opposite(Side.SHORT) is Side.LONG

    @pytest.mark.parametrize("side", list(Side))
    def test_opposite_is_an_involution(self, side: Side) -> None:
        assert opposite(opposite(side)) is side

    @pytest.mark.parametrize("bad", ["LONG", "BUY", None, 1])
    def test_opposite_rejects_non_sides(self, bad) -> None:
        with pytest.raises(InvalidInputError):
            opposite(bad)

    @pytest.mark.parametrize(
        "raw, expected",
        [("long", Side.LONG), ("BUY", Side.LONG), (" short ", Side.SHORT),
         ("sell", Side.SHORT), (Side.LONG, Side.LONG)],
    )
    def test_parse(self, raw, expected: Side) -> None:
        assert Side.parse(raw) is expected

    @pytest.mark.parametrize("bad", ["HOLD", "", None, 0])
    def test_parse_rejects_unknown(self, bad) -> None:
        with pytest.raises(InvalidInputError):
            Side.parse(bad)

    def test_order_side(self) -> None:
        assert Side.LONG.order_side == "BUY"
        assert Side.SHORT.order_side == "SELL"

    def test_invalid_input_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            Side.parse("HOLD")


class TestSideFromRatio:
    def test_more_longs_goes_long(self) -> None:
        assert side_from_long_short_ratio("1.25") is Side.LONG

    def test_balanced_or_short_goes_short(self) -> None:
        assert side_from_long_short_ratio(Decimal("1")) is Side.SHORT
        assert side_from_long_short_ratio(0.8) is Side.SHORT

    def test_rejects_non_positive_ratio(self) -> None:
        with pytest.raises(InvalidInputError):
            side_from_long_short_ratio(0)


class TestComputeQuantity:
    def test_first_order_uses_initial_quantity(self, engine: PricingEngine) -> None:
        assert engine.compute_quantity(0) == Decimal("0.001")

    @pytest.mark.parametrize("n", range(0, 8))
    def test_doubles_after_each_stop_loss(self, engine: PricingEngine, n: int) -> None:
        assert engine.compute_quantity(n + 1) == 2 * engine.compute_quantity(n)

    def test_exact_value(self, engine: PricingEngine) -> None:
        assert engine.compute_quantity(5) == Decimal("0.032")

    @pytest.mark.parametrize("n", [27, 60, 100, 250])
    def test_doubling_stays_exact_past_default_precision(self, engine: PricingEngine, n: int) -> None:
        assert engine.compute_quantity(n + 1) / engine.compute_quantity(n) == 2
        assert engine.compute_quantity(n) == Decimal(f"{2 ** n}E-3")

    def test_huge_quantity_formats_every_digit(self, engine: PricingEngine) -> None:
        quantity = engine.compute_quantity(100)
        assert engine.format_quantity(quantity) == "1267650600228229401496703205.376"

    def test_quantity_beyond_decimal_range(self, engine: PricingEngine) -> None:
        with pytest.raises(InvalidInputError, match="out of range"):
            engine.compute_quantity(4_000_000)

    @pytest.mark.parametrize("bad", [-1, "x", 1.5, True])
    def test_rejects_bad_counter(self, engine: PricingEngine, bad) -> None:
        with pytest.raises(InvalidInputError):
            engine.compute_quantity(bad)


class TestComputeTPSLPrices:
    def test_worked_example_long(self, engine: PricingEngine) -> None:
        """rate = 0.3 + 10*0.0004*2 = 0.308 -> +/-3.08% at 10x."""
        prices = engine.compute_tpsl_prices(Side.LONG, 0, Decimal("100"))
        assert prices == TPSLPrices(take_profit_price="103.1", stop_loss_price="96.9")

    def test_worked_example_short_swaps_prices(self, engine: PricingEngine) -> None:
        prices = engine.compute_tpsl_prices(Side.SHORT, 0, Decimal("100"))
        assert prices == TPSLPrices(take_profit_price="96.9", stop_loss_price="103.1")

    def test_band_widens_with_stop_losses(self, engine: PricingEngine) -> None:
        # rate = 0.3 + 0.008 * 3 = 0.324 -> +/-3.24%
        prices = engine.compute_tpsl_prices(Side.LONG, 2, "100")
        assert prices.take_profit_price == "103.2"
        assert prices.stop_loss_price == "96.8"

    def test_rounds_half_away_from_zero(self) -> None:
        # 0.005 band at 10x -> +/-0.05% -> 100.05 / 99.95 exactly
        config = TradeConfig(
            quote_currency="USDT", symbol="BTCUSDT", leverage=10,
            tp_sl_rate=Decimal("0.005"), initial_quantity=Decimal("0.001"),
            fee_rate=Decimal("0"),
        )
        prices = PricingEngine(config).compute_tpsl_prices(Side.LONG, 0, "100")
        assert prices.take_profit_price == "100.1"
        assert prices.stop_loss_price == "100.0"

    def test_output_keeps_one_decimal(self, engine: PricingEngine) -> None:
        prices = engine.compute_tpsl_prices(Side.LONG, 0, "50000")
        # 50000 * 1.0308 = 51540, 50000 * 0.9692 = 48460
        assert prices.take_profit_price == "51540.0"
        assert prices.stop_loss_price == "48460.0"

    def test_accepts_float_mark_price(self, engine: PricingEngine) -> None:
        prices = engine.compute_tpsl_prices("BUY", 0, 100.0)
        assert prices.take_profit_price == "103.1"

    @pytest.mark.parametrize("mark", ["27123.4", "312.7", "1999.99"])
    def test_long_brackets_mark_price(self, engine: PricingEngine, mark: str) -> None:
        prices = engine.compute_tpsl_prices(Side.LONG, 1, mark)
        assert Decimal(prices.take_profit_price) > Decimal(mark) > Decimal(prices.stop_loss_price)

    @pytest.mark.parametrize("mark", ["27123.4", "312.7", "1999.99"])
    def test_short_brackets_mark_price(self, engine: PricingEngine, mark: str) -> None:
        prices = engine.compute_tpsl_prices(Side.SHORT, 1, mark)
        assert Decimal(prices.take_profit_price) < Decimal(mark) < Decimal(prices.stop_loss_price)

    def test_custom_tick(self) -> None:
        config = TradeConfig(
            quote_currency="USDT", symbol="DOGEUSDT", leverage=10,
            tp_sl_rate="0.3", initial_quantity="100", price_tick="0.00001",
        )
        prices = PricingEngine(config).compute_tpsl_prices(Side.LONG, 0, "0.1")
        assert prices.take_profit_price == "0.10308"
        assert prices.stop_loss_price == "0.09692"

    @pytest.mark.parametrize("mark", [0, -1, "-100", "abc"])
    def test_rejects_bad_mark_price(self, engine: PricingEngine, mark) -> None:
        with pytest.raises(InvalidInputError):
            engine.compute_tpsl_prices(Side.LONG, 0, mark)

    def test_rejects_unknown_side(self, engine: PricingEngine) -> None:
        with pytest.raises(InvalidInputError):
            engine.compute_tpsl_prices("FLAT", 0, "100")

    def test_rejects_band_wider_than_price(self) -> None:
        config = TradeConfig(
            quote_currency="USDT", symbol="BTCUSDT", leverage=1,
            tp_sl_rate="1.5", initial_quantity="1",
        )
        with pytest.raises(InvalidInputError):
            PricingEngine(config).compute_tpsl_prices(Side.LONG, 0, "100")


class TestComputeAvailableQuantity:
    def test_worked_example(self, engine: PricingEngine) -> None:
        qty = engine.compute_available_quantity(
            balance=Decimal("1000"), mark_price=Decimal("50000"), leverage=10
        )
        assert qty == Decimal("0.2")
        assert engine.format_quantity(qty) == "0.200"

    def test_truncates_to_lot_step(self, engine: PricingEngine) -> None:
        # 123.45 * 10 / 27000 = 0.045722...
        assert engine.compute_available_quantity("123.45", "27000") == Decimal("0.045")

    def test_defaults_to_configured_leverage(self, engine: PricingEngine) -> None:
        assert engine.compute_available_quantity("1000", "50000") == Decimal("0.2")

    def test_zero_balance_gives_zero(self, engine: PricingEngine) -> None:
        assert engine.compute_available_quantity("0", "50000") == Decimal("0")

    def test_custom_step(self) -> None:
        config = TradeConfig(
            quote_currency="USDT", symbol="DOGEUSDT", leverage=5,
            tp_sl_rate="0.3", initial_quantity="100", quantity_step="1",
        )
        # 100 * 5 / 0.0731 = 6839.9...
        assert PricingEngine(config).compute_available_quantity("100", "0.0731") == Decimal("6839")

    @pytest.mark.parametrize(
        "balance, mark, leverage",
        [("-1", "100", 10), ("100", "0", 10), ("100", "-5", 10), ("100", "100", 0),
         ("100", "100", -3)],
    )
    def test_rejects_bad_inputs(self, engine: PricingEngine, balance, mark, leverage) -> None:
        with pytest.raises(InvalidInputError):
            engine.compute_available_quantity(balance, mark, leverage)


class TestFormatting:
    def test_format_price_rounds_to_tick(self, engine: PricingEngine) -> None:
        assert engine.format_price("103.08") == "103.1"
        assert engine.format_price(7) == "7.0"

    def test_format_quantity_truncates(self, engine: PricingEngine) -> None:
        assert engine.format_quantity("0.0459") == "0.045"
        assert engine.format_quantity(Decimal("0.128")) == "0.128"
