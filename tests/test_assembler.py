"""
Tests for order assembly: payload shape, vocabularies, prices and net greeks.
"""

from datetime import date

import pytest

from option_calculator.errors import InvalidInput
from option_calculator.execution.contracts import Leg, Refresh
from option_calculator.execution.pricing import PricingResolver
from option_calculator.order.assembler import (
    OrderAssembler,
    OrderPayload,
    assemble_payload,
    collapse,
    net_greeks,
    normalize_duration,
    order_types,
    parse_price,
)
from option_calculator.order.builder import OrderBuilder

from fakes import FakeBroker, ScriptedPrompter, equity_quote, make_entry

EXP = date(2025, 6, 20)


@pytest.fixture
def spread():
    long_call = make_entry(100, bid=1.00, ask=1.10, delta=0.50, gamma=0.05, theta=-0.04, vega=0.12)
    short_call = make_entry(105, bid=0.50, ask=0.60, delta=0.30, gamma=0.04, theta=-0.03, vega=0.10)
    builder = OrderBuilder("SPY")
    builder.add_leg("option", "buy_to_open", 1, long_call)
    builder.add_leg("option", "sell_to_open", 1, short_call)
    broker = FakeBroker(quotes={"SPY": equity_quote()}, chains={EXP: [long_call, short_call]})
    return builder, broker


def test_single_leg_payload_collapses_to_scalars():
    entry = make_entry(100)
    builder = OrderBuilder("SPY")
    builder.add_leg("option", "buy_to_open", 3, entry)

    params = assemble_payload(builder, "limit", "day", price=1.05).to_params()

    assert params == {
        "class": "option",
        "symbol": "SPY",
        "type": "limit",
        "duration": "day",
        "side": "buy_to_open",
        "quantity": 3,
        "option_symbol": entry.symbol,
        "price": 1.05,
    }


def test_two_leg_payload_keeps_insertion_order(spread):
    builder, _ = spread
    params = assemble_payload(builder, "debit", "GTC", price=0.45).to_params()

    assert params["class"] == "multileg"
    assert params["side"] == ["buy_to_open", "sell_to_open"]
    assert params["quantity"] == [1, 1]
    assert params["option_symbol"] == [builder.legs[0].option_symbol, builder.legs[1].option_symbol]
    assert params["duration"] == "gtc"
    assert params["price"] == 0.45


def test_equity_payload_has_no_option_symbol():
    builder = OrderBuilder("SPY")
    builder.add_leg("equity", "buy", 100)

    params = assemble_payload(builder, "market", "day").to_params()

    assert "option_symbol" not in params
    assert "price" not in params and "stop" not in params
    assert params["side"] == "buy"


def test_stop_limit_needs_price_and_stop():
    builder = OrderBuilder("SPY")
    builder.add_leg("equity", "sell", 10)

    with pytest.raises(InvalidInput):
        assemble_payload(builder, "stop_limit", "day", price=99.0)
    params = assemble_payload(builder, "stop_limit", "day", price=99.0, stop=99.5).to_params()
    assert params["price"] == 99.0 and params["stop"] == 99.5

    with pytest.raises(InvalidInput):
        assemble_payload(builder, "stop", "day", stop=0)


def test_order_type_vocabulary_depends_on_class():
    assert order_types("equity") == ("market", "limit", "stop_limit", "stop")
    assert order_types("option") == ("market", "limit", "stop_limit", "stop")
    assert order_types("multileg") == ("market", "debit", "credit", "even")
    assert order_types("combo") == ("market", "debit", "credit", "even")

    with pytest.raises(InvalidInput):
        OrderPayload("SPY", "equity", "debit", "day", ("buy",), (1,), price=1.0)
    with pytest.raises(InvalidInput):
        OrderPayload("SPY", "multileg", "limit", "day", ("buy_to_open", "sell_to_open"), (1, 1), price=1.0)


def test_payload_requires_legs_and_parallel_arrays():
    with pytest.raises(InvalidInput):
        OrderPayload("SPY", "equity", "market", "day", (), ())
    with pytest.raises(InvalidInput):
        OrderPayload("SPY", "multileg", "market", "day", ("buy_to_open", "sell_to_open"), (1,))
    with pytest.raises(InvalidInput):
        assemble_payload(OrderBuilder("SPY"), "market", "day")


def test_durations():
    assert normalize_duration("pre-market") == "pre"
    assert normalize_duration("post-market") == "post"
    assert normalize_duration("GTC") == "gtc"
    with pytest.raises(InvalidInput):
        normalize_duration("week")


def test_parse_price():
    assert parse_price("1.25") == 1.25
    with pytest.raises(InvalidInput, match="must not be 0"):
        parse_price("0")
    with pytest.raises(InvalidInput, match="positive"):
        parse_price("-1")
    with pytest.raises(InvalidInput):
        parse_price("cheap")


def test_collapse():
    assert collapse(["a"]) == "a"
    assert collapse(("a", "b")) == ["a", "b"]


def test_net_greeks_signed_by_side(spread):
    builder, _ = spread
    greeks = net_greeks(builder.legs)

    assert greeks.delta == 0.2
    assert greeks.gamma == 0.01
    assert greeks.theta == -0.01
    assert greeks.vega == 0.02
    assert greeks.rho == 0.0


def test_net_greeks_rounded_and_skip_equity():
    legs = [
        Leg("equity", "buy", 100),
        Leg("option", "sell_to_open", 1, make_entry(100, delta=0.1234567891)),
    ]
    assert net_greeks(legs).delta == -0.123457


def test_assembler_refresh_then_accept(spread):
    builder, broker = spread
    prompter = ScriptedPrompter(["debit", Refresh(), "0", "0.45", "GTC"])
    assembler = OrderAssembler(PricingResolver(broker), prompter)

    ticket = assembler.assemble(builder)

    assert ticket.payload.order_type == "debit"
    assert ticket.payload.price == 0.45
    assert ticket.payload.duration == "gtc"
    assert ticket.greeks is not None and ticket.greeks.delta == 0.2
    # one quote per leg per pass: initial + refresh
    assert len(broker.quote_calls) == 4
    assert prompter.warnings == ["The debit price must not be 0."]
    assert abs(ticket.quote.bid.value - 0.40) < 1e-9


def test_assembler_market_order_skips_pricing(spread):
    builder, broker = spread
    prompter = ScriptedPrompter(["market", "day"])

    ticket = OrderAssembler(PricingResolver(broker), prompter).assemble(builder)

    assert ticket.payload.price is None
    assert ticket.quote is None
    assert broker.quote_calls == []


def test_assembler_stop_order():
    builder = OrderBuilder("SPY")
    builder.add_leg("equity", "sell", 10)
    broker = FakeBroker(quotes={"SPY": equity_quote()})
    prompter = ScriptedPrompter(["stop", "-3", "95.5", "pre-market"])

    ticket = OrderAssembler(PricingResolver(broker), prompter).assemble(builder)

    assert ticket.payload.stop == 95.5
    assert ticket.payload.duration == "pre"
    assert ticket.greeks is None
