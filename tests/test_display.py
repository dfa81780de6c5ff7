"""
Tests for console rendering of chain windows, tickets, previews and positions.
"""

from datetime import date

from rich.table import Table

from option_calculator.analytics.positions import PositionSummary
from option_calculator.data.models import PreviewResult
from option_calculator.execution.chain_window import window_chain
from option_calculator.execution.contracts import Leg
from option_calculator.execution.pricing import PriceLevel, PricingQuote
from option_calculator.order.assembler import NetGreeks, OrderPayload, OrderTicket
from option_calculator.run.display import (
    positions_table,
    preview_table,
    render,
    renderable,
    ticket_table,
    window_table,
)

from fakes import make_chain, make_entry

EXP = date(2025, 6, 20)


def _line_with(text: str, needle: str) -> str:
    return next(line for line in text.splitlines() if needle in line)


def test_window_table_pairs_calls_and_puts_by_strike():
    window = window_chain(make_chain([90, 95, 100, 105]), 100.0, 1)

    table = window_table(window, "SPY", EXP)
    out = render(table)

    assert [c.header for c in table.columns] == [
        "Call Bid", "Call Ask", "Vol", "OI", "Strike", "Put Bid", "Put Ask", "Vol", "OI",
    ]
    assert table.row_count == 2
    assert "SPY 2025-06-20  (last $100.00)" in out
    assert "1.00" in _line_with(out, " 95 ") and "1.10" in _line_with(out, " 95 ")
    assert " 90 " not in out and " 105 " not in out


def test_window_table_calls_only_has_no_put_columns():
    window = window_chain(make_chain([95, 100]), 100.0, 1, include_puts=False)

    table = window_table(window, "SPY", EXP)

    assert [c.header for c in table.columns] == ["Call Bid", "Call Ask", "Vol", "OI", "Strike"]
    assert table.caption is None


def test_preview_shows_proceeds_for_negative_costs():
    out = render(preview_table(PreviewResult(commission=1.0, cost=-39.0, order_cost=-40.0)))

    assert "$40.00" in _line_with(out, "Proceeds")
    assert "$39.00" in _line_with(out, "Total proceeds")
    assert "-$" not in out
    assert "Estimated total" not in out


def test_preview_shows_costs():
    out = render(preview_table(PreviewResult(commission=1.0, cost=46.0, order_cost=45.0, margin_change=500.0)))

    assert "$45.00" in _line_with(out, "Order cost")
    assert "$500.00" in _line_with(out, "Margin change")
    assert "$46.00" in _line_with(out, "Estimated total")
    assert "proceeds" not in out.lower()


def test_ticket_lists_legs_and_net_greeks():
    long_call, short_call = make_entry(100), make_entry(105)
    payload = OrderPayload(
        "SPY", "multileg", "debit", "day",
        ("buy_to_open", "sell_to_open"), (1, 1),
        (long_call.symbol, short_call.symbol), price=0.45,
    )
    legs = (Leg("option", "buy_to_open", 1, long_call), Leg("option", "sell_to_open", 1, short_call))
    ticket = OrderTicket(payload, greeks=NetGreeks(delta=0.18), legs=legs)

    out = render(ticket_table(ticket))

    assert "ORDER: SPY (multileg)" in out
    assert "buy to open" in _line_with(out, long_call.symbol)
    assert "sell to open" in _line_with(out, short_call.symbol)
    assert "$0.45" in _line_with(out, "Price")
    assert "0.180000" in _line_with(out, "Net delta")


def test_positions_table_gain_and_balance():
    rows = [
        PositionSummary("SPY", "equity", cost_basis=1000.0, quantity=10, value=1010.0),
        PositionSummary("QQQ", "option", cost_basis=0.0, quantity=1, value=50.0),
    ]

    out = render(positions_table(rows, 10000.0))

    assert "ACCOUNT POSITIONS" in out
    assert "$10.00 (+1.00%)" in _line_with(out, "SPY")
    assert "%" not in _line_with(out, "QQQ")
    assert "Account balance: $10,000.00" in out


def test_renderable_dispatch():
    price = PricingQuote(bid=PriceLevel(0.40), ask=PriceLevel(0.60), net=True)
    assert renderable(price) == "Bid: $0.40 debit  Ask: $0.60 debit"
    assert isinstance(renderable(PreviewResult(commission=0.0, cost=1.0, order_cost=1.0)), Table)
    assert renderable(42) == "42"
