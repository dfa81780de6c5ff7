"""
Tests for the console prompter's menus, sentinels and re-asking.
"""

import io

from option_calculator.data.models import PreviewResult
from option_calculator.errors import InvalidInput
from option_calculator.execution.contracts import Back, Refresh, Resolved
from option_calculator.execution.pricing import PriceLevel, PricingQuote
from option_calculator.run.prompts import ConsolePrompter


def _prompter(*lines):
    answers = iter(lines)
    out, err = io.StringIO(), io.StringIO()
    return ConsolePrompter(input_fn=lambda prompt: next(answers), out=out, err=err), out, err


def _positive(raw):
    value = float(raw)
    if value <= 0:
        raise InvalidInput("must be positive")
    return value


def test_select_by_number_and_label():
    prompter, out, _ = _prompter("1", "PUT")
    options = [("call", "call"), ("put", "put")]

    assert prompter.select("Option type", options) == Resolved("put")
    assert prompter.select("Option type", options) == Resolved("put")
    assert "[0] call" in out.getvalue()


def test_select_invalid_then_back():
    prompter, out, err = _prompter("9", "<")
    outcome = prompter.select("Strike", [("100", 100.0)], back=True)

    assert isinstance(outcome, Back)
    assert "invalid" in err.getvalue()
    assert "go back" in out.getvalue()


def test_select_default():
    prompter, _, _ = _prompter("")
    assert prompter.select("Duration", [("day", "day"), ("GTC", "gtc")], default="GTC") == Resolved("gtc")


def test_ask_reasks_on_invalid_input():
    prompter, _, err = _prompter("-1", "2.5")
    assert prompter.ask("Price", _positive) == Resolved(2.5)
    assert "must be positive" in err.getvalue()


def test_ask_sentinels_only_when_enabled():
    prompter, _, _ = _prompter("r", "go back")
    assert isinstance(prompter.ask("Price", _positive, refresh=True), Refresh)
    assert isinstance(prompter.ask("Strike", _positive, back=True), Back)


def test_confirm():
    prompter, _, _ = _prompter("maybe", "y", "")
    assert prompter.confirm("Is this OK?") is True
    assert prompter.confirm("Is this OK?", default=False) is False


def test_present_formats_prices():
    prompter, out, _ = _prompter()
    prompter.present(PricingQuote(bid=PriceLevel(-0.40), ask=PriceLevel(-0.60), mid=PriceLevel(-0.5), net=True))
    assert out.getvalue().strip() == "Bid: $0.40 credit  Mid: $0.50 credit  Ask: $0.60 credit"


def test_present_prints_tables_through_console():
    prompter, out, _ = _prompter()
    prompter.present(PreviewResult(commission=0.0, cost=-44.0, order_cost=-45.0))
    text = out.getvalue()
    assert "ORDER PREVIEW" in text
    assert "Total proceeds" in text and "$44.00" in text
