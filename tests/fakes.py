"""
In-memory stand-ins for the broker and the console used across the test suite.
"""

from collections import deque
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from option_calculator.data.models import ChainEntry, Greeks, OrderReceipt, Position, PreviewResult, Quote
from option_calculator.data.symbols import format_option_symbol
from option_calculator.errors import InvalidInput, NotFound
from option_calculator.execution.contracts import Back, Refresh, Resolved


def make_entry(
    strike: float,
    option_type: str = "call",
    *,
    expiration: date = date(2025, 6, 20),
    underlying: str = "SPY",
    bid: float = 1.0,
    ask: float = 1.1,
    delta: Optional[float] = None,
    iv: Optional[float] = None,
    **greeks: float,
) -> ChainEntry:
    return ChainEntry(
        symbol=format_option_symbol(underlying, expiration, option_type, strike),
        underlying=underlying,
        expiration=expiration,
        strike=float(strike),
        option_type=option_type,  # type: ignore[arg-type]
        bid=bid,
        ask=ask,
        volume=10,
        open_interest=100,
        greeks=Greeks(delta=delta, iv=iv, **greeks),
    )


def make_chain(strikes: Iterable[float], expiration: date = date(2025, 6, 20)) -> List[ChainEntry]:
    chain: List[ChainEntry] = []
    for strike in strikes:
        chain.append(make_entry(strike, "call", expiration=expiration))
        chain.append(make_entry(strike, "put", expiration=expiration))
    return chain


def equity_quote(symbol: str = "SPY", last: float = 100.0, bid: float = 99.9, ask: float = 100.1) -> Quote:
    return Quote(symbol=symbol, kind="equity", last=last, bid=bid, ask=ask)


def option_quote(entry: ChainEntry) -> Quote:
    return Quote(
        symbol=entry.symbol,
        kind="option",
        last=entry.last or 0.0,
        bid=entry.bid,
        ask=entry.ask,
        underlying=entry.underlying,
        greeks=entry.greeks,
    )


class FakeBroker:
    """MarketDataProvider + OrderGateway backed by dictionaries."""

    def __init__(
        self,
        quotes: Optional[Dict[str, Quote]] = None,
        chains: Optional[Dict[date, List[ChainEntry]]] = None,
        balances: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.quotes: Dict[str, Quote] = dict(quotes or {})
        self.chains: Dict[date, List[ChainEntry]] = dict(chains or {})
        self.balances = balances or {"total_equity": 10000.0, "total_cash": 5000.0}
        for entries in self.chains.values():
            for entry in entries:
                self.quotes.setdefault(entry.symbol, option_quote(entry))
        self.quote_calls: List[str] = []
        self.chain_calls = 0
        self.expiration_calls: List[tuple] = []
        self.positions: List[Position] = []
        self.previews: List[Dict[str, Any]] = []
        self.orders: List[Dict[str, Any]] = []
        self.preview_result = PreviewResult(commission=1.0, cost=41.0, order_cost=40.0)

    def get_quote(self, symbol: str) -> Quote:
        self.quote_calls.append(symbol)
        try:
            return self.quotes[symbol]
        except KeyError:
            raise NotFound(f"No quote found for {symbol}") from None

    def get_option_expirations(self, symbol: str, include_all_roots: bool = False) -> List[date]:
        self.expiration_calls.append((symbol, include_all_roots))
        if not self.chains:
            raise NotFound(f"No expirations found for {symbol}")
        return sorted(self.chains)

    def get_option_strikes(self, symbol: str, expiration: date) -> List[float]:
        chain = self.chains.get(expiration)
        if not chain:
            raise NotFound(f"No strikes found for {symbol}")
        return sorted({e.strike for e in chain})

    def get_option_chains(self, symbol: str, expiration: date, greeks: bool = True) -> List[ChainEntry]:
        self.chain_calls += 1
        chain = self.chains.get(expiration)
        if not chain:
            raise NotFound(f"No option chain found for {symbol}")
        return list(chain)

    def get_balances(self) -> Dict[str, Any]:
        return dict(self.balances)

    def get_positions(self) -> List[Position]:
        return list(self.positions)

    def preview_order(self, params: Dict[str, Any]) -> PreviewResult:
        self.previews.append(dict(params))
        return self.preview_result

    def create_order(self, params: Dict[str, Any]) -> OrderReceipt:
        self.orders.append(dict(params))
        return OrderReceipt(order_id="1001", status="ok")


class ScriptedPrompter:
    """
    Prompter that replays a list of answers.

    select answers match an option value or label; ask answers go through `parse`
    (an InvalidInput consumes the next answer, like a console re-ask); Back()/Refresh()
    instances are returned as-is.
    """

    def __init__(self, answers: Sequence[Any]) -> None:
        self.answers = deque(answers)
        self.questions: List[str] = []
        self.presented: List[Any] = []
        self.warnings: List[str] = []

    def _next(self, question: str) -> Any:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"No scripted answer left for: {question}")
        return self.answers.popleft()

    def select(self, question, options, *, back=False, default=None):
        answer = self._next(question)
        if isinstance(answer, Back):
            assert back, f"Back is not allowed for: {question}"
            return answer
        for label, value in options:
            if answer == value or answer == label:
                return Resolved(value)
        raise AssertionError(f"{answer!r} is not one of {[label for label, _ in options]} for: {question}")

    def ask(self, question, parse, *, back=False, refresh=False):
        while True:
            answer = self._next(question)
            if isinstance(answer, Back):
                assert back, f"Back is not allowed for: {question}"
                return answer
            if isinstance(answer, Refresh):
                assert refresh, f"Refresh is not allowed for: {question}"
                return answer
            try:
                return Resolved(parse(answer))
            except InvalidInput as e:
                self.warnings.append(str(e))

    def confirm(self, question, default=False):
        answer = self._next(question)
        assert isinstance(answer, bool), f"Expected a yes/no answer for: {question}"
        return answer

    def present(self, item):
        self.presented.append(item)

    def warn(self, message):
        self.warnings.append(message)
