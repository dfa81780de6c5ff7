"""
Strike selectors: manual entry, select from a windowed list, nearest delta.

Each strategy resolves the user's intent to a strike; the StrikeSelector then looks up the
exact chain entry and asks for confirmation, restarting the strategy loop on rejection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Union

import numpy as np

from ..config.schemas import SelectorConfig
from ..data.models import ChainEntry, MarketDataProvider, OptionType
from ..data.normalize import chain_frame
from ..errors import InvalidInput, NoMatch
from .chain_window import window_chain
from .contracts import Back, Prompter, Resolved

logger = logging.getLogger(__name__)


def _strike_key(strike: float, precision: int) -> float:
    return round(float(strike), precision)


def parse_number(raw: str, what: str = "number") -> float:
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"Please enter a valid numeric {what}.") from None
    if not np.isfinite(value):
        raise InvalidInput(f"Please enter a valid numeric {what}.")
    return value


def match_manual_strike(strikes: Sequence[float], raw: Union[str, float], precision: int = 2) -> float:
    """Return the listed strike equal to `raw` at the given precision (cents by default)."""
    value = parse_number(raw, "strike") if isinstance(raw, str) else float(raw)
    wanted = _strike_key(value, precision)
    for strike in strikes:
        if _strike_key(strike, precision) == wanted:
            return float(strike)
    raise InvalidInput("That is not a valid strike.")


def normalize_target_delta(delta: float, option_type: OptionType) -> float:
    """Puts are matched against negative deltas; a positive put target is flipped."""
    delta = float(delta)
    if option_type == "put" and delta > 0:
        return -delta
    return delta


def find_by_delta(
    chain: Sequence[ChainEntry],
    option_type: OptionType,
    target: float,
    margin: float = 1.2,
) -> ChainEntry:
    """
    Entry of `option_type` whose delta is closest to `target`.

    Candidates may not overshoot the target by more than `margin`:
    calls need delta <= target*margin, puts need delta >= target*margin.
    Ties go to the lowest strike.
    """
    target = normalize_target_delta(target, option_type)
    bound = target * margin

    df = chain_frame(chain)
    df = df[(df["option_type"] == option_type) & df["delta"].notna()]
    if option_type == "call":
        df = df[df["delta"] <= bound]
    else:
        df = df[df["delta"] >= bound]
    if df.empty:
        raise NoMatch(f"No {option_type} found near delta {target:g}")

    df = df.assign(abs_delta_target=(df["delta"] - target).abs())
    df = df.sort_values(by=["abs_delta_target", "strike"], ascending=[True, True], kind="mergesort")
    entry = chain[int(df.index[0])]
    logger.info(f"delta match type={option_type} target={target} bound={bound:.4f} -> strike={entry.strike} delta={entry.delta}")
    return entry


def lookup_entry(chain: Sequence[ChainEntry], option_type: OptionType, strike: float, precision: int = 2) -> ChainEntry:
    wanted = _strike_key(strike, precision)
    for entry in chain:
        if entry.option_type == option_type and _strike_key(entry.strike, precision) == wanted:
            return entry
    raise NoMatch(f"No {option_type} contract at strike {strike:g}")


def list_strikes(
    chain: Sequence[ChainEntry],
    option_type: OptionType,
    count: Optional[int],
    spot: Optional[float],
) -> List[float]:
    """Strikes offered for selection: all of them, or `count` split evenly around spot."""
    if count is None:
        return sorted({e.strike for e in chain if e.option_type == option_type})
    if spot is None:
        raise InvalidInput("A reference price is required to window strikes")
    window = window_chain(
        chain,
        spot,
        max(count // 2, 1),
        include_calls=option_type == "call",
        include_puts=option_type == "put",
    )
    return window.strikes


@dataclass
class SelectionContext:
    """Everything a strategy may look at for one pass of the selection loop."""

    symbol: str
    expiration: date
    option_type: OptionType
    strikes: Sequence[float]
    chain: Sequence[ChainEntry]
    spot: Callable[[], float]
    config: SelectorConfig


class StrikeStrategy(Protocol):
    """Strategy protocol: resolve a strike, or signal Back."""

    label: str

    def resolve(self, ctx: SelectionContext, prompter: Prompter) -> Union[Resolved[float], Back]:
        ...


class ManualStrategy:
    label = "manually"

    def resolve(self, ctx: SelectionContext, prompter: Prompter) -> Union[Resolved[float], Back]:
        outcome = prompter.ask(
            "Strike",
            lambda raw: match_manual_strike(ctx.strikes, raw, ctx.config.strike_precision),
            back=True,
        )
        return outcome if isinstance(outcome, Resolved) else Back()


class ListStrategy:
    label = "select from list"

    def resolve(self, ctx: SelectionContext, prompter: Prompter) -> Union[Resolved[float], Back]:
        counts = [(str(n), n) for n in ctx.config.list_counts] + [("all", None)]
        count = prompter.select("How many strikes would you like to view?", counts)
        if not isinstance(count, Resolved):
            return Back()
        spot = ctx.spot() if count.value is not None else None
        strikes = list_strikes(ctx.chain, ctx.option_type, count.value, spot)
        return prompter.select("Strike", [(f"{s:g}", s) for s in strikes], back=True)


class DeltaStrategy:
    label = "by delta"

    def resolve(self, ctx: SelectionContext, prompter: Prompter) -> Union[Resolved[float], Back]:
        outcome = prompter.ask(
            "Delta",
            lambda raw: normalize_target_delta(parse_number(raw, "delta"), ctx.option_type),
            back=True,
        )
        if not isinstance(outcome, Resolved):
            return Back()
        entry = find_by_delta(ctx.chain, ctx.option_type, outcome.value, ctx.config.delta_margin)
        return Resolved(entry.strike)


STRATEGIES: Dict[str, Callable[[], StrikeStrategy]] = {
    ManualStrategy.label: ManualStrategy,
    ListStrategy.label: ListStrategy,
    DeltaStrategy.label: DeltaStrategy,
}


def build_strategy(label: str) -> StrikeStrategy:
    try:
        return STRATEGIES[label]()
    except KeyError:
        raise InvalidInput(f"Unknown strike selection method: {label}") from None


class SelectorState(Enum):
    CHOOSING_STRATEGY = "choosing-strategy"
    RESOLVING_STRIKE = "resolving-strike"
    CONFIRMING = "confirming"


class StrikeSelector:
    """
    Confirm/retry loop around the strategies.

    choosing-strategy -> resolving-strike -> confirming -> done
    Back, NoMatch and a rejected confirmation all return to choosing-strategy.
    """

    def __init__(self, provider: MarketDataProvider, prompter: Prompter, config: Optional[SelectorConfig] = None) -> None:
        self.provider = provider
        self.prompter = prompter
        self.config = config or SelectorConfig()

    def select(self, symbol: str, expiration: date, option_type: OptionType) -> ChainEntry:
        strikes = self.provider.get_option_strikes(symbol, expiration)
        state = SelectorState.CHOOSING_STRATEGY
        strategy: Optional[StrikeStrategy] = None
        ctx: Optional[SelectionContext] = None
        entry: Optional[ChainEntry] = None

        while True:
            if state is SelectorState.CHOOSING_STRATEGY:
                choice = self.prompter.select(
                    "How would you like to enter the strike?",
                    [(label, label) for label in STRATEGIES],
                )
                strategy = build_strategy(choice.value)  # type: ignore[union-attr]
                ctx = SelectionContext(
                    symbol=symbol,
                    expiration=expiration,
                    option_type=option_type,
                    strikes=strikes,
                    chain=self.provider.get_option_chains(symbol, expiration, True),
                    spot=lambda: self.provider.get_quote(symbol).last,
                    config=self.config,
                )
                state = SelectorState.RESOLVING_STRIKE

            elif state is SelectorState.RESOLVING_STRIKE:
                try:
                    outcome = strategy.resolve(ctx, self.prompter)  # type: ignore[union-attr]
                    if isinstance(outcome, Back):
                        state = SelectorState.CHOOSING_STRATEGY
                        continue
                    entry = lookup_entry(ctx.chain, option_type, outcome.value, self.config.strike_precision)  # type: ignore[union-attr]
                except NoMatch as e:
                    logger.warning(str(e))
                    self.prompter.warn(str(e))
                    state = SelectorState.CHOOSING_STRATEGY
                    continue
                state = SelectorState.CONFIRMING

            else:
                self.prompter.present(entry)
                if self.prompter.confirm("Is this OK?", default=False):
                    logger.info(f"selected {entry.symbol} strike={entry.strike} type={option_type}")  # type: ignore[union-attr]
                    return entry  # type: ignore[return-value]
                state = SelectorState.CHOOSING_STRATEGY
