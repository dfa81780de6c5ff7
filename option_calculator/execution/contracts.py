"""
Legs, side vocabularies, order classification and the prompt interfaces used to build them.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Generic, Iterable, Literal, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from ..data.models import ChainEntry, InstrumentKind
from ..errors import InvalidInput


OrderClass = Literal["equity", "option", "multileg", "combo"]

EQUITY_SIDES: Tuple[str, ...] = ("buy", "buy_to_cover", "sell", "sell_short")
OPTION_SIDES: Tuple[str, ...] = ("buy_to_open", "buy_to_close", "sell_to_open", "sell_to_close")


def allowed_sides(kind: InstrumentKind) -> Tuple[str, ...]:
    if kind == "equity":
        return EQUITY_SIDES
    if kind == "option":
        return OPTION_SIDES
    raise InvalidInput(f"Unknown instrument kind: {kind}")


def normalize_side(raw: str) -> str:
    """'sell to open' / 'Sell-To-Open' -> 'sell_to_open'"""
    return "_".join(str(raw).strip().lower().replace("-", " ").split())


def is_buy(side: str) -> bool:
    """Buy-type sides add to a net price/greek, sell-type sides subtract."""
    return side.startswith("buy")


def side_sign(side: str) -> int:
    return 1 if is_buy(side) else -1


@dataclass(frozen=True)
class Leg:
    """One buy/sell instruction; option legs carry the resolved chain entry."""

    kind: InstrumentKind
    side: str
    quantity: int
    contract: Optional[ChainEntry] = None

    def __post_init__(self) -> None:
        side = normalize_side(self.side)
        if side not in allowed_sides(self.kind):
            raise InvalidInput(f"'{self.side}' is not a valid {self.kind} side. Choose one of: {', '.join(allowed_sides(self.kind))}")
        object.__setattr__(self, "side", side)
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise InvalidInput("Please enter a valid numeric quantity.")
        if self.kind == "option" and self.contract is None:
            raise InvalidInput("Option legs require a resolved contract")
        if self.kind == "equity" and self.contract is not None:
            raise InvalidInput("Equity legs cannot carry an option contract")

    @property
    def option_symbol(self) -> Optional[str]:
        return self.contract.symbol if self.contract is not None else None


def parse_quantity(raw) -> int:
    """Validate a user-entered quantity (positive integer)."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInput("Please enter a valid numeric quantity.") from None
    if not value.is_integer() or value <= 0:
        raise InvalidInput("Please enter a valid numeric quantity.")
    return int(value)


def next_order_class(current: Optional[OrderClass], kind: InstrumentKind) -> OrderClass:
    """
    One step of the order-class state machine.

    equity/option may upgrade to multileg/combo; combo never downgrades.
    Any leg added to an equity order makes it a combo.
    """
    if current is None:
        return "equity" if kind == "equity" else "option"
    if current == "combo":
        return "combo"
    if current == "equity":
        return "combo"
    if kind == "equity":
        return "combo"
    return "multileg"


def classify(kinds: Iterable[InstrumentKind]) -> Optional[OrderClass]:
    """Order class for a history of leg kinds (None when there are no legs)."""
    return reduce(next_order_class, kinds, None)


# ---------------------------------------------------------------------------
# Interaction outcomes and the prompt collaborator interface
# ---------------------------------------------------------------------------

T = TypeVar("T")


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A prompt produced a usable value."""

    value: T


@dataclass(frozen=True)
class Back:
    """The user asked to go back to the previous decision point."""


@dataclass(frozen=True)
class Refresh:
    """The user asked to re-quote instead of accepting a price."""


class Prompter(Protocol):
    """
    Console collaborator used by the selectors and the order session.

    Validation lives in the `parse` callables: they raise InvalidInput and the prompter
    re-asks. Sentinel keystrokes are translated to Back/Refresh by the prompter, never by
    the core.
    """

    def select(
        self,
        question: str,
        options: Sequence[Tuple[str, T]],
        *,
        back: bool = False,
        default: Optional[str] = None,
    ) -> Union[Resolved[T], Back]:
        ...

    def ask(
        self,
        question: str,
        parse: Callable[[str], T],
        *,
        back: bool = False,
        refresh: bool = False,
    ) -> Union[Resolved[T], Back, Refresh]:
        ...

    def confirm(self, question: str, default: bool = False) -> bool:
        ...

    def present(self, item: Any) -> None:
        ...

    def warn(self, message: str) -> None:
        ...
