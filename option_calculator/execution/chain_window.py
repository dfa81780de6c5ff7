"""
Strike window around a reference price: N strikes below + N strikes at-or-above, calls and puts
paired by strike.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..data.models import ChainEntry
from ..errors import InvalidConfiguration, InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrikePair:
    """Call and/or put sharing one strike (an excluded side is None)."""

    strike: float
    call: Optional[ChainEntry] = None
    put: Optional[ChainEntry] = None

    def get(self, option_type: str) -> Optional[ChainEntry]:
        return self.call if option_type == "call" else self.put


@dataclass(frozen=True)
class ChainWindow:
    reference_price: float
    size: int
    pairs: Tuple[StrikePair, ...] = ()

    def __iter__(self) -> Iterator[StrikePair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    @property
    def strikes(self) -> List[float]:
        return [p.strike for p in self.pairs]

    def below(self) -> List[StrikePair]:
        return [p for p in self.pairs if p.strike < self.reference_price]

    def above(self) -> List[StrikePair]:
        return [p for p in self.pairs if p.strike >= self.reference_price]

    def entries(self) -> List[ChainEntry]:
        out: List[ChainEntry] = []
        for p in self.pairs:
            out.extend(e for e in (p.call, p.put) if e is not None)
        return out


def _bucket(entries: Iterable[ChainEntry]) -> List[StrikePair]:
    grouped: Dict[float, Dict[str, ChainEntry]] = {}
    for e in entries:
        grouped.setdefault(round(float(e.strike), 2), {})[e.option_type] = e
    return [
        StrikePair(strike=strike, call=sides.get("call"), put=sides.get("put"))
        for strike, sides in sorted(grouped.items())
    ]


def window_chain(
    chain: Iterable[ChainEntry],
    reference_price: float,
    n: int,
    *,
    include_calls: bool = True,
    include_puts: bool = True,
) -> ChainWindow:
    """
    Select at most n strikes below reference_price (closest first) and n strikes at or above it.

    Raises:
        InvalidConfiguration: if both calls and puts are excluded
        InvalidInput: if n is not a positive integer
    """
    if not include_calls and not include_puts:
        raise InvalidConfiguration("Both calls and puts have been excluded.")
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise InvalidInput(f"Window size must be a positive integer, got {n!r}")

    price = float(reference_price)
    lower: List[ChainEntry] = []
    higher: List[ChainEntry] = []
    for e in chain:
        if e.option_type == "call" and not include_calls:
            continue
        if e.option_type == "put" and not include_puts:
            continue
        (lower if e.strike < price else higher).append(e)

    pairs = _bucket(lower)[-n:] + _bucket(higher)[:n]
    logger.debug(f"window price={price} n={n} strikes={len(pairs)}")
    return ChainWindow(reference_price=price, size=n, pairs=tuple(pairs))
