"""
CSV export of a chain window.
"""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from ..data.normalize import chain_frame
from ..execution.chain_window import ChainWindow

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "symbol",
    "expiration",
    "strike",
    "option_type",
    "bid",
    "ask",
    "last",
    "volume",
    "open_interest",
    "delta",
    "gamma",
    "theta",
    "vega",
    "iv",
]


def window_frame(window: ChainWindow) -> pd.DataFrame:
    df = chain_frame(window.entries())
    if df.empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    df = df.reindex(columns=EXPORT_COLUMNS)
    return df.sort_values(["strike", "option_type"], kind="mergesort").reset_index(drop=True)


def export_window(window: ChainWindow, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = window_frame(window)
    df.to_csv(path, index=False)
    logger.info(f"Exported {len(df)} contracts to {path}")
    return path
