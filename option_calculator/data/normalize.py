"""
Broker payload normalization: raw JSON rows -> typed Quote / ChainEntry models.

Shape validation happens here, at the API boundary, so the rest of the package can rely on
typed fields. Option chain rows from Tradier look like:
symbol, description, underlying, strike, option_type, expiration_date, bid, ask, last, volume,
open_interest, greeks{delta, gamma, theta, vega, rho, phi, smv_vol, ...}
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .models import ChainEntry, Greeks, Quote

CHAIN_COLUMNS = [
    "symbol",
    "underlying",
    "expiration",
    "strike",
    "option_type",
    "bid",
    "ask",
    "last",
    "volume",
    "open_interest",
    "description",
    "delta",
    "gamma",
    "theta",
    "vega",
    "rho",
    "phi",
    "iv",
]

_NUMERIC = ["strike", "bid", "ask", "last", "volume", "open_interest", "delta", "gamma", "theta", "vega", "rho", "phi", "iv"]

# broker field -> normalized column
_RENAMES = {
    "expiration_date": "expiration",
    "greeks.delta": "delta",
    "greeks.gamma": "gamma",
    "greeks.theta": "theta",
    "greeks.vega": "vega",
    "greeks.rho": "rho",
    "greeks.phi": "phi",
    "greeks.smv_vol": "iv",
}


def _to_date(x) -> Optional[date]:
    if x is None or (isinstance(x, float) and np.isnan(x)):
        return None
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    try:
        return pd.to_datetime(x).date()
    except (TypeError, ValueError):
        return None


def _opt_float(x: Any) -> Optional[float]:
    if x is None:
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return None if not np.isfinite(v) else v


def _float(x: Any, default: float = 0.0) -> float:
    v = _opt_float(x)
    return default if v is None else v


def _int(x: Any, default: int = 0) -> int:
    v = _opt_float(x)
    return default if v is None else int(v)


def normalize_chain(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Normalize raw chain rows to a stable schema (one row per contract, ascending strike)."""
    records = list(rows or [])
    if not records:
        return pd.DataFrame(columns=CHAIN_COLUMNS)

    df = pd.json_normalize(records).rename(columns=_RENAMES)

    # Ensure required columns exist
    for col in CHAIN_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    # Broker sends "N/A" strings for missing numbers in some fields
    for col in _NUMERIC:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df["expiration"] = df["expiration"].apply(_to_date)
    df["option_type"] = df["option_type"].astype(str).str.lower()
    df = df[df["option_type"].isin(["call", "put"])]
    df = df[df["strike"].notna() & df["expiration"].notna()]

    # Unique per (expiration, strike, option_type); the last row wins
    df = df.assign(_strike_key=df["strike"].round(2))
    df = df.drop_duplicates(subset=["expiration", "_strike_key", "option_type"], keep="last")
    df = df.sort_values(by=["expiration", "strike", "option_type"], kind="mergesort")

    return df[CHAIN_COLUMNS].reset_index(drop=True)


def chain_entries(df: pd.DataFrame) -> List[ChainEntry]:
    """Convert a normalized chain frame to ChainEntry models."""
    entries: List[ChainEntry] = []
    for row in df.to_dict(orient="records"):
        greeks = Greeks(
            delta=_opt_float(row.get("delta")),
            gamma=_opt_float(row.get("gamma")),
            theta=_opt_float(row.get("theta")),
            vega=_opt_float(row.get("vega")),
            rho=_opt_float(row.get("rho")),
            phi=_opt_float(row.get("phi")),
            iv=_opt_float(row.get("iv")),
        )
        underlying = row.get("underlying")
        entries.append(
            ChainEntry(
                symbol=str(row["symbol"]),
                underlying="" if pd.isna(underlying) else str(underlying),
                expiration=row["expiration"],
                strike=float(row["strike"]),
                option_type=row["option_type"],
                bid=_float(row.get("bid")),
                ask=_float(row.get("ask")),
                last=_opt_float(row.get("last")),
                volume=_int(row.get("volume")),
                open_interest=_int(row.get("open_interest")),
                description="" if pd.isna(row.get("description")) else str(row.get("description")),
                greeks=greeks,
            )
        )
    return entries


def parse_chain(rows: Iterable[Mapping[str, Any]]) -> List[ChainEntry]:
    return chain_entries(normalize_chain(rows))


def chain_frame(entries: Sequence[ChainEntry]) -> pd.DataFrame:
    """Tabular view of chain entries (inverse of chain_entries)."""
    if not entries:
        return pd.DataFrame(columns=CHAIN_COLUMNS)
    records = []
    for e in entries:
        records.append(
            {
                "symbol": e.symbol,
                "underlying": e.underlying,
                "expiration": e.expiration,
                "strike": e.strike,
                "option_type": e.option_type,
                "bid": e.bid,
                "ask": e.ask,
                "last": e.last,
                "volume": e.volume,
                "open_interest": e.open_interest,
                "description": e.description,
                "delta": e.greeks.delta,
                "gamma": e.greeks.gamma,
                "theta": e.greeks.theta,
                "vega": e.greeks.vega,
                "rho": e.greeks.rho,
                "phi": e.greeks.phi,
                "iv": e.greeks.iv,
            }
        )
    df = pd.DataFrame.from_records(records, columns=CHAIN_COLUMNS)
    for col in _NUMERIC:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def parse_quote(raw: Mapping[str, Any]) -> Quote:
    """Build a Quote from a broker quote object; greeks are kept for options only."""
    kind = "option" if str(raw.get("type", "")).lower() == "option" else "equity"
    greeks = None
    if kind == "option":
        g = raw.get("greeks") or {}
        greeks = Greeks(
            delta=_opt_float(g.get("delta")),
            gamma=_opt_float(g.get("gamma")),
            theta=_opt_float(g.get("theta")),
            vega=_opt_float(g.get("vega")),
            rho=_opt_float(g.get("rho")),
            phi=_opt_float(g.get("phi")),
            iv=_opt_float(g.get("smv_vol")),
        )
    return Quote(
        symbol=str(raw.get("symbol", "")),
        kind=kind,  # type: ignore[arg-type]
        last=_float(raw.get("last")),
        bid=_float(raw.get("bid")),
        ask=_float(raw.get("ask")),
        open=_opt_float(raw.get("open")),
        high=_opt_float(raw.get("high")),
        low=_opt_float(raw.get("low")),
        close=_opt_float(raw.get("close")),
        prevclose=_opt_float(raw.get("prevclose")),
        change=_float(raw.get("change")),
        change_percent=_float(raw.get("change_percentage")),
        volume=_int(raw.get("volume")),
        description=str(raw.get("description") or ""),
        underlying=raw.get("underlying") or None,
        open_interest=_int(raw.get("open_interest")) if kind == "option" else None,
        average_volume=_int(raw.get("average_volume")) if kind == "equity" else None,
        week_52_high=_opt_float(raw.get("week_52_high")),
        week_52_low=_opt_float(raw.get("week_52_low")),
        greeks=greeks,
    )
