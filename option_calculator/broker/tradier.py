"""HTTP client for the Tradier brokerage / market-data REST API."""

from __future__ import annotations

import logging
import random
import time
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from ..config.schemas import BrokerConfig
from ..data.models import ChainEntry, OrderReceipt, Position, PreviewResult, Quote
from ..data.normalize import parse_chain, parse_quote
from ..errors import BrokerRejected, BrokerUnauthorized, InvalidConfiguration, NotFound

logger = logging.getLogger(__name__)

_RETRY_STATUS = {429, 500, 502, 503, 504}


class TradierClient:
    """
    Minimal REST client implementing MarketDataProvider and OrderGateway.

    Responses are validated and converted to typed models here; callers never see raw JSON
    except for account balances.
    """

    def __init__(self, config: BrokerConfig, *, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.base = config.base_url.rstrip("/")
        self.timeout = config.timeout_s
        self.sess = session or requests.Session()
        self.sess.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/json",
            }
        )
        self._max_attempts = max(1, int(config.max_attempts))
        self._backoff_base = max(0.0, float(config.backoff_base_s))
        self._backoff_cap = max(self._backoff_base, float(config.backoff_cap_s))

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------
    def get_quote(self, symbol: str, greeks: bool = True) -> Quote:
        data = self._get("markets/quotes", params={"symbols": symbol, "greeks": _flag(greeks)})
        quotes = (data or {}).get("quotes") or {}
        raw = quotes.get("quote")
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if not raw:
            raise NotFound(f"No quote found for {symbol}")
        return parse_quote(raw)

    def get_option_expirations(self, symbol: str, include_all_roots: bool = False) -> List[date]:
        data = self._get(
            "markets/options/expirations",
            params={"symbol": symbol, "includeAllRoots": _flag(include_all_roots)},
        )
        dates = _unwrap_list((data or {}).get("expirations"), "date")
        if not dates:
            raise NotFound(f"No expirations found for {symbol}")
        return sorted(date.fromisoformat(str(d)) for d in dates)

    def get_option_strikes(self, symbol: str, expiration: date) -> List[float]:
        data = self._get(
            "markets/options/strikes",
            params={"symbol": symbol, "expiration": expiration.isoformat()},
        )
        strikes = _unwrap_list((data or {}).get("strikes"), "strike")
        if not strikes:
            raise NotFound(f"No strikes found for {symbol} expiring {expiration.isoformat()}")
        return sorted(float(s) for s in strikes)

    def get_option_chains(self, symbol: str, expiration: date, greeks: bool = True) -> List[ChainEntry]:
        data = self._get(
            "markets/options/chains",
            params={"symbol": symbol, "expiration": expiration.isoformat(), "greeks": _flag(greeks)},
        )
        rows = _unwrap_list((data or {}).get("options"), "option")
        entries = parse_chain(rows)
        if not entries:
            raise NotFound(f"No option chain found for {symbol} expiring {expiration.isoformat()}")
        logger.debug(f"chain symbol={symbol} expiration={expiration.isoformat()} contracts={len(entries)}")
        return entries

    # ------------------------------------------------------------------
    # Account / orders
    # ------------------------------------------------------------------
    def get_balances(self) -> Dict[str, Any]:
        data = self._get(f"accounts/{self._account_id()}/balances")
        return dict((data or {}).get("balances") or {})

    def get_positions(self) -> List[Position]:
        """Open positions; an empty account ("positions": "null") yields an empty list."""
        data = self._get(f"accounts/{self._account_id()}/positions")
        rows = _unwrap_list((data or {}).get("positions"), "position")
        positions = [
            Position(
                symbol=str(row["symbol"]),
                quantity=float(row.get("quantity") or 0.0),
                cost_basis=float(row.get("cost_basis") or 0.0),
                date_acquired=row.get("date_acquired"),
            )
            for row in rows
        ]
        logger.debug(f"positions account={self.config.account_id} count={len(positions)}")
        return positions

    def preview_order(self, params: Mapping[str, Any]) -> PreviewResult:
        form = flatten_params(params)
        form["preview"] = "true"
        data = self._post(f"accounts/{self._account_id()}/orders", data=form)
        order = _order_body(data)
        result = PreviewResult(
            commission=float(order.get("commission") or 0.0),
            cost=float(order.get("cost") or 0.0),
            order_cost=float(order.get("order_cost") or 0.0),
            margin_change=_opt(order.get("margin_change")),
            status=str(order.get("status", "ok")),
            raw=dict(order),
        )
        logger.info(f"preview class={params.get('class')} type={params.get('type')} cost={result.cost} commission={result.commission}")
        return result

    def create_order(self, params: Mapping[str, Any]) -> OrderReceipt:
        data = self._post(f"accounts/{self._account_id()}/orders", data=flatten_params(params))
        order = _order_body(data)
        receipt = OrderReceipt(order_id=str(order.get("id")), status=str(order.get("status", "ok")))
        logger.info(f"order created id={receipt.order_id} status={receipt.status}")
        return receipt

    def modify_order(self, order_id: str, params: Mapping[str, Any]) -> OrderReceipt:
        data = self._put(f"accounts/{self._account_id()}/orders/{order_id}", data=dict(params))
        order = _order_body(data)
        receipt = OrderReceipt(order_id=str(order.get("id", order_id)), status=str(order.get("status", "ok")))
        logger.info(f"order modified id={receipt.order_id} status={receipt.status}")
        return receipt

    # ------------------------------------------------------------------
    # Internal HTTP helpers
    # ------------------------------------------------------------------
    def _account_id(self) -> str:
        if not self.config.account_id:
            raise InvalidConfiguration("An account ID is required (set TRADIER_ACCOUNT_ID)")
        return self.config.account_id

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base}/{path.lstrip('/')}"
        attempt = 0
        backoff = self._backoff_base
        while True:
            response = self.sess.request(method, url, timeout=self.timeout, **kwargs)
            logger.debug(f"{method} {url} status={response.status_code}")
            if response.status_code in _RETRY_STATUS and attempt < self._max_attempts - 1:
                sleep_for = min(backoff + random.uniform(0, backoff), self._backoff_cap)
                logger.warning(f"{method} {url} returned {response.status_code}; retrying in {sleep_for:.2f}s")
                time.sleep(sleep_for)
                backoff = min(backoff * 2, self._backoff_cap)
                attempt += 1
                continue
            return response

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._request(method, path, **kwargs)
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            mapped = _map_http_error(response, exc)
            if mapped is exc:
                raise
            logger.warning(f"{method} {path} rejected status={response.status_code}: {mapped}")
            raise mapped from exc
        payload = response.json()
        errors = _error_messages(payload)
        if errors:
            logger.warning(f"{method} {path} returned errors: {errors}")
            raise BrokerRejected("; ".join(errors), status_code=response.status_code, payload=payload)
        return payload

    def _get(self, path: str, **kwargs: Any) -> Any:
        return self._send("GET", path, **kwargs)

    def _post(self, path: str, **kwargs: Any) -> Any:
        return self._send("POST", path, **kwargs)

    def _put(self, path: str, **kwargs: Any) -> Any:
        return self._send("PUT", path, **kwargs)


def flatten_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Form-encode an order payload: list values become indexed keys (side[0], side[1], ...).

    None entries inside a list keep their index free (equity legs have no option_symbol).
    """
    form: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                if item is not None:
                    form[f"{key}[{i}]"] = item
        else:
            form[key] = value
    return form


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _opt(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _unwrap_list(container: Any, key: str) -> Sequence[Any]:
    """Tradier wraps collections as {key: [..]} or {key: scalar}, and uses null for empty."""
    if not isinstance(container, Mapping):
        return []
    value = container.get(key)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _order_body(data: Any) -> Mapping[str, Any]:
    order = (data or {}).get("order") if isinstance(data, Mapping) else None
    if not isinstance(order, Mapping):
        raise BrokerRejected("Unexpected order response from broker", payload=data)
    return order


def _error_messages(payload: Any) -> List[str]:
    if not isinstance(payload, Mapping):
        return []
    errors = payload.get("errors")
    if errors is None and isinstance(payload.get("order"), Mapping):
        errors = payload["order"].get("errors")
    if not errors:
        return []
    if isinstance(errors, Mapping):
        errors = errors.get("error", [])
    if isinstance(errors, str):
        return [errors]
    return [str(e) for e in errors]


def _map_http_error(response: requests.Response, exc: requests.HTTPError) -> Exception:
    payload: Any
    try:
        payload = response.json()
    except ValueError:
        payload = {"error": response.text}
    messages = _error_messages(payload)
    if messages:
        message = "; ".join(messages)
    elif isinstance(payload, Mapping) and (payload.get("fault") or payload.get("error")):
        fault = payload.get("fault")
        message = str(fault.get("faultstring") if isinstance(fault, Mapping) else payload.get("error"))
    else:
        message = str(exc)
    status_code = response.status_code
    if status_code in {401, 403}:
        return BrokerUnauthorized(message, status_code=status_code, payload=payload)
    if 400 <= status_code < 500:
        return BrokerRejected(message, status_code=status_code, payload=payload)
    # server errors after retries are transport failures
    return exc
