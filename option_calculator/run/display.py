"""
Console rendering of quotes, chains, prices, tickets, previews and positions.

Tabular views (chain window, order ticket, preview, balances, positions) are rich Tables;
one-line and banner views are plain strings.
"""

from datetime import date
from io import StringIO
from typing import Any, Dict, List, Optional, Sequence, Union

from rich.console import Console, Group, RenderableType
from rich.table import Table
from rich.text import Text

from ..analytics.expected_move import ExpectedMove
from ..analytics.positions import PositionSummary
from ..data.models import ChainEntry, OrderReceipt, PreviewResult, Quote
from ..execution.chain_window import ChainWindow
from ..execution.pricing import PriceLevel, PricingQuote
from ..order.assembler import NetGreeks, OrderTicket

RULE = "=" * 70
THIN_RULE = "-" * 70
RENDER_WIDTH = 100


def money(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def percent(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "n/a"
    return f"{value * 100:.{decimals}f}%"


def render(renderable: RenderableType, width: int = RENDER_WIDTH) -> str:
    """Plain text (no colour) of a rich renderable."""
    buffer = StringIO()
    console = Console(file=buffer, width=width, color_system=None, highlight=False)
    console.print(renderable)
    return buffer.getvalue().rstrip("\n")


def _banner(title: str) -> List[str]:
    return ["", RULE, title, RULE]


def _field_table(title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    return table


def _level(level: Optional[PriceLevel], net: bool) -> str:
    if level is None:
        return "n/a"
    if net:
        return f"{money(level.amount)} {level.label}"
    return money(level.value)


def format_price(quote: PricingQuote) -> str:
    parts = [f"Bid: {_level(quote.bid, quote.net)}"]
    if quote.mid is not None:
        parts.append(f"Mid: {_level(quote.mid, quote.net)}")
    parts.append(f"Ask: {_level(quote.ask, quote.net)}")
    return "  ".join(parts)


def format_quote(quote: Quote) -> str:
    lines = _banner(f"{quote.symbol}  {quote.description}".rstrip())
    lines.append(f"Last: {money(quote.last)}  Change: {quote.change:+.2f} ({quote.change_percent:+.2f}%)")
    lines.append(f"Bid: {money(quote.bid)}  Ask: {money(quote.ask)}")
    lines.append(
        f"Open: {money(quote.open)}  High: {money(quote.high)}  Low: {money(quote.low)}  "
        f"Prev close: {money(quote.prevclose)}"
    )
    lines.append(f"Volume: {quote.volume:,}")
    if quote.week_52_low is not None and quote.week_52_high is not None:
        lines.append(f"52 week range: {money(quote.week_52_low)} - {money(quote.week_52_high)}")
    if quote.open_interest is not None:
        lines.append(f"Open interest: {quote.open_interest:,}")
    if quote.greeks is not None:
        g = quote.greeks
        lines.append(THIN_RULE)
        lines.append(f"IV: {percent(g.iv)}  Delta: {g.get('delta'):.4f}  Gamma: {g.get('gamma'):.4f}")
        lines.append(f"Theta: {g.get('theta'):.4f}  Vega: {g.get('vega'):.4f}  Rho: {g.get('rho'):.4f}")
    lines.append(RULE)
    return "\n".join(lines)


def format_contract(entry: ChainEntry) -> str:
    g = entry.greeks
    lines = [
        THIN_RULE,
        f"{entry.description or entry.symbol}",
        f"Strike: {entry.strike:g}  Type: {entry.option_type}  Expiration: {entry.expiration.isoformat()}",
        f"Bid: {money(entry.bid)}  Ask: {money(entry.ask)}  Volume: {entry.volume:,}  Open interest: {entry.open_interest:,}",
        f"Delta: {g.get('delta'):.4f}  Gamma: {g.get('gamma'):.4f}  Theta: {g.get('theta'):.4f}  "
        f"Vega: {g.get('vega'):.4f}  IV: {percent(g.iv)}",
        THIN_RULE,
    ]
    return "\n".join(lines)


def format_expirations(expirations: Sequence[date], today: date) -> str:
    lines = _banner("EXPIRATIONS")
    for d in expirations:
        lines.append(f"  {d.isoformat()}  ({(d - today).days} DTE)")
    lines.append(RULE)
    return "\n".join(lines)


def window_table(window: ChainWindow, symbol: str, expiration: date) -> Table:
    """Calls on the left, puts on the right, one row per strike (ascending)."""
    has_calls = any(p.call is not None for p in window)
    has_puts = any(p.put is not None for p in window)
    table = Table(
        title=f"{symbol} {expiration.isoformat()}  (last {money(window.reference_price)})",
        caption="calls | strike | puts" if has_calls and has_puts else None,
    )
    if has_calls:
        for name in ("Call Bid", "Call Ask", "Vol", "OI"):
            table.add_column(name, justify="right", style="green")
    table.add_column("Strike", justify="center", style="bold")
    if has_puts:
        for name in ("Put Bid", "Put Ask", "Vol", "OI"):
            table.add_column(name, justify="right", style="red")

    for pair in window:
        row = []
        if has_calls:
            row.extend(_side_cells(pair.call))
        row.append(f"{pair.strike:g}")
        if has_puts:
            row.extend(_side_cells(pair.put))
        table.add_row(*row)
    return table


def _side_cells(entry: Optional[ChainEntry]) -> List[str]:
    if entry is None:
        return ["", "", "", ""]
    return [f"{entry.bid:.2f}", f"{entry.ask:.2f}", f"{entry.volume:,}", f"{entry.open_interest:,}"]


def format_greeks(greeks: NetGreeks) -> str:
    return "  ".join(f"{name.capitalize()}: {value:.6f}" for name, value in greeks.as_dict().items())


def ticket_table(ticket: OrderTicket) -> Group:
    payload = ticket.payload
    legs = Table(title=f"ORDER: {payload.symbol} ({payload.order_class})", title_justify="left")
    legs.add_column("#", justify="right")
    legs.add_column("Side")
    legs.add_column("Qty", justify="right")
    legs.add_column("Instrument")
    for i, leg in enumerate(ticket.legs):
        what = (leg.contract.description or leg.contract.symbol) if leg.contract is not None else payload.symbol
        legs.add_row(str(i + 1), leg.side.replace("_", " "), f"{leg.quantity:,}", Text(what))

    details = _field_table()
    details.add_row("Type", payload.order_type)
    details.add_row("Duration", payload.duration)
    if payload.price is not None:
        details.add_row("Price", money(payload.price))
    if payload.stop is not None:
        details.add_row("Stop", money(payload.stop))
    if ticket.greeks is not None:
        for name, value in ticket.greeks.as_dict().items():
            details.add_row(f"Net {name}", f"{value:.6f}")
    return Group(legs, details)


def preview_table(preview: PreviewResult) -> Table:
    """Negative costs are shown as proceeds."""
    table = _field_table("ORDER PREVIEW")
    table.add_row("Commission", money(preview.commission))
    if preview.order_cost < 0:
        table.add_row("Proceeds", money(abs(preview.order_cost)))
    else:
        table.add_row("Order cost", money(preview.order_cost))
    if preview.margin_change is not None:
        table.add_row("Margin change", money(preview.margin_change))
    if preview.cost < 0:
        table.add_row("Total proceeds", money(abs(preview.cost)))
    else:
        table.add_row("Estimated total", money(preview.cost))
    return table


def format_receipt(receipt: OrderReceipt) -> str:
    return f"Order {receipt.order_id} submitted ({receipt.status})"


def balances_table(balances: Dict[str, Any]) -> Table:
    table = _field_table("ACCOUNT")
    table.add_row("Total equity", money(_num(balances.get("total_equity"))))
    table.add_row("Total cash", money(_num(balances.get("total_cash"))))
    for section in ("margin", "cash", "pdt"):
        detail = balances.get(section)
        if isinstance(detail, dict):
            if "stock_buying_power" in detail:
                table.add_row("Stock buying power", money(_num(detail.get("stock_buying_power"))))
            if "option_buying_power" in detail:
                table.add_row("Option buying power", money(_num(detail.get("option_buying_power"))))
            if "cash_available" in detail:
                table.add_row("Cash available", money(_num(detail.get("cash_available"))))
    return table


def _num(value: Any) -> Optional[float]:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def positions_table(positions: Sequence[PositionSummary], total_equity: Optional[float]) -> Table:
    table = Table(title="ACCOUNT POSITIONS", caption=f"Account balance: {money(total_equity)}")
    table.add_column("Symbol")
    table.add_column("Kind")
    table.add_column("Cost Basis", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Gain/Loss", justify="right")
    for p in positions:
        table.add_row(
            p.symbol,
            p.kind,
            money(p.cost_basis),
            f"{p.quantity:,.0f}",
            money(p.value),
            _gain_cell(p),
        )
    return table


def _gain_cell(position: PositionSummary) -> Text:
    if position.gain_percent is None:
        return Text("")
    style = "green" if position.gain >= 0 else "red"
    return Text(f"{money(position.gain)} ({position.gain_percent * 100:+.2f}%)", style=style)


def format_expected_move(move: ExpectedMove) -> str:
    days = "Day" if move.dte == 1 else "Days"
    lines = _banner(f"EXPECTED MOVE FOR {move.symbol} IN {move.dte} {days}")
    lines.append(f"Percent move: ±{percent(move.percent)}")
    lines.append(f"Dollar move: ±{money(move.dollars)}")
    lines.append(f"Range low: {money(move.low)}")
    lines.append(f"Range high: {money(move.high)}")
    lines.append(f"ATM call: {move.contract.symbol} (IV {percent(move.contract.greeks.iv)})")
    lines.append(RULE)
    return "\n".join(lines)


def renderable(item: Any) -> Union[str, RenderableType]:
    """Dispatch on the type of a presented object; rich objects pass through."""
    if isinstance(item, PricingQuote):
        return format_price(item)
    if isinstance(item, ChainEntry):
        return format_contract(item)
    if isinstance(item, Quote):
        return format_quote(item)
    if isinstance(item, OrderTicket):
        return ticket_table(item)
    if isinstance(item, PreviewResult):
        return preview_table(item)
    if isinstance(item, OrderReceipt):
        return format_receipt(item)
    if isinstance(item, ExpectedMove):
        return format_expected_move(item)
    if isinstance(item, NetGreeks):
        return format_greeks(item)
    if isinstance(item, (Table, Group)):
        return item
    return str(item)
