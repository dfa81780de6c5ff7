"""
CLI entrypoint: market data, expected move and interactive trade entry.
"""

import argparse
import logging
import sys
import time
from datetime import date
from typing import List, Optional

import pandas as pd
from rich.console import Console

from ..analytics.expected_move import expected_move
from ..analytics.positions import summarize_positions
from ..broker.tradier import TradierClient
from ..config import AppConfig, apply_cli_overrides, apply_env_overrides, load_config
from ..errors import InvalidInput, OptionCalculatorError
from ..execution.chain_window import window_chain
from ..order.modify import build_modify_params
from .display import format_expected_move, format_expirations, format_quote, format_receipt, positions_table, window_table
from .export import export_window
from .prompts import ConsolePrompter
from .session import TradeSession

logger = logging.getLogger(__name__)
console = Console()


def setup_logging(level: str = "INFO"):
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_date(raw: str) -> date:
    try:
        return pd.to_datetime(raw).date()
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid date: {raw}") from None


def resolve_config(config_path: Optional[str], sets: List[str]) -> AppConfig:
    """File (or defaults) -> environment overrides -> --set overrides"""
    config = load_config(config_path)
    config = apply_env_overrides(config)
    if sets:
        config = apply_cli_overrides(config, sets)
    return config


def build_client(config: AppConfig) -> TradierClient:
    if not config.broker.token:
        raise InvalidInput("A Tradier API token is required (set TRADIER_TOKEN)")
    return TradierClient(config.broker)


def cmd_quote(client: TradierClient, symbol: str, refresh: bool = False, interval: float = 10.0) -> None:
    """Print a quote, optionally re-fetching every `interval` seconds until interrupted"""
    while True:
        print(format_quote(client.get_quote(symbol)))
        if not refresh:
            return
        try:
            time.sleep(interval)
        except KeyboardInterrupt:
            return


def cmd_expirations(client: TradierClient, symbol: str, today: Optional[date] = None) -> None:
    expirations = client.get_option_expirations(symbol, include_all_roots=True)
    print(format_expirations(expirations, today or date.today()))


def cmd_chain(
    client: TradierClient,
    config: AppConfig,
    symbol: str,
    expiration: date,
    export: Optional[str] = None,
) -> None:
    quote = client.get_quote(symbol)
    chain = client.get_option_chains(symbol, expiration, True)
    window = window_chain(
        chain,
        quote.last,
        config.chain.strikes,
        include_calls=config.chain.include_calls,
        include_puts=config.chain.include_puts,
    )
    console.print(window_table(window, quote.symbol, expiration))
    if export:
        path = export_window(window, export)
        print(f"Exported to {path}")


def cmd_expected_move(client: TradierClient, config: AppConfig, symbol: str, expiration: Optional[date]) -> None:
    move = expected_move(client, symbol, expiration, config=config.expected_move)
    print(format_expected_move(move))


def cmd_positions(client: TradierClient) -> None:
    """Positions valued at current quotes, grouped by underlying, with the account balance"""
    summaries = summarize_positions(client, client.get_positions())
    balances = client.get_balances()
    total_equity = balances.get("total_equity")
    console.print(positions_table(summaries, None if total_equity is None else float(total_equity)))


def cmd_trade_create(client: TradierClient, config: AppConfig) -> None:
    session = TradeSession(client, ConsolePrompter(), config)
    session.run()


def cmd_trade_modify(client: TradierClient, order_id: str, args: argparse.Namespace) -> None:
    params = build_modify_params(
        order_type=args.type,
        duration=args.duration,
        price=args.price,
        stop=args.stop,
    )
    receipt = client.modify_order(order_id, params)
    print(format_receipt(receipt))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Option Calculator - Tradier market data and multi-leg order entry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quote with greeks, refreshing every 5 seconds
  python -m option_calculator.run quote SPY --refresh --interval 5

  # Option chain, 8 strikes either side of the last price, written to CSV
  python -m option_calculator.run chain SPY 2025-06-20 --strikes 8 --export spy.csv

  # One-day expected move
  python -m option_calculator.run expected-move SPY

  # Account positions with gain/loss
  python -m option_calculator.run positions

  # Build, preview and send an order
  python -m option_calculator.run --config configs/sandbox.yaml trade create

  # Change the limit price of an open order
  python -m option_calculator.run trade modify 123456 --price 1.25
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to config file (YAML or JSON)",
    )

    parser.add_argument(
        "--set",
        action="append",
        dest="sets",
        metavar="KEY=VALUE",
        help="Override config value (can be used multiple times). Use nested keys: chain.strikes=8",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config, INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    p_quote = sub.add_parser("quote", help="Show a quote")
    p_quote.add_argument("symbol")
    p_quote.add_argument("--refresh", action="store_true", help="Keep refreshing until interrupted")
    p_quote.add_argument("--interval", type=float, default=10.0, help="Refresh interval in seconds (default: 10)")

    p_exp = sub.add_parser("expirations", help="List option expirations with days to expiration")
    p_exp.add_argument("symbol")

    p_chain = sub.add_parser("chain", help="Show the option chain around the last price")
    p_chain.add_argument("symbol")
    p_chain.add_argument("expiration", help="Expiration date (YYYY-MM-DD)")
    p_chain.add_argument("--strikes", type=int, default=None, help="Strikes below and above the last price (default: 5)")
    side = p_chain.add_mutually_exclusive_group()
    side.add_argument("--calls-only", action="store_true", help="Exclude puts")
    side.add_argument("--puts-only", action="store_true", help="Exclude calls")
    p_chain.add_argument("--export", metavar="FILE", help="Write the window to a CSV file")

    p_move = sub.add_parser("expected-move", help="One standard deviation move by an expiration")
    p_move.add_argument("symbol")
    p_move.add_argument("--expiration", help="Expiration date (default: one day)")

    sub.add_parser("positions", help="List account positions with value and gain/loss")

    p_trade = sub.add_parser("trade", help="Create or modify orders")
    trade_sub = p_trade.add_subparsers(dest="trade_command")
    trade_sub.add_parser("create", help="Build, preview and send an order interactively")
    p_modify = trade_sub.add_parser("modify", help="Modify an open order")
    p_modify.add_argument("order_id")
    p_modify.add_argument("--type", choices=["limit", "stop", "stop_limit", "debit", "credit"])
    p_modify.add_argument("--duration", choices=["day", "gtc", "pre", "post"])
    p_modify.add_argument("--price", type=float)
    p_modify.add_argument("--stop", type=float)

    return parser


def run_command(args: argparse.Namespace, config: AppConfig) -> None:
    client = build_client(config)

    if args.command == "quote":
        cmd_quote(client, args.symbol, refresh=args.refresh, interval=args.interval)
    elif args.command == "expirations":
        cmd_expirations(client, args.symbol)
    elif args.command == "chain":
        if args.strikes is not None:
            config.chain.strikes = args.strikes
        if args.calls_only:
            config.chain.include_puts = False
        if args.puts_only:
            config.chain.include_calls = False
        cmd_chain(client, config, args.symbol, parse_date(args.expiration), export=args.export)
    elif args.command == "expected-move":
        expiration = parse_date(args.expiration) if args.expiration else None
        cmd_expected_move(client, config, args.symbol, expiration)
    elif args.command == "positions":
        cmd_positions(client)
    elif args.command == "trade" and args.trade_command == "create":
        cmd_trade_create(client, config)
    elif args.command == "trade" and args.trade_command == "modify":
        cmd_trade_modify(client, args.order_id, args)
    else:
        raise InvalidInput("Choose a command: quote, expirations, chain, expected-move, positions, trade create, trade modify")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args.config, args.sets or [])
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.log_level)

    if not args.command:
        parser.print_help()
        return 1

    try:
        run_command(args, config)
        return 0
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return 1
    except OptionCalculatorError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        logger.debug("Command failed", exc_info=True)
        return 1
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
