"""
Interactive trade session: symbol -> legs -> order type/price/duration -> preview -> submit.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from ..config.schemas import AppConfig
from ..data.models import MarketDataProvider, OrderGateway, OrderReceipt
from ..errors import InvalidInput, NotFound
from ..execution.contracts import Prompter
from ..execution.pricing import PricingResolver
from ..execution.selectors import StrikeSelector
from ..order.assembler import OrderAssembler, OrderTicket
from ..order.builder import LegCollector, OrderBuilder
from .display import balances_table

logger = logging.getLogger(__name__)


class Brokerage(MarketDataProvider, OrderGateway, Protocol):
    def get_balances(self) -> Dict[str, Any]:
        ...


def parse_symbol(raw: str) -> str:
    symbol = str(raw).strip().upper()
    if not symbol:
        raise InvalidInput("Please enter a symbol.")
    return symbol


class TradeSession:
    """Drives one order from an empty builder to preview and optional submission."""

    def __init__(self, broker: Brokerage, prompter: Prompter, config: Optional[AppConfig] = None) -> None:
        self.broker = broker
        self.prompter = prompter
        self.config = config or AppConfig()
        selector = StrikeSelector(broker, prompter, self.config.selector)
        self.collector = LegCollector(broker, prompter, selector)
        self.assembler = OrderAssembler(PricingResolver(broker, self.config.pricing), prompter, self.config.pricing)

    def show_balances(self) -> None:
        if not self.config.broker.account_id:
            return
        self.prompter.present(balances_table(self.broker.get_balances()))

    def choose_symbol(self) -> OrderBuilder:
        while True:
            symbol = self.prompter.ask("Symbol", parse_symbol).value  # type: ignore[union-attr]
            try:
                quote = self.broker.get_quote(symbol)
            except NotFound as e:
                self.prompter.warn(str(e))
                continue
            self.prompter.present(quote)
            return OrderBuilder(quote.symbol)

    def collect_legs(self, builder: OrderBuilder) -> None:
        while True:
            try:
                self.collector.collect(builder)
            except NotFound as e:
                logger.warning(f"leg aborted: {e}")
                self.prompter.warn(str(e))
                if not builder.legs:
                    continue
            if not self.prompter.confirm("Add another leg?", default=False):
                return

    def build_ticket(self) -> OrderTicket:
        builder = self.choose_symbol()
        self.collect_legs(builder)
        ticket = self.assembler.assemble(builder)
        self.prompter.present(ticket)
        return ticket

    def run(self) -> Optional[OrderReceipt]:
        """Returns the receipt, or None when the user declines to send the order."""
        self.show_balances()
        ticket = self.build_ticket()
        params = ticket.payload.to_params()

        preview = self.broker.preview_order(params)
        self.prompter.present(preview)
        if not self.prompter.confirm("Send this order?", default=False):
            logger.info("order not submitted")
            self.prompter.warn("Order was not submitted.")
            return None

        receipt = self.broker.create_order(params)
        self.prompter.present(receipt)
        return receipt
