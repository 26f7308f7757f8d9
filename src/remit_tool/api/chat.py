"""
Demo-mode chat responder.

Routes a free-text message to an engine operation by keyword and renders
the result as markdown text. Used by POST /chat when no LLM agent is wired in.
"""
import logging
import re
from typing import Optional

from ..engine import QuoteEngine
from ..engine.errors import FeesExceedAmount, QuoteError
from ..engine.summary import format_krw

logger = logging.getLogger(__name__)

DEFAULT_AMOUNT_USD = 500.0

# First number in the message, thousands separators and cents allowed
AMOUNT_PATTERN = re.compile(r"\$?\s*(\d[\d,]*(?:\.\d+)?)")

SEND_KEYWORDS = ("send", "보내", "quote", "transfer")
COMPARE_KEYWORDS = ("compare", "western union", "wise", "cheapest")
POOL_KEYWORDS = ("pool", "liquidity")
ROUTE_KEYWORDS = ("route", "frax", "multi-hop", "multihop")

HELP_TEXT = """I'm REMIT-AI, your Korean Won remittance assistant!

I can help you:
• 💱 Check USD/KRW exchange rates
• 💰 Get quotes for sending money to Korea
• 🏦 Compare with traditional bank fees
• 🛣️ Show swap routes and liquidity pools

Try: "Send $500 to Korea" or "What's the current rate?\""""


def parse_amount(message: str) -> Optional[float]:
    """Extract the first dollar amount from a message, or None."""
    match = AMOUNT_PATTERN.search(message)
    if not match:
        return None
    return float(match.group(1).replace(",", ""))


class ChatResponder:
    """Keyword router from chat messages to quote engine answers."""

    def __init__(self, engine: QuoteEngine, default_amount: float = DEFAULT_AMOUNT_USD):
        self.engine = engine
        self.default_amount = default_amount

    def respond(self, message: str) -> str:
        lower = message.lower()
        amount = parse_amount(message)

        try:
            if "rate" in lower:
                return self._rate_response()
            if any(k in lower for k in COMPARE_KEYWORDS):
                return self._compare_response(amount if amount is not None else self.default_amount)
            if any(k in lower for k in SEND_KEYWORDS):
                return self._send_response(amount if amount is not None else self.default_amount)
            if any(k in lower for k in POOL_KEYWORDS):
                return self._pools_response()
            if any(k in lower for k in ROUTE_KEYWORDS):
                return self._route_response(amount if amount is not None else self.default_amount)
        except QuoteError as e:
            logger.info("Chat request rejected: %s", e)
            return f"⚠️ I couldn't build that quote: {e}"

        return HELP_TEXT

    def _rate_response(self) -> str:
        rate = self.engine.get_rate()
        own = self.engine.schedule.get_provider(self.engine.schedule.own_method)
        return f"""📊 **Current Exchange Rate**

💱 $1 USD = {format_krw(rate)} KRW

**Via KRWQ Stablecoin:**
• Rate: 1 KRWQ = 1 KRW (1:1 peg)
• Fee: ~{own.markup_fraction * 100:g}% (swap) + ~${own.transfer_fee:.2f} (gas)
• Speed: {own.delivery_time}

KRWQ gives you the best rate with instant settlement! 🚀"""

    def _send_response(self, amount: float) -> str:
        rate = self.engine.get_rate()
        ours = self.engine.price_own_route(amount, rate=rate)
        own = self.engine.schedule.get_provider(self.engine.schedule.own_method)
        swap_fee = amount * own.markup_fraction

        try:
            comparison = self.engine.compare_providers(
                amount, our_fee_total=ours.fee, our_output=ours.final_amount_local, rate=rate
            )
            savings_line = f"You save ${comparison.savings.amount_usd:,.2f} vs a bank wire. "
        except FeesExceedAmount:
            savings_line = ""

        return f"""💸 **REMIT-AI Quote for ${amount:,.2f}**

**You send:** ${amount:,.2f} USD
**You receive:** {format_krw(ours.final_amount_local)} KRWQ

**Fee Breakdown:**
• Swap fee: ${swap_fee:.2f} ({own.markup_fraction * 100:g}%)
• Gas fee: ${own.transfer_fee:.2f}
• **Total fees: ${ours.fee:.2f}**

**Route:** {self.engine.schedule.default_route}
**Time:** {ours.delivery_time}

{savings_line}Would you like to proceed? 🚀"""

    def _compare_response(self, amount: float) -> str:
        lines = [f"🏦 **Transfer options for ${amount:,.2f}**", ""]
        for quote in self.engine.compare_all_methods(amount):
            lines.append(
                f"• **{quote.display_name}**: {format_krw(quote.receive_amount)} "
                f"(fees ${quote.total_fees:,.2f}, {quote.delivery_time})"
            )
        return "\n".join(lines)

    def _pools_response(self) -> str:
        lines = ["🌊 **KRWQ Liquidity Pools**", ""]
        for pool in self.engine.list_pools():
            lines.append(
                f"• **{pool['name']}** on {pool['network']}: "
                f"{pool['fee_percent']:g}% fee, TVL ${pool['tvl']:,.0f}"
            )
        best = self.engine.select_pool()
        lines.extend(["", f"Lowest fee pool: {best.name}"])
        return "\n".join(lines)

    def _route_response(self, amount: float) -> str:
        route = self.engine.multi_hop_route(amount)
        lines = [f"🛣️ **Multi-hop route for ${amount:,.2f}**: {route.path}", ""]
        for hop in route.hops:
            lines.append(
                f"{hop.step}. {hop.from_asset} → {hop.to_asset} via {hop.protocol} (fee ${hop.fee:.2f})"
            )
        lines.extend([
            "",
            f"**Total fee:** ${route.total_fee:.2f}",
            f"**Estimated output:** {format_krw(route.estimated_output)} {route.output_currency}",
        ])
        return "\n".join(lines)
