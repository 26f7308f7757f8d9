"""
Transaction summary text shown to users after a (simulated) remittance.
"""
from .models import TransactionSummary

RULE = "━" * 29


def format_krw(amount: float) -> str:
    """Format a won amount with thousands separators, e.g. ₩686,550."""
    return f"₩{amount:,.0f}"


def build_transaction_summary(
    amount_usd: float,
    amount_krwq: int,
    fees: float,
    route: str,
    bank_fee: float,
    time_saved: str,
) -> TransactionSummary:
    """
    Build the summary and bank comparison blocks.

    Percentages are reported to one decimal for savings and two for fees.
    A zero bank fee reports 0.0% saved rather than dividing by zero.
    """
    savings = bank_fee - fees
    savings_percent = (savings / bank_fee * 100) if bank_fee else 0.0
    fee_percent = fees / amount_usd * 100

    summary = "\n".join([
        "",
        "💸 REMIT-AI Transaction Summary",
        RULE,
        f"📤 Sent: ${amount_usd:,.2f} USD",
        f"📥 Received: {format_krw(amount_krwq)} KRWQ",
        f"💰 Fees: ${fees:,.2f} ({fee_percent:.2f}%)",
        f"🛣️ Route: {route}",
        "⏱️ Time: < 1 minute",
        RULE,
        "",
    ])

    comparison = "\n".join([
        "",
        "🏦 vs Traditional Bank Wire:",
        f"• Bank fees would be: ${bank_fee:,.2f}",
        f"• You saved: ${savings:,.2f} ({savings_percent:.1f}% less!)",
        f"• Time saved: {time_saved}",
        "",
        "✅ Powered by KRWQ (Korean Won stablecoin)",
        "",
    ])

    return TransactionSummary(summary=summary, comparison=comparison)
