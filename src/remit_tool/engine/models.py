"""
Data models for the quote engine.

Uses dataclasses for structured, type-safe data representation.
Static table records (Pool, ProviderFeeStructure, TokenInfo) are frozen;
quote records are derived values recomputed on every request.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Pool:
    """A modeled liquidity venue with its own fee and slippage rates."""
    pool_id: str
    name: str
    network: str
    tvl: float  # informational only
    fee_fraction: float
    slippage_fraction: float
    aliases: tuple[str, ...] = ()

    @property
    def fee_percent(self) -> float:
        return self.fee_fraction * 100

    def matches(self, key: str) -> bool:
        return key == self.pool_id or key in self.aliases


@dataclass(frozen=True)
class ProviderFeeStructure:
    """Fixed transfer fee plus exchange-rate markup for one transfer method."""
    method: str
    display_name: str
    transfer_fee: float  # USD
    markup_fraction: float
    delivery_time: str


@dataclass(frozen=True)
class RouteHop:
    """One step of a multi-hop route. `fee` is filled in per quote."""
    step: int
    from_asset: str
    to_asset: str
    protocol: str
    fee_fraction: float
    fee: float = 0.0


@dataclass(frozen=True)
class TokenInfo:
    """Static description of a stablecoin used along the route."""
    symbol: str
    name: str
    peg: str
    backing: str
    networks: tuple[str, ...]
    website: str


@dataclass
class TraceStep:
    """A single step in the quote resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


class _Traceable:
    """Mixin for records that keep a resolution trace."""

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class FeeBreakdown:
    """Itemized swap cost. `total_cost_usd` is always fee + slippage + gas."""
    fee: float
    fee_percent: float
    slippage: float
    gas: float
    total_cost_usd: float


@dataclass
class SwapQuote(_Traceable):
    """USD → KRWQ swap quote through a single liquidity pool."""
    input_amount_usd: float
    output_amount: int
    rate: float
    fees: FeeBreakdown
    route: str
    network: str
    pool_id: str
    delivery_time: str
    input_currency: str = "USD"
    output_currency: str = "KRWQ"
    currency_pair: str = "USD/KRW"
    trace: list[TraceStep] = field(default_factory=list)

    def to_tool_dict(self) -> dict:
        """Convert to the agent tool output shape (camelCase keys)."""
        return {
            "inputAmount": self.input_amount_usd,
            "inputCurrency": self.input_currency,
            "outputAmount": self.output_amount,
            "outputCurrency": self.output_currency,
            "exchangeRate": self.rate,
            "fee": self.fees.fee,
            "feePercent": self.fees.fee_percent,
            "slippage": self.fees.slippage,
            "route": self.route,
            "network": self.network,
            "estimatedGas": self.fees.gas,
            "totalCostUsd": self.fees.total_cost_usd,
        }


@dataclass
class ProviderQuote:
    """One side of a provider comparison."""
    provider: str
    fee: float
    fee_percent: float
    delivery_time: str
    final_amount_local: int

    def to_tool_dict(self) -> dict:
        return {
            "provider": self.provider,
            "fee": self.fee,
            "feePercent": self.fee_percent,
            "deliveryTime": self.delivery_time,
            "finalAmountKrw": self.final_amount_local,
        }


@dataclass
class Savings:
    amount_usd: float
    amount_local: int
    percent_saved: float
    time_saved: str


@dataclass
class ComparisonResult:
    """Our route priced against a traditional provider's pricing."""
    amount_usd: float
    ours: ProviderQuote
    traditional: ProviderQuote
    savings: Savings
    rate: float

    def to_tool_dict(self) -> dict:
        """Convert to the agent tool output shape (camelCase keys)."""
        return {
            "amount": self.amount_usd,
            "traditional": self.traditional.to_tool_dict(),
            "remitai": self.ours.to_tool_dict(),
            "savings": {
                "amountUsd": self.savings.amount_usd,
                "amountKrw": self.savings.amount_local,
                "percentSaved": self.savings.percent_saved,
                "timeSaved": self.savings.time_saved,
            },
        }


@dataclass
class ConversionQuote(_Traceable):
    """Per-method conversion quote, comparable across transfer methods."""
    method: str
    display_name: str
    send_amount: float
    base_rate: float
    exchange_rate: float  # effective rate after markup
    transfer_fee: float
    exchange_markup: float
    total_fees: float
    fee_percent: float
    receive_amount: int
    delivery_time: str
    currency: str = "KRW"
    trace: list[TraceStep] = field(default_factory=list)

    def to_tool_dict(self) -> dict:
        """Convert to the agent tool output shape (camelCase keys)."""
        return {
            "method": self.display_name,
            "sendAmount": self.send_amount,
            "exchangeRate": self.exchange_rate,
            "fees": {
                "transferFee": self.transfer_fee,
                "exchangeMarkup": self.exchange_markup,
                "totalFees": self.total_fees,
                "feePercent": self.fee_percent,
            },
            "receiveAmount": self.receive_amount,
            "currency": self.currency,
            "deliveryTime": self.delivery_time,
        }


@dataclass
class MultiHopRoute:
    """USD → intermediate → KRWQ route with per-hop fees."""
    amount_usd: float
    hops: list[RouteHop]
    total_fee: float
    estimated_output: int
    rate: float
    output_currency: str = "KRWQ"

    @property
    def path(self) -> str:
        if not self.hops:
            return ""
        assets = [self.hops[0].from_asset] + [h.to_asset for h in self.hops]
        return " → ".join(assets)

    def to_tool_dict(self) -> dict:
        return {
            "route": [
                {
                    "step": h.step,
                    "from": h.from_asset,
                    "to": h.to_asset,
                    "protocol": h.protocol,
                    "fee": h.fee,
                }
                for h in self.hops
            ],
            "totalFee": self.total_fee,
            "estimatedOutput": self.estimated_output,
            "outputCurrency": self.output_currency,
        }


@dataclass
class SimulatedTransaction:
    """A simulated (never settled) remittance transaction."""
    transaction_id: str
    input_amount: float
    output_amount: int
    route: str
    swap_fee: float
    gas_fee: float
    total_fee: float
    network: str
    estimated_time: str
    timestamp: str
    rate: float
    status: str = "SIMULATED"
    input_currency: str = "USD"
    output_currency: str = "KRWQ"
    recipient_address: Optional[str] = None
    next_steps: list[str] = field(default_factory=list)

    def to_tool_dict(self) -> dict:
        """Convert to the agent tool output shape (camelCase keys)."""
        return {
            "success": True,
            "simulation": {
                "transactionId": self.transaction_id,
                "status": self.status,
                "inputAmount": self.input_amount,
                "inputCurrency": self.input_currency,
                "outputAmount": self.output_amount,
                "outputCurrency": self.output_currency,
                "route": self.route,
                "fees": {
                    "swapFee": self.swap_fee,
                    "gasFee": self.gas_fee,
                    "totalFee": self.total_fee,
                },
                "network": self.network,
                "estimatedTime": self.estimated_time,
                "timestamp": self.timestamp,
            },
            "nextSteps": list(self.next_steps),
        }


@dataclass
class RateQuote:
    rate: float
    usd_amount: float
    krw_amount: int
    timestamp: str
    source: str = "Forex Market Rate"


@dataclass
class StablecoinPrice:
    krwq_per_usd: float
    usd_per_krwq: float
    last_updated: str
    peg: str = "1 KRWQ = 1 KRW (Korean Won)"
    source: str = "KRWQ Oracle"


@dataclass
class TransactionSummary:
    summary: str
    comparison: str
