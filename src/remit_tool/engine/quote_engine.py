"""
Quote Engine - USD → KRWQ swap quoting and provider comparison.

Every operation is a pure function of its inputs, the fee schedule and one
rate sample. Rounding is intentionally per operation:
- swap quotes, comparisons, multi-hop routes and simulations floor the output
- per-method conversions round half up
"""
import logging
import math
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import DivisionUndefined, FeesExceedAmount, InvalidAmount, ScheduleError
from .fee_schedule import AUTO, FeeSchedule
from .models import (
    ComparisonResult,
    ConversionQuote,
    FeeBreakdown,
    MultiHopRoute,
    Pool,
    ProviderFeeStructure,
    ProviderQuote,
    RateQuote,
    Savings,
    SimulatedTransaction,
    StablecoinPrice,
    SwapQuote,
    TokenInfo,
    TransactionSummary,
)
from .rates import FixedRate, RateSource, round_half_up
from .summary import build_transaction_summary

logger = logging.getLogger(__name__)

# Labels used on the two sides of a provider comparison
COMPARISON_LABELS = {
    "bank": "Traditional Bank Wire",
    "remit-ai": "REMIT-AI (via KRWQ)",
}


def validate_amount(amount_usd) -> float:
    """Return the amount as a float, or raise InvalidAmount."""
    if isinstance(amount_usd, bool):
        raise InvalidAmount(f"Amount must be a number, got {amount_usd!r}")
    try:
        amount = float(amount_usd)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Amount must be a number, got {amount_usd!r}")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount_usd!r}")
    return amount


def random_transaction_id() -> str:
    """Opaque simulated transaction hash, e.g. 0x1a2b3c4d...9f0e."""
    digest = uuid.uuid4().hex
    return f"0x{digest[:8]}...{digest[8:12]}"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _time_saved(provider: ProviderFeeStructure) -> str:
    return provider.delivery_time.replace(" business", "")


class QuoteEngine:
    """
    Core quote engine.

    Resolution for a swap quote:
    1. Select a pool (explicit or lowest fee)
    2. Apply pool fee and slippage, plus flat gas
    3. Convert the net USD at the sampled rate, flooring to whole KRWQ
    """

    def __init__(
        self,
        schedule: Optional[FeeSchedule] = None,
        rate_source: Optional[RateSource] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        """Initialize engine with a fee schedule and rate source."""
        self.schedule = schedule or FeeSchedule.default()
        self.rate_source = rate_source or FixedRate()
        self.id_factory = id_factory or random_transaction_id
        self.clock = clock or _utc_now

    @classmethod
    def from_settings(cls, settings=None) -> 'QuoteEngine':
        """Build an engine from the application settings (CSV tables + rate source)."""
        from ..config.settings import get_settings
        from .rates import rate_source_from_settings

        settings = settings or get_settings()
        engine = cls(
            schedule=FeeSchedule.load(settings),
            rate_source=rate_source_from_settings(settings),
        )
        logger.info(
            "Quote engine ready: %d pools, %d providers, rate %s",
            len(engine.schedule.pools),
            len(engine.schedule.providers),
            engine.rate_source.describe(),
        )
        return engine

    # ------------------------------------------------------------------
    # Rates and pools
    # ------------------------------------------------------------------

    def get_rate(self) -> float:
        """Sample the current KRW per USD rate."""
        rate = self.rate_source.get_rate()
        if not rate > 0:
            raise ScheduleError(f"Rate source produced a non-positive rate: {rate}")
        return rate

    def _resolve_rate(self, rate: Optional[float]) -> float:
        if rate is None:
            return self.get_rate()
        if not rate > 0:
            raise InvalidAmount(f"Rate must be positive, got {rate}")
        return float(rate)

    def select_pool(self, preference: str = AUTO) -> Pool:
        """
        Resolve a pool preference.

        `auto` picks the strictly lowest fee fraction; on an exact tie the
        first pool in table order wins.
        """
        if preference != AUTO:
            return self.schedule.get_pool(preference)

        best = self.schedule.pools[0]
        for pool in self.schedule.pools[1:]:
            if pool.fee_fraction < best.fee_fraction:
                best = pool
        return best

    def list_pools(self) -> list[dict]:
        """Pool listing with fee percentages."""
        return [
            {
                "id": pool.pool_id,
                "name": pool.name,
                "network": pool.network,
                "tvl": pool.tvl,
                "fee_percent": pool.fee_percent,
                "slippage_percent": pool.slippage_fraction * 100,
            }
            for pool in self.schedule.pools
        ]

    def get_exchange_rate(self, amount: float = 1) -> RateQuote:
        """Current USD/KRW rate applied to an amount (rounded half up)."""
        amount = validate_amount(amount)
        rate = self.get_rate()
        return RateQuote(
            rate=rate,
            usd_amount=amount,
            krw_amount=round_half_up(amount * rate),
            timestamp=self.clock(),
        )

    def get_stablecoin_price(self) -> StablecoinPrice:
        """KRWQ price. KRWQ is pegged 1:1 to KRW, so this is the USD/KRW rate."""
        rate = self.get_rate()
        return StablecoinPrice(
            krwq_per_usd=rate,
            usd_per_krwq=1 / rate,
            last_updated=self.clock(),
        )

    def get_token_info(self, symbol: str) -> TokenInfo:
        return self.schedule.get_token(symbol)

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def quote_swap(self, amount_usd: float, preference: str = AUTO,
                   rate: Optional[float] = None) -> SwapQuote:
        """
        Quote a USD → KRWQ swap through one liquidity pool.

        Args:
            amount_usd: Amount to send, must be > 0
            preference: Pool id, alias or "auto"
            rate: Optional fixed rate instead of a fresh sample

        Returns:
            SwapQuote with fee breakdown and trace
        """
        amount = validate_amount(amount_usd)
        pool = self.select_pool(preference)
        rate = self._resolve_rate(rate)

        fee = amount * pool.fee_fraction
        slippage = amount * pool.slippage_fraction
        gas = self.schedule.gas_usd
        net_amount = amount - fee - slippage - gas
        total_cost = fee + slippage + gas

        if net_amount < 0:
            raise FeesExceedAmount(amount, total_cost, pool.name)

        output_amount = math.floor(net_amount * rate)

        quote = SwapQuote(
            input_amount_usd=amount,
            output_amount=output_amount,
            rate=rate,
            fees=FeeBreakdown(
                fee=fee,
                fee_percent=pool.fee_fraction * 100,
                slippage=slippage,
                gas=gas,
                total_cost_usd=total_cost,
            ),
            route=f"USD → USDC → {pool.name} → KRWQ",
            network=pool.network,
            pool_id=pool.pool_id,
            delivery_time=self.schedule.get_provider(self.schedule.own_method).delivery_time,
        )

        if preference == AUTO:
            quote.add_trace("Pool Selection", "Lowest fee pool", pool.name)
        else:
            quote.add_trace("Pool Selection", f"Requested pool {preference}", pool.name)
        quote.add_trace("Swap Fee", f"{pool.fee_percent:g}% of ${amount:,.2f}", f"${fee:.2f}")
        quote.add_trace("Slippage", f"{pool.slippage_fraction * 100:g}% of ${amount:,.2f}", f"${slippage:.2f}")
        quote.add_trace("Gas", "Flat L2 gas estimate", f"${gas:.2f}")
        quote.add_trace("Conversion", f"${net_amount:,.2f} × {rate:,.2f} (floored)", f"₩{output_amount:,}")

        logger.debug("Swap quote $%.2f via %s -> %d KRWQ", amount, pool.pool_id, output_amount)
        return quote

    def price_own_route(self, amount_usd: float, rate: Optional[float] = None) -> ProviderQuote:
        """Our route priced as a provider: markup % plus flat gas, output floored."""
        amount = validate_amount(amount_usd)
        rate = self._resolve_rate(rate)
        own = self.schedule.get_provider(self.schedule.own_method)

        fee = amount * own.markup_fraction + own.transfer_fee
        if amount - fee < 0:
            raise FeesExceedAmount(amount, fee, own.display_name)

        return ProviderQuote(
            provider=COMPARISON_LABELS.get(own.method, own.display_name),
            fee=fee,
            fee_percent=fee / amount * 100,
            delivery_time=own.delivery_time,
            final_amount_local=math.floor((amount - fee) * rate),
        )

    def compare_providers(
        self,
        amount_usd: float,
        our_fee_total: Optional[float] = None,
        our_output: Optional[int] = None,
        baseline: Optional[str] = None,
        rate: Optional[float] = None,
    ) -> ComparisonResult:
        """
        Compare our pricing against a traditional provider.

        The traditional side pays fee = amount × markup + transfer fee and
        converts at a retail rate (rate × retail_rate_factor). When our fee
        or output is not supplied it is priced with the own provider.
        """
        amount = validate_amount(amount_usd)
        rate = self._resolve_rate(rate)
        schedule = self.schedule

        traditional = schedule.get_provider(baseline or schedule.baseline_method)
        traditional_fee = amount * traditional.markup_fraction + traditional.transfer_fee
        if amount - traditional_fee < 0:
            raise FeesExceedAmount(amount, traditional_fee, traditional.display_name)
        traditional_output = math.floor(
            (amount - traditional_fee) * rate * schedule.retail_rate_factor
        )

        own = schedule.get_provider(schedule.own_method)
        if our_fee_total is None and our_output is None:
            ours = self.price_own_route(amount, rate=rate)
            our_fee_total, our_output = ours.fee, ours.final_amount_local
        if our_fee_total is None:
            our_fee_total = amount * own.markup_fraction + own.transfer_fee
        elif our_fee_total < 0:
            raise InvalidAmount(f"Fee total must not be negative, got {our_fee_total}")
        if our_output is None:
            if amount - our_fee_total < 0:
                raise FeesExceedAmount(amount, our_fee_total, own.display_name)
            our_output = math.floor((amount - our_fee_total) * rate)
        elif our_output < 0:
            raise InvalidAmount(f"Output amount must not be negative, got {our_output}")

        if traditional_fee == 0:
            raise DivisionUndefined(
                f"{traditional.display_name} charges no fee; savings percent is undefined"
            )
        saved_usd = traditional_fee - our_fee_total

        result = ComparisonResult(
            amount_usd=amount,
            ours=ProviderQuote(
                provider=COMPARISON_LABELS.get(own.method, own.display_name),
                fee=our_fee_total,
                fee_percent=our_fee_total / amount * 100,
                delivery_time=own.delivery_time,
                final_amount_local=our_output,
            ),
            traditional=ProviderQuote(
                provider=COMPARISON_LABELS.get(traditional.method, traditional.display_name),
                fee=traditional_fee,
                fee_percent=traditional_fee / amount * 100,
                delivery_time=traditional.delivery_time,
                final_amount_local=traditional_output,
            ),
            savings=Savings(
                amount_usd=saved_usd,
                amount_local=our_output - traditional_output,
                percent_saved=saved_usd / traditional_fee * 100,
                time_saved=_time_saved(traditional),
            ),
            rate=rate,
        )
        logger.debug(
            "Compared $%.2f against %s: saves $%.2f", amount, traditional.method, saved_usd
        )
        return result

    def quote_with_comparison(self, amount_usd: float,
                              preference: str = AUTO) -> tuple[SwapQuote, Optional[ComparisonResult]]:
        """
        Swap quote plus its savings against the traditional baseline, at one rate.

        The comparison is None when the baseline's own fees exceed the amount;
        the quote is still returned.
        """
        rate = self.get_rate()
        quote = self.quote_swap(amount_usd, preference, rate=rate)
        try:
            comparison = self.compare_providers(
                quote.input_amount_usd,
                our_fee_total=quote.fees.total_cost_usd,
                our_output=quote.output_amount,
                rate=rate,
            )
        except FeesExceedAmount as e:
            logger.debug("No baseline comparison for $%.2f: %s", quote.input_amount_usd, e)
            comparison = None
        return quote, comparison

    def calculate_conversion(self, amount_usd: float, method: str = "remit-ai",
                             rate: Optional[float] = None) -> ConversionQuote:
        """
        Per-method conversion: effective rate = rate × (1 − markup),
        receive = round half up((amount − transfer fee) × effective rate).
        """
        amount = validate_amount(amount_usd)
        provider = self.schedule.get_provider(method)
        rate = self._resolve_rate(rate)

        transfer_fee = provider.transfer_fee
        exchange_markup = amount * provider.markup_fraction
        total_fees = transfer_fee + exchange_markup
        if amount - transfer_fee < 0:
            raise FeesExceedAmount(amount, transfer_fee, provider.display_name)

        effective_rate = rate * (1 - provider.markup_fraction)
        receive_amount = round_half_up((amount - transfer_fee) * effective_rate)

        quote = ConversionQuote(
            method=provider.method,
            display_name=provider.display_name,
            send_amount=amount,
            base_rate=rate,
            exchange_rate=effective_rate,
            transfer_fee=transfer_fee,
            exchange_markup=exchange_markup,
            total_fees=total_fees,
            fee_percent=total_fees / amount * 100,
            receive_amount=receive_amount,
            delivery_time=provider.delivery_time,
        )
        quote.add_trace("Provider", provider.display_name, provider.delivery_time)
        quote.add_trace("Transfer Fee", "Flat fee", f"${transfer_fee:.2f}")
        quote.add_trace(
            "Markup", f"{provider.markup_fraction * 100:g}% below {rate:,.2f}", f"{effective_rate:,.2f}"
        )
        quote.add_trace("Conversion", "Rounded to nearest won", f"₩{receive_amount:,}")
        return quote

    def compare_all_methods(self, amount_usd: float) -> list[ConversionQuote]:
        """Conversion quote for every provider at one rate, best receive amount first."""
        amount = validate_amount(amount_usd)
        rate = self.get_rate()
        quotes = []
        for provider in self.schedule.providers:
            try:
                quotes.append(self.calculate_conversion(amount, provider.method, rate=rate))
            except FeesExceedAmount as e:
                logger.debug("Skipping %s: %s", provider.method, e)
        quotes.sort(key=lambda q: q.receive_amount, reverse=True)
        return quotes

    def multi_hop_route(self, amount_usd: float, rate: Optional[float] = None) -> MultiHopRoute:
        """
        Route through an intermediate stablecoin.

        Every hop fee is charged on the original amount, not on the balance
        left after earlier hops.
        """
        amount = validate_amount(amount_usd)
        rate = self._resolve_rate(rate)

        hops = [replace(hop, fee=amount * hop.fee_fraction) for hop in self.schedule.route_hops]
        total_fee = sum(hop.fee for hop in hops)
        if amount - total_fee < 0:
            raise FeesExceedAmount(amount, total_fee, "multi-hop route")

        return MultiHopRoute(
            amount_usd=amount,
            hops=hops,
            total_fee=total_fee,
            estimated_output=math.floor((amount - total_fee) * rate),
            rate=rate,
        )

    def simulate_transaction(
        self,
        amount_usd: float,
        route: Optional[str] = None,
        recipient_address: Optional[str] = None,
        rate: Optional[float] = None,
    ) -> SimulatedTransaction:
        """Simulate (never settle) a remittance: 0.3% swap fee plus flat gas."""
        amount = validate_amount(amount_usd)
        rate = self._resolve_rate(rate)
        schedule = self.schedule

        swap_fee = amount * schedule.swap_fee_fraction
        gas_fee = schedule.gas_usd
        total_fee = swap_fee + gas_fee
        if amount - total_fee < 0:
            raise FeesExceedAmount(amount, total_fee, "simulated transaction")

        transaction = SimulatedTransaction(
            transaction_id=self.id_factory(),
            input_amount=amount,
            output_amount=math.floor((amount - total_fee) * rate),
            route=route or schedule.default_route,
            swap_fee=swap_fee,
            gas_fee=gas_fee,
            total_fee=total_fee,
            network=schedule.settlement_network,
            estimated_time=schedule.settlement_time,
            timestamp=self.clock(),
            rate=rate,
            recipient_address=recipient_address,
            next_steps=list(schedule.next_steps),
        )
        logger.info(
            "Simulated transaction %s: $%.2f -> %d KRWQ",
            transaction.transaction_id, amount, transaction.output_amount,
        )
        return transaction

    def summarize_transaction(self, amount_usd: float, amount_krwq: int,
                              fees: float, route: str) -> TransactionSummary:
        """Human-readable summary of a transaction against the bank baseline."""
        amount = validate_amount(amount_usd)
        bank = self.schedule.get_provider(self.schedule.baseline_method)
        return build_transaction_summary(
            amount, amount_krwq, fees, route,
            bank_fee=amount * bank.markup_fraction + bank.transfer_fee,
            time_saved=bank.delivery_time,
        )
