import math
import re

import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from remit_tool.engine import QuoteEngine, FeeSchedule, FixedRate
from remit_tool.engine.errors import (
    DivisionUndefined,
    FeesExceedAmount,
    InvalidAmount,
    UnknownMethod,
    UnknownPool,
    UnknownToken,
)
from remit_tool.engine.fee_schedule import DEFAULT_PROVIDERS
from remit_tool.engine.models import Pool, ProviderFeeStructure
from remit_tool.engine.quote_engine import random_transaction_id

FIXED_TX_ID = "0xdeadbeef...cafe"
FIXED_TIME = "2026-01-01T00:00:00+00:00"


@pytest.fixture(scope="module")
def engine():
    """Engine at the reference rate of 1380 KRW/USD."""
    return QuoteEngine(
        rate_source=FixedRate(1380),
        id_factory=lambda: FIXED_TX_ID,
        clock=lambda: FIXED_TIME,
    )


def _pool(pool_id, fee, slippage=0.001):
    return Pool(pool_id=pool_id, name=f"Pool {pool_id}", network="Base",
                tvl=1_000_000, fee_fraction=fee, slippage_fraction=slippage)


# ---------------------------------------------------------------------------
# Pool selection
# ---------------------------------------------------------------------------

def test_auto_selects_lowest_fee_pool(engine):
    """Frax (0.25%) undercuts Aerodrome (0.3%)."""
    pool = engine.select_pool("auto")
    assert pool.pool_id == "frax"
    assert pool.fee_fraction == min(p.fee_fraction for p in engine.schedule.pools)


def test_explicit_pool_and_alias(engine):
    assert engine.select_pool("aerodrome").name == "Aerodrome KRWQ/USDC"
    assert engine.select_pool("aerodrome-krwq-usdc").pool_id == "aerodrome"
    assert engine.select_pool("frax-krwq-frxusd").pool_id == "frax"


def test_unknown_pool_rejected(engine):
    with pytest.raises(UnknownPool):
        engine.select_pool("uniswap")


def test_auto_tie_picks_first_pool():
    schedule = FeeSchedule(pools=(_pool("a", 0.002), _pool("b", 0.002)))
    engine = QuoteEngine(schedule=schedule, rate_source=FixedRate(1380))
    assert engine.select_pool().pool_id == "a"


def test_auto_scans_every_pool():
    schedule = FeeSchedule(pools=(_pool("a", 0.004), _pool("b", 0.003), _pool("c", 0.001)))
    engine = QuoteEngine(schedule=schedule, rate_source=FixedRate(1380))
    assert engine.select_pool().pool_id == "c"


# ---------------------------------------------------------------------------
# Swap quotes
# ---------------------------------------------------------------------------

def test_swap_quote_reference_values(engine):
    """$500 through Aerodrome at 1380: fee 1.5, slippage 0.5, gas 0.5 → ₩686,550."""
    quote = engine.quote_swap(500, "aerodrome")

    assert quote.fees.fee == pytest.approx(1.5)
    assert quote.fees.slippage == pytest.approx(0.5)
    assert quote.fees.gas == 0.5
    assert quote.fees.total_cost_usd == pytest.approx(2.5)
    assert quote.fees.fee_percent == pytest.approx(0.3)
    assert quote.output_amount == 686_550, f"Expected 686,550 KRWQ, got {quote.output_amount:,}"
    assert quote.rate == 1380
    assert quote.route == "USD → USDC → Aerodrome KRWQ/USDC → KRWQ"
    assert quote.network == "Base"
    assert quote.input_currency == "USD"
    assert quote.output_currency == "KRWQ"


def test_swap_quote_floors_output(engine):
    """Fractional won are truncated, never rounded up."""
    quote = engine.quote_swap(100.37, "aerodrome")
    net = 100.37 - quote.fees.fee - quote.fees.slippage - quote.fees.gas
    assert quote.output_amount == math.floor(net * 1380)
    assert isinstance(quote.output_amount, int)


@pytest.mark.parametrize("pool", ["aerodrome", "frax", "auto"])
@pytest.mark.parametrize("amount", [0.51, 1, 7.77, 123.45, 500, 9_999.99, 1_000_000])
def test_fee_breakdown_sums_to_total(engine, pool, amount):
    fees = engine.quote_swap(amount, pool).fees
    assert fees.fee + fees.slippage + fees.gas == fees.total_cost_usd


@pytest.mark.parametrize("pool", ["aerodrome", "frax"])
def test_swap_output_monotonic_in_amount(engine, pool):
    outputs = [engine.quote_swap(amount, pool).output_amount for amount in range(1, 5000, 37)]
    assert outputs == sorted(outputs)


@pytest.mark.parametrize("amount", [0, -5, -0.01, float("nan"), float("inf"), "abc", None, True])
def test_invalid_amount_rejected(engine, amount):
    with pytest.raises(InvalidAmount):
        engine.quote_swap(amount)


def test_fees_exceeding_amount_rejected(engine):
    """Gas alone is $0.50, so $0.40 cannot be quoted."""
    with pytest.raises(FeesExceedAmount) as exc_info:
        engine.quote_swap(0.40, "aerodrome")
    assert exc_info.value.amount_usd == pytest.approx(0.40)
    assert isinstance(exc_info.value, InvalidAmount)


def test_swap_quote_is_idempotent(engine):
    assert engine.quote_swap(750, "frax") == engine.quote_swap(750, "frax")


def test_swap_quote_trace(engine):
    quote = engine.quote_swap(500, "aerodrome")
    text = quote.get_trace_text()
    assert "Pool Selection" in text
    assert "₩686,550" in text
    assert [t.step for t in quote.trace][0] == "Pool Selection"


def test_swap_quote_tool_dict(engine):
    data = engine.quote_swap(500, "aerodrome").to_tool_dict()
    assert data["outputAmount"] == 686_550
    assert data["exchangeRate"] == 1380
    assert data["estimatedGas"] == 0.5
    assert data["totalCostUsd"] == pytest.approx(2.5)


# ---------------------------------------------------------------------------
# Provider comparison
# ---------------------------------------------------------------------------

def test_compare_providers_reference_values(engine):
    """Bank: 5% + $25 = $50 and a 2% worse retail rate."""
    result = engine.compare_providers(500)

    assert result.traditional.fee == pytest.approx(50.0)
    # (500 - 50) × 1380 × 0.98
    assert result.traditional.final_amount_local == 608_580
    assert result.traditional.provider == "Traditional Bank Wire"
    assert result.traditional.delivery_time == "2-5 business days"

    assert result.ours.fee == pytest.approx(2.0)
    assert result.ours.final_amount_local == 687_240
    assert result.ours.provider == "REMIT-AI (via KRWQ)"

    assert result.savings.amount_usd == pytest.approx(48.0)
    assert result.savings.amount_local == 687_240 - 608_580
    assert result.savings.percent_saved == pytest.approx(96.0)
    assert result.savings.time_saved == "2-5 days"


def test_compare_providers_with_supplied_quote(engine):
    result = engine.compare_providers(500, our_fee_total=2.5, our_output=686_550)
    assert result.savings.amount_usd == pytest.approx(47.5)
    assert result.savings.amount_local == 686_550 - 608_580
    assert result.savings.percent_saved == pytest.approx(95.0)


def test_compare_providers_other_baseline(engine):
    result = engine.compare_providers(1000, baseline="wise")
    # 1000 × 1% + $5
    assert result.traditional.fee == pytest.approx(15.0)
    assert result.savings.time_saved == "1-2 days"


def test_compare_providers_zero_fee_baseline():
    free_bank = ProviderFeeStructure("bank", "BANK", 0.0, 0.0, "2-5 business days")
    schedule = FeeSchedule(providers=(DEFAULT_PROVIDERS[0], free_bank))
    engine = QuoteEngine(schedule=schedule, rate_source=FixedRate(1380))
    with pytest.raises(DivisionUndefined):
        engine.compare_providers(500)


def test_compare_providers_small_amount_rejected(engine):
    """The $25 bank fee exceeds a $20 transfer."""
    with pytest.raises(FeesExceedAmount):
        engine.compare_providers(20)


def test_compare_providers_negative_inputs_rejected(engine):
    with pytest.raises(InvalidAmount):
        engine.compare_providers(500, our_fee_total=-1)
    with pytest.raises(InvalidAmount):
        engine.compare_providers(500, our_output=-1)


def test_quote_with_comparison_uses_quote_fees(engine):
    quote, comparison = engine.quote_with_comparison(500, "aerodrome")
    assert comparison.ours.fee == quote.fees.total_cost_usd
    assert comparison.ours.final_amount_local == quote.output_amount
    assert comparison.rate == quote.rate


def test_quote_with_comparison_small_amount_keeps_quote(engine):
    """$20 is below the bank's $25 fee, so the quote comes back without savings."""
    quote, comparison = engine.quote_with_comparison(20)
    assert quote.output_amount == 26_799
    assert quote.fees.total_cost_usd == pytest.approx(0.58)
    assert comparison is None


def test_quote_with_comparison_still_rejects_unaffordable_swap(engine):
    with pytest.raises(FeesExceedAmount):
        engine.quote_with_comparison(0.4)


def test_comparison_tool_dict(engine):
    data = engine.compare_providers(500).to_tool_dict()
    assert data["traditional"]["finalAmountKrw"] == 608_580
    assert data["remitai"]["finalAmountKrw"] == 687_240
    assert data["savings"]["timeSaved"] == "2-5 days"


# ---------------------------------------------------------------------------
# Per-method conversion
# ---------------------------------------------------------------------------

def test_bank_conversion(engine):
    quote = engine.calculate_conversion(1000, "bank")
    assert quote.transfer_fee == 25
    assert quote.exchange_markup == pytest.approx(50.0)
    assert quote.total_fees == pytest.approx(75.0)
    assert quote.fee_percent == pytest.approx(7.5)
    assert quote.exchange_rate == pytest.approx(1311.0)
    assert quote.receive_amount == 1_278_225
    assert quote.delivery_time == "2-5 business days"


def test_conversion_rounds_half_up(engine):
    """975.5 × 1311 = 1,278,880.5 rounds up, where floor or banker's rounding would not."""
    quote = engine.calculate_conversion(1000.5, "bank")
    assert quote.receive_amount == 1_278_881


def test_conversion_own_method_and_alias(engine):
    quote = engine.calculate_conversion(1000)
    assert quote.method == "remit-ai"
    assert quote.display_name == "REMIT-AI (KRWQ)"
    assert quote.receive_amount == 1_375_172
    assert engine.calculate_conversion(1000, "own") == quote


def test_conversion_unknown_method(engine):
    with pytest.raises(UnknownMethod):
        engine.calculate_conversion(1000, "paypal")


def test_conversion_transfer_fee_exceeds_amount(engine):
    with pytest.raises(FeesExceedAmount):
        engine.calculate_conversion(20, "bank")


def test_conversion_tool_dict(engine):
    data = engine.calculate_conversion(1000, "bank").to_tool_dict()
    assert data["method"] == "BANK"
    assert data["fees"]["transferFee"] == 25
    assert data["receiveAmount"] == 1_278_225
    assert data["currency"] == "KRW"


def test_compare_all_methods_sorted(engine):
    quotes = engine.compare_all_methods(1000)
    assert [q.method for q in quotes] == ["remit-ai", "wise", "western-union", "bank"]
    assert all(q.base_rate == 1380 for q in quotes)


def test_compare_all_methods_skips_unaffordable(engine):
    methods = [q.method for q in engine.compare_all_methods(20)]
    assert "bank" not in methods
    assert "remit-ai" in methods


# ---------------------------------------------------------------------------
# Multi-hop route
# ---------------------------------------------------------------------------

def test_multi_hop_route(engine):
    route = engine.multi_hop_route(1000)
    assert [h.fee for h in route.hops] == [pytest.approx(1.0), pytest.approx(2.5)]
    assert route.total_fee == pytest.approx(3.5)
    assert route.estimated_output == 1_375_170
    assert route.path == "USD/USDC → frxUSD → KRWQ"


def test_multi_hop_fees_use_original_amount(engine):
    """The second hop is charged on $1000, not on the $999 left after hop one."""
    route = engine.multi_hop_route(1000)
    assert route.hops[1].fee == 1000 * 0.0025


def test_multi_hop_tool_dict(engine):
    data = engine.multi_hop_route(1000).to_tool_dict()
    assert data["route"][0]["protocol"] == "Frax Swap"
    assert data["route"][1]["from"] == "frxUSD"
    assert data["estimatedOutput"] == 1_375_170
    assert data["outputCurrency"] == "KRWQ"


# ---------------------------------------------------------------------------
# Simulation and summaries
# ---------------------------------------------------------------------------

def test_simulate_transaction(engine):
    tx = engine.simulate_transaction(1000)
    assert tx.transaction_id == FIXED_TX_ID
    assert tx.status == "SIMULATED"
    assert tx.swap_fee == pytest.approx(3.0)
    assert tx.gas_fee == 0.5
    assert tx.total_fee == pytest.approx(3.5)
    assert tx.output_amount == 1_375_170
    assert tx.route == "USD → USDC → Aerodrome → KRWQ"
    assert tx.network == "Base (Coinbase L2)"
    assert tx.timestamp == FIXED_TIME
    assert len(tx.next_steps) == 4


def test_simulate_transaction_keeps_route_and_recipient(engine):
    tx = engine.simulate_transaction(250, route="USD → frxUSD → KRWQ", recipient_address="0xabc")
    assert tx.route == "USD → frxUSD → KRWQ"
    assert tx.recipient_address == "0xabc"
    assert tx.to_tool_dict()["simulation"]["route"] == "USD → frxUSD → KRWQ"


def test_random_transaction_ids_look_like_hashes():
    first, second = random_transaction_id(), random_transaction_id()
    assert re.fullmatch(r"0x[0-9a-f]{8}\.\.\.[0-9a-f]{4}", first)
    assert first != second


def test_summarize_transaction(engine):
    summary = engine.summarize_transaction(500, 686_550, 2.5, "USD → USDC → Aerodrome → KRWQ")
    assert "₩686,550 KRWQ" in summary.summary
    assert "$2.50 (0.50%)" in summary.summary
    assert "$50.00" in summary.comparison
    assert "You saved: $47.50 (95.0% less!)" in summary.comparison
    assert "2-5 business days" in summary.comparison


# ---------------------------------------------------------------------------
# Rates and static info
# ---------------------------------------------------------------------------

def test_exchange_rate(engine):
    quote = engine.get_exchange_rate(2.5)
    assert quote.rate == 1380
    assert quote.krw_amount == 3450
    assert quote.source == "Forex Market Rate"
    with pytest.raises(InvalidAmount):
        engine.get_exchange_rate(0)


def test_stablecoin_price(engine):
    price = engine.get_stablecoin_price()
    assert price.krwq_per_usd == 1380
    assert price.usd_per_krwq == pytest.approx(1 / 1380)
    assert price.last_updated == FIXED_TIME


def test_explicit_rate_override(engine):
    assert engine.quote_swap(500, "aerodrome", rate=1400).output_amount == math.floor(497.5 * 1400)
    with pytest.raises(InvalidAmount):
        engine.quote_swap(500, rate=0)


def test_token_info(engine):
    assert engine.get_token_info("frxusd").peg == "1 frxUSD = 1 USD"
    assert "Base" in engine.get_token_info("KRWQ").networks
    with pytest.raises(UnknownToken):
        engine.get_token_info("DOGE")


def test_list_pools(engine):
    pools = {p["id"]: p for p in engine.list_pools()}
    assert pools["aerodrome"]["fee_percent"] == pytest.approx(0.3)
    assert pools["frax"]["tvl"] == 2_000_000
