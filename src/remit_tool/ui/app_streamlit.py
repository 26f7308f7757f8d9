"""
Streamlit UI for REMIT-AI quotes.

Features:
- Tabbed interface for Swap Quote, Provider Comparison, Route and Simulation
- Pool preference and live-rate toggle in the sidebar
- Export of the provider comparison to CSV
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from dataclasses import replace
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from remit_tool.engine import QuoteEngine, QuoteError
from remit_tool.engine.summary import format_krw
from remit_tool.config.settings import get_settings


st.set_page_config(
    page_title="REMIT-AI",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine(live_rates: bool):
    """Get cached engine instance, one per rate mode."""
    settings = replace(get_settings(), live_rates=live_rates)
    return QuoteEngine.from_settings(settings)


settings = get_settings()


# ============================================================================
# SIDEBAR: Transfer Configuration
# ============================================================================
with st.sidebar:
    st.header("💸 Transfer")

    live_rates = st.toggle(
        "Live rates",
        value=settings.live_rates,
        help=f"Jitter the rate around {settings.base_rate:,.0f} KRW/USD instead of a fixed rate",
    )

    try:
        engine = get_engine(live_rates)
    except Exception as e:
        st.error(f"System Error: {e}")
        st.stop()

    with st.container(border=True):
        amount_usd = st.number_input("Amount (USD)", min_value=1.0, value=500.0, step=50.0)
        pool_choice = st.selectbox("Liquidity Pool", engine.schedule.pool_keys())

    best_pool = engine.select_pool()
    st.caption(f"**Lowest fee pool:** {best_pool.name} ({best_pool.fee_percent:g}%)")

    st.divider()
    st.caption(f"Rate source: {engine.rate_source.describe()}")


st.title("REMIT-AI")
st.caption(f"USD → KRWQ Remittance Quotes | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3, tab4 = st.tabs(["⚡ Swap Quote", "🏦 Compare", "🛣️ Route", "🧪 Simulate"])


# ============================================================================
# TAB 1: SWAP QUOTE
# ============================================================================
with tab1:
    try:
        quote, comparison = engine.quote_with_comparison(amount_usd, pool_choice)
    except QuoteError as e:
        st.error(str(e))
    else:
        m1, m2, m3 = st.columns(3)
        m1.metric("You Receive", f"{format_krw(quote.output_amount)} KRWQ")
        m2.metric("Total Cost", f"${quote.fees.total_cost_usd:,.2f}")
        m3.metric("Rate", f"{quote.rate:,.0f}")

        st.caption(f"**Route:** {quote.route} on {quote.network}")

        fee_df = pd.DataFrame([
            {'Component': 'Swap fee', 'USD': quote.fees.fee},
            {'Component': 'Slippage', 'USD': quote.fees.slippage},
            {'Component': 'Gas', 'USD': quote.fees.gas},
            {'Component': 'Total', 'USD': quote.fees.total_cost_usd},
        ])
        st.dataframe(fee_df, use_container_width=True, hide_index=True)

        if comparison is not None:
            savings = comparison.savings
            st.markdown(
                f":green[**You Save: ${savings.amount_usd:,.2f} ({savings.percent_saved:.1f}%) "
                f"vs {comparison.traditional.provider}**]"
            )
        else:
            st.caption("A bank wire cannot carry this amount, so no savings comparison is shown.")

        with st.expander("🔍 Quote Details"):
            st.code(quote.get_trace_text(), language=None)


# ============================================================================
# TAB 2: PROVIDER COMPARISON
# ============================================================================
with tab2:
    st.subheader("🏦 Transfer Methods")
    try:
        quotes = engine.compare_all_methods(amount_usd)
    except QuoteError as e:
        st.error(str(e))
        quotes = []

    if quotes:
        compare_df = pd.DataFrame([{
            'Method': q.display_name,
            'Transfer Fee': q.transfer_fee,
            'Markup': q.exchange_markup,
            'Total Fees': q.total_fees,
            'Fee %': round(q.fee_percent, 2),
            'Rate': round(q.exchange_rate, 2),
            'Receive (KRW)': q.receive_amount,
            'Delivery': q.delivery_time,
        } for q in quotes])

        st.dataframe(compare_df, use_container_width=True, hide_index=True)
        st.bar_chart(compare_df.set_index('Method')['Receive (KRW)'])

        st.download_button(
            "📥 CSV",
            data=compare_df.to_csv(index=False),
            file_name=f"remit_compare_{amount_usd:.0f}.csv",
            mime="text/csv",
        )
    else:
        st.info("No provider can deliver this amount after fees.")


# ============================================================================
# TAB 3: MULTI-HOP ROUTE
# ============================================================================
with tab3:
    try:
        route = engine.multi_hop_route(amount_usd)
    except QuoteError as e:
        st.error(str(e))
    else:
        st.subheader(route.path)
        hop_df = pd.DataFrame([{
            'Step': h.step,
            'From': h.from_asset,
            'To': h.to_asset,
            'Protocol': h.protocol,
            'Fee %': h.fee_fraction * 100,
            'Fee (USD)': h.fee,
        } for h in route.hops])
        st.dataframe(hop_df, use_container_width=True, hide_index=True)

        c1, c2 = st.columns(2)
        c1.metric("Total Fee", f"${route.total_fee:,.2f}")
        c2.metric("Estimated Output", f"{format_krw(route.estimated_output)} {route.output_currency}")

    with st.expander("🌊 Liquidity Pools"):
        st.dataframe(pd.DataFrame(engine.list_pools()), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 4: SIMULATION
# ============================================================================
with tab4:
    recipient = st.text_input("Recipient Address (optional)", placeholder="0x...")

    if st.button("🧪 Simulate Transaction", type="primary"):
        try:
            tx = engine.simulate_transaction(amount_usd, recipient_address=recipient or None)
        except QuoteError as e:
            st.error(str(e))
        else:
            st.success(f"Transaction {tx.transaction_id} {tx.status}")
            summary = engine.summarize_transaction(
                tx.input_amount, tx.output_amount, tx.total_fee, tx.route
            )
            st.text(summary.summary)
            st.text(summary.comparison)

            st.markdown("**Next steps**")
            for step in tx.next_steps:
                st.markdown(f"- {step}")
