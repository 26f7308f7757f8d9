"""
Print a sample set of quotes, comparisons and a chat exchange.

Usage:
    python scripts/quote_demo.py [amount_usd]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from remit_tool.engine import QuoteEngine, FixedRate
from remit_tool.api.chat import ChatResponder


def demo(amount: float):
    engine = QuoteEngine(rate_source=FixedRate(1380))

    print(f"--- Swap quotes for ${amount:,.2f} ---")
    for preference in engine.schedule.pool_keys():
        quote = engine.quote_swap(amount, preference)
        print(f"{preference:>10}: {quote.output_amount:,} KRWQ via {quote.route} "
              f"(cost ${quote.fees.total_cost_usd:.2f})")

    print("\n--- Auto quote trace ---")
    print(engine.quote_swap(amount).get_trace_text())

    print("\n--- Provider comparison ---")
    comparison = engine.compare_providers(amount)
    print(comparison.to_tool_dict())

    print("\n--- Conversion by method ---")
    for quote in engine.compare_all_methods(amount):
        print(f"{quote.display_name:>16}: ₩{quote.receive_amount:,} ({quote.delivery_time})")

    print("\n--- Multi-hop route ---")
    print(engine.multi_hop_route(amount).to_tool_dict())

    print("\n--- Chat ---")
    responder = ChatResponder(engine)
    for query in ("What's the current USD to KRW exchange rate?",
                  f"I want to send ${amount:,.0f} to Korea. What are my options?"):
        print(f"\nUser: {query}")
        print("-" * 50)
        print(responder.respond(query))


if __name__ == "__main__":
    demo(float(sys.argv[1]) if len(sys.argv) > 1 else 500.0)
