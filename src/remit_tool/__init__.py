"""
Remit Tool Package

A USD → KRW remittance quoting system for the REMIT-AI demo.
Prices swaps across modeled KRWQ liquidity pools and compares the
stablecoin route against traditional remittance providers.
"""

__version__ = "1.0.0"
