"""
Shared API state - a single quote engine for all routes.
"""
from ..engine import QuoteEngine

engine = QuoteEngine.from_settings()
