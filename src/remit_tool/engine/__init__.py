"""Engine subpackage - quote, comparison and simulation logic."""
from .quote_engine import QuoteEngine
from .fee_schedule import FeeSchedule
from .rates import FixedRate, JitteredRate
from .models import SwapQuote, ComparisonResult, ConversionQuote
from .errors import QuoteError, InvalidAmount, UnknownPool, UnknownMethod

__all__ = [
    'QuoteEngine', 'FeeSchedule', 'FixedRate', 'JitteredRate',
    'SwapQuote', 'ComparisonResult', 'ConversionQuote',
    'QuoteError', 'InvalidAmount', 'UnknownPool', 'UnknownMethod',
]
