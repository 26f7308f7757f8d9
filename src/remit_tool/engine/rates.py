"""
Rate sources - KRW per 1 USD.

The engine never calls an ambient random function: a jittered source owns
its own `random.Random`, so tests can seed it or swap in a FixedRate.
"""
import math
import random
from typing import Optional

from .errors import ScheduleError

DEFAULT_USD_KRW_RATE = 1380.0
DEFAULT_RATE_SPREAD = 10.0  # ±5 KRW


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


class RateSource:
    """Base class for anything that can produce a USD/KRW rate."""

    def get_rate(self) -> float:
        raise NotImplementedError

    def describe(self) -> str:
        return self.__class__.__name__


class FixedRate(RateSource):
    """A constant rate. Used for swap quotes and for deterministic tests."""

    def __init__(self, rate: float = DEFAULT_USD_KRW_RATE):
        if not rate > 0 or math.isinf(rate):
            raise ScheduleError(f"Rate must be a positive finite number, got {rate}")
        self.rate = float(rate)

    def get_rate(self) -> float:
        return self.rate

    def describe(self) -> str:
        return f"fixed {self.rate:,.0f}"


class JitteredRate(RateSource):
    """
    Simulated live market rate.

    rate = round_half_up(base + (u - 0.5) * spread), u drawn from [0, 1).
    Samples therefore stay within base ± spread/2.
    """

    def __init__(
        self,
        base: float = DEFAULT_USD_KRW_RATE,
        spread: float = DEFAULT_RATE_SPREAD,
        rng: Optional[random.Random] = None,
    ):
        if not (math.isfinite(base) and math.isfinite(spread)):
            raise ScheduleError(f"Base rate and spread must be finite, got {base} and {spread}")
        if spread < 0:
            raise ScheduleError(f"Rate spread must be non-negative, got {spread}")
        # Lowest possible sample must still be a positive rate
        if base - spread / 2 < 1:
            raise ScheduleError(
                f"Base rate {base} with spread {spread} can produce a non-positive rate"
            )
        self.base = float(base)
        self.spread = float(spread)
        self.rng = rng or random.Random()

    def get_rate(self) -> float:
        variation = (self.rng.random() - 0.5) * self.spread
        return float(round_half_up(self.base + variation))

    def describe(self) -> str:
        return f"jittered {self.base:,.0f} ± {self.spread / 2:g}"


def rate_source_from_settings(settings) -> RateSource:
    """Build the rate source described by the application settings."""
    if settings.live_rates:
        rng = random.Random(settings.rate_seed) if settings.rate_seed is not None else None
        return JitteredRate(settings.base_rate, settings.rate_spread, rng=rng)
    return FixedRate(settings.base_rate)
