"""Exception classes raised by the quote engine."""


class QuoteError(Exception):
    """Base exception for all quote engine errors."""
    pass


class InvalidAmount(QuoteError, ValueError):
    """Raised when a requested USD amount is zero, negative or not finite."""
    pass


class FeesExceedAmount(InvalidAmount):
    """Raised when fees would leave a negative net amount to convert."""

    def __init__(self, amount_usd: float, total_fee: float, provider: str = ""):
        self.amount_usd = amount_usd
        self.total_fee = total_fee
        self.provider = provider
        label = f" for {provider}" if provider else ""
        super().__init__(
            f"Fees of ${total_fee:.2f}{label} exceed the amount ${amount_usd:.2f}"
        )


class UnknownPool(QuoteError, KeyError):
    """Raised when a pool preference is not in the pool table."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class UnknownMethod(QuoteError, KeyError):
    """Raised when a transfer method is not in the provider table."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class UnknownToken(QuoteError, KeyError):
    """Raised when token info is requested for an unlisted symbol."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class DivisionUndefined(QuoteError, ZeroDivisionError):
    """Raised when a savings percentage is taken against a zero fee."""
    pass


class ScheduleError(QuoteError):
    """Raised when the pool/provider configuration tables are malformed."""
    pass
