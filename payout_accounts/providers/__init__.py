from payout_accounts.config import settings
from payout_accounts.providers.base import (
    BankAccountDetails,
    LinkedAccount,
    PayoutProvider,
    ProductConfiguration,
    Stakeholder,
)
from payout_accounts.providers.mock_provider import MockRouteProvider
from payout_accounts.providers.razorpay import RazorpayRouteProvider


def build_provider() -> PayoutProvider:
    """Provider selected by settings.provider ("mock" or "razorpay")."""
    if settings.provider == "razorpay":
        return RazorpayRouteProvider()
    if settings.provider == "mock":
        return MockRouteProvider()
    raise ValueError(f"Unknown payout provider: {settings.provider}")


__all__ = [
    "BankAccountDetails",
    "LinkedAccount",
    "MockRouteProvider",
    "PayoutProvider",
    "ProductConfiguration",
    "RazorpayRouteProvider",
    "Stakeholder",
    "build_provider",
]
