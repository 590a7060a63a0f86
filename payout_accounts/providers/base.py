"""
Abstract payout-routing provider interface.

The provider owns linked accounts (the academy as a fund-receiving party),
their stakeholders, and the route product configuration that gates payouts.
RazorpayRouteProvider wraps the real Route API; MockRouteProvider is an
in-memory stand-in for development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class LinkedAccount:
    """A provider linked account and its account-level activation state."""

    id: str
    activation_status: Optional[str] = None
    requirements: Any = None  # list of strings/objects when present
    rejection_reason: Optional[str] = None
    raw: dict = field(default_factory=dict)


@dataclass
class ProductConfiguration:
    """The route product configuration of a linked account."""

    id: str
    activation_status: Optional[str] = None
    requirements: Any = None
    raw: dict = field(default_factory=dict)


@dataclass
class Stakeholder:
    id: str
    raw: dict = field(default_factory=dict)


@dataclass
class BankAccountDetails:
    """Settlement bank account submitted to the route product configuration."""

    account_number: str
    ifsc: str
    beneficiary_name: str
    beneficiary_email: str = ""
    beneficiary_mobile: str = ""


class PayoutProvider(ABC):
    """Abstract base class for payout-routing providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'razorpay_route')."""
        ...

    @abstractmethod
    async def create_linked_account(self, kyc: dict[str, Any]) -> LinkedAccount:
        """
        Create a linked account from a KYC payload.

        Raises:
            ProviderError: On transient failure.
            PermanentError: When the provider rejects the payload.
        """
        ...

    @abstractmethod
    async def create_stakeholder(self, account_id: str, stakeholder: dict[str, Any]) -> Stakeholder:
        ...

    @abstractmethod
    async def request_product_configuration(self, account_id: str) -> ProductConfiguration:
        ...

    @abstractmethod
    async def get_product_configuration(self, account_id: str) -> ProductConfiguration:
        """Look up the route product configuration of an account (404 if none)."""
        ...

    @abstractmethod
    async def get_product_configuration_details(
        self, account_id: str, product_id: str
    ) -> ProductConfiguration:
        ...

    @abstractmethod
    async def update_bank_details(
        self, account_id: str, product_id: str, bank: BankAccountDetails
    ) -> ProductConfiguration:
        """Submit settlement details and accept terms, which submits the activation form."""
        ...

    @abstractmethod
    async def get_account_details(self, account_id: str) -> LinkedAccount:
        ...

    async def aclose(self) -> None:
        """Release network resources, if any."""
        return None
