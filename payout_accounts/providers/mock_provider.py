"""
Mock Route provider for development and tests.

Keeps linked accounts, stakeholders and product configurations in memory and
lets callers script what the provider reports:

  provider.set_account_state("acc_123", activation_status="rejected", rejection_reason="KYC mismatch")
  provider.set_product_state("acc_123", activation_status="needs_clarification", requirements=[...])
  provider.fail("request_product_configuration", PermanentError("nope"))

Every call is recorded in `calls` so tests can assert on the exact traffic.
"""

import asyncio
import random
import uuid
from typing import Any, Optional

from payout_accounts.engine.retry import PermanentError, ProviderError
from payout_accounts.providers.base import (
    BankAccountDetails,
    LinkedAccount,
    PayoutProvider,
    ProductConfiguration,
    Stakeholder,
)


class MockRouteProvider(PayoutProvider):
    """In-memory provider with scriptable activation states and failures."""

    def __init__(self, latency_ms: int = 0, initial_account_status: str = "created"):
        self._latency_ms = latency_ms
        self._initial_account_status = initial_account_status
        self.accounts: dict[str, dict[str, Any]] = {}
        self.products: dict[str, dict[str, Any]] = {}  # keyed by account id
        self.stakeholders: dict[str, list[dict[str, Any]]] = {}
        self.bank_submissions: list[tuple[str, str, BankAccountDetails]] = []
        self.calls: list[tuple[str, tuple]] = []
        self._failures: dict[str, ProviderError] = {}

    @property
    def name(self) -> str:
        return "mock_route"

    # Scripting helpers

    def fail(self, method: str, error: Optional[ProviderError] = None) -> None:
        """Make every subsequent call to `method` raise `error`."""
        self._failures[method] = error or ProviderError(f"Mock failure in {method}", status_code=503)

    def recover(self, method: str) -> None:
        self._failures.pop(method, None)

    def set_account_state(self, account_id: str, **fields: Any) -> None:
        state = self.accounts.setdefault(account_id, {
            "id": account_id,
            "activation_status": self._initial_account_status,
            "requirements": None,
            "rejection_reason": None,
        })
        state.update(fields)

    def set_product_state(self, account_id: str, **fields: Any) -> None:
        state = self.products.setdefault(account_id, {
            "id": f"acc_prd_{uuid.uuid4().hex[:14]}",
            "activation_status": "requested",
            "requirements": None,
        })
        state.update(fields)

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # PayoutProvider

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if self._latency_ms > 0:
            await asyncio.sleep(self._latency_ms * random.uniform(0.5, 1.5) / 1000)
        error = self._failures.get(method)
        if error is not None:
            raise error

    def _account(self, account_id: str) -> dict[str, Any]:
        state = self.accounts.get(account_id)
        if state is None:
            raise PermanentError(f"Account {account_id} does not exist", status_code=404)
        return state

    async def create_linked_account(self, kyc: dict[str, Any]) -> LinkedAccount:
        await self._enter("create_linked_account", kyc)
        account_id = f"acc_{uuid.uuid4().hex[:14]}"
        self.set_account_state(account_id, kyc=kyc)
        state = self.accounts[account_id]
        return LinkedAccount(
            id=account_id,
            activation_status=state["activation_status"],
            requirements=state["requirements"],
            raw=dict(state),
        )

    async def create_stakeholder(self, account_id: str, stakeholder: dict[str, Any]) -> Stakeholder:
        await self._enter("create_stakeholder", account_id, stakeholder)
        self._account(account_id)
        stakeholder_id = f"sth_{uuid.uuid4().hex[:14]}"
        self.stakeholders.setdefault(account_id, []).append({"id": stakeholder_id, **stakeholder})
        return Stakeholder(id=stakeholder_id, raw={"id": stakeholder_id})

    async def request_product_configuration(self, account_id: str) -> ProductConfiguration:
        await self._enter("request_product_configuration", account_id)
        self._account(account_id)
        self.set_product_state(account_id)
        return self._product(account_id)

    async def get_product_configuration(self, account_id: str) -> ProductConfiguration:
        await self._enter("get_product_configuration", account_id)
        if account_id not in self.products:
            raise PermanentError("Route product configuration not found for this account", status_code=404)
        return self._product(account_id)

    async def get_product_configuration_details(
        self, account_id: str, product_id: str
    ) -> ProductConfiguration:
        await self._enter("get_product_configuration_details", account_id, product_id)
        product = self.products.get(account_id)
        if product is None or product["id"] != product_id:
            raise PermanentError(f"Product configuration {product_id} not found", status_code=404)
        return self._product(account_id)

    async def update_bank_details(
        self, account_id: str, product_id: str, bank: BankAccountDetails
    ) -> ProductConfiguration:
        await self._enter("update_bank_details", account_id, product_id, bank)
        product = self.products.get(account_id)
        if product is None or product["id"] != product_id:
            raise PermanentError(f"Product configuration {product_id} not found", status_code=404)
        self.bank_submissions.append((account_id, product_id, bank))
        return self._product(account_id)

    async def get_account_details(self, account_id: str) -> LinkedAccount:
        await self._enter("get_account_details", account_id)
        state = self._account(account_id)
        return LinkedAccount(
            id=account_id,
            activation_status=state["activation_status"],
            requirements=state["requirements"],
            rejection_reason=state["rejection_reason"],
            raw=dict(state),
        )

    def _product(self, account_id: str) -> ProductConfiguration:
        state = self.products[account_id]
        return ProductConfiguration(
            id=state["id"],
            activation_status=state["activation_status"],
            requirements=state["requirements"],
            raw=dict(state),
        )
