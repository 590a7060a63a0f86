"""
Razorpay Route provider.

Talks to the v2 accounts API with HTTP basic auth:

  POST  /accounts                                   create linked account
  POST  /accounts/{id}/stakeholders                 create stakeholder
  POST  /accounts/{id}/products                     request route product
  GET   /accounts/{id}/products                     find route product
  GET   /accounts/{id}/products/{product_id}        product status + requirements
  PATCH /accounts/{id}/products/{product_id}        submit settlement details
  GET   /accounts/{id}                              account status

Non-2xx responses become ProviderError subclasses (see engine.retry) carrying
Razorpay's error description.
"""

import logging
from typing import Any, Optional

import httpx

from payout_accounts.config import settings
from payout_accounts.engine.retry import PermanentError, ProviderError, error_for_status
from payout_accounts.providers.base import (
    BankAccountDetails,
    LinkedAccount,
    PayoutProvider,
    ProductConfiguration,
    Stakeholder,
)

logger = logging.getLogger("payout_accounts.providers.razorpay")

ROUTE_PRODUCT = "route"


def _mask(value: str) -> str:
    if not value or len(value) <= 8:
        return "****"
    return f"{value[:4]}****{value[-4:]}"


class RazorpayRouteProvider(PayoutProvider):
    """Razorpay Route (linked accounts) over httpx."""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        key_id = key_id if key_id is not None else settings.razorpay_key_id
        key_secret = key_secret if key_secret is not None else settings.razorpay_key_secret
        if not key_id or not key_secret:
            raise ValueError("Razorpay credentials are not configured (RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET)")

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.razorpay_base_url,
            auth=httpx.BasicAuth(key_id, key_secret),
            timeout=timeout if timeout is not None else settings.provider_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "razorpay_route"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Razorpay request timed out: {method} {path}", status_code=504) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Razorpay request failed: {e}", status_code=502) from e

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") or {}
        description = error.get("description") or f"Razorpay returned HTTP {response.status_code}"
        retry_after = response.headers.get("Retry-After")

        logger.error(
            "Razorpay %s %s failed: status=%d code=%s field=%s description=%s",
            method,
            path,
            response.status_code,
            error.get("code"),
            error.get("field"),
            description,
        )
        raise error_for_status(
            response.status_code,
            description,
            retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    async def create_linked_account(self, kyc: dict[str, Any]) -> LinkedAccount:
        body = {k: v for k, v in kyc.items() if k != "legal_info"}
        if kyc.get("business_type") != "individual" and kyc.get("legal_info"):
            body["legal_info"] = kyc["legal_info"]

        data = await self._request("POST", "/accounts", json=body)
        logger.info("Razorpay linked account created: %s", data.get("id"))
        return _linked_account(data)

    async def create_stakeholder(self, account_id: str, stakeholder: dict[str, Any]) -> Stakeholder:
        body: dict[str, Any] = {
            "name": stakeholder["name"],
            "email": stakeholder["email"],
            "phone": {"primary": stakeholder["phone"]},
            "relationship": {stakeholder["relationship"]: True},
            "kyc": {"pan": stakeholder["kyc"]["pan"]},
        }
        address = stakeholder.get("address")
        if address:
            body["addresses"] = {"residential": {k: v for k, v in address.items() if v}}

        data = await self._request("POST", f"/accounts/{account_id}/stakeholders", json=body)
        logger.info("Razorpay stakeholder created: account=%s stakeholder=%s", account_id, data.get("id"))
        return Stakeholder(id=data["id"], raw=data)

    async def request_product_configuration(self, account_id: str) -> ProductConfiguration:
        data = await self._request(
            "POST", f"/accounts/{account_id}/products", json={"product_name": ROUTE_PRODUCT}
        )
        logger.info("Razorpay product configuration requested: account=%s product=%s", account_id, data.get("id"))
        return _product(data)

    async def get_product_configuration(self, account_id: str) -> ProductConfiguration:
        data = await self._request("GET", f"/accounts/{account_id}/products")
        for item in data.get("items") or []:
            if item.get("product_name") == ROUTE_PRODUCT:
                return _product(item)
        raise PermanentError("Route product configuration not found for this account", status_code=404)

    async def get_product_configuration_details(
        self, account_id: str, product_id: str
    ) -> ProductConfiguration:
        data = await self._request("GET", f"/accounts/{account_id}/products/{product_id}")
        return _product(data)

    async def update_bank_details(
        self, account_id: str, product_id: str, bank: BankAccountDetails
    ) -> ProductConfiguration:
        body = {
            "settlements": {
                "account_number": bank.account_number,
                "ifsc_code": bank.ifsc,
                "beneficiary_name": bank.beneficiary_name,
            },
            "tnc_accepted": True,
        }
        logger.info(
            "Submitting bank details to Razorpay: account=%s product=%s number=%s ifsc=%s",
            account_id,
            product_id,
            _mask(bank.account_number),
            bank.ifsc,
        )
        data = await self._request("PATCH", f"/accounts/{account_id}/products/{product_id}", json=body)
        return _product(data)

    async def get_account_details(self, account_id: str) -> LinkedAccount:
        data = await self._request("GET", f"/accounts/{account_id}")
        return _linked_account(data)


def _linked_account(data: dict[str, Any]) -> LinkedAccount:
    reason = data.get("rejection_reason")
    if reason is None and isinstance(data.get("activation"), dict):
        reason = data["activation"].get("rejection_reason")
    return LinkedAccount(
        id=data["id"],
        activation_status=data.get("activation_status") or data.get("status"),
        requirements=data.get("requirements"),
        rejection_reason=reason,
        raw=data,
    )


def _product(data: dict[str, Any]) -> ProductConfiguration:
    return ProductConfiguration(
        id=data["id"],
        activation_status=data.get("activation_status"),
        requirements=data.get("requirements"),
        raw=data,
    )
