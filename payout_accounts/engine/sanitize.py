"""Caller-facing view of a payout account."""

import copy
from typing import Any, Mapping, Optional, Union

from payout_accounts.models.account import PayoutAccount
from payout_accounts.models.enums import ProductConfigurationStatus

INTERNAL_FIELDS = (
    "_id",
    "razorpay_account_id",
    "user",
    "stakeholder_id",
    "metadata",
    "__v",
    "product_configuration_status",
    "product_configuration_id",
)


def _mask_account_number(number: Any) -> Any:
    if isinstance(number, str) and len(number) > 4 and not number.startswith("****"):
        return f"****{number[-4:]}"
    return number


def sanitize_account(account: Union[PayoutAccount, Mapping[str, Any], None]) -> Optional[dict[str, Any]]:
    """
    Strip internal fields from an account before it leaves the service.

    Removes provider/storage internals, maps product_configuration_status to
    ready_for_payout ("configured" -> "ready", anything else passes through,
    absent -> omitted) and masks the bank account number. Never mutates its
    input, and sanitizing a sanitized account returns it unchanged.
    """
    if account is None:
        return None

    record = account.to_record() if isinstance(account, PayoutAccount) else copy.deepcopy(dict(account))
    readiness = record.get("product_configuration_status")

    sanitized = {k: v for k, v in record.items() if k not in INTERNAL_FIELDS}

    if readiness is not None:
        sanitized["ready_for_payout"] = (
            "ready" if readiness == ProductConfigurationStatus.CONFIGURED.value else readiness
        )

    for nested in ("kyc_details", "bank_information"):
        if isinstance(sanitized.get(nested), dict):
            sanitized[nested].pop("metadata", None)

    bank = sanitized.get("bank_information")
    if isinstance(bank, dict) and "account_number" in bank:
        bank["account_number"] = _mask_account_number(bank["account_number"])

    return sanitized
