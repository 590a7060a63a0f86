"""
Provider payload construction from KYC input.

Two decisions are made here, before anything touches the provider:

  1. What goes into the linked-account payload. PAN and GST are sent as
     legal_info only for non-individual businesses; an individual's PAN is
     verified through the stakeholder instead.
  2. Which stakeholder (if any) to create. An explicit stakeholder wins when it
     carries a PAN; otherwise one is derived from the KYC contact, as the
     proprietor of an individual business or an authorised signatory.

Each decision is returned as a plain structure so the account engine can log
and audit it.
"""

from dataclasses import dataclass
from typing import Any, Optional

from payout_accounts.models.enums import BusinessType, StakeholderRelationship
from payout_accounts.schemas import BankInformation, KycDetails, StakeholderInput

PROFILE_CATEGORY = "education"
PROFILE_SUBCATEGORY = "coaching"
DEFAULT_COUNTRY = "IN"


@dataclass
class StakeholderDecision:
    """Result of choosing the stakeholder for a new linked account."""

    data: Optional[dict[str, Any]] = None
    auto_created: bool = False
    message: str = ""

    @property
    def should_create(self) -> bool:
        return self.data is not None


def build_linked_account_payload(kyc: KycDetails) -> dict[str, Any]:
    """Linked-account creation payload for the provider."""
    address = kyc.address
    registered: dict[str, Any] = {
        "street1": address.street1,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country or DEFAULT_COUNTRY,
    }
    if address.street2:
        registered["street2"] = address.street2

    payload: dict[str, Any] = {
        "email": str(kyc.email),
        "phone": kyc.phone,
        "type": "route",
        "legal_business_name": kyc.legal_business_name,
        "business_type": kyc.business_type.value,
        "contact_name": kyc.contact_name,
        "profile": {
            "category": PROFILE_CATEGORY,
            "subcategory": PROFILE_SUBCATEGORY,
            "addresses": {"registered": registered},
        },
        "legal_info": {},
    }
    if kyc.business_type != BusinessType.INDIVIDUAL:
        payload["legal_info"]["pan"] = kyc.pan
        if kyc.gst:
            payload["legal_info"]["gst"] = kyc.gst
    return payload


def decide_stakeholder(
    kyc: KycDetails,
    override: Optional[StakeholderInput] = None,
) -> StakeholderDecision:
    """
    Choose the stakeholder to create for a new linked account.

    Returns:
        StakeholderDecision with data=None when no stakeholder can be created.
    """
    if override is not None:
        if not override.kyc.pan:
            return StakeholderDecision(message="Stakeholder provided but PAN is missing")
        stakeholder_kyc: dict[str, Any] = {"pan": override.kyc.pan}
        if override.kyc.aadhaar:
            stakeholder_kyc["aadhaar"] = override.kyc.aadhaar
        return StakeholderDecision(
            data={
                "name": override.name,
                "email": str(override.email),
                "phone": override.phone,
                "relationship": override.relationship.value,
                "kyc": stakeholder_kyc,
            },
            auto_created=False,
        )

    if not kyc.pan:
        return StakeholderDecision(message="PAN missing from KYC details")

    relationship = (
        StakeholderRelationship.PROPRIETOR
        if kyc.business_type == BusinessType.INDIVIDUAL
        else StakeholderRelationship.AUTHORISED_SIGNATORY
    )
    return StakeholderDecision(
        data={
            # must match the name on the PAN card
            "name": kyc.contact_name,
            "email": str(kyc.email),
            "phone": kyc.phone,
            "relationship": relationship.value,
            "kyc": {"pan": kyc.pan},
            "address": {
                "street": kyc.address.street1,
                "city": kyc.address.city,
                "state": kyc.address.state,
                "postal_code": kyc.address.postal_code,
                "country": kyc.address.country or DEFAULT_COUNTRY,
            },
        },
        auto_created=True,
    )


def bank_details_job_payload(
    bank: BankInformation,
    beneficiary_email: Optional[str],
    beneficiary_mobile: Optional[str],
) -> dict[str, Any]:
    """Settlement details as submitted by the bank-details worker."""
    return {
        "account_number": bank.account_number,
        "ifsc": bank.ifsc_code,
        "beneficiary_name": bank.account_holder_name,
        "beneficiary_email": beneficiary_email or "",
        "beneficiary_mobile": beneficiary_mobile or "",
    }
