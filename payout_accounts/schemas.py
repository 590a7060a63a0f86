"""Request and response schemas for the payout account API."""

from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

from payout_accounts.models.enums import BusinessType, StakeholderRelationship

PAN_PATTERN = r"^[A-Z]{5}[0-9]{4}[A-Z]$"
GST_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$"
IFSC_PATTERN = r"^[A-Z]{4}0[A-Z0-9]{6}$"
PHONE_PATTERN = r"^[6-9]\d{9}$"


def _upper(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


class KycAddress(BaseModel):
    street1: str = Field(min_length=1, max_length=100)
    street2: Optional[str] = Field(default=None, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=6, max_length=10)
    country: str = Field(default="IN", min_length=2, max_length=2)


class KycDetails(BaseModel):
    legal_business_name: str = Field(min_length=1, max_length=255)
    business_type: BusinessType
    contact_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)
    pan: str = Field(pattern=PAN_PATTERN)
    gst: Optional[str] = Field(default=None, pattern=GST_PATTERN)
    address: KycAddress

    @field_validator("pan", "gst", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return _upper(value)


class BankInformation(BaseModel):
    account_number: str = Field(min_length=9, max_length=18, pattern=r"^\d+$")
    ifsc_code: str = Field(pattern=IFSC_PATTERN)
    account_holder_name: str = Field(min_length=1, max_length=100)
    bank_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("ifsc_code", mode="before")
    @classmethod
    def normalize_ifsc(cls, value: Any) -> Any:
        return _upper(value)


class StakeholderKyc(BaseModel):
    pan: Optional[str] = Field(default=None, pattern=PAN_PATTERN)
    aadhaar: Optional[str] = Field(default=None, pattern=r"^\d{12}$")

    @field_validator("pan", mode="before")
    @classmethod
    def normalize_pan(cls, value: Any) -> Any:
        return _upper(value)


class StakeholderInput(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)
    relationship: StakeholderRelationship
    kyc: StakeholderKyc


class CreatePayoutAccountRequest(BaseModel):
    kyc_details: KycDetails
    bank_information: Optional[BankInformation] = None
    stakeholder: Optional[StakeholderInput] = None


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope."""

    success: bool
    statusCode: int
    message: str
    data: Optional[T] = None


class PayoutAccountView(BaseModel):
    """The caller-facing payout account (see engine.sanitize)."""

    id: str
    kyc_details: dict[str, Any]
    bank_information: Optional[dict[str, Any]] = None
    activation_status: str
    activation_requirements: Optional[list[str]] = None
    rejection_reason: Optional[str] = None
    bank_details_status: Optional[Literal["pending", "submitted"]] = None
    ready_for_payout: Optional[str] = None
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"extra": "forbid"}
