"""Enumerations for the payout account domain model."""

from enum import Enum


class ActivationStatus(str, Enum):
    """Activation states of a payout account, as reported by the provider."""

    PENDING = "pending"
    NEEDS_CLARIFICATION = "needs_clarification"
    ACTIVATED = "activated"
    REJECTED = "rejected"


class BusinessType(str, Enum):
    """Business types accepted by Razorpay Route."""

    INDIVIDUAL = "individual"
    PARTNERSHIP = "partnership"
    PRIVATE_LIMITED = "private_limited"
    PUBLIC_LIMITED = "public_limited"
    LLP = "llp"
    NGO = "ngo"
    TRUST = "trust"
    SOCIETY = "society"
    HUF = "huf"


class BankDetailsStatus(str, Enum):
    """Progress of the asynchronous bank-details submission."""

    PENDING = "pending"
    SUBMITTED = "submitted"


class ProductConfigurationStatus(str, Enum):
    """Internal payout readiness of the route product configuration."""

    PENDING = "pending"
    CONFIGURED = "configured"


class StakeholderRelationship(str, Enum):
    DIRECTOR = "director"
    PROPRIETOR = "proprietor"
    PARTNER = "partner"
    AUTHORISED_SIGNATORY = "authorised_signatory"


class ActionType(str, Enum):
    """Audit trail action types."""

    PAYOUT_ACCOUNT_CREATED = "payout_account_created"
    PAYOUT_ACCOUNT_BANK_DETAILS_UPDATED = "payout_account_bank_details_updated"
    PAYOUT_ACCOUNT_STATUS_CHANGED = "payout_account_status_changed"
    PAYOUT_ACCOUNT_ACTIVATED = "payout_account_activated"
    PAYOUT_ACCOUNT_REJECTED = "payout_account_rejected"


class ActionScale(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class JobType(str, Enum):
    """Kinds of work carried by the outbox."""

    STAKEHOLDER_CREATE = "payout_stakeholder_create"
    BANK_DETAILS_UPDATE = "payout_bank_details_update"
    NOTIFY_PUSH = "notify_push"
    NOTIFY_EMAIL = "notify_email"
    NOTIFY_SMS = "notify_sms"
    NOTIFY_WHATSAPP = "notify_whatsapp"


class JobStatus(str, Enum):
    """Lifecycle states for an outbox job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    DEAD = "dead"


class NotificationEvent(str, Enum):
    """Payout account events that notify the academy owner."""

    ACCOUNT_CREATED = "payout_account_created"
    BANK_DETAILS_UPDATED = "bank_details_updated"
    ACCOUNT_ACTIVATED = "payout_account_activated"
    ACCOUNT_NEEDS_CLARIFICATION = "payout_account_needs_clarification"
    ACCOUNT_REJECTED = "payout_account_rejected"
