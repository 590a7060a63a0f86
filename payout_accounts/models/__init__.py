from payout_accounts.models.enums import (
    ActionScale,
    ActionType,
    ActivationStatus,
    BankDetailsStatus,
    BusinessType,
    JobStatus,
    JobType,
    NotificationEvent,
    ProductConfigurationStatus,
    StakeholderRelationship,
)
from payout_accounts.models.account import AcademyUser, AuditTrail, Base, OutboxJob, PayoutAccount

__all__ = [
    "Base",
    "AcademyUser",
    "PayoutAccount",
    "AuditTrail",
    "OutboxJob",
    "ActionScale",
    "ActionType",
    "ActivationStatus",
    "BankDetailsStatus",
    "BusinessType",
    "JobStatus",
    "JobType",
    "NotificationEvent",
    "ProductConfigurationStatus",
    "StakeholderRelationship",
]
