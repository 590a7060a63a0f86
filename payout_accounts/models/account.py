"""SQLAlchemy models for payout accounts, audit trails and the job outbox."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class AcademyUser(Base):
    """Local projection of a marketplace academy owner."""

    __tablename__ = "academy_users"

    id = Column(String(50), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    mobile = Column(String(15), nullable=True)

    payout_accounts = relationship("PayoutAccount", back_populates="user", lazy="raise")

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or (self.email or "")


class PayoutAccount(Base):
    """
    An academy owner's payout account on the routing provider.

    The provider is the source of truth for activation; the columns here are a
    cached snapshot reconciled by the status synchronizer. Exactly one active
    account per user is enforced by a partial unique index, and every update
    is version-checked (optimistic locking).
    """

    __tablename__ = "payout_accounts"
    __table_args__ = (
        Index(
            "uq_payout_accounts_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        Index("ix_payout_accounts_status_active", "activation_status", "is_active"),
    )

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, index=True, default=_new_id)
    user_id = Column(String(50), ForeignKey("academy_users.id"), nullable=False, index=True)
    razorpay_account_id = Column(String(100), nullable=False, unique=True)

    kyc_details = Column(JSON, nullable=False)
    bank_information = Column(JSON, nullable=True)

    activation_status = Column(String(30), nullable=False, default="pending")
    activation_requirements = Column(JSON, nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    stakeholder_id = Column(String(100), nullable=True)
    product_configuration_id = Column(String(100), nullable=True)
    product_configuration_status = Column(String(20), nullable=True)  # "pending" | "configured"
    bank_details_status = Column(String(20), nullable=True)  # None | "pending" | "submitted"

    metadata_ = Column("metadata", JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("AcademyUser", back_populates="payout_accounts")

    __mapper_args__ = {"version_id_col": version}

    def to_record(self) -> dict[str, Any]:
        """Full storage record, internal fields included. Never return this to callers."""
        return {
            "_id": self.pk,
            "__v": self.version,
            "id": self.id,
            "user": self.user_id,
            "razorpay_account_id": self.razorpay_account_id,
            "kyc_details": dict(self.kyc_details) if self.kyc_details else self.kyc_details,
            "bank_information": dict(self.bank_information) if self.bank_information else None,
            "activation_status": self.activation_status,
            "activation_requirements": (
                list(self.activation_requirements) if self.activation_requirements is not None else None
            ),
            "rejection_reason": self.rejection_reason,
            "stakeholder_id": self.stakeholder_id,
            "product_configuration_id": self.product_configuration_id,
            "product_configuration_status": self.product_configuration_status,
            "bank_details_status": self.bank_details_status,
            "metadata": self.metadata_,
            "is_active": self.is_active,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class AuditTrail(Base):
    """
    Immutable audit trail entry.

    Every state-changing action on a payout account gets one entry. These are
    append-only and never modified.
    """

    __tablename__ = "audit_trails"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(60), nullable=False, index=True)
    scale = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(50), nullable=False, index=True)
    user_id = Column(String(50), nullable=True, index=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class OutboxJob(Base):
    """
    A durable unit of background work.

    Written in the same transaction as the state change that requires it and
    drained by the outbox worker, which retries with backoff and dead-letters
    after max_attempts.
    """

    __tablename__ = "outbox_jobs"
    __table_args__ = (
        Index("ix_outbox_jobs_due", "status", "next_attempt_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_type = Column(String(50), nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    payout_account_id = Column(String(36), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=5)
    next_attempt_at = Column(DateTime(timezone=True), default=_utcnow)
    locked_until = Column(DateTime(timezone=True), nullable=True)  # lease of the worker processing it
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
