"""
Immutable audit trail for payout account operations.

Every state-changing action gets an append-only audit entry with:
  - Action type and scale (how critical the action is)
  - Subject entity (type + id)
  - Actor (the academy user)
  - Metadata (provider ids, status transitions, requirements)
  - Request origin (IP address, user agent) when known

Recording is best-effort: the entry is written in a SAVEPOINT so a failure
never poisons the caller's transaction, and is logged instead of raised.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.models.account import AuditTrail
from payout_accounts.models.enums import ActionScale, ActionType

logger = logging.getLogger("payout_accounts.audit")


@dataclass
class RequestContext:
    """Where a state-changing request came from."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


async def create_audit_trail(
    session: AsyncSession,
    action: ActionType,
    scale: ActionScale,
    description: str,
    entity_type: str,
    entity_id: str,
    user_id: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    context: Optional[RequestContext] = None,
) -> Optional[AuditTrail]:
    """
    Append an audit trail entry.

    Returns:
        The created AuditTrail record, or None if it could not be written.
    """
    entry = AuditTrail(
        action=action.value,
        scale=scale.value,
        description=description,
        entity_type=entity_type,
        entity_id=str(entity_id),
        user_id=user_id,
        metadata_=metadata,
        ip_address=context.ip_address if context else None,
        user_agent=context.user_agent if context else None,
    )
    try:
        async with session.begin_nested():
            session.add(entry)
    except SQLAlchemyError as e:
        logger.error("Failed to record audit trail %s for %s %s: %s", action.value, entity_type, entity_id, e)
        return None

    logger.info(
        "AUDIT | %s=%s user=%s action=%s scale=%s | %s",
        entity_type,
        entity_id,
        user_id or "-",
        action.value,
        scale.value,
        json.dumps(metadata, default=str)[:200] if metadata else "",
    )
    return entry
