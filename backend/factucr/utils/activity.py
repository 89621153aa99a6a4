"""Lightweight helper for recording activity log entries.

Usage:
    await log_activity(
        db, user, action="issued", entity_type="invoice",
        entity_id=invoice.id, entity_code=invoice.invoice_number,
        summary="Issued INV-008 to Ferretería El Clavo",
    )

The row is added to the current session and committed with the
enclosing transaction, so an audit entry exists exactly when the change
it describes does.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from factucr.models.public.user import User
from factucr.models.tenant.activity_log import ActivityLog


async def log_activity(
    db: AsyncSession,
    user: User,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    entity_code: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Append an activity log entry to the current DB session."""
    entry = ActivityLog(
        user_id=user.id,
        user_name=user.full_name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        summary=summary,
        details=details,
    )
    db.add(entry)
    return entry
