"""Activity log router (read-only audit trail).

Endpoints:
    GET /api/activity/    Entries newest first, filterable by entity and action
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import require_permission
from factucr.database import get_tenant_db
from factucr.models.public.user import User
from factucr.models.tenant.activity_log import ActivityLog
from factucr.schemas.activity import ActivityLogOut
from factucr.schemas.common import PaginatedResponse

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[ActivityLogOut])
async def list_activity(
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("audit.read")),
):
    base_stmt = select(ActivityLog)
    if entity_type:
        base_stmt = base_stmt.where(ActivityLog.entity_type == entity_type)
    if entity_id:
        base_stmt = base_stmt.where(ActivityLog.entity_id == entity_id)
    if action:
        base_stmt = base_stmt.where(ActivityLog.action == action)

    total = await db.scalar(select(func.count()).select_from(base_stmt.subquery())) or 0
    result = await db.execute(
        base_stmt.order_by(ActivityLog.created_at.desc()).limit(limit).offset(offset)
    )
    return PaginatedResponse(
        items=[ActivityLogOut.model_validate(a) for a in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )
