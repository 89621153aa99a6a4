"""Company profile router: issuer data for electronic invoices.

Endpoints:
    GET /api/company/    Current profile (404 until configured)
    PUT /api/company/    Create or replace the profile
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import get_current_user, require_permission
from factucr.database import get_tenant_db
from factucr.middleware.exceptions import ResourceNotFoundError
from factucr.models.public.user import User
from factucr.models.tenant.company_profile import CompanyProfile
from factucr.schemas.company import CompanyProfileIn, CompanyProfileOut
from factucr.services.clave import normalize_legal_id
from factucr.utils.activity import log_activity

router = APIRouter()


async def _current_profile(db: AsyncSession) -> CompanyProfile | None:
    result = await db.execute(select(CompanyProfile).limit(1))
    return result.scalar_one_or_none()


@router.get("/", response_model=CompanyProfileOut)
async def get_company_profile(
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(get_current_user),
):
    profile = await _current_profile(db)
    if profile is None:
        raise ResourceNotFoundError("Company profile", "current tenant")
    return CompanyProfileOut.model_validate(profile)


@router.put("/", response_model=CompanyProfileOut)
async def upsert_company_profile(
    body: CompanyProfileIn,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("company.manage")),
):
    normalize_legal_id(body.legal_id)  # must be usable in a Clave

    profile = await _current_profile(db)
    action = "updated"
    if profile is None:
        profile = CompanyProfile(**body.model_dump())
        db.add(profile)
        action = "created"
    else:
        for key, value in body.model_dump().items():
            setattr(profile, key, value)
    await db.flush()

    await log_activity(
        db, user,
        action=action,
        entity_type="company_profile",
        entity_id=profile.id,
        entity_code=profile.legal_id,
        summary=f"Company profile {action}: {profile.business_name}",
    )
    return CompanyProfileOut.model_validate(profile)
