"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user         → decode JWT, load user from DB, return User
  require_permission(...)  → restrict to specific granular permissions
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.jwt import decode_token
from factucr.auth.permissions import has_permission
from factucr.database import get_db
from factucr.models.public.user import User

# Tokens come from the identity service; the URL only feeds the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT, load the user from the public schema, and return it.

    Also stashes the decoded payload on the user object as `_token_payload`
    so downstream deps can read claims (permissions, tenant) without
    re-decoding.
    """
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    user._token_payload = payload  # type: ignore[attr-defined]
    return user


# ── Permission-based access control ─────────────────────────

def require_permission(*perms: str):
    """Dependency factory: restrict to users who hold ALL listed permissions.

    Reads permissions from the JWT claims, so this is a zero-DB-hit check
    on top of get_current_user.

    Usage:
        @router.post("/{invoice_id}/issue")
        async def issue(user: User = Depends(require_permission("invoice.issue"))):
            ...
    """
    async def _check(user: User = Depends(get_current_user)) -> User:
        payload: dict = getattr(user, "_token_payload", {})
        user_perms: list[str] = payload.get("permissions", [])

        missing = [p for p in perms if not has_permission(user_perms, p)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return user

    return _check
