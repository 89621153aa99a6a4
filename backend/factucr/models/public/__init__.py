"""Public-schema models (shared across all tenants)."""

from factucr.models.public.enterprise import Enterprise
from factucr.models.public.user import User, UserRole

__all__ = ["Enterprise", "User", "UserRole"]
