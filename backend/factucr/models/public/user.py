import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from factucr.database import PublicBase


class UserRole(str, enum.Enum):
    ADMINISTRATOR = "administrator"
    BILLING_CLERK = "billing_clerk"
    ACCOUNTANT = "accountant"


class User(PublicBase):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole), default=UserRole.BILLING_CLERK)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Enterprise link
    enterprise_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("enterprises.id")
    )

    # Granular RBAC: per-user overrides on top of role defaults.
    # JSON dict of {"permission.name": true/false}.
    # null = use role defaults only.
    custom_permissions: Mapped[dict | None] = mapped_column(JSON, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    enterprise = relationship("Enterprise", back_populates="users")
