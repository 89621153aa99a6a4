"""Pydantic schemas for the activity (audit) log."""

from datetime import datetime

from pydantic import BaseModel


class ActivityLogOut(BaseModel):
    id: str
    user_id: str
    user_name: str
    action: str
    entity_type: str
    entity_id: str | None
    entity_code: str | None
    summary: str | None
    details: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}
