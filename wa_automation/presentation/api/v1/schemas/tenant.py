"""Pydantic schemas for tenants"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from wa_automation.domain.enums import TenantStatus


class TenantCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-z0-9-]+$")
    name: str = Field(..., min_length=1, max_length=200)


class TenantResponse(BaseModel):
    id: str
    code: str
    name: str
    status: TenantStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
