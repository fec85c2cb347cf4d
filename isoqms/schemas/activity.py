"""
Activity Log Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class ActivityLogResponse(BaseModel):
    id: str
    tenant_id: str
    user_id: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="details")
    ip_address: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
