# app/schemas/support/activity_schemas.py

from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from fastapi import Query


class ActivityFilters(BaseModel):
    actor: Optional[str] = Query(None)
    code: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at")
    sort_order: str = Query("desc")


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor: str
    code: str
    message: str
    created_at: datetime


class ActivityListData(BaseModel):
    total: int
    items: List[ActivityOut]
