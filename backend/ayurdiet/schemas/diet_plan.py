from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Any


class DietPlanResponse(BaseModel):
    id: int
    patient_id: str
    patient_name: Optional[str] = None
    plan: Optional[dict[str, Any]] = None
    chart: Optional[dict[str, Any]] = None
    is_published: bool = False
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GenerateResponse(BaseModel):
    patient_id: str
    success: bool
    status: Optional[str] = None
    error: Optional[str] = None
    details: dict[str, Any] = {}
