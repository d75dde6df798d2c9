from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional


FeedbackType = Literal["personal", "diet_chart"]


class FeedbackCreate(BaseModel):
    type: FeedbackType
    message: str = Field(..., min_length=1, max_length=4000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class FeedbackResponse(BaseModel):
    id: int
    patient_id: str
    patient_name: Optional[str] = None
    dietitian_id: str
    type: str
    message: str
    rating: Optional[int] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FeedbackInbox(BaseModel):
    personal: list[FeedbackResponse]
    diet_chart: list[FeedbackResponse]
    unread: int
