from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Literal, Optional


Priority = Literal["low", "medium", "high"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TodoRecord(BaseModel):
    id: str
    title: str
    description: str = ""
    is_completed: bool = False
    is_system_generated: bool = False
    priority: Priority = "medium"
    created_at: str = Field(default_factory=_now_iso)
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None


class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    priority: Priority = "medium"
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_completed: Optional[bool] = None
    priority: Optional[Priority] = None


class TodoListResponse(BaseModel):
    todos: list[TodoRecord]
    active: int
    completed: int
