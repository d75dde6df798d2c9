from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional


Role = Literal["admin", "dietitian", "patient"]
# Admins are created by seeding or scripts, never through public signup.
SelfServiceRole = Literal["dietitian", "patient"]


class SignupRequest(BaseModel):
    id_token: str = Field(..., min_length=1, description="ID token issued by the identity provider")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    role: SelfServiceRole = "patient"


class TokenRequest(BaseModel):
    id_token: str = Field(..., min_length=1, description="ID token issued by the identity provider")


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    linked_patient_ids: list[str] = []
    linked_dietitian_id: Optional[str] = None
    is_assigned_to_dietitian: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    redirect: str
    user: UserResponse


class DietitianCard(BaseModel):
    id: str
    name: str
    profile_image: Optional[str] = None
    specialization: Optional[str] = None
    years_of_experience: int = 0
    patients_served: int = 0
    is_verified: bool = False
    rating: float = 0


class PatientListItem(BaseModel):
    id: str
    name: str
    email: str
    is_added: bool
    is_assigned_elsewhere: bool
    dosha: Optional[str] = None
    agni_strength: Optional[str] = None
    age: Optional[int] = None
    active_status: Optional[str] = None
    profile_complete: bool = False


class PatientListResponse(BaseModel):
    patients: list[PatientListItem]
    total: int
