from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional


Gender = Literal["male", "female", "other"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very_active"]
FoodPreference = Literal["veg", "non_veg", "vegan", "eggetarian"]
AgniStrength = Literal["Sama", "Tikshna", "Manda", "Vishama"]
Season = Literal["spring", "summer", "monsoon", "autumn", "winter"]
Dosha = Literal["Vata", "Pitta", "Kapha", "Vata-Pitta", "Pitta-Kapha", "Vata-Kapha"]
ActiveStatus = Literal["active", "not_active"]

CUISINE_SUB_OPTIONS: dict[str, list[str]] = {
    "Indian": ["North Indian", "South Indian", "Gujarati", "Bengali", "Maharashtrian"],
    "Continental": ["Italian", "French", "Mediterranean"],
    "Asian": ["Chinese", "Thai", "Japanese"],
}

# Three-question dosha assessment; option a/b/c leans Vata/Pitta/Kapha.
DOSHA_ASSESSMENT_OPTIONS: dict[str, dict[str, str]] = {
    "body_frame": {
        "a": "Thin, light frame; finds it hard to gain weight",
        "b": "Medium, muscular build; gains and loses weight easily",
        "c": "Broad, sturdy frame; gains weight easily",
    },
    "skin_type": {
        "a": "Dry, rough, cool to the touch",
        "b": "Warm, oily, prone to redness or rashes",
        "c": "Thick, smooth, moist and cool",
    },
    "hair_type": {
        "a": "Dry, frizzy, thin",
        "b": "Fine, straight, early greying or thinning",
        "c": "Thick, wavy, lustrous",
    },
}


class Assessment(BaseModel):
    option: Literal["a", "b", "c"]
    description: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[Gender] = None
    weight_kg: Optional[float] = Field(default=None, gt=0)
    height_cm: Optional[float] = Field(default=None, gt=0)
    activity_level: Optional[ActivityLevel] = None
    food_preference: Optional[FoodPreference] = None
    cuisine_preference: Optional[str] = None
    sub_cuisine_preference: Optional[str] = None
    diseases: Optional[list[str]] = None
    body_frame: Optional[Assessment] = None
    skin_type: Optional[Assessment] = None
    hair_type: Optional[Assessment] = None
    agni_strength: Optional[AgniStrength] = None
    current_season: Optional[Season] = None
    dosha: Optional[Dosha] = None

    @field_validator("diseases", mode="before")
    @classmethod
    def _null_diseases_to_empty(cls, value):
        return [] if value is None else value


class StatusUpdate(BaseModel):
    active_status: ActiveStatus


class ProfileResponse(BaseModel):
    patient_id: str
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    activity_level: Optional[str] = None
    food_preference: Optional[str] = None
    cuisine_preference: Optional[str] = None
    sub_cuisine_preference: Optional[str] = None
    diseases: list[str] = []
    body_frame: Optional[dict] = None
    skin_type: Optional[dict] = None
    hair_type: Optional[dict] = None
    agni_strength: Optional[str] = None
    current_season: Optional[str] = None
    dosha: Optional[str] = None
    assigned_dietitian_id: Optional[str] = None
    active_status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("diseases", mode="before")
    @classmethod
    def _diseases_default(cls, value):
        return [] if value is None else value

    class Config:
        from_attributes = True


class CompletenessResponse(BaseModel):
    patient_id: str
    is_complete: bool
    missing_fields: list[str]
