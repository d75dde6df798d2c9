from sqlalchemy import Column, String, Integer, Float, DateTime, JSON
from sqlalchemy.sql import func
from ayurdiet.database import Base


class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    patient_id = Column(String(128), primary_key=True)
    name = Column(String(200))

    # Demographic / physiological
    age = Column(Integer)
    gender = Column(String(10))
    weight_kg = Column(Float)
    height_cm = Column(Float)
    activity_level = Column(String(30))

    # Dietary preference
    food_preference = Column(String(30))
    cuisine_preference = Column(String(50))
    sub_cuisine_preference = Column(String(50))
    diseases = Column(JSON, default=list)

    # Ayurvedic assessment; body_frame/skin_type/hair_type hold {"option", "description"}
    body_frame = Column(JSON)
    skin_type = Column(JSON)
    hair_type = Column(JSON)
    agni_strength = Column(String(20))
    current_season = Column(String(20))
    dosha = Column(String(20))

    assigned_dietitian_id = Column(String(128), index=True)
    active_status = Column(String(20), default="active")  # "active" | "not_active"

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
