from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from ayurdiet.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)  # identity handle from the auth provider
    email = Column(String(254), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # "admin" | "dietitian" | "patient"

    # Dietitian side of the link
    linked_patient_ids = Column(JSON, default=list)
    # Patient side of the link
    linked_dietitian_id = Column(String(128), nullable=True, index=True)
    is_assigned_to_dietitian = Column(Boolean, default=False)

    # Dietitian card
    profile_image = Column(String(500))
    specialization = Column(String(200))
    years_of_experience = Column(Integer, default=0)
    is_verified = Column(Boolean, default=False)
    rating = Column(Float, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
