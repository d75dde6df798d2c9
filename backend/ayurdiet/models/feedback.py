from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
from ayurdiet.database import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(128), nullable=False, index=True)
    patient_name = Column(String(200))
    dietitian_id = Column(String(128), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # "personal" | "diet_chart"
    message = Column(Text, nullable=False)
    rating = Column(Integer)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
