from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from ayurdiet.database import Base


class DietPlan(Base):
    __tablename__ = "diet_plans"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(128), nullable=False, index=True)
    patient_name = Column(String(200))
    plan = Column(JSON)   # meals + daily totals + recommendations/restrictions
    chart = Column(JSON)  # dosha chart: chartUrl, foods, lifestyle
    is_published = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    published_at = Column(DateTime(timezone=True))
