from ayurdiet.models.user import User
from ayurdiet.models.patient_profile import PatientProfile
from ayurdiet.models.diet_plan import DietPlan
from ayurdiet.models.feedback import Feedback

__all__ = ["User", "PatientProfile", "DietPlan", "Feedback"]
