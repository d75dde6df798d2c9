from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.auth import UserPrincipal, require_role
from ayurdiet.database import get_db
from ayurdiet.models.diet_plan import DietPlan
from ayurdiet.models.feedback import Feedback
from ayurdiet.models.patient_profile import PatientProfile
from ayurdiet.models.user import User
from ayurdiet.services.completeness import is_profile_complete

router = APIRouter()


@router.get("/stats")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_role("admin")),
):
    role_rows = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role: count for role, count in role_rows.all()}

    assigned = await db.scalar(
        select(func.count(User.id)).where(User.role == "patient", User.linked_dietitian_id.is_not(None))
    ) or 0

    profiles = (await db.execute(select(PatientProfile))).scalars().all()
    active = [p for p in profiles if p.active_status == "active"]

    total_plans = await db.scalar(select(func.count(DietPlan.id))) or 0
    published_plans = await db.scalar(
        select(func.count(DietPlan.id)).where(DietPlan.is_published.is_(True))
    ) or 0
    unread_feedback = await db.scalar(
        select(func.count(Feedback.id)).where(Feedback.is_read.is_(False))
    ) or 0

    return {
        "users": {
            "admins": by_role.get("admin", 0),
            "dietitians": by_role.get("dietitian", 0),
            "patients": by_role.get("patient", 0),
        },
        "patients": {
            "assigned": assigned,
            "unassigned": by_role.get("patient", 0) - assigned,
            "profiles": len(profiles),
            "active": len(active),
            "profiles_complete": sum(1 for p in profiles if is_profile_complete(p)),
        },
        "diet_plans": {"total": total_plans, "published": published_plans},
        "feedback": {"unread": unread_feedback},
    }
