from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.auth import UserPrincipal, get_current_user, require_role
from ayurdiet.database import get_db
from ayurdiet.models.feedback import Feedback
from ayurdiet.schemas.feedback import FeedbackCreate, FeedbackInbox, FeedbackResponse

router = APIRouter()


@router.post("", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    body: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_role("patient")),
):
    """A patient writes to their own dietitian, about the dietitian or about the diet chart."""
    if not current_user.linked_dietitian_id:
        raise HTTPException(status_code=400, detail="You have not been assigned a dietitian yet")
    feedback = Feedback(
        patient_id=current_user.user_id,
        patient_name=current_user.name,
        dietitian_id=current_user.linked_dietitian_id,
        type=body.type,
        message=body.message,
        rating=body.rating,
    )
    db.add(feedback)
    await db.flush()
    await db.refresh(feedback)
    return FeedbackResponse.model_validate(feedback)


@router.get("", response_model=FeedbackInbox)
async def list_feedback(
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Dietitians get their inbox, patients the feedback they have sent, admins everything."""
    query = select(Feedback)
    if current_user.is_dietitian:
        query = query.where(Feedback.dietitian_id == current_user.user_id)
    elif current_user.is_patient:
        query = query.where(Feedback.patient_id == current_user.user_id)
    result = await db.execute(query.order_by(Feedback.created_at.desc(), Feedback.id.desc()))
    items = [FeedbackResponse.model_validate(f) for f in result.scalars().all()]

    return FeedbackInbox(
        personal=[f for f in items if f.type == "personal"],
        diet_chart=[f for f in items if f.type == "diet_chart"],
        unread=sum(1 for f in items if not f.is_read),
    )


@router.post("/{feedback_id}/read", response_model=FeedbackResponse)
async def mark_read(
    feedback_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_role("dietitian", "admin")),
):
    feedback = await db.get(Feedback, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")
    if not current_user.is_admin and feedback.dietitian_id != current_user.user_id:
        raise HTTPException(status_code=403, detail="Access denied: feedback belongs to another dietitian")
    feedback.is_read = True
    await db.flush()
    await db.refresh(feedback)
    return FeedbackResponse.model_validate(feedback)
