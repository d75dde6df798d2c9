from enum import Enum
from typing import Any, Optional
from ayurdiet.services.completeness import read_field


class AssignmentDecision(str, Enum):
    ALLOWED = "allowed"
    ALREADY_ASSIGNED = "already_assigned"
    ASSIGNED_ELSEWHERE = "assigned_elsewhere"


def current_dietitian_id(patient: Any) -> Optional[str]:
    return read_field(patient, "linked_dietitian_id") or None


def assignment_decision(patient: Any, requesting_dietitian_id: str) -> AssignmentDecision:
    """
    Decide whether `requesting_dietitian_id` may link this patient.

    A patient has at most one dietitian. Must be evaluated against a fresh read
    right before every assignment attempt.
    """
    holder = current_dietitian_id(patient)
    if holder is None:
        # Flag without a back-reference: someone holds the patient, we just don't know who.
        if read_field(patient, "is_assigned_to_dietitian"):
            return AssignmentDecision.ASSIGNED_ELSEWHERE
        return AssignmentDecision.ALLOWED
    if holder == requesting_dietitian_id:
        return AssignmentDecision.ALREADY_ASSIGNED
    return AssignmentDecision.ASSIGNED_ELSEWHERE


def can_assign(patient: Any, requesting_dietitian_id: str) -> bool:
    return assignment_decision(patient, requesting_dietitian_id) is AssignmentDecision.ALLOWED
