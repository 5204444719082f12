"""Feedback listing for external calibration jobs."""

from typing import Optional

from fastapi import APIRouter, Depends

from service.context import ServiceContext, get_context

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.get("")
def list_feedback(
    business_id: Optional[str] = None,
    ctx: ServiceContext = Depends(get_context),
):
    records = ctx.feedback.records(business_id)
    return {
        "feedback": [r.to_dict() for r in records],
        "count": len(records),
    }
