"""Admin review endpoint: record a decision and feedback for a listing."""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from service.context import ServiceContext, get_context
from service.schemas.requests import ReviewBody

router = APIRouter(prefix="/businesses", tags=["Review"])


@router.post("/{business_id}/review")
def review_business(
    business_id: str,
    body: ReviewBody,
    x_admin_id: Optional[str] = Header(default=None),
    ctx: ServiceContext = Depends(get_context),
):
    """
    Apply an admin decision.

    Updates the listing, optionally adjusts the global confidence
    threshold and resolves duplicates, and always records feedback on
    the last automated recommendation.
    """
    outcome = ctx.reviews.review(business_id, body.to_request(), actor_id=x_admin_id)
    return {
        "success": True,
        "message": outcome.message,
        "result": outcome.to_dict(),
    }
