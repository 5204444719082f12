"""Verification endpoint: run the trust evaluation for one listing."""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from service.context import ServiceContext, get_context
from service.schemas.requests import VerifyBody

router = APIRouter(prefix="/businesses", tags=["Verification"])


@router.post("/{business_id}/verify")
def verify_business(
    business_id: str,
    body: Optional[VerifyBody] = None,
    x_admin_id: Optional[str] = Header(default=None),
    ctx: ServiceContext = Depends(get_context),
):
    """
    Verify a business listing.

    Returns the full verification result: analyzer outputs, duplicate
    analysis, confidence, decision, rationale, recommended actions,
    manual override options and the configuration version used.
    Unknown ids return 404 before any analysis runs.
    """
    options = (body or VerifyBody()).to_options()
    result = ctx.engine.verify(business_id, options, actor_id=x_admin_id)
    return {
        "success": True,
        "message": f"Verification completed for {result.business_name}",
        "result": result.to_dict(),
    }
