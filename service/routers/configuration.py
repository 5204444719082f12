"""
Configuration API: /configuration
=================================

* ``GET /configuration``          : current configuration and version
* ``PUT /configuration``          : apply a partial update, or evaluate
                                    it in test mode
* ``GET /configuration/history``  : filtered, paginated change history
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from listingtrust.config import DEFAULT_PAGE_SIZE, HistoryQuery, query_history
from listingtrust.models import ChangeType, HistorySortField, SortOrder
from service.context import ServiceContext, get_context
from service.schemas.requests import ConfigurationUpdateBody

router = APIRouter(prefix="/configuration", tags=["Configuration"])


@router.get("")
def get_configuration(ctx: ServiceContext = Depends(get_context)):
    snapshot = ctx.config_store.get()
    return {
        "configuration": snapshot.as_dict(),
        "metadata": snapshot.metadata(),
        "version": snapshot.version,
    }


@router.put("")
def update_configuration(
    body: ConfigurationUpdateBody,
    x_admin_id: Optional[str] = Header(default=None),
    ctx: ServiceContext = Depends(get_context),
):
    """
    Update the configuration.

    With ``test_mode`` the merged configuration is validated and returned
    as a hypothetical ``<version>-test`` without being stored. Otherwise
    the change is applied as a new patch version; pass
    ``expected_version`` to fail with 409 if someone else wrote first.
    """
    result = ctx.config_store.update(
        body.configuration,
        actor=x_admin_id or "admin",
        reason=body.reason,
        test_mode=body.test_mode,
        expected_version=body.expected_version,
    )
    return {"success": True, **result.to_dict()}


@router.get("/history")
def get_configuration_history(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    modified_by: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    change_type: ChangeType = ChangeType.ALL,
    include_test_mode: bool = False,
    sort_by: HistorySortField = HistorySortField.TIMESTAMP,
    sort_order: SortOrder = SortOrder.DESC,
    ctx: ServiceContext = Depends(get_context),
):
    query = HistoryQuery(
        page=page,
        limit=limit,
        modified_by=modified_by,
        from_date=from_date,
        to_date=to_date,
        change_type=change_type,
        include_test_mode=include_test_mode,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = query_history(
        ctx.config_store.history(), query, trials=ctx.config_store.trials()
    )
    return {
        **result.to_dict(),
        "filters": query.to_dict(),
        "current_version": ctx.config_store.version,
    }
