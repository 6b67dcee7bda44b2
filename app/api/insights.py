"""
Insights API - dashboard, generation, regeneration and read state

Endpoints for:
- Listing the latest insights for the dashboard
- Triggering generation after a new entry
- Regenerating an insight within the monthly and per-insight caps
- Provider cascade status
"""
from typing import Any, Dict
from fastapi import APIRouter, HTTPException, Query

from app.schemas.insights import (
    DashboardMeta,
    DashboardResponse,
    ErrorDetail,
    GenerateInsightRequest,
    GenerateInsightResponse,
    InsightStatsResponse,
    RegenerateResponse,
    RegenerationAllowance,
    ServiceStatusResponse,
)
from app.models.insight import Insight
from app.services.db import db_service
from app.services.insight_service import (
    DASHBOARD_MAX_LIMIT,
    RegenerationStatus,
    insight_service,
)

router = APIRouter()

_DECLINE_STATUS_CODES = {
    RegenerationStatus.NOT_FOUND: 404,
    RegenerationStatus.MONTHLY_LIMIT: 429,
    RegenerationStatus.PER_INSIGHT_LIMIT: 429,
    RegenerationStatus.FAILED: 500,
}


def _error(status_code: int, code: str, message: str, **details: Any) -> HTTPException:
    body = ErrorDetail(code=code, message=message, details=details)
    return HTTPException(status_code=status_code, detail=body.model_dump())


@router.get("/insights/dashboard", response_model=DashboardResponse)
async def get_dashboard_insights(
    user_id: str = Query(..., description="User ID"),
    limit: int = Query(10, ge=1, le=DASHBOARD_MAX_LIMIT),
    unread_only: bool = Query(False)
):
    """Latest visible insights, newest first"""
    insights = await insight_service.get_user_dashboard_insights(user_id, limit, unread_only)
    counts = await db_service.get_insight_counts(user_id)
    return DashboardResponse(
        insights=insights,
        meta=DashboardMeta(
            total=counts["total"],
            unread=counts["unread"],
            favorites=counts["favorites"],
            returned=len(insights),
        ),
    )


@router.post("/insights/generate", response_model=GenerateInsightResponse)
async def generate_insight(request: GenerateInsightRequest):
    """
    Generate the insight for the user's current entry count

    Repeated calls for the same count return the stored insight.

    **Example:**
    ```json
    {"user_id": "user-123", "entry_id": "entry-456", "entry_count": 5}
    ```
    """
    user = await db_service.get_user(request.user_id)
    if not user:
        raise _error(404, "USER_NOT_FOUND", "User not found")

    if request.entry_id:
        entry = await db_service.get_entry(request.entry_id, request.user_id)
        if not entry:
            raise _error(404, "ENTRY_NOT_FOUND", "Entry not found")

    entry_count = request.entry_count or await db_service.count_entries(request.user_id)
    if entry_count < 1:
        raise _error(400, "NO_ENTRIES", "User has no entries yet")

    insight = await insight_service.generate_insight_for_user(
        request.user_id, entry_count, request.entry_id
    )
    return GenerateInsightResponse(generated=insight is not None, insight=insight)


@router.post("/insights/{insight_id}/regenerate", response_model=RegenerateResponse)
async def regenerate_insight(insight_id: str, user_id: str = Query(..., description="User ID")):
    """
    Regenerate an insight's message

    Declines with 404 when the insight is unknown and 429 when the monthly or
    per-insight cap is reached.
    """
    outcome = await insight_service.regenerate_insight(insight_id, user_id)
    if not outcome.success:
        details: Dict[str, Any] = {}
        if outcome.limit is not None:
            details = {"limit": outcome.limit, "remaining": outcome.remaining}
        raise _error(
            _DECLINE_STATUS_CODES[outcome.status],
            outcome.status.value.upper(),
            outcome.message,
            **details,
        )

    return RegenerateResponse(
        insight=outcome.insight,
        regenerations_remaining=outcome.remaining,
        monthly_limit=outcome.limit,
    )


@router.patch("/insights/{insight_id}/read", response_model=Insight)
async def mark_insight_read(insight_id: str, user_id: str = Query(..., description="User ID")):
    """Mark an insight as read"""
    insight = await insight_service.mark_insight_read(insight_id, user_id)
    if insight is None:
        raise _error(404, "NOT_FOUND", "Insight not found")
    return insight


@router.patch("/insights/{insight_id}/favorite", response_model=Insight)
async def toggle_insight_favorite(insight_id: str, user_id: str = Query(..., description="User ID")):
    """Toggle an insight's favorite flag"""
    insight = await insight_service.toggle_insight_favorite(insight_id, user_id)
    if insight is None:
        raise _error(404, "NOT_FOUND", "Insight not found")
    return insight


@router.get("/insights/stats", response_model=InsightStatsResponse)
async def get_insight_stats(user_id: str = Query(..., description="User ID")):
    """Insight totals and AI usage counters"""
    return await insight_service.get_insight_stats(user_id)


@router.get("/insights/regenerations", response_model=RegenerationAllowance)
async def get_regeneration_allowance(user_id: str = Query(..., description="User ID")):
    """Remaining regenerations this calendar month"""
    allowance = await insight_service.get_regeneration_allowance(user_id)
    if allowance is None:
        raise _error(404, "USER_NOT_FOUND", "User not found")
    return allowance


@router.get("/insights/service-status", response_model=ServiceStatusResponse)
async def get_service_status():
    """Primary provider health and cooldown"""
    return insight_service.get_service_status()
