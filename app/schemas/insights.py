"""
Insight Schemas - Request and Response models for insights API
"""
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field

from app.models.insight import Insight


class GenerateInsightRequest(BaseModel):
    """Trigger generation after an entry was created"""
    user_id: str = Field(..., description="User ID")
    entry_id: Optional[str] = Field(None, description="Entry that was just created")
    entry_count: Optional[int] = Field(
        None, ge=1, description="User's entry count; counted from the store when omitted"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-123",
                "entry_id": "entry-456",
                "entry_count": 5,
            }
        }


class GenerateInsightResponse(BaseModel):
    """Generation result; insight is None when the count is not eligible"""
    generated: bool
    insight: Optional[Insight] = None


class DashboardMeta(BaseModel):
    total: int = 0
    unread: int = 0
    favorites: int = 0
    returned: int = 0


class DashboardResponse(BaseModel):
    """Latest visible insights"""
    insights: List[Insight] = Field(default_factory=list)
    meta: DashboardMeta = Field(default_factory=DashboardMeta)


class RegenerateResponse(BaseModel):
    """Regenerated insight plus the remaining monthly quota"""
    insight: Insight
    regenerations_remaining: int
    monthly_limit: int


class RegenerationAllowance(BaseModel):
    limit: int
    used: int
    remaining: int
    month: str = Field(..., description="YYYY-MM")
    per_insight_limit: int


class InsightStatsResponse(BaseModel):
    total_insights: int = 0
    unread_insights: int = 0
    favorite_insights: int = 0
    insights_by_category: Dict[str, int] = Field(default_factory=dict)
    total_entries: int = 0
    ai_usage: Optional[Dict[str, Any]] = None


class ServiceStatusResponse(BaseModel):
    """Provider cascade health"""
    primary_provider: str
    secondary_provider: str
    primary_status: str
    primary_last_failure: Optional[str] = None
    primary_cooldown_remaining: float = 0.0
    is_primary_available: bool
    regenerations_per_insight: int
    regenerations_per_month: int


class ErrorDetail(BaseModel):
    """Body of declined requests"""
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
