"""
User Model - insight preferences and AI usage counters kept on the user record
"""
from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field
import uuid

from app.models.insight import PRIMARY_MODEL, SECONDARY_MODEL, STATIC_MODEL
from app.utils.date_helpers import month_key, utc_now

MILESTONE_COUNTS = (1, 5, 10, 15, 25, 50, 100, 200, 500)


class InsightFrequency(str, Enum):
    EVERY_ENTRY = "every_entry"
    EVERY_5 = "every_5"
    EVERY_10 = "every_10"
    MILESTONES_ONLY = "milestones_only"


class InsightsPreferences(BaseModel):
    """When the user wants to receive insights"""
    enabled: bool = True
    frequency: InsightFrequency = InsightFrequency.EVERY_5
    last_notification_at: Optional[datetime] = None
    notification_count: int = 0

    class Config:
        json_schema_extra = {
            "example": {
                "enabled": True,
                "frequency": "every_5",
                "notification_count": 2,
            }
        }

    def should_receive_insight(self, entry_count: int) -> bool:
        """Eligibility of an entry count under these preferences"""
        if not self.enabled or entry_count < 1:
            return False
        if self.frequency == InsightFrequency.EVERY_ENTRY:
            return True
        if self.frequency == InsightFrequency.EVERY_5:
            return entry_count == 1 or entry_count % 5 == 0
        if self.frequency == InsightFrequency.EVERY_10:
            return entry_count == 1 or entry_count % 10 == 0
        return entry_count in MILESTONE_COUNTS

    def record_notification(self, now: datetime):
        self.last_notification_at = now
        self.notification_count += 1


class MonthlyRegenerations(BaseModel):
    """Regenerations used in the current calendar month"""
    count: int = 0
    month: Optional[str] = Field(default=None, description="YYYY-MM")
    last_reset_at: Optional[datetime] = None

    def roll_over(self, now: datetime):
        """Reset the counter when the calendar month changed"""
        current = month_key(now)
        if self.month != current:
            self.count = 0
            self.month = current
            self.last_reset_at = now


class AIUsageTracking(BaseModel):
    """Per-user usage counters"""
    total_ai_insights: int = 0
    primary_insights: int = 0
    secondary_insights: int = 0
    static_insights: int = 0
    last_model_used: Optional[str] = None
    last_ai_insight_at: Optional[datetime] = None
    total_tokens_used: int = 0
    total_cost_incurred: float = 0.0
    monthly_regenerations: MonthlyRegenerations = Field(default_factory=MonthlyRegenerations)

    def track_usage(self, model: str, tokens_used: Optional[int], cost: float, now: datetime):
        """Count one produced insight"""
        self.last_model_used = model
        if model == STATIC_MODEL:
            self.static_insights += 1
            return

        self.total_ai_insights += 1
        self.last_ai_insight_at = now
        if model == PRIMARY_MODEL:
            self.primary_insights += 1
            self.total_tokens_used += tokens_used or 0
            self.total_cost_incurred = round(self.total_cost_incurred + (cost or 0.0), 6)
        elif model == SECONDARY_MODEL:
            self.secondary_insights += 1

    def remaining_regenerations(self, now: datetime, limit: int) -> int:
        self.monthly_regenerations.roll_over(now)
        return max(0, limit - self.monthly_regenerations.count)

    def can_regenerate_this_month(self, now: datetime, limit: int) -> bool:
        return self.remaining_regenerations(now, limit) > 0

    def track_regeneration(self, now: datetime):
        self.monthly_regenerations.roll_over(now)
        self.monthly_regenerations.count += 1


class PatternCache(BaseModel):
    """Last computed profile summary"""
    total_entries: int = 0
    dominant_emotion: Optional[str] = None
    average_word_count: int = 0
    emotion_diversity: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_calculated_at: Optional[datetime] = None


class User(BaseModel):
    """User record fields used by the insight pipeline"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="User ID")
    nickname: str = Field(default="", description="Display name")
    insights_preferences: InsightsPreferences = Field(default_factory=InsightsPreferences)
    ai_usage: AIUsageTracking = Field(default_factory=AIUsageTracking)
    pattern_cache: PatternCache = Field(default_factory=PatternCache)
    created_at: datetime = Field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls.model_validate(data)
