"""
Insight Model - generated observations about a user's journaling patterns
"""
from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field
import uuid

from app.utils.date_helpers import utc_now

MAX_TITLE_LENGTH = 100
MAX_MESSAGE_LENGTH = 500

# Model tags recorded in generation metadata and usage counters
PRIMARY_MODEL = "gpt-4o-mini"
SECONDARY_MODEL = "llama-3.2"
STATIC_MODEL = "static"


class InsightType(str, Enum):
    MILESTONE = "milestone"
    EMOTION_PATTERN = "emotion_pattern"
    WRITING_PATTERN = "writing_pattern"
    STREAK = "streak"
    DIVERSITY = "diversity"
    COMPLEXITY = "complexity"
    CONSISTENCY = "consistency"


class InsightCategory(str, Enum):
    ACHIEVEMENT = "achievement"
    DISCOVERY = "discovery"
    ENCOURAGEMENT = "encouragement"
    TREND = "trend"


class InsightClassification(BaseModel):
    """Presentation metadata picked from the entry count and profile"""
    type: InsightType
    category: InsightCategory
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    icon: str
    color: str
    priority: int = Field(..., ge=1, le=5)


class PatternSnapshot(BaseModel):
    """Small slice of the profile stored alongside the insight"""
    dominant_emotion: Optional[str] = None
    entry_count: int = 0
    average_word_count: int = 0
    streak_days: int = 0
    emotion_diversity: int = 0
    content_quality: int = 0


class GenerationMetadata(BaseModel):
    """How the insight text was produced"""
    model: str = Field(..., description="gpt-4o-mini | llama-3.2 | static")
    tokens_used: Optional[int] = None
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    generation_time_ms: int = 0
    word_count: int = 0
    truncated: bool = False
    fallback_reason: Optional[str] = None
    regenerate_count: int = Field(default=0, ge=0)


class Insight(BaseModel):
    """Persisted insight"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Insight ID")
    user_id: str = Field(..., description="Owner user ID")
    trigger_entry_count: int = Field(..., ge=1, description="Entry count that triggered generation")
    trigger_entry_id: Optional[str] = Field(default=None, description="Entry that triggered generation")

    type: InsightType
    category: InsightCategory
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    icon: str = "✨"
    color: str = "#8B5CF6"
    priority: int = Field(default=3, ge=1, le=5)

    is_read: bool = False
    read_at: Optional[datetime] = None
    is_favorited: bool = False
    favorited_at: Optional[datetime] = None
    is_visible: bool = True

    pattern_data: PatternSnapshot = Field(default_factory=PatternSnapshot)
    generation_metadata: GenerationMetadata
    is_ai_generated: bool = True

    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-123",
                "trigger_entry_count": 5,
                "type": "emotion_pattern",
                "category": "discovery",
                "title": "Your Emotional Patterns Are Emerging! 🎭",
                "message": "Across your first five memories, calm keeps returning...",
                "icon": "🎭",
                "color": "#8B5CF6",
                "priority": 4,
                "generation_metadata": {"model": "llama-3.2", "word_count": 92},
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Insight":
        return cls.model_validate(data)
