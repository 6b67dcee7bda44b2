"""
Pattern Profile Model - behavioral profile derived from a user's entries
Recomputed on every generation, never persisted as a whole
"""
from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.utils.date_helpers import utc_now

# Placeholder dominant emotion when nothing has been recorded yet
DEFAULT_DOMINANT_EMOTION = "Happy"


class EmotionStat(BaseModel):
    """Per-label emotion statistics"""
    count: int = 0
    percentage: int = 0
    recent_count: int = 0
    trend: str = Field(default="stable", description="increasing | stable")


class FamilyStat(BaseModel):
    count: int = 0
    percentage: int = 0


class EmotionalVelocity(BaseModel):
    velocity: str = Field(default="unknown", description="rapid | moderate | slow | stable | unknown")
    description: str = "Not enough data yet"
    change_rate: Optional[int] = Field(default=None, description="Percent of adjacent pairs that changed")


class TrendComparison(BaseModel):
    """Older half vs newer half comparison of a numeric signal"""
    trend: str = Field(default="emerging", description="deepening | shortening | improving | declining | stable | emerging")
    description: str = "Building your writing profile"
    early_avg: Optional[float] = None
    recent_avg: Optional[float] = None
    change: Optional[float] = None


class GapDetails(BaseModel):
    days: int
    before_emotion: Optional[str] = None
    after_emotion: Optional[str] = None


class SilenceDetection(BaseModel):
    has_silences: bool = False
    longest_gap: int = 0
    recent_gap: Optional[int] = None
    longest_gap_details: Optional[GapDetails] = None


class EmotionalComparison(BaseModel):
    older_positive_ratio: int
    newer_positive_ratio: int
    older_negative_ratio: int
    newer_negative_ratio: int
    shift: int
    message: Optional[str] = None


class WritingComparison(BaseModel):
    older_avg_words: int
    newer_avg_words: int
    change: int
    message: Optional[str] = None


class PastVsPresent(BaseModel):
    has_comparison: bool = False
    emotional: Optional[EmotionalComparison] = None
    writing: Optional[WritingComparison] = None


class RecentEntrySummary(BaseModel):
    """Condensed view of a recent entry for prompts"""
    title: str = ""
    summary: str = ""
    emotion: Optional[str] = None
    emotion_family: str = "neutral"
    themes: List[str] = Field(default_factory=list)
    quality: int = 0
    has_text: bool = False
    has_images: bool = False
    word_count: int = 0
    created_days_ago: int = 0


class PatternProfile(BaseModel):
    """Aggregated behavioral profile"""

    total_entries: int = 0
    recent_entry_count: int = 0

    # Emotions
    dominant_emotion: str = DEFAULT_DOMINANT_EMOTION
    emotion_breakdown: Dict[str, EmotionStat] = Field(default_factory=dict)
    emotion_family_distribution: Dict[str, FamilyStat] = Field(default_factory=dict)
    emotion_diversity: int = 0
    emotional_shift: str = "stable"
    emotional_velocity: EmotionalVelocity = Field(default_factory=EmotionalVelocity)

    # Writing
    writing_style: str = Field(default="brief", description="brief | conversational | reflective | detailed")
    avg_word_count: int = 0
    content_quality: int = 0
    writing_evolution: TrendComparison = Field(default_factory=TrendComparison)
    quality_trend: TrendComparison = Field(
        default_factory=lambda: TrendComparison(description="Building your quality profile")
    )

    # Themes and content
    top_themes: List[str] = Field(default_factory=list)
    has_images: bool = False
    image_usage_percent: int = 0
    content_complexity_avg: float = 0.0

    # Temporal
    active_time: str = "evening"
    writing_frequency: str = "new"
    current_streak: int = 0
    longest_streak: int = 0
    silence_detection: SilenceDetection = Field(default_factory=SilenceDetection)

    # Deeper context
    past_vs_present: PastVsPresent = Field(default_factory=PastVsPresent)
    recent_memories: List[RecentEntrySummary] = Field(default_factory=list)

    days_since_first_entry: int = 0
    analysis_date: datetime = Field(default_factory=utc_now)

    @classmethod
    def default(cls, now: Optional[datetime] = None) -> "PatternProfile":
        """Profile for a user with no usable entries"""
        return cls(analysis_date=now or utc_now())

    @property
    def top_emotions(self) -> List[str]:
        """Emotion labels ordered by count"""
        return [
            label for label, _ in sorted(
                self.emotion_breakdown.items(), key=lambda item: item[1].count, reverse=True
            )
        ]

    @property
    def top_families(self) -> List[str]:
        return [
            family for family, _ in sorted(
                self.emotion_family_distribution.items(), key=lambda item: item[1].count, reverse=True
            )
        ]
