"""
Entry Model - a journal memory as read from the store
"""
import re
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field
import uuid

from app.utils.date_helpers import entry_day, utc_now

# Leading emoji, symbols, digits and underscores before the first letter
_LEADING_DECORATION = re.compile(r"^[\W\d_]+")


def clean_emotion_label(label: Optional[str]) -> str:
    """Strip a leading emoji/decoration from an emotion label"""
    if not label:
        return ""
    return _LEADING_DECORATION.sub("", label).strip()


class Entry(BaseModel):
    """Journal entry (memory)"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Entry ID")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(default="", description="Entry title")
    text: str = Field(default="", description="Entry body text")
    emotion: Optional[str] = Field(default=None, description="Emotion label, may start with an emoji")
    intensity: Optional[int] = Field(default=None, ge=1, le=10, description="Emotion intensity")
    occurred_on: Optional[date] = Field(default=None, description="Day the memory happened")
    has_images: bool = Field(default=False, description="Whether images are attached")
    complexity: float = Field(default=0.0, ge=0, description="Content complexity score")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time (UTC)")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-123",
                "title": "Morning walk",
                "text": "Walked along the river before work and felt calm.",
                "emotion": "😌 Calm",
                "intensity": 6,
                "occurred_on": "2026-10-18",
                "has_images": False,
            }
        }

    @property
    def clean_emotion(self) -> str:
        return clean_emotion_label(self.emotion)

    @property
    def full_text(self) -> str:
        """Title and body joined"""
        return f"{self.title or ''} {self.text or ''}".strip()

    @property
    def word_count(self) -> int:
        return len((self.text or "").split())

    @property
    def day(self) -> date:
        return entry_day(self.created_at, self.occurred_on)
