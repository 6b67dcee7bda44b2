"""
Pattern Analysis Service - builds a PatternProfile from a user's entries
"""
import logging
from datetime import datetime
from typing import List, Optional

from app.models.entry import Entry
from app.models.pattern_profile import PatternProfile
from app.services.db import DatabaseService, db_service
from app.services.emotion_analysis import (
    analyze_emotions, calculate_emotional_velocity, detect_emotional_shift,
)
from app.services.premium_analysis import compare_past_vs_present, summarize_recent_entries
from app.services.temporal_analysis import (
    analyze_temporal_patterns, calculate_streaks, detect_silences,
)
from app.services.theme_analysis import analyze_themes
from app.services.writing_analysis import (
    analyze_quality_trend, analyze_writing_evolution, analyze_writing_style,
)
from app.utils.date_helpers import Clock, days_between, utc_now
from app.utils.logger import log_duration

logger = logging.getLogger("patterns")

# Entry count → entry count of the previous insight milestone
MILESTONE_SCHEDULE = {
    1: 0, 5: 1, 10: 5, 15: 10, 20: 15, 25: 20,
    30: 25, 35: 30, 40: 35, 45: 40, 50: 45,
}


def get_last_insight_milestone(entry_count: int) -> int:
    """Entry count at which the previous insight would have been produced"""
    if entry_count in MILESTONE_SCHEDULE:
        return MILESTONE_SCHEDULE[entry_count]
    if entry_count > 50 and entry_count % 5 == 0:
        return entry_count - 5
    return max(0, entry_count - 5)


def build_profile(entries: List[Entry], entry_count: int, now: datetime) -> PatternProfile:
    """
    Compose every analyzer into one profile

    Args:
        entries: All of the user's entries, newest first
        entry_count: Entry count that triggered the analysis
        now: Analysis time (UTC)

    Returns:
        PatternProfile; the default profile when there are no entries
    """
    if not entries:
        return PatternProfile.default(now)

    window = max(0, entry_count - get_last_insight_milestone(entry_count))
    recent = entries[:window]

    emotions = analyze_emotions(entries, recent)
    writing = analyze_writing_style(entries)
    themes = analyze_themes(entries)
    streaks = calculate_streaks(entries, now.date())
    temporal = analyze_temporal_patterns(entries, now)
    oldest = min(entry.created_at for entry in entries)

    return PatternProfile(
        total_entries=len(entries),
        recent_entry_count=len(recent),
        dominant_emotion=emotions.dominant_emotion,
        emotion_breakdown=emotions.breakdown,
        emotion_family_distribution=emotions.family_distribution,
        emotion_diversity=emotions.diversity,
        emotional_shift=detect_emotional_shift(entries, recent),
        emotional_velocity=calculate_emotional_velocity(entries),
        writing_style=writing.style,
        avg_word_count=writing.avg_word_count,
        content_quality=writing.content_quality,
        writing_evolution=analyze_writing_evolution(entries),
        quality_trend=analyze_quality_trend(entries),
        top_themes=themes.top_themes,
        has_images=themes.has_images,
        image_usage_percent=themes.image_usage_percent,
        content_complexity_avg=themes.content_complexity_avg,
        active_time=temporal.active_time,
        writing_frequency=temporal.writing_frequency,
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        silence_detection=detect_silences(entries),
        past_vs_present=compare_past_vs_present(entries, entry_count),
        recent_memories=summarize_recent_entries(recent, now),
        days_since_first_entry=max(0, days_between(oldest, now)),
        analysis_date=now,
    )


class PatternAnalysisService:
    """Loads entries from the store and analyzes them"""

    def __init__(self, db: Optional[DatabaseService] = None, clock: Optional[Clock] = None):
        self.db = db or db_service
        self.clock = clock or utc_now

    async def analyze_user_patterns(self, user_id: str, entry_count: int) -> PatternProfile:
        """
        Build the profile for a user

        Store failures propagate to the caller.
        """
        rows = await self.db.get_entries_for_user(user_id)
        entries = [Entry.model_validate(row) for row in rows]

        with log_duration(logger, f"Pattern analysis for {user_id} ({len(entries)} entries)"):
            profile = build_profile(entries, entry_count, self.clock())

        logger.debug(
            f"Profile for {user_id}: dominant={profile.dominant_emotion} "
            f"style={profile.writing_style} streak={profile.current_streak}"
        )
        return profile


# Global pattern analysis service
pattern_analysis_service = PatternAnalysisService()
