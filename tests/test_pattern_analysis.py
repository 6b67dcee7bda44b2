"""
Test pattern analysis
"""
from datetime import date

import pytest
from unittest.mock import AsyncMock, MagicMock

from conftest import NOW, daily_entries, make_entry, seed_user
from app.models.pattern_profile import DEFAULT_DOMINANT_EMOTION
from app.services.pattern_analysis import (
    PatternAnalysisService, build_profile, get_last_insight_milestone,
)
from app.services.temporal_analysis import calculate_streaks, detect_silences, time_of_day
from app.services.emotion_analysis import (
    analyze_emotions, calculate_emotional_velocity, detect_emotional_shift,
)
from app.services.writing_analysis import analyze_writing_evolution, classify_style


def test_empty_history_yields_default_profile():
    profile = build_profile([], 1, NOW)
    assert profile.total_entries == 0
    assert profile.dominant_emotion == DEFAULT_DOMINANT_EMOTION
    assert profile.emotion_breakdown == {}
    assert profile.current_streak == 0
    assert profile.writing_frequency == "new"
    assert profile.analysis_date == NOW


def test_last_insight_milestone():
    assert get_last_insight_milestone(1) == 0
    assert get_last_insight_milestone(5) == 1
    assert get_last_insight_milestone(25) == 20
    assert get_last_insight_milestone(60) == 55
    assert get_last_insight_milestone(3) == 0


def test_dominant_emotion_and_breakdown():
    entries = [
        make_entry(0, "😊 Happy"),
        make_entry(1, "😊 Happy"),
        make_entry(2, "😢 Sad"),
        make_entry(3, "😊 Happy"),
        make_entry(4, None),
    ]
    profile = build_profile(entries, 5, NOW)

    assert profile.dominant_emotion == "Happy"
    assert profile.emotion_diversity == 2
    assert profile.emotion_breakdown["Happy"].count == 3
    assert profile.emotion_breakdown["Happy"].percentage == 75
    assert profile.emotion_family_distribution["joy"].count == 3
    assert profile.emotion_family_distribution["joy"].percentage == 60
    assert profile.total_entries == 5
    assert profile.recent_entry_count == 4


def test_breakdown_trend_marks_recent_growth():
    older = [make_entry(10 + i, "Calm") for i in range(6)]
    recent = [make_entry(i, "Anxious") for i in range(4)]
    entries = recent + older

    analysis = analyze_emotions(entries, recent)
    assert analysis.breakdown["Anxious"].trend == "increasing"
    assert analysis.breakdown["Calm"].trend == "stable"


def test_streaks():
    entries = daily_entries(7)
    streaks = calculate_streaks(entries, NOW.date())
    assert streaks.current == 7
    assert streaks.longest == 7

    # Nothing written today yet: the streak counts from yesterday
    streaks = calculate_streaks(entries[1:], NOW.date())
    assert streaks.current == 6

    broken = [make_entry(0), make_entry(1), make_entry(5), make_entry(6), make_entry(7)]
    streaks = calculate_streaks(broken, NOW.date())
    assert streaks.current == 2
    assert streaks.longest == 3


def test_streak_uses_occurred_on_when_present():
    entry = make_entry(30, occurred_on=date(2026, 10, 19))
    assert calculate_streaks([entry], NOW.date()).current == 1


def test_silence_detection():
    entries = [make_entry(0), make_entry(1), make_entry(6), make_entry(7)]
    silences = detect_silences(entries)
    assert silences.has_silences
    assert silences.longest_gap == 5
    assert silences.recent_gap == 5
    assert silences.longest_gap_details.days == 5

    assert not detect_silences(daily_entries(5)).has_silences


def test_emotional_velocity():
    assert calculate_emotional_velocity(daily_entries(4)).velocity == "unknown"
    assert calculate_emotional_velocity(daily_entries(6)).velocity == "stable"

    alternating = [make_entry(i, "Happy" if i % 2 else "Sad") for i in range(10)]
    velocity = calculate_emotional_velocity(alternating)
    assert velocity.velocity == "rapid"
    assert velocity.change_rate == 100


def test_writing_style_classification():
    assert classify_style(10) == "brief"
    assert classify_style(50) == "conversational"
    assert classify_style(100) == "reflective"
    assert classify_style(200) == "detailed"


def test_writing_evolution_needs_ten_entries():
    assert analyze_writing_evolution(daily_entries(9)).trend == "emerging"

    long_text = " ".join(["word"] * 60)
    entries = [make_entry(i, text=long_text) for i in range(5)] + [make_entry(5 + i) for i in range(5)]
    assert analyze_writing_evolution(entries).trend == "deepening"


def test_time_of_day_buckets():
    assert time_of_day(8) == "morning"
    assert time_of_day(13) == "afternoon"
    assert time_of_day(20) == "evening"
    assert time_of_day(2) == "night"


def test_profile_from_daily_history():
    profile = build_profile(daily_entries(20), 20, NOW)
    assert profile.current_streak == 20
    assert profile.active_time == "evening"
    assert profile.writing_frequency == "daily"
    assert profile.days_since_first_entry == 19
    assert profile.past_vs_present.has_comparison
    assert len(profile.recent_memories) == 5
    assert profile.recent_memories[0].emotion == "Happy"


@pytest.mark.asyncio
async def test_service_reads_entries_from_store(db, clock):
    await seed_user(db, entries=daily_entries(5))
    service = PatternAnalysisService(db, clock)

    profile = await service.analyze_user_patterns("user-1", 5)
    assert profile.total_entries == 5
    assert profile.current_streak == 5


@pytest.mark.asyncio
async def test_service_propagates_store_errors(clock):
    broken_db = MagicMock()
    broken_db.get_entries_for_user = AsyncMock(side_effect=RuntimeError("store down"))
    service = PatternAnalysisService(broken_db, clock)

    with pytest.raises(RuntimeError):
        await service.analyze_user_patterns("user-1", 5)


def test_shift_ignores_unmatched_emotions():
    labels = ["Blah", "Ugh", "Hmm", "Pfft", "Meh"] + ["Meh"] * 5
    entries = [make_entry(i, label) for i, label in enumerate(labels)]
    assert detect_emotional_shift(entries, entries[:5]) == "stable"


def test_shift_measures_family_diversity():
    recent = [make_entry(0, "Happy"), make_entry(1, "Joyful"), make_entry(2, "Excited"), make_entry(3, "Delighted")]
    older = [make_entry(4 + i, "Cheerful") for i in range(6)]
    entries = recent + older
    # Many labels, one family
    assert detect_emotional_shift(entries, recent) == "stable"


def test_velocity_skips_missing_emotions():
    entries = [make_entry(i, "Happy" if i % 2 else None) for i in range(10)]
    velocity = calculate_emotional_velocity(entries)
    assert velocity.velocity == "stable"
    assert velocity.change_rate == 0
