"""
Temporal Analysis - streaks, time of day, cadence and silences
"""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import List, NamedTuple

from app.models.entry import Entry
from app.models.pattern_profile import GapDetails, SilenceDetection
from app.utils.date_helpers import days_between

SILENCE_MIN_DAYS = 2
RECENT_GAP_WINDOW = 5


class Streaks(NamedTuple):
    current: int
    longest: int


class TemporalPattern(NamedTuple):
    active_time: str
    writing_frequency: str


def time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


def calculate_streaks(entries: List[Entry], today: date) -> Streaks:
    """
    Consecutive-day streaks

    The current streak counts back from today, or from yesterday when
    nothing was written today yet.
    """
    days = sorted({entry.day for entry in entries}, reverse=True)
    if not days:
        return Streaks(current=0, longest=0)

    day_set = set(days)
    cursor = today if today in day_set else today - timedelta(days=1)
    current = 0
    while cursor in day_set:
        current += 1
        cursor -= timedelta(days=1)

    longest = run = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return Streaks(current=current, longest=max(longest, current))


def analyze_temporal_patterns(entries: List[Entry], now: datetime) -> TemporalPattern:
    if not entries:
        return TemporalPattern(active_time="evening", writing_frequency="new")

    buckets = Counter(time_of_day(entry.created_at.hour) for entry in entries)
    active_time = buckets.most_common(1)[0][0]

    oldest = min(entry.created_at for entry in entries)
    span_days = max(1, days_between(oldest, now))
    per_day = len(entries) / span_days

    if per_day >= 1:
        frequency = "daily"
    elif per_day >= 0.5:
        frequency = "frequent"
    elif per_day >= 0.2:
        frequency = "regular"
    else:
        frequency = "occasional"

    return TemporalPattern(active_time=active_time, writing_frequency=frequency)


def detect_silences(entries: List[Entry]) -> SilenceDetection:
    """Gaps longer than two days between consecutive entries (newest first)"""
    if len(entries) < 3:
        return SilenceDetection()

    longest = 0
    longest_details = None
    recent_gap = None

    for index, (newer, older) in enumerate(zip(entries, entries[1:])):
        gap = days_between(older.created_at, newer.created_at)
        if gap <= SILENCE_MIN_DAYS:
            continue
        if recent_gap is None and index < RECENT_GAP_WINDOW:
            recent_gap = gap
        if gap > longest:
            longest = gap
            longest_details = GapDetails(
                days=gap,
                before_emotion=older.clean_emotion or None,
                after_emotion=newer.clean_emotion or None,
            )

    return SilenceDetection(
        has_silences=longest > 0,
        longest_gap=longest,
        recent_gap=recent_gap,
        longest_gap_details=longest_details,
    )
