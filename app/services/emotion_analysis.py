"""
Emotion Analysis - distribution, family mix, velocity and shift
"""
from collections import Counter
from typing import Dict, List, NamedTuple, Optional

from app.models.emotion import EmotionFamily, categorize_emotion
from app.models.entry import Entry
from app.models.pattern_profile import (
    DEFAULT_DOMINANT_EMOTION, EmotionStat, EmotionalVelocity, FamilyStat,
)

VELOCITY_WINDOW = 10

VELOCITY_DESCRIPTIONS = {
    "rapid": "Your emotions shift frequently between entries",
    "moderate": "Your emotions change at a steady pace",
    "slow": "Your emotional state evolves gradually",
    "stable": "Your emotional state stays remarkably consistent",
}


class EmotionAnalysis(NamedTuple):
    dominant_emotion: str
    breakdown: Dict[str, EmotionStat]
    diversity: int
    family_distribution: Dict[str, FamilyStat]


def _labels(entries: List[Entry]) -> List[str]:
    return [entry.clean_emotion for entry in entries if entry.clean_emotion]


def _tracked_families(labels: List[str]) -> List[EmotionFamily]:
    """Families of labels, without neutral and other"""
    return [family for family in (categorize_emotion(label) for label in labels) if family.is_tracked]


def _most_common(families: List[EmotionFamily]) -> Optional[EmotionFamily]:
    counts = Counter(families)
    return counts.most_common(1)[0][0] if counts else None


def dominant_family(labels: List[str]) -> Optional[EmotionFamily]:
    """Most frequent tracked family among labels"""
    return _most_common(_tracked_families(labels))


def analyze_emotions(all_entries: List[Entry], recent_entries: List[Entry]) -> EmotionAnalysis:
    """
    Emotion distribution over all entries with recent-window trends

    Args:
        all_entries: Every entry, newest first
        recent_entries: Entries since the last milestone, newest first

    Returns:
        EmotionAnalysis with dominant label, per-label stats, diversity and family mix
    """
    labels = _labels(all_entries)
    recent_counts = Counter(_labels(recent_entries))
    counts = Counter(labels)

    breakdown: Dict[str, EmotionStat] = {}
    for label, count in counts.most_common():
        expected_recent = count / len(all_entries) * len(recent_entries)
        recent = recent_counts.get(label, 0)
        breakdown[label] = EmotionStat(
            count=count,
            percentage=round(count / len(labels) * 100),
            recent_count=recent,
            trend="increasing" if recent > expected_recent else "stable",
        )

    family_counts = Counter(
        family for family in (categorize_emotion(label) for label in labels) if family.is_tracked
    )
    family_distribution = {
        family.value: FamilyStat(count=count, percentage=round(count / len(all_entries) * 100))
        for family, count in family_counts.most_common()
    }

    dominant = counts.most_common(1)[0][0] if counts else DEFAULT_DOMINANT_EMOTION

    return EmotionAnalysis(
        dominant_emotion=dominant,
        breakdown=breakdown,
        diversity=len(counts),
        family_distribution=family_distribution,
    )


def calculate_emotional_velocity(entries: List[Entry]) -> EmotionalVelocity:
    """How often the emotion changes between consecutive recent entries"""
    if len(entries) < 5:
        return EmotionalVelocity()

    window = [entry.clean_emotion for entry in entries[:VELOCITY_WINDOW]]
    changes = sum(1 for newer, older in zip(window, window[1:]) if newer and older and newer != older)
    rate = changes / (len(window) - 1)

    if rate > 0.7:
        velocity = "rapid"
    elif rate > 0.4:
        velocity = "moderate"
    elif rate > 0.2:
        velocity = "slow"
    else:
        velocity = "stable"

    return EmotionalVelocity(
        velocity=velocity,
        description=VELOCITY_DESCRIPTIONS[velocity],
        change_rate=round(rate * 100),
    )


def detect_emotional_shift(all_entries: List[Entry], recent_entries: List[Entry]) -> str:
    """
    Family-level shift between overall history and the recent window

    Returns:
        "familyA → familyB" when the dominant family moved, otherwise
        expanding_range, narrowing_focus or stable
    """
    if len(all_entries) < 3 or not recent_entries:
        return "stable"

    all_families = _tracked_families(_labels(all_entries))
    recent_families = _tracked_families(_labels(recent_entries))

    overall = _most_common(all_families)
    recent = _most_common(recent_families)
    if overall is None or recent is None:
        return "stable"
    if overall != recent:
        return f"{overall.value} → {recent.value}"

    all_diversity = len(set(all_families))
    recent_diversity = len(set(recent_families))
    diversity_change = recent_diversity - all_diversity / 2

    if diversity_change > 0.5:
        return "expanding_range"
    if diversity_change < -0.5:
        return "narrowing_focus"
    return "stable"
