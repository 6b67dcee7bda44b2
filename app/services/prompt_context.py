"""
Prompt Context - text blocks for the adaptive (15+ entries) prompt
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from app.models.pattern_profile import PatternProfile, RecentEntrySummary
from app.services.premium_analysis import COMPARISON_MIN_ENTRIES, NEGATIVE_EMOTIONS, POSITIVE_EMOTIONS

LIFE_AREAS: Dict[str, tuple] = {
    "work": ("work", "job", "career", "project", "meeting", "deadline", "boss", "colleague"),
    "relationships": ("friend", "family", "partner", "love", "relationship", "people", "social"),
    "personal": ("self", "growth", "goal", "reflection", "think", "feel", "understand"),
    "health": ("health", "exercise", "sleep", "energy", "tired", "body", "workout"),
    "leisure": ("fun", "hobby", "game", "movie", "book", "music", "travel", "weekend"),
}

# Past comparison uses a narrower sentiment vocabulary than the empathy mode
_BASELINE_POSITIVE = re.compile(r"happy|joy|content|excit|love|grateful", re.IGNORECASE)
_BASELINE_NEGATIVE = re.compile(r"anxious|sad|angry|frustrat|worry|stress", re.IGNORECASE)

EMPATHY_GUIDANCE = {
    "struggling": (
        "EMPATHY MODE:\n"
        "They're in pain. Meet them with compassion, not solutions. Validate what they're feeling. "
        "Don't rush to fix, just see them. Ask what they need, don't prescribe what they should do."
    ),
    "thriving": (
        "CELEBRATION MODE:\n"
        "They're doing well. Help them see WHY so they can replicate it. Don't diminish their joy "
        "or warn about future struggles. Let them enjoy this moment fully."
    ),
    "mixed": (
        "CURIOSITY MODE:\n"
        "Mixed emotions, they're processing life's complexity. Be curious about what they're navigating. "
        "Ask questions that help them understand themselves, not judge themselves."
    ),
}


def recent_emotions(memories: List[RecentEntrySummary], limit: int) -> List[str]:
    return [memory.emotion for memory in memories[:limit] if memory.emotion]


def build_context_depth(entry_count: int, days: int) -> str:
    weeks = days // 7
    months = days // 30

    if entry_count >= 100:
        return (
            f"You've witnessed {entry_count} memories over {months} months. You know their cycles, "
            "triggers, growth patterns, and vulnerabilities deeply. You've seen them at their best and worst."
        )
    if entry_count >= 50:
        return (
            f"You've observed {entry_count} memories over {weeks} weeks. You understand their emotional "
            "landscape, patterns, and how they process life. You've earned deep insight into who they are."
        )
    if entry_count >= 30:
        return (
            f"You've tracked {entry_count} memories over {days} days. Clear patterns and cycles are visible. "
            "You're seeing the real them, not just snapshots but the story."
        )
    if entry_count >= 20:
        return (
            f"You've followed {entry_count} memories over {days} days. Patterns are solidifying. "
            "You understand their emotional baseline and what shifts them."
        )
    return (
        f"You've observed {entry_count} memories over {days} days. Early patterns are clear and "
        "you're building meaningful understanding."
    )


def build_emotional_landscape(profile: PatternProfile) -> str:
    overall = ", ".join(
        f"{label} {profile.emotion_breakdown[label].percentage}%" for label in profile.top_emotions[:4]
    )
    journey = " → ".join(recent_emotions(profile.recent_memories, 5))
    families = ", ".join(
        f"{family} {profile.emotion_family_distribution[family].percentage}%"
        for family in profile.top_families[:3]
    )

    lines = [
        "EMOTIONAL LANDSCAPE:",
        f"Recent path: {journey or 'not enough recent emotions'}",
        f"Overall: {overall or 'no emotions recorded'}",
    ]
    if families:
        lines.append(f"Families: {families}")
    lines.append(f"Shift: {profile.emotional_shift}")
    return "\n".join(lines)


def analyze_memory_connections(memories: List[RecentEntrySummary]) -> str:
    """Emotion transitions and recurring themes across recent entries (newest first)"""
    if len(memories) < 2:
        return "Insufficient data for connection analysis"

    transitions = [
        f"{older.emotion} → {newer.emotion}"
        for newer, older in zip(memories, memories[1:])
        if newer.emotion and older.emotion and newer.emotion != older.emotion
    ]

    theme_counts = Counter(theme for memory in memories for theme in memory.themes)
    recurring = [theme for theme, count in theme_counts.items() if count >= 2][:2]

    parts = []
    if transitions:
        parts.append(f"Emotion shifts: {', '.join(transitions[:2])}.")
    if recurring:
        parts.append(f"Recurring focus: {', '.join(recurring)}.")

    return " ".join(parts) or "No strong connections detected between recent memories"


def analyze_temporal_notes(profile: PatternProfile) -> str:
    notes = []

    if profile.active_time in ("night", "evening"):
        notes.append(f"Writes at {profile.active_time} (processing day's events)")
    elif profile.active_time == "morning":
        notes.append("Writes in morning (setting intentions)")

    if profile.writing_frequency == "daily":
        notes.append("Daily journaler (high commitment)")
    elif profile.writing_frequency == "occasional":
        notes.append("Sporadic journaling (writes when needed)")

    if profile.current_streak >= 7:
        notes.append(f"Strong {profile.current_streak}-day streak!")
    elif profile.current_streak == 1 and profile.longest_streak > 7:
        notes.append(f"Streak broke (was {profile.longest_streak} days)")

    if profile.silence_detection.recent_gap:
        notes.append(f"Came back after a {profile.silence_detection.recent_gap}-day pause")

    return ". ".join(notes) or "Still establishing patterns"


def analyze_expression_evolution(profile: PatternProfile) -> str:
    avg_words = profile.avg_word_count
    memories = profile.recent_memories
    recent_avg = sum(m.word_count for m in memories if m.word_count > 0) / max(len(memories), 1)
    change = recent_avg - avg_words

    evolution = (
        f"Style: {profile.writing_style} ({avg_words} words avg, quality {profile.content_quality}/100). "
    )
    if change > 15:
        evolution += f"Recently writing MORE ({round(recent_avg)} words vs {avg_words} avg). Going deeper."
    elif change < -15:
        evolution += (
            f"Recently writing LESS ({round(recent_avg)} words vs {avg_words} avg). "
            "More surface-level or stressed?"
        )
    else:
        evolution += "Consistent expression style."
    return evolution


@dataclass
class LifeAreaBalance:
    counts: Dict[str, int] = field(default_factory=dict)
    total: int = 0
    warning: str = ""

    def percent(self, area: str) -> int:
        return round(self.counts.get(area, 0) / self.total * 100) if self.total else 0

    def describe(self) -> str:
        if not self.total:
            return "No clear life areas detected yet"

        significant = sorted(
            (area for area, count in self.counts.items() if count > 0 and area != "other"),
            key=lambda area: self.counts[area],
            reverse=True,
        )[:3]
        if not significant:
            return "Themes don't cluster into clear life areas yet"

        balance = ", ".join(f"{area} {self.percent(area)}%" for area in significant)
        if self.warning:
            balance += f". ⚠️ {self.warning}"
        return balance


def categorize_life_areas(themes: List[str]) -> LifeAreaBalance:
    """Bucket themes into life areas and flag an imbalance"""
    counts = {area: 0 for area in LIFE_AREAS}
    counts["other"] = 0

    for theme in themes:
        lowered = theme.lower()
        area = next(
            (name for name, keywords in LIFE_AREAS.items() if any(k in lowered for k in keywords)),
            "other",
        )
        counts[area] += 1

    balance = LifeAreaBalance(counts=counts, total=len(themes))
    if balance.total:
        if balance.percent("work") > 50 and counts["leisure"] == 0:
            balance.warning = "Work dominates, no leisure detected"
        elif counts["leisure"] == 0 and counts["health"] == 0:
            balance.warning = "Self-care missing"
    return balance


def compare_to_past_self(entry_count: int, profile: PatternProfile) -> str:
    if entry_count < COMPARISON_MIN_ENTRIES:
        return "Not enough data for past comparison yet"

    lines = []
    memories = profile.recent_memories[:5]
    recent = recent_emotions(memories, 5)
    overall = list(profile.emotion_breakdown)

    if recent and overall:
        recent_positive = sum(1 for e in recent if _BASELINE_POSITIVE.search(e)) / len(recent) * 100
        overall_positive = sum(1 for e in overall if _BASELINE_POSITIVE.search(e)) / len(overall) * 100
        shift = recent_positive - overall_positive

        if shift > 15:
            lines.append("POSITIVE SHIFT: Recent emotions are lighter than your baseline. Something's improving.")
        elif shift < -15:
            lines.append("CHALLENGING PERIOD: Recent emotions heavier than usual. You're going through something.")
        else:
            lines.append("STABLE: Recent patterns match your baseline. Consistent emotional state.")

    comparison = profile.past_vs_present
    if comparison.has_comparison:
        if comparison.emotional and comparison.emotional.message:
            lines.append(
                f"Earlier vs now: {comparison.emotional.message} "
                f"({comparison.emotional.older_positive_ratio}% → {comparison.emotional.newer_positive_ratio}% positive)."
            )
        if comparison.writing and comparison.writing.message:
            lines.append(
                f"{comparison.writing.message} "
                f"({comparison.writing.newer_avg_words} vs {comparison.writing.older_avg_words} words)."
            )

    return " ".join(lines) or "STABLE: Recent patterns match your baseline."


def detect_emotional_state(profile: PatternProfile) -> str:
    """struggling | thriving | mixed, from the three most recent emotions"""
    emotions = recent_emotions(profile.recent_memories, 3)
    negative = sum(1 for emotion in emotions if NEGATIVE_EMOTIONS.search(emotion))
    positive = sum(1 for emotion in emotions if POSITIVE_EMOTIONS.search(emotion))

    if negative >= 2:
        return "struggling"
    if positive >= 2:
        return "thriving"
    return "mixed"


def build_empathy_guidance(state: str) -> str:
    return EMPATHY_GUIDANCE.get(state, EMPATHY_GUIDANCE["mixed"])
