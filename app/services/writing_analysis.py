"""
Writing Analysis - style, length evolution and quality trend
"""
from statistics import mean
from typing import List, NamedTuple

from app.models.entry import Entry
from app.models.pattern_profile import TrendComparison
from app.services.text_quality import text_quality_analyzer

EVOLUTION_MIN_ENTRIES = 10


class WritingStyle(NamedTuple):
    style: str
    avg_word_count: int
    content_quality: int


def _meaningful_texts(entries: List[Entry]) -> List[str]:
    return [entry.full_text for entry in entries if len(entry.full_text) > 10]


def classify_style(avg_words: float) -> str:
    if avg_words < 30:
        return "brief"
    if avg_words < 75:
        return "conversational"
    if avg_words < 150:
        return "reflective"
    return "detailed"


def analyze_writing_style(entries: List[Entry]) -> WritingStyle:
    """Average length and quality of entries with real text"""
    texts = _meaningful_texts(entries)
    if not texts:
        return WritingStyle(style="brief", avg_word_count=0, content_quality=0)

    avg_words = mean(len(text.split()) for text in texts)
    avg_quality = mean(text_quality_analyzer.calculate_quality_score(text) for text in texts)
    return WritingStyle(
        style=classify_style(avg_words),
        avg_word_count=round(avg_words),
        content_quality=round(avg_quality),
    )


def _split_halves(entries: List[Entry]):
    """Newest-first list → (older half, newer half)"""
    middle = len(entries) // 2
    return entries[middle:], entries[:middle]


def analyze_writing_evolution(entries: List[Entry]) -> TrendComparison:
    """Older half vs newer half average word count"""
    if len(entries) < EVOLUTION_MIN_ENTRIES:
        return TrendComparison()

    older, newer = _split_halves(entries)
    early_avg = mean(len(entry.full_text.split()) for entry in older)
    recent_avg = mean(len(entry.full_text.split()) for entry in newer)
    change = recent_avg - early_avg

    if change > 20:
        trend, description = "deepening", "Your entries are becoming more detailed and reflective"
    elif change < -20:
        trend, description = "shortening", "Your entries are becoming more concise"
    else:
        trend, description = "stable", "Your writing length stays consistent"

    return TrendComparison(
        trend=trend,
        description=description,
        early_avg=round(early_avg),
        recent_avg=round(recent_avg),
        change=round(change),
    )


def analyze_quality_trend(entries: List[Entry]) -> TrendComparison:
    """Older half vs newer half average quality score"""
    if len(entries) < EVOLUTION_MIN_ENTRIES:
        return TrendComparison(description="Building your quality profile")

    older, newer = _split_halves(entries)
    score = text_quality_analyzer.calculate_quality_score
    early_avg = mean(score(entry.full_text) for entry in older)
    recent_avg = mean(score(entry.full_text) for entry in newer)
    change = recent_avg - early_avg

    if change > 10:
        trend, description = "improving", "Your entries are growing richer in quality"
    elif change < -10:
        trend, description = "declining", "Your recent entries are lighter than before"
    else:
        trend, description = "stable", "Your entry quality stays consistent"

    return TrendComparison(
        trend=trend,
        description=description,
        early_avg=round(early_avg),
        recent_avg=round(recent_avg),
        change=round(change),
    )
