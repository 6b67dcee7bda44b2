"""
Premium Analysis - past vs present comparison and recent entry summaries
"""
import re
from datetime import datetime
from statistics import mean
from typing import List

from app.models.emotion import categorize_emotion
from app.models.entry import Entry
from app.models.pattern_profile import (
    EmotionalComparison, PastVsPresent, RecentEntrySummary, WritingComparison,
)
from app.services.text_quality import text_quality_analyzer
from app.utils.date_helpers import days_between

COMPARISON_MIN_ENTRIES = 15
SUMMARY_LIMIT = 5
SUMMARY_WORDS = 20

POSITIVE_EMOTIONS = re.compile(r"happy|joy|content|excit|love|grateful|calm|peace", re.IGNORECASE)
NEGATIVE_EMOTIONS = re.compile(r"anxious|sad|angry|frustrat|worry|stress|overwhelm|disappoint", re.IGNORECASE)


def _emotion_ratios(entries: List[Entry]):
    labels = [entry.clean_emotion for entry in entries if entry.clean_emotion]
    if not labels:
        return 0.0, 0.0
    positive = sum(1 for label in labels if POSITIVE_EMOTIONS.search(label))
    negative = sum(1 for label in labels if NEGATIVE_EMOTIONS.search(label))
    return positive / len(labels) * 100, negative / len(labels) * 100


def _avg_words(entries: List[Entry]) -> float:
    counts = [len(entry.full_text.split()) for entry in entries if entry.full_text]
    return mean(counts) if counts else 0.0


def compare_past_vs_present(entries: List[Entry], entry_count: int) -> PastVsPresent:
    """Older half vs newer half of the history, once there are enough entries"""
    if entry_count < COMPARISON_MIN_ENTRIES or len(entries) < 2:
        return PastVsPresent()

    middle = len(entries) // 2
    older, newer = entries[middle:], entries[:middle]

    older_positive, older_negative = _emotion_ratios(older)
    newer_positive, newer_negative = _emotion_ratios(newer)
    positive_shift = newer_positive - older_positive
    negative_shift = newer_negative - older_negative

    if positive_shift > 15:
        emotional_message = "More positive emotions recently"
    elif negative_shift > 15:
        emotional_message = "More challenging emotions recently"
    else:
        emotional_message = "Emotional balance remains similar"

    older_words = _avg_words(older)
    newer_words = _avg_words(newer)
    word_shift = newer_words - older_words

    if word_shift > 20:
        writing_message = "Writing deeper now"
    elif word_shift < -20:
        writing_message = "Writing more concisely now"
    else:
        writing_message = "Writing depth consistent"

    return PastVsPresent(
        has_comparison=True,
        emotional=EmotionalComparison(
            older_positive_ratio=round(older_positive),
            newer_positive_ratio=round(newer_positive),
            older_negative_ratio=round(older_negative),
            newer_negative_ratio=round(newer_negative),
            shift=round(positive_shift),
            message=emotional_message,
        ),
        writing=WritingComparison(
            older_avg_words=round(older_words),
            newer_avg_words=round(newer_words),
            change=round(word_shift),
            message=writing_message,
        ),
    )


def summarize_recent_entries(recent_entries: List[Entry], now: datetime) -> List[RecentEntrySummary]:
    """Condensed view of up to five recent entries"""
    summaries = []
    for entry in recent_entries[:SUMMARY_LIMIT]:
        full_content = f"{entry.title or ''}. {entry.text or ''}".strip()
        has_text = len(full_content) > 10
        words = full_content.split()

        if len(full_content) > 20:
            summary = " ".join(words[:SUMMARY_WORDS]) + "..." if len(words) > SUMMARY_WORDS else full_content
        else:
            summary = entry.title or ""

        summaries.append(RecentEntrySummary(
            title=entry.title or "",
            summary=summary,
            emotion=entry.clean_emotion or None,
            emotion_family=categorize_emotion(entry.emotion).value,
            themes=text_quality_analyzer.extract_keywords(full_content, 3) if has_text else [],
            quality=text_quality_analyzer.calculate_quality_score(full_content),
            has_text=has_text,
            has_images=entry.has_images,
            word_count=len(words),
            created_days_ago=max(0, days_between(entry.created_at, now)),
        ))

    return [summary for summary in summaries if summary.has_text or summary.emotion]
