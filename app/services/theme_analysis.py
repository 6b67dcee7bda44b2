"""
Theme Analysis - recurring keywords, image usage and content complexity
"""
from typing import List, NamedTuple

from app.models.entry import Entry
from app.services.text_quality import text_quality_analyzer

MAX_THEMES = 15


class ThemeAnalysis(NamedTuple):
    top_themes: List[str]
    has_images: bool
    image_usage_percent: int
    content_complexity_avg: float


def analyze_themes(entries: List[Entry]) -> ThemeAnalysis:
    if not entries:
        return ThemeAnalysis(top_themes=[], has_images=False, image_usage_percent=0, content_complexity_avg=0.0)

    combined = " ".join(entry.full_text for entry in entries)
    themes = text_quality_analyzer.extract_keywords(combined, MAX_THEMES)

    with_images = sum(1 for entry in entries if entry.has_images)
    complexities = [entry.complexity for entry in entries if entry.complexity > 0]
    complexity_avg = round(sum(complexities) / len(complexities), 1) if complexities else 0.0

    return ThemeAnalysis(
        top_themes=themes,
        has_images=with_images > 0,
        image_usage_percent=round(with_images / len(entries) * 100),
        content_complexity_avg=complexity_avg,
    )
