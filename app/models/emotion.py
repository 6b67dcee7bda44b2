"""
Emotion Families - single categorization table shared by every analyzer
"""
import re
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple

from app.models.entry import clean_emotion_label


class EmotionFamily(str, Enum):
    JOY = "joy"
    SADNESS = "sadness"
    ANGER = "anger"
    FEAR = "fear"
    SURPRISE = "surprise"
    CALM = "calm"
    NOSTALGIA = "nostalgia"
    LOVE = "love"
    # Untracked buckets
    OTHER = "other"
    NEUTRAL = "neutral"

    @property
    def is_tracked(self) -> bool:
        return self not in (EmotionFamily.OTHER, EmotionFamily.NEUTRAL)


TRACKED_FAMILIES: Tuple[EmotionFamily, ...] = tuple(f for f in EmotionFamily if f.is_tracked)


# Catalogue labels offered by the journaling client
FAMILY_LABELS: Dict[EmotionFamily, Tuple[str, ...]] = {
    EmotionFamily.JOY: ("happy", "joyful", "excited", "delighted", "cheerful", "euphoric", "content", "grateful"),
    EmotionFamily.SADNESS: ("sad", "melancholy", "heartbroken", "disappointed", "lonely", "grieving"),
    EmotionFamily.ANGER: ("angry", "frustrated", "irritated", "annoyed", "furious", "resentful"),
    EmotionFamily.FEAR: ("anxious", "worried", "nervous", "scared", "overwhelmed", "stressed"),
    EmotionFamily.SURPRISE: ("surprised", "amazed", "curious", "astonished", "intrigued", "inspired"),
    EmotionFamily.CALM: ("calm", "peaceful", "relaxed", "serene", "balanced", "tired"),
    EmotionFamily.NOSTALGIA: ("nostalgic", "wistful", "sentimental", "reflective", "longing"),
    EmotionFamily.LOVE: ("loved", "love", "affectionate", "caring", "romantic", "tender"),
}

# Keyword stems for free-form labels, checked in declaration order
FAMILY_STEMS: Dict[EmotionFamily, Tuple[str, ...]] = {
    EmotionFamily.JOY: ("happy", "joy", "excit", "enthusi", "delight", "thrill", "cheerful", "content",
                        "bliss", "ecstatic", "fine"),
    EmotionFamily.SADNESS: ("sad", "sorrow", "heartbr", "grief", "disappoint", "hopeless", "griev", "lonely",
                            "thought"),
    EmotionFamily.ANGER: ("angry", "furious", "irritat", "frustrat", "annoy", "livid", "resent", "outrage"),
    EmotionFamily.FEAR: ("afraid", "anxious", "worr", "nervous", "terrif", "panic", "uneasy", "cautious"),
    EmotionFamily.CALM: ("calm", "peace", "relax", "tranquil", "zen", "center", "balanc", "tired", "bored"),
    EmotionFamily.LOVE: ("love", "affection", "ador", "caring", "tender", "devot", "passion", "romantic"),
    EmotionFamily.NOSTALGIA: ("nostalg", "wistful", "sentiment", "reflect", "longing", "yearn", "reminisc"),
    EmotionFamily.SURPRISE: ("surpris", "amaz", "astonish", "bewilder", "curious", "intrigu", "fascin", "awe"),
}


def _validate_tables():
    """Both tables must cover exactly the tracked families"""
    expected = set(TRACKED_FAMILIES)
    for name, table in (("FAMILY_LABELS", FAMILY_LABELS), ("FAMILY_STEMS", FAMILY_STEMS)):
        if set(table) != expected:
            missing = expected - set(table)
            extra = set(table) - expected
            raise ValueError(f"{name} mismatch: missing={missing} extra={extra}")
        empty = [family for family, words in table.items() if not words]
        if empty:
            raise ValueError(f"{name} has empty families: {empty}")

    seen: Dict[str, EmotionFamily] = {}
    for family, labels in FAMILY_LABELS.items():
        for label in labels:
            if label in seen and seen[label] != family:
                raise ValueError(f"Label '{label}' assigned to {seen[label]} and {family}")
            seen[label] = family


_validate_tables()

_LABEL_LOOKUP: Dict[str, EmotionFamily] = {
    label: family for family, labels in FAMILY_LABELS.items() for label in labels
}
_STEM_PATTERNS: Tuple[Tuple[EmotionFamily, Pattern], ...] = tuple(
    (family, re.compile("|".join(stems))) for family, stems in FAMILY_STEMS.items()
)


def categorize_emotion(label: Optional[str]) -> EmotionFamily:
    """
    Map an emotion label to its family

    Args:
        label: Raw emotion label (leading emoji allowed)

    Returns:
        The family; NEUTRAL for an empty label, OTHER when nothing matches
    """
    clean = clean_emotion_label(label).lower()
    if not clean:
        return EmotionFamily.NEUTRAL

    family = _LABEL_LOOKUP.get(clean)
    if family is not None:
        return family

    for family, pattern in _STEM_PATTERNS:
        if pattern.search(clean):
            return family

    return EmotionFamily.OTHER
