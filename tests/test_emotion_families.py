"""
Test emotion categorization
"""
import pytest

from app.models.emotion import (
    EmotionFamily, FAMILY_LABELS, TRACKED_FAMILIES, categorize_emotion,
)
from app.models.entry import clean_emotion_label


@pytest.mark.parametrize("label,family", [
    ("😊 Happy", EmotionFamily.JOY),
    ("grateful", EmotionFamily.JOY),
    ("😢 Sad", EmotionFamily.SADNESS),
    ("Furious", EmotionFamily.ANGER),
    ("😰 Anxious", EmotionFamily.FEAR),
    ("Peaceful", EmotionFamily.CALM),
    ("Nostalgic", EmotionFamily.NOSTALGIA),
    ("❤️ Loved", EmotionFamily.LOVE),
    ("Amazed", EmotionFamily.SURPRISE),
])
def test_catalogue_labels(label, family):
    assert categorize_emotion(label) == family


def test_stem_matching_for_free_form_labels():
    assert categorize_emotion("super excited!!") == EmotionFamily.JOY
    assert categorize_emotion("kind of worried") == EmotionFamily.FEAR
    assert categorize_emotion("yearning") == EmotionFamily.NOSTALGIA


def test_empty_and_unknown_labels():
    assert categorize_emotion(None) == EmotionFamily.NEUTRAL
    assert categorize_emotion("") == EmotionFamily.NEUTRAL
    assert categorize_emotion("🙂") == EmotionFamily.NEUTRAL
    assert categorize_emotion("purple") == EmotionFamily.OTHER


def test_clean_emotion_label_strips_leading_emoji():
    assert clean_emotion_label("😌 Calm") == "Calm"
    assert clean_emotion_label("Calm") == "Calm"
    assert clean_emotion_label(None) == ""


def test_tables_cover_tracked_families():
    assert set(FAMILY_LABELS) == set(TRACKED_FAMILIES)
    assert EmotionFamily.OTHER not in TRACKED_FAMILIES
    assert EmotionFamily.NEUTRAL not in TRACKED_FAMILIES
