"""
Static Fallback - deterministic insight text when every provider fails
"""
import logging

from app.models.insight import MAX_MESSAGE_LENGTH
from app.models.pattern_profile import PatternProfile
from app.services.llm import fit_to_length

logger = logging.getLogger("static_fallback")

STREAK_THRESHOLD = 7

EMOTION_TRAITS = {
    "happy": "optimistic",
    "joyful": "vibrant",
    "excited": "energetic",
    "content": "peaceful",
    "love": "caring",
    "grateful": "appreciative",
    "calm": "balanced",
    "thoughtful": "reflective",
    "curious": "inquisitive",
    "inspired": "creative",
}

GENERIC_MESSAGE = (
    "Every memory you capture adds to the story of who you are. "
    "Keep writing and your patterns will keep revealing themselves."
)


def get_trait_from_emotion(emotion: str) -> str:
    return EMOTION_TRAITS.get((emotion or "").strip().lower(), "unique")


def _length_description(avg_words: int) -> str:
    if avg_words > 100:
        return "detailed"
    if avg_words > 50:
        return "thoughtful"
    return "concise"


def _render(entry_count: int, profile: PatternProfile) -> str:
    emotion = profile.dominant_emotion
    trait = get_trait_from_emotion(emotion)

    if entry_count == 1:
        theme = profile.top_themes[0] if profile.top_themes else "personal reflection"
        return (
            f"What a beautiful first step! You just captured a moment about {theme} while feeling {emotion}. "
            "This is more than just a memory, it's the beginning of understanding yourself deeper. "
            "I'll be here to notice patterns you might miss as you continue this journey."
        )
    if entry_count == 5:
        return (
            f'After 5 memories, I notice you tend to feel "{emotion}" most often. '
            "You're building a wonderful collection of moments. Keep going!"
        )
    if entry_count == 10:
        return (
            f"You write {_length_description(profile.avg_word_count)} memories with an average of "
            f'{profile.avg_word_count} words. "{emotion}" appears to be your go-to emotion. '
            f"You're naturally {trait}!"
        )
    if entry_count == 15:
        return (
            f"You've explored {profile.emotion_diversity} different emotions so far. "
            "Your emotional awareness is developing beautifully!"
        )
    if entry_count == 25:
        streak = f" You're on a {profile.current_streak}-day streak." if profile.current_streak > 1 else ""
        return (
            f"25 memories and counting!{streak} Your dominant emotion \"{emotion}\" shows you're "
            f"naturally {trait}. Keep capturing these precious moments!"
        )
    if entry_count == 50:
        return (
            f"50 memories, what an achievement! You've written an average of {profile.avg_word_count} words "
            f"per memory and explored {profile.emotion_diversity} different emotions. "
            "You're creating a beautiful tapestry of life moments."
        )
    if entry_count == 100:
        return (
            "100 memories, incredible! Your emotional range has grown significantly since starting. "
            "You've created a beautiful tapestry of life moments."
        )
    if profile.current_streak >= STREAK_THRESHOLD:
        return (
            f"{profile.current_streak} days in a row! You're building an amazing habit. "
            "Your dedication to capturing memories is inspiring."
        )
    return (
        f"{entry_count} memories and counting! Your journey of self-reflection continues to grow. "
        f'"{emotion}" remains your most common emotion. You\'re naturally {trait}!'
    )


def generate_static_insight(entry_count: int, profile: PatternProfile) -> str:
    """
    Template-filled insight message

    Never raises; an unexpected error yields the generic message.
    """
    try:
        message = _render(entry_count, profile).strip()
    except Exception:
        logger.exception(f"Static insight rendering failed for entry #{entry_count}")
        return GENERIC_MESSAGE

    return fit_to_length(message, MAX_MESSAGE_LENGTH) or GENERIC_MESSAGE
