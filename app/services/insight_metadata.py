"""
Insight Metadata - type, category, title, icon, color and priority per entry count
"""
from app.models.insight import InsightCategory, InsightClassification, InsightType
from app.models.pattern_profile import PatternProfile
from app.services.static_fallback import STREAK_THRESHOLD

COMPLEXITY_THRESHOLD = 5

MILESTONE_CLASSIFICATIONS = {
    1: InsightClassification(
        type=InsightType.MILESTONE, category=InsightCategory.ACHIEVEMENT,
        title="Welcome to Your Memory Journey! 🌸", icon="🌱", color="#10B981", priority=5,
    ),
    5: InsightClassification(
        type=InsightType.EMOTION_PATTERN, category=InsightCategory.DISCOVERY,
        title="I'm Starting to See Your Style! ✨", icon="🎭", color="#8B5CF6", priority=4,
    ),
    10: InsightClassification(
        type=InsightType.WRITING_PATTERN, category=InsightCategory.DISCOVERY,
        title="Your Writing Style is Emerging! 📝", icon="✍️", color="#F59E0B", priority=4,
    ),
    15: InsightClassification(
        type=InsightType.DIVERSITY, category=InsightCategory.DISCOVERY,
        title="Your Emotional Range is Growing! 🌈", icon="🎨", color="#EC4899", priority=3,
    ),
    25: InsightClassification(
        type=InsightType.CONSISTENCY, category=InsightCategory.ENCOURAGEMENT,
        title="Quarter Century of Memories! 🎉", icon="🏆", color="#10B981", priority=4,
    ),
    50: InsightClassification(
        type=InsightType.MILESTONE, category=InsightCategory.ACHIEVEMENT,
        title="Half a Hundred Memories! 🎊", icon="🌟", color="#8B5CF6", priority=5,
    ),
    100: InsightClassification(
        type=InsightType.MILESTONE, category=InsightCategory.ACHIEVEMENT,
        title="Century Club Member! 💯", icon="💯", color="#F43F5E", priority=5,
    ),
}

STREAK_CLASSIFICATION = InsightClassification(
    type=InsightType.STREAK, category=InsightCategory.ENCOURAGEMENT,
    title="Incredible Consistency! 🔥", icon="🔥", color="#EF4444", priority=4,
)

COMPLEXITY_CLASSIFICATION = InsightClassification(
    type=InsightType.COMPLEXITY, category=InsightCategory.TREND,
    title="Rich Storytelling Detected! 📖", icon="📖", color="#0EA5E9", priority=3,
)

GENERIC_CLASSIFICATION = InsightClassification(
    type=InsightType.MILESTONE, category=InsightCategory.ENCOURAGEMENT,
    title="Keep Going Strong! 💪", icon="✨", color="#8B5CF6", priority=3,
)


def determine_insight_metadata(entry_count: int, profile: PatternProfile) -> InsightClassification:
    """Exact milestone first, then streak, then rich content, then generic"""
    if entry_count in MILESTONE_CLASSIFICATIONS:
        return MILESTONE_CLASSIFICATIONS[entry_count]
    if profile.current_streak >= STREAK_THRESHOLD:
        return STREAK_CLASSIFICATION
    if entry_count % 10 == 0 and profile.content_complexity_avg > COMPLEXITY_THRESHOLD:
        return COMPLEXITY_CLASSIFICATION
    return GENERIC_CLASSIFICATION
