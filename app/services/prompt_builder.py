"""
Prompt Builder - turns an entry count and PatternProfile into a tiered prompt
"""
from enum import Enum
from typing import Optional

from app.models.entry import Entry
from app.models.pattern_profile import PatternProfile
from app.services import prompt_context as context
from app.services.prompt import PromptService, prompt_service


class PromptTier(str, Enum):
    WELCOME = "welcome"
    EARLY_PATTERN = "early_pattern"
    DEEPER_ANALYSIS = "deeper_analysis"
    ADAPTIVE = "adaptive"


# Target word ranges stated in each template
TIER_WORD_TARGETS = {
    PromptTier.WELCOME: (60, 80),
    PromptTier.EARLY_PATTERN: (80, 100),
    PromptTier.DEEPER_ANALYSIS: (100, 130),
    PromptTier.ADAPTIVE: (120, 150),
}


def select_tier(entry_count: int) -> PromptTier:
    """1 → welcome, 2-5 → early pattern, 6-14 → deeper analysis, 15+ → adaptive"""
    if entry_count <= 1:
        return PromptTier.WELCOME
    if entry_count <= 5:
        return PromptTier.EARLY_PATTERN
    if entry_count < 15:
        return PromptTier.DEEPER_ANALYSIS
    return PromptTier.ADAPTIVE


class PromptBuilder:
    """Renders insight prompts from templates in prompts/"""

    def __init__(self, prompts: Optional[PromptService] = None):
        self.prompts = prompts or prompt_service

    def build_prompt(
        self,
        entry_count: int,
        profile: PatternProfile,
        latest_entry: Optional[Entry] = None
    ) -> str:
        """
        Build the prompt for an entry count

        Args:
            entry_count: Number of entries the user has
            profile: Current pattern profile
            latest_entry: Entry that triggered generation, if known

        Returns:
            Prompt text stating its target word range
        """
        tier = select_tier(entry_count)
        if tier == PromptTier.WELCOME:
            return self.build_welcome_prompt(profile, latest_entry)
        if tier == PromptTier.EARLY_PATTERN:
            return self.build_early_pattern_prompt(entry_count, profile)
        if tier == PromptTier.DEEPER_ANALYSIS:
            return self.build_deeper_analysis_prompt(entry_count, profile)
        return self.build_adaptive_prompt(entry_count, profile)

    def build_welcome_prompt(self, profile: PatternProfile, latest_entry: Optional[Entry] = None) -> str:
        title = latest_entry.title if latest_entry and latest_entry.title else "their first memory"
        return self.prompts.render_template(
            "insight_welcome",
            title=title,
            emotion=profile.dominant_emotion or "thoughtful",
        )

    def build_early_pattern_prompt(self, entry_count: int, profile: PatternProfile) -> str:
        dominant = profile.dominant_emotion
        stat = profile.emotion_breakdown.get(dominant)
        return self.prompts.render_template(
            "insight_early_pattern",
            entry_count=entry_count,
            recent_emotions=", ".join(context.recent_emotions(profile.recent_memories, 4)) or "none yet",
            dominant_emotion=dominant,
            dominant_count=stat.count if stat else 0,
            writing_style=profile.writing_style,
        )

    def build_deeper_analysis_prompt(self, entry_count: int, profile: PatternProfile) -> str:
        streak_line = f"\nStreak: {profile.current_streak} days" if profile.current_streak > 1 else ""
        return self.prompts.render_template(
            "insight_deeper_analysis",
            entry_count=entry_count,
            recent_emotions=", ".join(context.recent_emotions(profile.recent_memories, 5)) or "none yet",
            dominant_emotion=profile.dominant_emotion,
            emotion_diversity=profile.emotion_diversity,
            writing_style=profile.writing_style,
            avg_word_count=profile.avg_word_count,
            themes=", ".join(profile.top_themes[:3]) or "still emerging",
            streak_line=streak_line,
        )

    def build_adaptive_prompt(self, entry_count: int, profile: PatternProfile) -> str:
        state = context.detect_emotional_state(profile)
        return self.prompts.render_template(
            "insight_adaptive",
            context_depth=context.build_context_depth(entry_count, profile.days_since_first_entry),
            emotional_landscape=context.build_emotional_landscape(profile),
            memory_connections=context.analyze_memory_connections(profile.recent_memories),
            temporal_patterns=context.analyze_temporal_notes(profile),
            expression_evolution=context.analyze_expression_evolution(profile),
            life_balance=context.categorize_life_areas(profile.top_themes).describe(),
            growth_trajectory=context.compare_to_past_self(entry_count, profile),
            empathy_guidance=context.build_empathy_guidance(state),
        )


# Global prompt builder instance
prompt_builder = PromptBuilder()
