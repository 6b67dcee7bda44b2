"""
Insight Service - insight lifecycle and regeneration quotas
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

from app.agents.insight_orchestrator import (
    CascadeOutcome, CascadeSuccess, InsightOrchestrator, insight_orchestrator,
)
from app.config import settings
from app.models.entry import Entry
from app.models.insight import (
    MAX_MESSAGE_LENGTH, STATIC_MODEL, GenerationMetadata, Insight, PatternSnapshot,
)
from app.models.pattern_profile import PatternProfile
from app.models.user import PatternCache, User
from app.services.db import DatabaseService, db_service
from app.services.insight_metadata import determine_insight_metadata
from app.services.llm import count_words, fit_to_length
from app.services.pattern_analysis import PatternAnalysisService
from app.services.prompt_builder import PromptBuilder, prompt_builder
from app.services.static_fallback import generate_static_insight
from app.utils.date_helpers import Clock, month_key, utc_now

logger = logging.getLogger("insights")

DASHBOARD_MAX_LIMIT = 20


class RegenerationStatus(str, Enum):
    REGENERATED = "regenerated"
    NOT_FOUND = "not_found"
    MONTHLY_LIMIT = "monthly_limit"
    PER_INSIGHT_LIMIT = "per_insight_limit"
    FAILED = "failed"


@dataclass
class RegenerationOutcome:
    status: RegenerationStatus
    insight: Optional[Insight] = None
    limit: Optional[int] = None
    remaining: int = 0
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status == RegenerationStatus.REGENERATED


def _snapshot(profile: PatternProfile, entry_count: int) -> PatternSnapshot:
    return PatternSnapshot(
        dominant_emotion=profile.dominant_emotion,
        entry_count=entry_count,
        average_word_count=profile.avg_word_count,
        streak_days=profile.current_streak,
        emotion_diversity=profile.emotion_diversity,
        content_quality=profile.content_quality,
    )


class InsightService:
    """Creates, regenerates and serves insights"""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        analysis: Optional[PatternAnalysisService] = None,
        builder: Optional[PromptBuilder] = None,
        orchestrator: Optional[InsightOrchestrator] = None,
        clock: Optional[Clock] = None,
        per_insight_limit: Optional[int] = None,
        monthly_limit: Optional[int] = None
    ):
        self.db = db or db_service
        self.clock = clock or utc_now
        self.analysis = analysis or PatternAnalysisService(self.db, self.clock)
        self.builder = builder or prompt_builder
        self.orchestrator = orchestrator or insight_orchestrator
        self.per_insight_limit = (
            per_insight_limit if per_insight_limit is not None else settings.regenerations_per_insight
        )
        self.monthly_limit = monthly_limit if monthly_limit is not None else settings.regenerations_per_month

    # ============ Helpers ============

    async def _load_user(self, user_id: str) -> Optional[User]:
        row = await self.db.get_user(user_id)
        return User.from_dict(row) if row else None

    async def _load_latest_entry(self, user_id: str, entry_id: Optional[str]) -> Optional[Entry]:
        if entry_id:
            row = await self.db.get_entry(entry_id, user_id)
        else:
            rows = await self.db.get_entries_for_user(user_id, limit=1)
            row = rows[0] if rows else None
        return Entry.model_validate(row) if row else None

    def _resolve_text(
        self,
        outcome: CascadeOutcome,
        entry_count: int,
        profile: PatternProfile,
        failure_prefix: str
    ) -> Tuple[str, GenerationMetadata]:
        """Message and metadata from the cascade, falling back to the static generator"""
        if isinstance(outcome, CascadeSuccess):
            message = fit_to_length(outcome.result.text, MAX_MESSAGE_LENGTH)
            if message:
                result = outcome.result
                return message, GenerationMetadata(
                    model=outcome.provider,
                    tokens_used=result.tokens_used,
                    input_tokens=result.input_tokens,
                    output_tokens=result.output_tokens,
                    cost=result.cost,
                    generation_time_ms=result.generation_time_ms,
                    word_count=count_words(message),
                    truncated=result.truncated or message != result.text.strip(),
                    fallback_reason=outcome.fallback_reason,
                )
            reason = f"{outcome.provider}: empty text"
        else:
            reason = outcome.reason

        logger.warning(f"Using static insight for entry #{entry_count}: {reason}")
        message = generate_static_insight(entry_count, profile)
        return message, GenerationMetadata(
            model=STATIC_MODEL,
            word_count=count_words(message),
            fallback_reason=f"{failure_prefix}: {reason}",
        )

    async def _save_user_counters(self, user: User):
        await self.db.update_user(user.id, {
            "ai_usage": user.ai_usage.model_dump(mode="json"),
            "insights_preferences": user.insights_preferences.model_dump(mode="json"),
            "pattern_cache": user.pattern_cache.model_dump(mode="json"),
        })

    # ============ Generation ============

    async def generate_insight_for_user(
        self,
        user_id: str,
        entry_count: int,
        trigger_entry_id: Optional[str] = None
    ) -> Optional[Insight]:
        """
        Produce the insight for (user, entry count), at most once

        Args:
            user_id: Owner
            entry_count: The user's current entry count
            trigger_entry_id: Entry that was just created

        Returns:
            The stored insight, or None when the user is missing/ineligible
            or the store failed. Never raises.
        """
        try:
            existing = await self.db.get_insight_by_trigger(user_id, entry_count)
            if existing:
                logger.info(f"Insight already exists for user {user_id} entry #{entry_count}")
                return Insight.from_dict(existing)

            user = await self._load_user(user_id)
            if user is None:
                logger.warning(f"User {user_id} not found, skipping insight")
                return None

            if not user.insights_preferences.should_receive_insight(entry_count):
                logger.debug(f"Entry #{entry_count} not eligible for an insight for user {user_id}")
                return None

            profile = await self.analysis.analyze_user_patterns(user_id, entry_count)
            latest_entry = await self._load_latest_entry(user_id, trigger_entry_id)
            prompt = self.builder.build_prompt(entry_count, profile, latest_entry)

            outcome = await self.orchestrator.generate(prompt, entry_count)
            message, metadata = self._resolve_text(outcome, entry_count, profile, "AI failure")
            classification = determine_insight_metadata(entry_count, profile)

            insight = Insight(
                user_id=user_id,
                trigger_entry_count=entry_count,
                trigger_entry_id=trigger_entry_id,
                type=classification.type,
                category=classification.category,
                title=classification.title,
                message=message,
                icon=classification.icon,
                color=classification.color,
                priority=classification.priority,
                pattern_data=_snapshot(profile, entry_count),
                generation_metadata=metadata,
                is_ai_generated=metadata.model != STATIC_MODEL,
                created_at=self.clock(),
            )
            stored = Insight.from_dict(await self.db.create_insight(insight.to_dict()))

        except Exception:
            logger.exception(f"Insight generation failed for user {user_id} entry #{entry_count}")
            return None

        if stored.id != insight.id:
            # A concurrent request stored this insight first
            return stored

        now = self.clock()
        user.ai_usage.track_usage(metadata.model, metadata.tokens_used, metadata.cost, now)
        user.insights_preferences.record_notification(now)
        user.pattern_cache = PatternCache(
            total_entries=profile.total_entries,
            dominant_emotion=profile.dominant_emotion,
            average_word_count=profile.avg_word_count,
            emotion_diversity=profile.emotion_diversity,
            current_streak=profile.current_streak,
            longest_streak=profile.longest_streak,
            last_calculated_at=now,
        )
        try:
            await self._save_user_counters(user)
        except Exception:
            logger.exception(f"Failed to update usage counters for user {user_id}")

        logger.info(
            f"Created {stored.type.value} insight for user {user_id} entry #{entry_count} "
            f"via {metadata.model}"
        )
        return stored

    # ============ Regeneration ============

    async def get_regeneration_allowance(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Monthly regeneration quota for a user"""
        user = await self._load_user(user_id)
        if user is None:
            return None
        now = self.clock()
        remaining = user.ai_usage.remaining_regenerations(now, self.monthly_limit)
        return {
            "limit": self.monthly_limit,
            "used": user.ai_usage.monthly_regenerations.count,
            "remaining": remaining,
            "month": month_key(now),
            "per_insight_limit": self.per_insight_limit,
        }

    async def regenerate_insight(self, insight_id: str, user_id: str) -> RegenerationOutcome:
        """
        Replace an insight's text, within the monthly and per-insight caps

        Args:
            insight_id: Insight to regenerate
            user_id: Requesting user (must own the insight)

        Returns:
            RegenerationOutcome; limits and missing records are reported as
            declined statuses, never raised
        """
        now = self.clock()
        try:
            row = await self.db.get_insight(insight_id, user_id)
            user = await self._load_user(user_id)
            if row is None or user is None:
                return RegenerationOutcome(RegenerationStatus.NOT_FOUND, message="Insight not found")

            insight = Insight.from_dict(row)

            remaining_month = user.ai_usage.remaining_regenerations(now, self.monthly_limit)
            if remaining_month <= 0:
                return RegenerationOutcome(
                    RegenerationStatus.MONTHLY_LIMIT,
                    limit=self.monthly_limit,
                    remaining=0,
                    message=f"Monthly regeneration limit of {self.monthly_limit} reached",
                )

            used = insight.generation_metadata.regenerate_count
            if used >= self.per_insight_limit:
                return RegenerationOutcome(
                    RegenerationStatus.PER_INSIGHT_LIMIT,
                    limit=self.per_insight_limit,
                    remaining=0,
                    message=f"This insight was already regenerated {used} times",
                )

            entry_count = insight.trigger_entry_count
            profile = await self.analysis.analyze_user_patterns(user_id, entry_count)
            latest_entry = await self._load_latest_entry(user_id, insight.trigger_entry_id)
            prompt = self.builder.build_prompt(entry_count, profile, latest_entry)

            outcome = await self.orchestrator.regenerate(
                prompt, entry_count, insight.generation_metadata.model
            )
            message, metadata = self._resolve_text(outcome, entry_count, profile, "Regen AI failure")
            metadata.regenerate_count = used + 1

            updated = await self.db.update_insight(insight.id, {
                "message": message,
                "generation_metadata": metadata.model_dump(mode="json"),
                "pattern_data": _snapshot(profile, entry_count).model_dump(mode="json"),
                "is_ai_generated": metadata.model != STATIC_MODEL,
            }, user_id=user_id)
            if updated is None:
                return RegenerationOutcome(RegenerationStatus.NOT_FOUND, message="Insight not found")

            user.ai_usage.track_regeneration(now)
            if metadata.model != STATIC_MODEL:
                user.ai_usage.track_usage(metadata.model, metadata.tokens_used, metadata.cost, now)
            await self._save_user_counters(user)

        except Exception:
            logger.exception(f"Insight regeneration failed for {insight_id}")
            return RegenerationOutcome(RegenerationStatus.FAILED, message="Regeneration failed")

        logger.info(f"Regenerated insight {insight_id} via {metadata.model} ({used + 1}/{self.per_insight_limit})")
        return RegenerationOutcome(
            RegenerationStatus.REGENERATED,
            insight=Insight.from_dict(updated),
            limit=self.monthly_limit,
            remaining=remaining_month - 1,
        )

    # ============ Reads and flags ============

    async def get_user_dashboard_insights(
        self,
        user_id: str,
        limit: int = 10,
        unread_only: bool = False
    ) -> List[Insight]:
        """Latest visible insights, newest first"""
        limit = max(1, min(limit, DASHBOARD_MAX_LIMIT))
        rows = await self.db.get_user_insights(user_id, limit=limit, unread_only=unread_only)
        return [Insight.from_dict(row) for row in rows]

    async def mark_insight_read(self, insight_id: str, user_id: str) -> Optional[Insight]:
        row = await self.db.get_insight(insight_id, user_id)
        if row is None:
            return None
        if row["is_read"]:
            return Insight.from_dict(row)

        updated = await self.db.update_insight(
            insight_id, {"is_read": True, "read_at": self.clock()}, user_id=user_id
        )
        return Insight.from_dict(updated) if updated else None

    async def toggle_insight_favorite(self, insight_id: str, user_id: str) -> Optional[Insight]:
        row = await self.db.get_insight(insight_id, user_id)
        if row is None:
            return None

        favorited = not row["is_favorited"]
        updated = await self.db.update_insight(insight_id, {
            "is_favorited": favorited,
            "favorited_at": self.clock() if favorited else None,
        }, user_id=user_id)
        return Insight.from_dict(updated) if updated else None

    async def get_insight_stats(self, user_id: str) -> Dict[str, Any]:
        counts = await self.db.get_insight_counts(user_id)
        entry_count = await self.db.count_entries(user_id)
        user = await self._load_user(user_id)

        stats = {
            "total_insights": counts["total"],
            "unread_insights": counts["unread"],
            "favorite_insights": counts["favorites"],
            "insights_by_category": counts["by_category"],
            "total_entries": entry_count,
        }
        if user is not None:
            stats["ai_usage"] = {
                "total_ai_insights": user.ai_usage.total_ai_insights,
                "static_insights": user.ai_usage.static_insights,
                "last_model_used": user.ai_usage.last_model_used,
                "regenerations_remaining": user.ai_usage.remaining_regenerations(
                    self.clock(), self.monthly_limit
                ),
            }
        return stats

    def get_service_status(self) -> Dict[str, Any]:
        status = self.orchestrator.get_service_status()
        status["regenerations_per_insight"] = self.per_insight_limit
        status["regenerations_per_month"] = self.monthly_limit
        return status


# Global insight service instance
insight_service = InsightService()
