"""
Test the insight lifecycle: generation, idempotency, regeneration quotas and read state
"""
import pytest
from unittest.mock import AsyncMock, patch

from conftest import FakeProvider, daily_entries, failing_provider, seed_user
from app.agents.insight_orchestrator import InsightOrchestrator
from app.models.insight import (
    MAX_MESSAGE_LENGTH, PRIMARY_MODEL, SECONDARY_MODEL, STATIC_MODEL, InsightType,
)
from app.models.user import User
from app.services.insight_service import InsightService, RegenerationStatus
from app.services.pattern_analysis import PatternAnalysisService
from app.services.provider_health import ProviderHealthTracker


def build_service(db, clock, epoch_clock, primary, secondary, **limits) -> InsightService:
    orchestrator = InsightOrchestrator(primary, secondary, ProviderHealthTracker(60, clock=epoch_clock))
    return InsightService(
        db=db,
        analysis=PatternAnalysisService(db, clock),
        orchestrator=orchestrator,
        clock=clock,
        per_insight_limit=limits.get("per_insight_limit", 3),
        monthly_limit=limits.get("monthly_limit", 3),
    )


async def load_user(db, user_id: str = "user-1") -> User:
    return User.from_dict(await db.get_user(user_id))


# ============ Generation ============

@pytest.mark.asyncio
async def test_first_entry_gets_welcome_insight_from_secondary(db, service, primary, secondary):
    entries = daily_entries(1)
    await seed_user(db, entries=entries)

    insight = await service.generate_insight_for_user("user-1", 1, entries[0].id)

    assert insight is not None
    assert insight.type == InsightType.MILESTONE
    assert insight.trigger_entry_id == entries[0].id
    assert insight.generation_metadata.model == SECONDARY_MODEL
    assert insight.is_ai_generated
    assert primary.calls == []
    assert 0 < len(insight.message) <= MAX_MESSAGE_LENGTH

    user = await load_user(db)
    assert user.ai_usage.secondary_insights == 1
    assert user.ai_usage.total_ai_insights == 1
    assert user.ai_usage.last_model_used == SECONDARY_MODEL
    assert user.insights_preferences.notification_count == 1
    assert user.pattern_cache.total_entries == 1


@pytest.mark.asyncio
async def test_generation_is_idempotent_per_entry_count(db, service, primary):
    await seed_user(db, entries=daily_entries(10))

    first = await service.generate_insight_for_user("user-1", 10)
    second = await service.generate_insight_for_user("user-1", 10)

    assert first.id == second.id
    assert primary.calls == [10]
    assert (await load_user(db)).ai_usage.primary_insights == 1


@pytest.mark.asyncio
async def test_primary_usage_tracks_tokens_and_cost(db, service):
    await seed_user(db, entries=daily_entries(10))

    insight = await service.generate_insight_for_user("user-1", 10)

    assert insight.generation_metadata.model == PRIMARY_MODEL
    assert insight.generation_metadata.tokens_used == 120
    user = await load_user(db)
    assert user.ai_usage.total_tokens_used == 120
    assert user.ai_usage.total_cost_incurred == pytest.approx(0.0001)


@pytest.mark.asyncio
async def test_ineligible_count_or_missing_user_yields_none(db, service, primary, secondary):
    await seed_user(db, entries=daily_entries(3))

    assert await service.generate_insight_for_user("user-1", 3) is None
    assert await service.generate_insight_for_user("ghost", 5) is None
    assert primary.calls == [] and secondary.calls == []


@pytest.mark.asyncio
async def test_disabled_preferences_yield_none(db, service):
    await seed_user(db, entries=daily_entries(5), insights_preferences={"enabled": False})
    assert await service.generate_insight_for_user("user-1", 5) is None


@pytest.mark.asyncio
async def test_both_providers_failing_falls_back_to_static(db, clock, epoch_clock):
    service = build_service(
        db, clock, epoch_clock,
        failing_provider(PRIMARY_MODEL, "GPT-4o-mini", "timeout"),
        failing_provider(SECONDARY_MODEL, "Llama 3.2", "model loading"),
    )
    await seed_user(db, entries=daily_entries(20))

    insight = await service.generate_insight_for_user("user-1", 20)

    assert insight.generation_metadata.model == STATIC_MODEL
    assert insight.generation_metadata.fallback_reason.startswith("AI failure: GPT-4o-mini: timeout")
    assert insight.is_ai_generated is False
    assert insight.type == InsightType.STREAK
    assert insight.message.startswith("20 days in a row!")

    user = await load_user(db)
    assert user.ai_usage.static_insights == 1
    assert user.ai_usage.total_ai_insights == 0


@pytest.mark.asyncio
async def test_overlong_provider_text_is_fitted(db, clock, epoch_clock, secondary):
    long_text = "This memory shows real growth. " * 40
    primary = FakeProvider(PRIMARY_MODEL, "GPT-4o-mini", text=long_text)
    service = build_service(db, clock, epoch_clock, primary, secondary)
    await seed_user(db, entries=daily_entries(10))

    insight = await service.generate_insight_for_user("user-1", 10)

    assert len(insight.message) <= MAX_MESSAGE_LENGTH
    assert insight.generation_metadata.truncated is True


@pytest.mark.asyncio
async def test_store_failure_yields_none(db, service):
    await seed_user(db, entries=daily_entries(5))

    with patch.object(db, "get_insight_by_trigger", AsyncMock(side_effect=RuntimeError("store down"))):
        assert await service.generate_insight_for_user("user-1", 5) is None


# ============ Regeneration ============

@pytest.mark.asyncio
async def test_regeneration_replaces_message_and_counts(db, service, primary):
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)
    primary.text = "A fresh take on your evenings: they are where you reset and find your footing again."

    outcome = await service.regenerate_insight(insight.id, "user-1")

    assert outcome.success
    assert outcome.insight.id == insight.id
    assert outcome.insight.message == primary.text
    assert outcome.insight.generation_metadata.regenerate_count == 1
    assert outcome.remaining == 2

    allowance = await service.get_regeneration_allowance("user-1")
    assert allowance["used"] == 1
    assert allowance["remaining"] == 2
    assert allowance["month"] == "2026-10"


@pytest.mark.asyncio
async def test_fourth_regeneration_of_an_insight_is_declined(db, clock, epoch_clock, primary, secondary):
    service = build_service(db, clock, epoch_clock, primary, secondary, per_insight_limit=3, monthly_limit=10)
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    for _ in range(3):
        assert (await service.regenerate_insight(insight.id, "user-1")).success

    outcome = await service.regenerate_insight(insight.id, "user-1")
    assert outcome.status == RegenerationStatus.PER_INSIGHT_LIMIT
    assert outcome.limit == 3
    assert outcome.remaining == 0

    stored = await db.get_insight(insight.id)
    assert stored["generation_metadata"]["regenerate_count"] == 3


@pytest.mark.asyncio
async def test_monthly_limit_resets_next_month(db, clock, epoch_clock, primary, secondary):
    service = build_service(db, clock, epoch_clock, primary, secondary, per_insight_limit=10, monthly_limit=3)
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    for _ in range(3):
        assert (await service.regenerate_insight(insight.id, "user-1")).success

    declined = await service.regenerate_insight(insight.id, "user-1")
    assert declined.status == RegenerationStatus.MONTHLY_LIMIT
    assert declined.limit == 3

    clock.advance(days=20)
    outcome = await service.regenerate_insight(insight.id, "user-1")
    assert outcome.success
    assert outcome.remaining == 2

    user = await load_user(db)
    assert user.ai_usage.monthly_regenerations.month == "2026-11"
    assert user.ai_usage.monthly_regenerations.count == 1


@pytest.mark.asyncio
async def test_monthly_limit_checked_before_per_insight_limit(db, service):
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    for _ in range(3):
        await service.regenerate_insight(insight.id, "user-1")

    outcome = await service.regenerate_insight(insight.id, "user-1")
    assert outcome.status == RegenerationStatus.MONTHLY_LIMIT


@pytest.mark.asyncio
async def test_regenerating_unknown_or_foreign_insight_is_not_found(db, service):
    await seed_user(db, entries=daily_entries(10))
    await seed_user(db, user_id="user-2")
    insight = await service.generate_insight_for_user("user-1", 10)

    assert (await service.regenerate_insight("missing", "user-1")).status == RegenerationStatus.NOT_FOUND
    assert (await service.regenerate_insight(insight.id, "user-2")).status == RegenerationStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_regeneration_falls_back_to_static(db, clock, epoch_clock, primary, secondary):
    service = build_service(db, clock, epoch_clock, primary, secondary)
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    service.orchestrator.primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini")
    service.orchestrator.secondary = failing_provider(SECONDARY_MODEL, "Llama 3.2")

    outcome = await service.regenerate_insight(insight.id, "user-1")

    assert outcome.success
    metadata = outcome.insight.generation_metadata
    assert metadata.model == STATIC_MODEL
    assert metadata.fallback_reason.startswith("Regen AI failure: ")
    assert metadata.regenerate_count == 1
    assert outcome.insight.is_ai_generated is False


@pytest.mark.asyncio
async def test_regeneration_store_failure_is_reported(db, service):
    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    with patch.object(db, "update_insight", AsyncMock(side_effect=RuntimeError("store down"))):
        outcome = await service.regenerate_insight(insight.id, "user-1")

    assert outcome.status == RegenerationStatus.FAILED
    assert not outcome.success


# ============ Reads and flags ============

@pytest.mark.asyncio
async def test_dashboard_read_and_favorite(db, service, clock):
    await seed_user(db, entries=daily_entries(10))
    ids = []
    for count in (1, 5, 10):
        ids.append((await service.generate_insight_for_user("user-1", count)).id)
        clock.advance(minutes=1)

    dashboard = await service.get_user_dashboard_insights("user-1", limit=50)
    assert [insight.id for insight in dashboard] == list(reversed(ids))

    read = await service.mark_insight_read(ids[0], "user-1")
    assert read.is_read and read.read_at is not None
    again = await service.mark_insight_read(ids[0], "user-1")
    assert again.read_at == read.read_at

    unread = await service.get_user_dashboard_insights("user-1", unread_only=True)
    assert ids[0] not in [insight.id for insight in unread]

    favorited = await service.toggle_insight_favorite(ids[1], "user-1")
    assert favorited.is_favorited and favorited.favorited_at is not None
    unfavorited = await service.toggle_insight_favorite(ids[1], "user-1")
    assert not unfavorited.is_favorited and unfavorited.favorited_at is None

    assert await service.mark_insight_read(ids[0], "user-2") is None
    assert await service.toggle_insight_favorite("missing", "user-1") is None


@pytest.mark.asyncio
async def test_insight_stats_and_service_status(db, service):
    await seed_user(db, entries=daily_entries(5))
    await service.generate_insight_for_user("user-1", 1)
    await service.generate_insight_for_user("user-1", 5)

    stats = await service.get_insight_stats("user-1")
    assert stats["total_insights"] == 2
    assert stats["unread_insights"] == 2
    assert stats["insights_by_category"] == {"achievement": 1, "discovery": 1}
    assert stats["total_entries"] == 5
    assert stats["ai_usage"]["total_ai_insights"] == 2

    status = service.get_service_status()
    assert status["primary_provider"] == PRIMARY_MODEL
    assert status["regenerations_per_month"] == 3


@pytest.mark.asyncio
async def test_zero_monthly_limit_is_respected(db, clock, epoch_clock, primary, secondary):
    service = build_service(db, clock, epoch_clock, primary, secondary, per_insight_limit=0, monthly_limit=0)
    assert service.per_insight_limit == 0
    assert service.monthly_limit == 0

    await seed_user(db, entries=daily_entries(10))
    insight = await service.generate_insight_for_user("user-1", 10)

    outcome = await service.regenerate_insight(insight.id, "user-1")
    assert outcome.status == RegenerationStatus.MONTHLY_LIMIT
    assert outcome.limit == 0
