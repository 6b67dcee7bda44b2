"""
Test the provider cascade
"""
import pytest

from conftest import FakeProvider, failing_provider
from app.agents.insight_orchestrator import CascadeExhausted, CascadeSuccess, InsightOrchestrator
from app.models.insight import PRIMARY_MODEL, SECONDARY_MODEL, STATIC_MODEL
from app.services.llm import ProviderAuthError
from app.services.provider_health import ProviderHealthTracker


def build(primary, secondary, epoch_clock) -> InsightOrchestrator:
    return InsightOrchestrator(primary, secondary, ProviderHealthTracker(60, clock=epoch_clock))


@pytest.mark.asyncio
@pytest.mark.parametrize("entry_count", [1, 5])
async def test_free_tier_counts_never_touch_primary(orchestrator, primary, secondary, entry_count):
    outcome = await orchestrator.generate("prompt", entry_count)

    assert isinstance(outcome, CascadeSuccess)
    assert outcome.provider == SECONDARY_MODEL
    assert primary.calls == []
    assert secondary.calls == [entry_count]


@pytest.mark.asyncio
async def test_free_tier_failure_is_exhausted_without_primary(primary, epoch_clock):
    secondary = failing_provider(SECONDARY_MODEL, "Llama 3.2", "model loading")
    outcome = await build(primary, secondary, epoch_clock).generate("prompt", 5)

    assert isinstance(outcome, CascadeExhausted)
    assert not outcome.succeeded
    assert primary.calls == []
    assert "Llama 3.2: model loading" in outcome.reason


@pytest.mark.asyncio
async def test_primary_used_for_other_counts(orchestrator, primary, secondary):
    outcome = await orchestrator.generate("prompt", 10)

    assert outcome.succeeded
    assert outcome.provider == PRIMARY_MODEL
    assert outcome.fallback_reason is None
    assert secondary.calls == []
    assert orchestrator.get_service_status()["primary_status"] == "working"


@pytest.mark.asyncio
async def test_primary_failure_falls_back_with_reason(secondary, epoch_clock):
    primary = FakeProvider(PRIMARY_MODEL, "GPT-4o-mini", error=ProviderAuthError(PRIMARY_MODEL, "Authentication failed", 401))
    orchestrator = build(primary, secondary, epoch_clock)

    outcome = await orchestrator.generate("prompt", 10)

    assert outcome.provider == SECONDARY_MODEL
    assert outcome.fallback_reason == "GPT-4o-mini: Authentication failed"
    assert orchestrator.health.should_attempt() is False


@pytest.mark.asyncio
async def test_cooldown_skips_primary_then_retries_after_expiry(secondary, epoch_clock):
    primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini")
    orchestrator = build(primary, secondary, epoch_clock)

    await orchestrator.generate("prompt", 10)
    assert primary.calls == [10]

    epoch_clock.now += 30
    outcome = await orchestrator.generate("prompt", 15)
    assert primary.calls == [10]
    assert outcome.provider == SECONDARY_MODEL
    assert outcome.fallback_reason == "GPT-4o-mini in cooldown after recent failure"

    status = orchestrator.get_service_status()
    assert status["is_primary_available"] is False
    assert status["primary_cooldown_remaining"] == 30.0

    epoch_clock.now += 31
    primary.error = None
    outcome = await orchestrator.generate("prompt", 20)
    assert primary.calls == [10, 20]
    assert outcome.provider == PRIMARY_MODEL
    assert orchestrator.get_service_status()["is_primary_available"] is True


@pytest.mark.asyncio
async def test_both_failing_is_exhausted_with_all_reasons(epoch_clock):
    primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini", "timeout")
    secondary = failing_provider(SECONDARY_MODEL, "Llama 3.2", "x" * 300)
    outcome = await build(primary, secondary, epoch_clock).generate("prompt", 20)

    assert isinstance(outcome, CascadeExhausted)
    assert len(outcome.reasons) == 2
    assert outcome.reasons[0] == "GPT-4o-mini: timeout"
    assert len(outcome.reasons[1]) == 100
    assert outcome.reason.startswith("GPT-4o-mini: timeout; Llama 3.2: ")


@pytest.mark.asyncio
async def test_regenerate_prefers_original_secondary(orchestrator, primary, secondary):
    outcome = await orchestrator.regenerate("prompt", 20, SECONDARY_MODEL)

    assert outcome.provider == SECONDARY_MODEL
    assert primary.calls == []


@pytest.mark.asyncio
async def test_regenerate_primary_falls_back_to_secondary(secondary, epoch_clock):
    primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini")
    outcome = await build(primary, secondary, epoch_clock).regenerate("prompt", 20, PRIMARY_MODEL)

    assert outcome.provider == SECONDARY_MODEL
    assert outcome.fallback_reason.startswith("GPT-4o-mini:")


@pytest.mark.asyncio
async def test_regenerate_static_original_runs_full_cascade(orchestrator, primary, secondary):
    outcome = await orchestrator.regenerate("prompt", 20, STATIC_MODEL)

    assert outcome.provider == PRIMARY_MODEL
    assert primary.calls == [20]


@pytest.mark.asyncio
async def test_regenerate_with_both_failing_is_exhausted(epoch_clock):
    primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini")
    secondary = failing_provider(SECONDARY_MODEL, "Llama 3.2")
    outcome = await build(primary, secondary, epoch_clock).regenerate("prompt", 20, PRIMARY_MODEL)

    assert isinstance(outcome, CascadeExhausted)
    assert len(outcome.reasons) == 2


@pytest.mark.asyncio
async def test_service_checks_and_close(orchestrator, primary, secondary):
    assert await orchestrator.test_all_services() == {PRIMARY_MODEL: True, SECONDARY_MODEL: True}

    await orchestrator.close()
    assert primary.closed and secondary.closed


@pytest.mark.asyncio
async def test_reason_names_provider_once(secondary, epoch_clock):
    primary = failing_provider(PRIMARY_MODEL, "GPT-4o-mini", "failed after 2 attempt(s): Request timed out")
    outcome = await build(primary, secondary, epoch_clock).generate("prompt", 10)

    assert outcome.fallback_reason == "GPT-4o-mini: failed after 2 attempt(s): Request timed out"
