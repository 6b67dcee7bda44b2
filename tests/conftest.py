"""
Shared fixtures: in-memory store, entry factory, fake providers and clocks
"""
from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from app.agents.insight_orchestrator import InsightOrchestrator
from app.models.entry import Entry
from app.models.insight import PRIMARY_MODEL, SECONDARY_MODEL
from app.services.db import DatabaseService
from app.services.insight_service import InsightService
from app.services.llm import ProviderError, ProviderResult, count_words
from app.services.pattern_analysis import PatternAnalysisService
from app.services.provider_health import ProviderHealthTracker

NOW = datetime(2026, 10, 19, 20, 0, 0)


def make_entry(
    days_ago: int = 0,
    emotion: Optional[str] = "😊 Happy",
    text: str = "Spent the evening walking by the river with a friend. It was a calm and happy night.",
    title: str = "Evening walk",
    user_id: str = "user-1",
    **kwargs
) -> Entry:
    """Entry created days_ago days before NOW"""
    return Entry(
        user_id=user_id,
        title=title,
        text=text,
        emotion=emotion,
        created_at=NOW - timedelta(days=days_ago),
        **kwargs
    )


def daily_entries(count: int, emotion: Optional[str] = "😊 Happy", user_id: str = "user-1") -> List[Entry]:
    """One entry per day ending today, newest first"""
    return [make_entry(days_ago=i, emotion=emotion, user_id=user_id) for i in range(count)]


class FakeClock:
    """Mutable clock returning naive UTC datetimes"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta):
        self.now += timedelta(**delta)


class FakeEpochClock:
    """Mutable epoch-seconds clock for the health tracker"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeProvider:
    """Provider stand-in that returns canned text or raises"""

    def __init__(self, name: str, display_name: str, text: Optional[str] = None, error: Optional[Exception] = None):
        self.name = name
        self.display_name = display_name
        self.text = text or (
            f"A warm and thoughtful reflection produced by {display_name}. "
            "Your memories show a steady rhythm of calm evenings and meaningful moments."
        )
        self.error = error
        self.calls: List[int] = []
        self.closed = False

    async def generate_insight(self, prompt: str, entry_count: int) -> ProviderResult:
        self.calls.append(entry_count)
        if self.error is not None:
            raise self.error
        return ProviderResult(
            text=self.text,
            model=self.name,
            tokens_used=120,
            input_tokens=80,
            output_tokens=40,
            cost=0.0001 if self.name == PRIMARY_MODEL else 0.0,
            generation_time_ms=15,
            word_count=count_words(self.text),
        )

    async def test_connection(self) -> bool:
        return self.error is None

    async def close(self):
        self.closed = True


def failing_provider(name: str, display_name: str, message: str = "Server returned an error") -> FakeProvider:
    return FakeProvider(name, display_name, error=ProviderError(name, message, 500))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def epoch_clock():
    return FakeEpochClock()


@pytest.fixture
def db():
    service = DatabaseService("sqlite://")
    service.initialize()
    return service


@pytest.fixture
def primary():
    return FakeProvider(PRIMARY_MODEL, "GPT-4o-mini")


@pytest.fixture
def secondary():
    return FakeProvider(SECONDARY_MODEL, "Llama 3.2")


@pytest.fixture
def orchestrator(primary, secondary, epoch_clock):
    return InsightOrchestrator(
        primary=primary,
        secondary=secondary,
        health=ProviderHealthTracker(60, clock=epoch_clock),
    )


@pytest.fixture
def service(db, orchestrator, clock):
    return InsightService(
        db=db,
        analysis=PatternAnalysisService(db, clock),
        orchestrator=orchestrator,
        clock=clock,
        per_insight_limit=3,
        monthly_limit=3,
    )


async def seed_user(db: DatabaseService, user_id: str = "user-1", entries: Optional[List[Entry]] = None, **user_fields):
    """Create a user and store its entries"""
    await db.create_user({"id": user_id, "nickname": "Sam", **user_fields})
    for entry in entries or []:
        await db.create_entry(entry.model_dump())
