"""
Insight Orchestrator - ordered fallback cascade over the two insight providers

Primary (paid) → secondary (free); entry counts 1 and 5 go to the secondary only.
A failed primary is skipped for a cooldown window.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import asyncio

from app.config import settings
from app.services.gpt_provider import OpenAIInsightProvider
from app.services.llama_provider import LlamaInsightProvider
from app.services.llm import ChatCompletionProvider, ProviderError, ProviderResult
from app.services.provider_health import ProviderHealthTracker
from app.utils.logger import cascade_logger

FREE_TIER_ENTRY_COUNTS = frozenset({1, 5})
MAX_REASON_LENGTH = 100


@dataclass
class CascadeSuccess:
    provider: str
    result: ProviderResult
    fallback_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return True


@dataclass
class CascadeExhausted:
    reasons: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return "; ".join(self.reasons) or "No provider available"


CascadeOutcome = Union[CascadeSuccess, CascadeExhausted]


def _clip(message: str) -> str:
    return message[:MAX_REASON_LENGTH]


class InsightOrchestrator:
    """Chooses providers, tracks primary health and reports why fallbacks happened"""

    def __init__(
        self,
        primary: ChatCompletionProvider,
        secondary: ChatCompletionProvider,
        health: Optional[ProviderHealthTracker] = None
    ):
        self.primary = primary
        self.secondary = secondary
        self.health = health or ProviderHealthTracker(settings.primary_cooldown_seconds)

    async def _try(self, provider: ChatCompletionProvider, prompt: str, entry_count: int) -> ProviderResult:
        cascade_logger.log_attempt(provider.display_name)
        result = await provider.generate_insight(prompt, entry_count)
        cascade_logger.log_success(provider.display_name, result.word_count)
        return result

    async def _try_primary(self, prompt: str, entry_count: int, reasons: List[str]) -> Optional[ProviderResult]:
        """Attempt the primary unless cooling down; failures update health and reasons"""
        if not self.health.should_attempt():
            reason = f"{self.primary.display_name} in cooldown after recent failure"
            cascade_logger.log_skip(self.primary.display_name, reason)
            reasons.append(reason)
            return None

        try:
            result = await self._try(self.primary, prompt, entry_count)
        except ProviderError as e:
            self.health.record_failure()
            cascade_logger.log_failure(self.primary.display_name, e)
            reasons.append(_clip(f"{self.primary.display_name}: {e.message}"))
            return None

        self.health.record_success()
        return result

    async def _try_secondary(self, prompt: str, entry_count: int, reasons: List[str]) -> Optional[ProviderResult]:
        try:
            return await self._try(self.secondary, prompt, entry_count)
        except ProviderError as e:
            cascade_logger.log_failure(self.secondary.display_name, e)
            reasons.append(_clip(f"{self.secondary.display_name}: {e.message}"))
            return None

    def _success(self, provider: ChatCompletionProvider, result: ProviderResult, reasons: List[str]) -> CascadeSuccess:
        return CascadeSuccess(
            provider=provider.name,
            result=result,
            fallback_reason="; ".join(reasons) or None,
        )

    def _exhausted(self, reasons: List[str]) -> CascadeExhausted:
        cascade_logger.log_exhausted(reasons)
        return CascadeExhausted(reasons=reasons)

    async def generate(self, prompt: str, entry_count: int) -> CascadeOutcome:
        """
        Generate insight text through the cascade

        Args:
            prompt: Rendered prompt
            entry_count: Entry count (selects free tier, budgets and limits)

        Returns:
            CascadeSuccess tagged with the provider, or CascadeExhausted with every reason
        """
        cascade_logger.log_start("generate", entry_count)
        reasons: List[str] = []

        if entry_count in FREE_TIER_ENTRY_COUNTS:
            result = await self._try_secondary(prompt, entry_count, reasons)
            if result is not None:
                return self._success(self.secondary, result, [])
            return self._exhausted(reasons)

        result = await self._try_primary(prompt, entry_count, reasons)
        if result is not None:
            return self._success(self.primary, result, [])

        result = await self._try_secondary(prompt, entry_count, reasons)
        if result is not None:
            return self._success(self.secondary, result, reasons)

        return self._exhausted(reasons)

    async def regenerate(self, prompt: str, entry_count: int, original_provider: Optional[str]) -> CascadeOutcome:
        """
        Regenerate preferring the provider that produced the original text

        Args:
            prompt: Freshly rendered prompt
            entry_count: Insight trigger entry count
            original_provider: Model tag stored on the insight

        Returns:
            CascadeOutcome; unknown original providers run the full generate cascade
        """
        if original_provider not in (self.primary.name, self.secondary.name):
            return await self.generate(prompt, entry_count)

        cascade_logger.log_start("regenerate", entry_count)
        reasons: List[str] = []

        if original_provider == self.primary.name:
            result = await self._try_primary(prompt, entry_count, reasons)
            if result is not None:
                return self._success(self.primary, result, [])

        result = await self._try_secondary(prompt, entry_count, reasons)
        if result is not None:
            return self._success(self.secondary, result, reasons)

        return self._exhausted(reasons)

    def get_service_status(self) -> Dict[str, Any]:
        snapshot = self.health.snapshot()
        return {
            "primary_provider": self.primary.name,
            "secondary_provider": self.secondary.name,
            "primary_status": snapshot["status"],
            "primary_last_failure": snapshot["last_failure"],
            "primary_cooldown_remaining": snapshot["cooldown_remaining"],
            "is_primary_available": snapshot["available"],
        }

    async def test_all_services(self) -> Dict[str, bool]:
        """Ping both providers"""
        primary_ok, secondary_ok = await asyncio.gather(
            self.primary.test_connection(),
            self.secondary.test_connection(),
        )
        return {self.primary.name: primary_ok, self.secondary.name: secondary_ok}

    async def close(self):
        await self.primary.close()
        await self.secondary.close()


# Global orchestrator instance
insight_orchestrator = InsightOrchestrator(
    primary=OpenAIInsightProvider(),
    secondary=LlamaInsightProvider(),
)
