"""
LLM Provider Base - OpenAI-compatible chat completions over httpx
Shared retry, error classification and word-count discipline for insight providers
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import asyncio
import logging
import time

import httpx

from app.services.prompt import PromptService, prompt_service
from app.utils.logger import provider_logger

_retry_logger = logging.getLogger("llm.retry")

TEMPERATURE = 0.7
TOP_P = 0.9


class ProviderError(Exception):
    """A provider call failed"""

    retryable = True

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        suffix = f" (HTTP {self.status_code})" if self.status_code else ""
        return f"{self.provider}: {self.message}{suffix}"


class ProviderAuthError(ProviderError):
    retryable = False


class ProviderQuotaError(ProviderError):
    retryable = False


class ProviderConfigurationError(ProviderError):
    retryable = False


class ProviderResponseError(ProviderError):
    """Empty, malformed or rejected output"""


@dataclass
class ProviderResult:
    """Text produced by a provider plus generation metrics"""
    text: str
    model: str
    tokens_used: Optional[int]
    input_tokens: int
    output_tokens: int
    cost: float
    generation_time_ms: int
    word_count: int
    truncated: bool = False


def expected_max_words(entry_count: int) -> int:
    """Upper end of the tier's target word range"""
    if entry_count == 1:
        return 80
    if entry_count == 5:
        return 100
    if entry_count <= 10:
        return 130
    return 150


def count_words(text: str) -> int:
    return len(text.split())


def truncate_words(text: str, max_words: int) -> str:
    """Keep the first max_words words and end with a period"""
    truncated = " ".join(text.split()[:max_words]).rstrip(",;:-")
    if not truncated.endswith((".", "!", "?")):
        truncated += "."
    return truncated


def fit_to_length(text: str, max_chars: int) -> str:
    """Cut text at a word boundary so it fits max_chars, ending with a period"""
    text = (text or "").strip()
    if len(text) <= max_chars:
        return text

    clipped = text[:max_chars - 1]
    if " " in clipped:
        clipped = clipped[:clipped.rfind(" ")]
    clipped = clipped.rstrip(",;:- ")
    if not clipped.endswith((".", "!", "?")):
        clipped += "."
    return clipped


class ChatCompletionProvider:
    """
    Base class for insight providers

    Subclasses set the tag/budgets and may override clean_output and
    validate_output.
    """

    name: str = "provider"
    display_name: str = "Provider"
    max_tokens_by_tier = (130, 170, 220, 260)
    truncate_slack = 50
    warn_slack = 20
    retry_delay = 1.0
    max_retry_delay = 5.0

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        prompts: Optional[PromptService] = None
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.max_retries = max(1, max_retries)
        if retry_delay is not None:
            self.retry_delay = retry_delay
        self.prompts = prompts or prompt_service

        limits = httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0
        )

        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"} if self.api_key else {},
            timeout=httpx.Timeout(timeout, connect=10.0),
            limits=limits,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_max_tokens(self, entry_count: int) -> int:
        """Max completion tokens for the tier (1 / 5 / ≤10 / more)"""
        first, early, deeper, adaptive = self.max_tokens_by_tier
        if entry_count == 1:
            return first
        if entry_count == 5:
            return early
        if entry_count <= 10:
            return deeper
        return adaptive

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return 0.0

    def build_payload(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.prompts.get_system_prompt()},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
        }

    def clean_output(self, text: str) -> str:
        return text.strip()

    def validate_output(self, text: str) -> Optional[str]:
        """Return a rejection reason, or None when the text is usable"""
        return None if text else "Empty response"

    def _classify_status_error(self, error: httpx.HTTPStatusError) -> ProviderError:
        status = error.response.status_code
        body = error.response.text[:200]

        if status == 429 or "insufficient_quota" in body:
            return ProviderQuotaError(self.name, f"Quota or rate limit exceeded: {body}", status)
        if status in (401, 403):
            return ProviderAuthError(self.name, "Authentication failed", status)
        return ProviderError(self.name, f"Server returned an error: {body}", status)

    async def chat_completion(self, payload: Dict[str, Any], attempt: int = 1) -> Dict[str, Any]:
        """
        Send one chat completion request

        Args:
            payload: Request body
            attempt: Attempt number, for logging

        Returns:
            Dict with 'content' and 'usage'
        """
        request_id = provider_logger.log_request(
            provider=self.display_name,
            model=self.model,
            messages=payload.get("messages", []),
            max_tokens=payload.get("max_tokens"),
            attempt=attempt,
        )

        start_time = time.time()
        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            error = self._classify_status_error(e)
            provider_logger.log_error(request_id, error)
            raise error from e
        except httpx.TimeoutException as e:
            provider_logger.log_error(request_id, e)
            raise ProviderError(self.name, f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            provider_logger.log_error(request_id, e)
            raise ProviderError(self.name, f"Network error: {e}") from e
        except ValueError as e:
            provider_logger.log_error(request_id, e)
            raise ProviderResponseError(self.name, f"Malformed response body: {e}") from e

        choices = data.get("choices") or [{}]
        content = ((choices[0].get("message") or {}).get("content") or "").strip()
        usage = data.get("usage") or {}

        provider_logger.log_response(request_id, content, usage, time.time() - start_time)
        return {"content": content, "usage": usage, "model": data.get("model")}

    def _finalize(self, raw: str, entry_count: int) -> Dict[str, Any]:
        """Clean, enforce word limits and validate"""
        text = self.clean_output(raw)
        if not text:
            raise ProviderResponseError(self.name, f"Empty response from {self.display_name}")

        expected_max = expected_max_words(entry_count)
        word_count = count_words(text)
        truncated = False

        if word_count > expected_max + self.warn_slack:
            _retry_logger.warning(
                f"{self.display_name} exceeded word count: {word_count} words (expected max: {expected_max})"
            )
        if word_count > expected_max + self.truncate_slack:
            text = truncate_words(text, expected_max)
            word_count = count_words(text)
            truncated = True
            _retry_logger.info(f"Truncated {self.display_name} output to {word_count} words")

        reason = self.validate_output(text)
        if reason:
            raise ProviderResponseError(self.name, f"Output quality check failed: {reason}")

        return {"text": text, "word_count": word_count, "truncated": truncated}

    def _backoff(self, attempt: int) -> float:
        return min(self.retry_delay * (2 ** (attempt - 1)), self.max_retry_delay)

    async def generate_insight(self, prompt: str, entry_count: int) -> ProviderResult:
        """
        Generate insight text with retries

        Args:
            prompt: Rendered tier prompt
            entry_count: Entry count that selects token budget and word limit

        Returns:
            ProviderResult

        Raises:
            ProviderError: after the last attempt, or immediately for
                non-retryable errors
        """
        if not self.is_configured:
            raise ProviderConfigurationError(self.name, f"{self.display_name} API key is not configured")
        if not prompt or not isinstance(prompt, str):
            raise ProviderError(self.name, "Invalid prompt")
        if entry_count < 1:
            raise ProviderError(self.name, "Invalid entry count")

        start_time = time.time()
        payload = self.build_payload(prompt, self.get_max_tokens(entry_count))
        last_error: Optional[ProviderError] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                data = await self.chat_completion(payload, attempt=attempt)
                output = self._finalize(data["content"], entry_count)

                usage = data["usage"]
                input_tokens = usage.get("prompt_tokens", 0) or 0
                output_tokens = usage.get("completion_tokens", 0) or 0
                total_tokens = usage.get("total_tokens")

                return ProviderResult(
                    text=output["text"],
                    model=self.name,
                    tokens_used=total_tokens,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    cost=self.calculate_cost(input_tokens, output_tokens),
                    generation_time_ms=int((time.time() - start_time) * 1000),
                    word_count=output["word_count"],
                    truncated=output["truncated"],
                )

            except ProviderError as e:
                last_error = e
                if not e.retryable:
                    _retry_logger.error(f"{self.display_name} {type(e).__name__}, stopping retries")
                    break
                if attempt < self.max_retries:
                    delay = self._backoff(attempt)
                    _retry_logger.warning(
                        f"{self.display_name} attempt {attempt} failed ({e}), retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)

        raise type(last_error)(
            self.name,
            f"failed after {attempt} attempt(s): {last_error.message}",
            last_error.status_code,
        )

    async def test_connection(self) -> bool:
        """Minimal request to check the provider is reachable"""
        if not self.is_configured:
            return False
        try:
            data = await self.chat_completion({
                "model": self.model,
                "messages": [{"role": "user", "content": "test"}],
                "max_tokens": 5,
            })
        except ProviderError as e:
            _retry_logger.warning(f"{self.display_name} connection test failed: {e}")
            return False
        return "content" in data

    async def close(self):
        await self.client.aclose()
