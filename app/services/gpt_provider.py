"""
Primary provider - OpenAI gpt-4o-mini (paid, token-priced)
"""
from typing import Any, Dict, Optional

from app.config import settings
from app.models.insight import PRIMARY_MODEL
from app.services.llm import ChatCompletionProvider


class OpenAIInsightProvider(ChatCompletionProvider):
    """Primary insight provider"""

    name = PRIMARY_MODEL
    display_name = "GPT-4o-mini"
    max_tokens_by_tier = (130, 170, 220, 260)
    truncate_slack = 50
    retry_delay = 1.0
    max_retry_delay = 5.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        input_cost_per_million: Optional[float] = None,
        output_cost_per_million: Optional[float] = None,
        **kwargs
    ):
        super().__init__(
            api_key=api_key if api_key is not None else settings.openai_api_key,
            base_url=base_url or settings.openai_base_url,
            model=model or settings.openai_model,
            timeout=kwargs.pop("timeout", settings.openai_timeout_seconds),
            max_retries=kwargs.pop("max_retries", settings.provider_max_retries),
            **kwargs
        )
        self.input_cost_per_million = (
            input_cost_per_million if input_cost_per_million is not None
            else settings.openai_input_cost_per_million
        )
        self.output_cost_per_million = (
            output_cost_per_million if output_cost_per_million is not None
            else settings.openai_output_cost_per_million
        )

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Cost in USD"""
        return (
            input_tokens / 1_000_000 * self.input_cost_per_million
            + output_tokens / 1_000_000 * self.output_cost_per_million
        )

    def build_payload(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        payload = super().build_payload(prompt, max_tokens)
        payload["frequency_penalty"] = 0.3
        payload["presence_penalty"] = 0.2
        return payload
