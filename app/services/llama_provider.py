"""
Secondary provider - Llama 3.2 3B Instruct via the Hugging Face router (free tier)
"""
import re
from typing import Optional

from app.config import settings
from app.models.insight import SECONDARY_MODEL
from app.services.llm import ChatCompletionProvider

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)
_TAG = re.compile(r"</?[^>]+(>|$)")
_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_SPECIAL_CHARS = re.compile(r"[^a-zA-Z0-9\s.,!?'-]")

MIN_OUTPUT_CHARS = 50
MAX_OUTPUT_CHARS = 2000


class LlamaInsightProvider(ChatCompletionProvider):
    """Secondary insight provider with output cleanup and validation"""

    name = SECONDARY_MODEL
    display_name = "Llama 3.2"
    max_tokens_by_tier = (150, 190, 240, 280)
    truncate_slack = 30
    retry_delay = 2.0
    max_retry_delay = 8.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            api_key=api_key if api_key is not None else settings.huggingface_api_key,
            base_url=base_url or settings.huggingface_base_url,
            model=model or settings.huggingface_model,
            timeout=kwargs.pop("timeout", settings.huggingface_timeout_seconds),
            max_retries=kwargs.pop("max_retries", settings.provider_max_retries),
            **kwargs
        )

    def clean_output(self, text: str) -> str:
        """Strip reasoning blocks, tags and code fences; end on a full sentence"""
        if not text:
            return ""

        cleaned = _THINK_BLOCK.sub("", text)
        cleaned = _TAG.sub("", cleaned)
        cleaned = _CODE_FENCE.sub("", cleaned)
        cleaned = _EXTRA_NEWLINES.sub("\n\n", cleaned).strip()

        if cleaned and cleaned[-1] not in ".!?":
            last_punctuation = max(cleaned.rfind("."), cleaned.rfind("?"), cleaned.rfind("!"))
            if last_punctuation > 50:
                cleaned = cleaned[:last_punctuation + 1]
            else:
                cleaned += "."

        return cleaned

    def validate_output(self, text: str) -> Optional[str]:
        if not text or len(text) < MIN_OUTPUT_CHARS:
            return "Output too short"
        if len(text) > MAX_OUTPUT_CHARS:
            return "Output too long"

        if len(_SPECIAL_CHARS.findall(text)) / len(text) > 0.15:
            return "Too many special characters"

        words = text.lower().split()
        if len(words) > 20 and len(set(words)) / len(words) < 0.5:
            return "Too much repetition"

        return None
