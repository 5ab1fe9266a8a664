"""Chat-completion clients that turn entity payloads into descriptions.

Every supported provider exposes an OpenAI-compatible endpoint, so a
single :class:`OpenAICompatibleClient` built on the ``openai`` SDK covers
them all; only the base URL differs.
"""

from __future__ import annotations

import abc
import json
import re
from typing import Any, Optional

import structlog
from openai import OpenAI, OpenAIError

from plugin_profiler.config import settings

logger = structlog.get_logger(__name__)

# ------------------------------------------------------------------
# System prompt
# ------------------------------------------------------------------

SYSTEM_PROMPT = """You are a WordPress plugin architecture expert. You will receive metadata \
about PHP and JavaScript entities extracted from a WordPress plugin via static analysis.

For each entity, write a clear 2-3 sentence description explaining:
1. What this entity does
2. How it fits into the plugin's architecture
3. Any important side effects, dependencies, or external interactions

Use precise technical language. Reference specific hook names, class relationships, and data \
operations mentioned in the metadata. Do not speculate about behavior not evident from the metadata.

Respond with a JSON object mapping entity IDs to descriptions.
"""

PROVIDER_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1/",
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "deepseek": "https://api.deepseek.com/v1/",
    "claude": "https://api.anthropic.com/v1/",
    "ollama": "http://localhost:11434/v1/",
}

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.MULTILINE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$", re.MULTILINE)


def parse_descriptions(raw: str) -> dict[str, str]:
    """Extract an ``{id: description}`` mapping from a model response.

    Code fences and surrounding commentary are ignored; the first JSON
    object in the text is decoded and non-string values are dropped.

    Returns:
        The mapping, or ``{}`` when no JSON object can be decoded.
    """
    cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", raw))
    start = cleaned.find("{")
    if start == -1:
        logger.warning("llm_response_without_json")
        return {}

    decoded: Any = None
    try:
        decoded, _ = json.JSONDecoder().raw_decode(cleaned, start)
    except json.JSONDecodeError:
        end = cleaned.rfind("}")
        try:
            decoded = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            logger.warning("llm_response_unparseable", chars=len(raw))
            return {}

    if not isinstance(decoded, dict):
        return {}
    return {str(key): value for key, value in decoded.items() if isinstance(value, str)}


class DescriptionClient(abc.ABC):
    """Capability that describes a batch of entity payloads."""

    @abc.abstractmethod
    def generate_descriptions(self, entities: list[dict[str, Any]]) -> dict[str, str]:
        """Return ``{entity id: description}`` for *entities*.

        Implementations return an empty mapping on total failure rather
        than raising.
        """


class OpenAICompatibleClient(DescriptionClient):
    """Chat-completion client for any OpenAI-compatible provider.

    The SDK retries a failed request once before the batch is given up.

    Args:
        api_key: Provider API key.
        model: Model name.
        base_url: Endpoint root (``.../v1/``).
        timeout: Per-request timeout in seconds.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        temperature: float = 0.2,
    ) -> None:
        self._client = OpenAI(api_key=api_key or "unused", base_url=base_url, timeout=timeout, max_retries=1)
        self.model = model
        self.base_url = base_url
        self.temperature = temperature

    @classmethod
    def for_provider(
        cls,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> OpenAICompatibleClient:
        """Build a client for a named provider, filling gaps from settings.

        Unknown providers fall back to the OpenAI endpoint unless
        *base_url* (or ``settings.llm_base_url``) is given.
        """
        provider = (provider or settings.llm_provider).lower()
        resolved_url = base_url or settings.llm_base_url or PROVIDER_BASE_URLS.get(provider, PROVIDER_BASE_URLS["openai"])
        return cls(
            api_key=api_key or settings.llm_api_key,
            model=model or settings.llm_model,
            base_url=resolved_url,
            timeout=timeout or settings.llm_timeout,
        )

    def generate_descriptions(self, entities: list[dict[str, Any]]) -> dict[str, str]:
        user_message = json.dumps({"entities": entities}, ensure_ascii=False)

        logger.info("llm_request", model=self.model, entities=len(entities), user_msg_chars=len(user_message))

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_message},
                ],
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            logger.warning("llm_request_failed", model=self.model, error=str(exc))
            return {}

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.warning("llm_empty_response", model=self.model)
            return {}

        logger.info(
            "llm_response",
            model=self.model,
            tokens_prompt=response.usage.prompt_tokens if response.usage else 0,
            tokens_completion=response.usage.completion_tokens if response.usage else 0,
        )
        return parse_descriptions(content)
