"""Client for the Azure OpenAI Responses API."""

from typing import Any, Dict, List, Optional

import structlog
from openai import AsyncAzureOpenAI

from ..config import Settings, get_settings
from ..errors import ConfigError, ModelResponseError

logger = structlog.get_logger(__name__)

_shared_client: Optional[AsyncAzureOpenAI] = None


def get_shared_client(settings: Settings) -> AsyncAzureOpenAI:
    """Return the process-wide model client, creating it on first use.

    The client holds no per-request state, so building it twice under a race
    only wastes a construction.
    """
    global _shared_client
    if _shared_client is None:
        if not settings.azure_openai_endpoint or not settings.azure_openai_api_key:
            raise ConfigError(
                "Azure OpenAI credentials not configured",
                details="Set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY",
            )
        _shared_client = AsyncAzureOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version=settings.azure_openai_api_version,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        logger.debug("Created Azure OpenAI client", endpoint=settings.azure_openai_endpoint)
    return _shared_client


def reset_shared_client() -> None:
    """Drop the cached client so the next call rebuilds it."""
    global _shared_client
    _shared_client = None


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_output_text(response: Any) -> str:
    """Pull the completion text out of a Responses API result.

    Prefers the direct ``output_text`` field and falls back to the first
    non-empty ``output_text`` item inside a ``message`` output entry.
    """
    direct = _field(response, "output_text")
    if isinstance(direct, str) and direct.strip():
        return direct.strip()

    for item in _field(response, "output") or []:
        if _field(item, "type") != "message":
            continue
        for content in _field(item, "content") or []:
            text = _field(content, "text")
            if _field(content, "type") == "output_text" and isinstance(text, str) and text.strip():
                return text.strip()

    raise ModelResponseError("No completion text returned from LLM")


class LLMClient:
    """Single deterministic call to a model deployment."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Any] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            return get_shared_client(self.settings)
        return self._client

    async def complete(
        self,
        deployment: str,
        messages: List[Dict[str, str]],
        max_output_tokens: int,
        text_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Run one completion and return its text.

        Decoding is deterministic (temperature 0), there is no streaming and
        no retry.
        """
        request: Dict[str, Any] = {
            "model": deployment,
            "input": messages,
            "max_output_tokens": max_output_tokens,
            "temperature": 0,
        }
        if text_format is not None:
            request["text"] = {"format": text_format}

        response = await self.client.responses.create(**request)
        return extract_output_text(response)
