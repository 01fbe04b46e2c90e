"""AI gateway client for OpenAI-compatible chat completions."""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import httpx

from maze_race.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AIGatewayError(Exception):
    """Raised when the gateway cannot produce a usable completion."""

    pass


@dataclass(frozen=True)
class AIModel:
    """A model that can enter a race."""

    id: str
    name: str
    emoji: str
    color: str
    description: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "color": self.color,
            "description": self.description,
        }


AI_MODELS: tuple[AIModel, ...] = (
    AIModel(
        id="x-ai/grok-4",
        name="Grok 4",
        emoji="🚀",
        color="#FF6B35",
        description="Latest model from xAI",
    ),
    AIModel(
        id="google/gemini-2.5-pro",
        name="Gemini 2.5 Pro",
        emoji="🌟",
        color="#4285F4",
        description="Google flagship model",
    ),
    AIModel(
        id="anthropic/claude-sonnet-4.5",
        name="Claude Sonnet 4.5",
        emoji="🎭",
        color="#D97706",
        description="Anthropic intelligent assistant",
    ),
    AIModel(
        id="openai/gpt-5",
        name="GPT-5",
        emoji="🧠",
        color="#10A37F",
        description="OpenAI most powerful model",
    ),
    AIModel(
        id="openai/gpt-4o",
        name="GPT-4o",
        emoji="💡",
        color="#AB68FF",
        description="OpenAI multimodal model",
    ),
)

_MODELS_BY_ID = {model.id: model for model in AI_MODELS}


def get_available_models() -> list[AIModel]:
    """Return the registered race models."""
    return list(AI_MODELS)


def resolve_model(model_id: str) -> AIModel:
    """
    Look up a model by gateway id.

    Ids that are not registered but look like gateway ids ("vendor/model")
    get a generic entry so any gateway model can race.

    Raises:
        KeyError: If the id is unknown and not a vendor/model id.
    """
    if model_id in _MODELS_BY_ID:
        return _MODELS_BY_ID[model_id]
    if "/" in model_id and not model_id.startswith("/") and not model_id.endswith("/"):
        return AIModel(
            id=model_id,
            name=model_id.split("/")[-1],
            emoji="🤖",
            color="#64748B",
            description=f"Gateway model {model_id}",
        )
    raise KeyError(f"Unknown model: {model_id}")


def extract_content(data: dict[str, Any], strict: bool = True) -> str:
    """
    Pull the reply text out of a chat-completion response body.

    Only choices[0].message.content is read. With strict=False a missing
    choice or blank content comes back as "" instead of raising.

    Raises:
        AIGatewayError: If strict and the body has no usable content.
    """
    choices = data.get("choices") or []
    if not choices:
        if not strict:
            return ""
        raise AIGatewayError("Gateway returned empty choices array")

    message = choices[0].get("message") or {}
    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        logger.debug(f"Empty content. choices[0] structure: {json.dumps(choices[0])[:300]}")
        if not strict:
            return ""
        raise AIGatewayError("Gateway returned empty content")

    return content


class AIGatewayClient:
    """Async client for the external chat-completion gateway."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client, creating it on first use."""
        if self._client is None:
            headers = {
                "Content-Type": "application/json",
                "HTTP-Referer": self.settings.ai_referer,
                "X-Title": self.settings.ai_title,
            }
            if self.settings.ai_api_key:
                headers["Authorization"] = f"Bearer {self.settings.ai_api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.settings.ai_base_url,
                headers=headers,
                timeout=self.settings.planning_timeout_ms / 1000,
                transport=self._transport,
            )
        return self._client

    async def chat_completion(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        """
        Request a chat completion.

        Args:
            model: Gateway model id
            messages: Ordered role/content messages
            temperature: Sampling temperature
            max_tokens: Completion token budget

        Returns:
            Decoded response body

        Raises:
            AIGatewayError: On transport errors, non-2xx status, or an error body
        """
        client = self._get_client()

        try:
            response = await client.post(
                "/chat/completions",
                json={
                    "model": model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
            )
        except httpx.HTTPError as e:
            raise AIGatewayError(f"Gateway request failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            raise AIGatewayError(
                f"Gateway error {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AIGatewayError(f"Gateway returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AIGatewayError("Gateway response body is not a JSON object")

        # Some providers return 200 with an error object
        if "error" in data:
            error_info = data["error"]
            error_msg = error_info.get("message", str(error_info)) if isinstance(error_info, dict) else str(error_info)
            raise AIGatewayError(f"Gateway error in body: {error_msg[:200]}")

        return data

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Request a chat completion and return only the reply text."""
        data = await self.chat_completion(model, messages, temperature, max_tokens)
        return extract_content(data)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass
class ModelCheckResult:
    """Result of a connectivity check against one model."""

    model: AIModel
    status: str  # success, error
    time_ms: int
    response: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = {
            "model": self.model.to_dict(),
            "status": self.status,
            "time_ms": self.time_ms,
        }
        if self.response is not None:
            result["response"] = self.response
        if self.error is not None:
            result["error"] = self.error
        return result


async def check_model(client: AIGatewayClient, model: AIModel) -> ModelCheckResult:
    """Send a one-word prompt to a model and report whether it answered."""
    start_time = time.monotonic()

    try:
        content = await client.complete(
            model.id,
            [{"role": "user", "content": 'Say "Hello" in one word only.'}],
            temperature=0.1,
            max_tokens=20,
        )
    except AIGatewayError as e:
        elapsed = int((time.monotonic() - start_time) * 1000)
        logger.warning(f"Connectivity check failed for {model.name}: {e}")
        return ModelCheckResult(model=model, status="error", time_ms=elapsed, error=str(e))

    elapsed = int((time.monotonic() - start_time) * 1000)
    return ModelCheckResult(model=model, status="success", time_ms=elapsed, response=content.strip())


async def check_models(client: AIGatewayClient, models: Iterable[AIModel]) -> list[ModelCheckResult]:
    """Check several models concurrently."""
    return list(await asyncio.gather(*(check_model(client, model) for model in models)))


# Singleton instance
_ai_gateway_client: Optional[AIGatewayClient] = None


def get_ai_gateway_client() -> AIGatewayClient:
    """Get singleton gateway client instance."""
    global _ai_gateway_client
    if _ai_gateway_client is None:
        _ai_gateway_client = AIGatewayClient()
    return _ai_gateway_client


async def close_ai_gateway_client() -> None:
    """Close the singleton client if it was created."""
    global _ai_gateway_client
    if _ai_gateway_client is not None:
        await _ai_gateway_client.close()
        _ai_gateway_client = None
