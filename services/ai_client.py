from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Literal

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI, RateLimitError

logger = logging.getLogger(__name__)

ResponseFormat = Literal["json_object", "text"]

# Deterministic reply served when the client runs with a sandbox credential.
SANDBOX_MODEL = "mock-gpt-4o-mini"
SANDBOX_PAYLOAD: dict[str, object] = {
    "title": "Luminoso trilocale con balcone nel cuore di Milano",
    "summary": (
        "Appartamento di 85 m² al terzo piano in zona Porta Romana, completamente ristrutturato, "
        "con ambienti luminosi e ben distribuiti e un balcone panoramico."
    ),
    "description": "\n\n".join(
        [
            "In zona Porta Romana a Milano proponiamo un trilocale di 85 m² al terzo piano, "
            "completamente ristrutturato.",
            "La zona giorno gode di doppia esposizione, mentre la zona notte comprende due camere "
            "e un bagno finestrato.",
            "Il balcone affaccia sul cortile interno e l'edificio è servito da ascensore.",
            "La fermata della metropolitana Porta Romana e i negozi di quartiere si raggiungono "
            "a piedi in pochi minuti.",
            "Il prezzo e le condizioni sono da concordare; tutti i dettagli vanno verificati "
            "prima della conclusione.",
        ]
    ),
    "highlights": [
        "Appartamento completamente ristrutturato",
        "Balcone con esposizione luminosa",
        "Posizione comoda a Porta Romana",
        "85 m² ben distribuiti",
        "Terzo piano con ascensore",
    ],
    "disclaimer": (
        "Le informazioni sono indicative e non costituiscono vincolo contrattuale. "
        "È necessario verificare tutti i dettagli prima della conclusione."
    ),
    "seo": {
        "keywords": [
            "trilocale Milano",
            "appartamento Porta Romana",
            "vendita immobile",
            "balcone",
            "ristrutturato",
        ],
        "metaDescription": (
            "Luminoso trilocale ristrutturato con balcone a Porta Romana, Milano. "
            "85 m² al terzo piano con ascensore, vicino alla metro. Scopri di più."
        ),
    },
}
SANDBOX_USAGE = {"prompt_tokens": 150, "completion_tokens": 200, "total_tokens": 350}


class AICompletionError(RuntimeError):
    """Raised when the chat-completion provider cannot produce an answer."""

    def __init__(self, message: str, request_id: str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class AIRateLimitError(AICompletionError):
    """The provider rejected the call because of rate limiting."""


class AIUpstreamError(AICompletionError):
    """The provider failed or was unreachable."""


class AIConfigurationError(RuntimeError):
    """Raised when the client is created without usable credentials."""


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ChatCompletion:
    content: str
    model: str
    request_id: str
    usage: TokenUsage | None = None


def new_request_id(prefix: str = "ai") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ChatCompletionClient:
    """Send chat messages to an OpenAI-compatible endpoint.

    When ``api_key`` starts with ``sandbox_prefix`` the client never touches the
    network: every call returns :data:`SANDBOX_PAYLOAD` with fixed token usage.
    Test suites and local sandboxes rely on this mode.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        temperature: float = 0.6,
        top_p: float = 0.8,
        frequency_penalty: float = 0.2,
        max_tokens: int = 2000,
        sandbox_prefix: str | None = "sk-test-",
        timeout: float = 600.0,
    ) -> None:
        if not api_key:
            raise AIConfigurationError("OpenAI API key is not configured.")
        self._model = model
        self._temperature = temperature
        self._top_p = top_p
        self._frequency_penalty = frequency_penalty
        self._max_tokens = max_tokens
        self._sandbox = bool(sandbox_prefix) and api_key.startswith(sandbox_prefix)
        if self._sandbox:
            logger.warning("Sandbox credential detected; AI requests will return canned responses")
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
        )

    @property
    def sandbox(self) -> bool:
        return self._sandbox

    async def complete(
        self,
        messages: list[dict[str, str]],
        response_format: ResponseFormat = "json_object",
    ) -> ChatCompletion:
        request_id = new_request_id()
        started_at = time.perf_counter()

        if self._sandbox:
            return self._sandbox_completion(request_id, started_at)

        logger.info(
            "AI request started request_id=%s model=%s messages=%s",
            request_id,
            self._model,
            len(messages),
        )
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                response_format={"type": response_format},
                temperature=self._temperature,
                top_p=self._top_p,
                frequency_penalty=self._frequency_penalty,
                max_tokens=self._max_tokens,
            )
        except RateLimitError as exc:
            logger.warning(
                "AI provider rate limited request_id=%s elapsed=%.3fs", request_id, _elapsed(started_at)
            )
            raise AIRateLimitError("Rate limit exceeded", request_id) from exc
        except APIError as exc:
            status = exc.status_code if isinstance(exc, APIStatusError) else None
            logger.error(
                "AI provider error request_id=%s status=%s code=%s elapsed=%.3fs: %s",
                request_id,
                status,
                getattr(exc, "code", None),
                _elapsed(started_at),
                exc.message,
            )
            raise AIUpstreamError("LLM provider error", request_id) from exc
        except Exception as exc:  # noqa: BLE001 - any transport failure means the upstream is unavailable
            logger.error(
                "Unexpected AI error request_id=%s elapsed=%.3fs: %s",
                request_id,
                _elapsed(started_at),
                exc,
            )
            raise AIUpstreamError("AI service unavailable", request_id) from exc

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""
        usage = None
        if completion.usage is not None:
            usage = TokenUsage(
                prompt_tokens=completion.usage.prompt_tokens,
                completion_tokens=completion.usage.completion_tokens,
                total_tokens=completion.usage.total_tokens,
            )

        logger.info(
            "AI request completed request_id=%s model=%s elapsed=%.3fs usage=%s",
            request_id,
            completion.model,
            _elapsed(started_at),
            usage,
        )
        return ChatCompletion(
            content=content,
            model=completion.model,
            request_id=request_id,
            usage=usage,
        )

    def _sandbox_completion(self, request_id: str, started_at: float) -> ChatCompletion:
        usage = TokenUsage(**SANDBOX_USAGE)
        logger.info(
            "AI sandbox response request_id=%s model=%s elapsed=%.3fs usage=%s",
            request_id,
            SANDBOX_MODEL,
            _elapsed(started_at),
            usage,
        )
        return ChatCompletion(
            content=json.dumps(SANDBOX_PAYLOAD, ensure_ascii=False),
            model=SANDBOX_MODEL,
            request_id=request_id,
            usage=usage,
        )


def _elapsed(started_at: float) -> float:
    return time.perf_counter() - started_at
