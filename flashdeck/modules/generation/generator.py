"""Flashcard generator using pydantic-ai with a forced tool-call output.

One call to ``FlashcardGenerator.generate`` makes at most one upstream model
request. The model must answer through the ``create_flashcards`` tool; its
arguments are validated against ``GeneratedCards`` and returned as-is.
Provider imports are kept lazy to avoid import-time errors when credentials
are missing.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic_ai import Agent, ToolOutput
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior

from flashdeck.core.config import settings
from flashdeck.core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    FlashdeckError,
    InvalidInput,
    QuotaExhausted,
    RateLimited,
    SetNotFound,
    UpstreamMalformed,
    UpstreamUnknown,
    ValidationFailed,
)
from flashdeck.core.logging import get_logger, log_context
from flashdeck.modules.access import Viewer
from flashdeck.modules.generation.models import CardDraft, GeneratedCards
from flashdeck.modules.validation import validate_topic

logger = get_logger(__name__)

TOOL_NAME = "create_flashcards"
TOOL_DESCRIPTION = "Create flashcards with questions and answers"


def _build_google_model():
    """Build Google Gemini model for pydantic-ai (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    if not settings.generation.gemini_api_key:
        raise RuntimeError("AI service not configured: GEMINI_API_KEY is not set")
    provider = GoogleProvider(api_key=settings.generation.gemini_api_key)
    return GoogleModel(settings.generation.gemini_model, provider=provider)


def _build_openrouter_model():
    """Build OpenRouter model via OpenAI-compatible provider (lazy import)."""
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if not settings.generation.openrouter_api_key:
        raise RuntimeError(
            "OpenRouter API key not configured. Set OPENROUTER_API_KEY in your environment."
        )

    provider = OpenAIProvider(
        api_key=settings.generation.openrouter_api_key,
        base_url="https://openrouter.ai/api/v1",
    )
    return OpenAIChatModel(settings.generation.openrouter_model, provider=provider)


def _build_model_by_settings():
    provider = (settings.generation.provider or "google").lower()
    if provider == "openrouter":
        return _build_openrouter_model()
    return _build_google_model()


def system_prompt(card_count: int) -> str:
    return (
        "You are a learning expert who writes flashcards. "
        f"Always create exactly {card_count} high-quality flashcards for the given topic. "
        "Each card has a clear question on the front and a precise, easy to "
        "understand answer on the back."
    )


def _build_instruction(topic: str, card_count: int) -> str:
    return (
        f'Create {card_count} flashcards for the topic: "{topic}". '
        f"Return them through the {TOOL_NAME} tool as objects with "
        '"front" (question) and "back" (answer) properties.'
    )


class FlashcardGenerator:
    """Turns a topic into card drafts for an authenticated owner.

    ``store`` is needed only when a ``set_id`` is passed; ``model`` overrides
    the provider chosen in settings (tests pass a pydantic-ai test model).
    """

    def __init__(
        self,
        store: Any = None,
        *,
        model: Any = None,
        card_count: Optional[int] = None,
    ) -> None:
        self.store = store
        self._model = model
        self.card_count = card_count or settings.generation.card_count

    def _agent(self) -> Agent[None, GeneratedCards]:
        model = self._model if self._model is not None else _build_model_by_settings()
        return Agent[None, GeneratedCards](
            model=model,
            output_type=ToolOutput(
                GeneratedCards, name=TOOL_NAME, description=TOOL_DESCRIPTION
            ),
            system_prompt=system_prompt(self.card_count),
            retries=0,
            model_settings={"timeout": settings.generation.timeout_seconds},
        )

    async def _check_set(self, viewer: Viewer, set_id: int) -> None:
        if self.store is None:
            raise RuntimeError("FlashcardGenerator needs a store to check set ownership")
        try:
            await self.store.get_owned_set(viewer, set_id)
        except SetNotFound:
            raise AuthorizationDenied() from None

    async def generate(
        self, topic: str, viewer: Viewer, set_id: Optional[int] = None
    ) -> list[CardDraft]:
        try:
            topic = validate_topic(topic)
        except ValidationFailed as e:
            raise InvalidInput(e.message) from None
        if not viewer.is_authenticated:
            raise AuthenticationRequired()
        if set_id is not None:
            await self._check_set(viewer, set_id)

        return await self.request_cards(
            topic, ctx=log_context(user_id=viewer.user_id, set_id=set_id)
        )

    async def request_cards(
        self, topic: str, *, ctx: Optional[dict] = None
    ) -> list[CardDraft]:
        """One upstream call for an already validated topic, errors mapped."""
        ctx = ctx or log_context()
        logger.info(f"Generating flashcards for topic: {topic}", extra=ctx)
        try:
            res = await self._agent().run(_build_instruction(topic, self.card_count))
        except ModelHTTPError as e:
            logger.error(
                f"AI gateway error: {e.status_code} {str(e.body)[:500]}", extra=ctx
            )
            if e.status_code == 429:
                raise RateLimited() from e
            if e.status_code == 402:
                raise QuotaExhausted() from e
            raise UpstreamUnknown() from e
        except UnexpectedModelBehavior as e:
            logger.error(f"No valid tool call in AI response: {e}", extra=ctx)
            raise UpstreamMalformed() from e
        except FlashdeckError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Error generating flashcards: {e}", extra=ctx)
            raise UpstreamUnknown() from e

        cards = list(res.output.cards)
        logger.info(f"Generated {len(cards)} flashcards", extra=ctx)
        return cards


__all__ = [
    "TOOL_NAME",
    "FlashcardGenerator",
    "system_prompt",
]
