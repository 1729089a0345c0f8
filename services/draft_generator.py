from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from services.ai_client import AICompletionError, ChatCompletionClient, new_request_id
from services.ai_prompt import PromptBuilderService
from services.draft_models import (
    ContentPlan,
    Draft,
    DraftRequestError,
    GenerationRequest,
    Length,
    ListingFacts,
    MustCover,
    QualityMetrics,
    SeoBlock,
    Tone,
)
from services.draft_quality import score_draft
from services.draft_sanitizer import sanitize_draft
from services.localization import render, resolve_language

logger = logging.getLogger(__name__)

RAW_CONTENT_LOG_CHARS = 500

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _SeoPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    keywords: list[str]
    meta_description: str = Field(alias="metaDescription")


class _DraftPayload(BaseModel):
    """Shape the model must return; anything else is treated as a contract violation."""

    model_config = ConfigDict(extra="ignore")

    title: NonBlank
    summary: str
    description: NonBlank
    highlights: list[str]
    disclaimer: str
    seo: _SeoPayload


@dataclass(frozen=True)
class DraftGeneratorConfig:
    refine_enabled: bool = False
    quality_threshold: float = 0.7


def _format_price(price: float | None) -> str | None:
    if not price:
        return None
    if isinstance(price, float) and price.is_integer():
        return str(int(price))
    return str(price)


def build_fallback_draft(listing: ListingFacts, language: str) -> Draft:
    """Template draft built only from title, property type, transaction type and price."""

    language = resolve_language(language)
    transaction = render(language, "transaction.sale" if listing.is_sale else "transaction.rent")
    property_type = listing.property_type or render(language, "fallback.keyword")
    price = _format_price(listing.price)
    price_phrase = render(language, "fallback.price", price=price) if price else ""
    params = {
        "property_type": property_type,
        "transaction": transaction,
        "price_phrase": price_phrase,
    }

    paragraphs = [render(language, f"fallback.p{index}", **params) for index in range(1, 6)]
    keywords = [property_type, transaction, render(language, "fallback.keyword")]
    return Draft(
        title=listing.title or render(language, "fallback.title", **params),
        summary=render(language, "fallback.summary", **params),
        description="\n\n".join(paragraphs),
        highlights=[render(language, f"fallback.h{index}", **params) for index in range(1, 4)],
        disclaimer=render(language, "disclaimer"),
        seo=SeoBlock(
            keywords=[keyword for keyword in keywords if keyword],
            meta_description=render(language, "fallback.meta", **params),
        ),
        language=language,
        fallback=True,
    )


class DraftGeneratorService:
    """Generate listing copy with one draft pass and an optional refine pass.

    Model failures never reach the caller: an unusable draft pass ends in a
    template fallback, an unusable refine pass keeps the first draft. Only a
    malformed request raises (:class:`DraftRequestError`).
    """

    def __init__(
        self,
        client: ChatCompletionClient,
        prompt_builder: PromptBuilderService | None = None,
        config: DraftGeneratorConfig | None = None,
    ) -> None:
        self._client = client
        self._prompts = prompt_builder or PromptBuilderService()
        self._config = config or DraftGeneratorConfig()

    async def generate_draft(
        self,
        listing: ListingFacts,
        request: GenerationRequest | None = None,
    ) -> Draft:
        request = self._normalize_request(listing, request)
        language = resolve_language(request.locale)
        request_id = new_request_id("draft")

        logger.info(
            "Generating AI draft request_id=%s listing_id=%s locale=%s tone=%s length=%s",
            request_id,
            listing.id,
            request.locale,
            request.tone.value,
            request.length.value,
        )
        try:
            return await self._generate(listing, request, language, request_id)
        except Exception:  # noqa: BLE001 - every internal failure degrades to the fallback draft
            logger.exception(
                "Failed to generate AI draft request_id=%s listing_id=%s", request_id, listing.id
            )
            return build_fallback_draft(listing, language)

    @staticmethod
    def _normalize_request(
        listing: ListingFacts, request: GenerationRequest | None
    ) -> GenerationRequest:
        if not isinstance(listing, ListingFacts):
            raise DraftRequestError("Listing facts are required.")
        if not str(listing.id or "").strip():
            raise DraftRequestError("Listing id is required.")
        if request is None:
            return GenerationRequest()
        if not isinstance(request, GenerationRequest):
            raise DraftRequestError("Invalid generation request.")
        if not isinstance(request.locale, str) or not request.locale.strip():
            raise DraftRequestError("Locale must be a non-empty string.")
        try:
            tone = Tone(request.tone)
            length = Length(request.length)
        except ValueError as exc:
            raise DraftRequestError(str(exc)) from exc
        return GenerationRequest(locale=request.locale.strip(), tone=tone, length=length)

    async def _generate(
        self,
        listing: ListingFacts,
        request: GenerationRequest,
        language: str,
        request_id: str,
    ) -> Draft:
        plan = self._prompts.compute_content_plan(request.length)
        must_cover = self._prompts.compute_must_cover(listing, language)
        messages = self._prompts.build_initial_messages(
            listing,
            request.locale,
            request.tone,
            request.length,
            plan=plan,
            must_cover=must_cover,
        )

        draft = await self._run_pass(messages, "draft", request, language, request_id)
        if draft is None:
            logger.warning("Using fallback draft request_id=%s listing_id=%s", request_id, listing.id)
            return build_fallback_draft(listing, language)

        metrics = score_draft(draft, must_cover)
        logger.info(
            "Draft scored request_id=%s coverage=%.2f paragraphs=%s structure_valid=%s",
            request_id,
            metrics.coverage_score,
            metrics.paragraph_count,
            metrics.structure_valid,
        )

        threshold = self._config.quality_threshold
        if self._config.refine_enabled and metrics.coverage_score < threshold:
            try:
                draft, metrics = await self._refine(
                    listing, request, language, request_id, draft, metrics, plan, must_cover
                )
            except Exception:  # noqa: BLE001 - a broken refine pass keeps the first draft
                logger.exception("Refine pass failed; keeping first draft request_id=%s", request_id)

        # Quality gating is advisory: a shortfall is reported, the draft is still returned.
        if metrics.coverage_score < threshold:
            logger.warning(
                "Draft coverage %.2f below quality threshold %.2f request_id=%s missing=%s",
                metrics.coverage_score,
                threshold,
                request_id,
                list(metrics.missing_items),
            )

        for warning in sanitize_draft(draft, request.length):
            logger.warning("Draft bounds request_id=%s: %s", request_id, warning)

        logger.info("AI draft generated request_id=%s listing_id=%s", request_id, listing.id)
        return draft

    async def _refine(
        self,
        listing: ListingFacts,
        request: GenerationRequest,
        language: str,
        request_id: str,
        draft: Draft,
        metrics: QualityMetrics,
        plan: ContentPlan,
        must_cover: MustCover,
    ) -> tuple[Draft, QualityMetrics]:
        messages = self._prompts.build_refine_messages(
            listing,
            draft,
            plan,
            must_cover,
            language,
            tone=request.tone,
            length=request.length,
        )
        refined = await self._run_pass(messages, "refine", request, language, request_id)
        if refined is None:
            logger.warning("Refine pass unusable; keeping first draft request_id=%s", request_id)
            return draft, metrics

        refined_metrics = score_draft(refined, must_cover)
        if refined_metrics.coverage_score >= metrics.coverage_score:
            logger.info(
                "Using refined draft request_id=%s coverage=%.2f->%.2f",
                request_id,
                metrics.coverage_score,
                refined_metrics.coverage_score,
            )
            return refined, refined_metrics

        logger.info(
            "Refined draft regressed request_id=%s coverage=%.2f->%.2f; keeping first draft",
            request_id,
            metrics.coverage_score,
            refined_metrics.coverage_score,
        )
        return draft, metrics

    async def _run_pass(
        self,
        messages: list[dict[str, str]],
        phase: str,
        request: GenerationRequest,
        language: str,
        request_id: str,
    ) -> Draft | None:
        try:
            completion = await self._client.complete(messages, response_format="json_object")
        except AICompletionError as exc:
            logger.warning(
                "AI %s pass failed request_id=%s ai_request_id=%s: %s",
                phase,
                request_id,
                exc.request_id,
                exc,
            )
            return None
        return self._parse(completion.content, phase, request, language, request_id)

    @staticmethod
    def _parse(
        content: str,
        phase: str,
        request: GenerationRequest,
        language: str,
        request_id: str,
    ) -> Draft | None:
        try:
            payload = json.loads(content)
        except (TypeError, json.JSONDecodeError):
            logger.warning(
                "AI %s response is not valid JSON request_id=%s locale=%s tone=%s length=%s content=%r",
                phase,
                request_id,
                request.locale,
                request.tone.value,
                request.length.value,
                (content or "")[:RAW_CONTENT_LOG_CHARS],
            )
            return None

        try:
            parsed = _DraftPayload.model_validate(payload)
        except ValidationError as exc:
            logger.warning(
                "AI %s response failed validation request_id=%s locale=%s tone=%s length=%s "
                "errors=%s content=%r",
                phase,
                request_id,
                request.locale,
                request.tone.value,
                request.length.value,
                exc.error_count(),
                content[:RAW_CONTENT_LOG_CHARS],
            )
            return None

        return Draft(
            title=parsed.title,
            summary=parsed.summary.strip(),
            description=parsed.description,
            highlights=[item.strip() for item in parsed.highlights],
            disclaimer=parsed.disclaimer,
            seo=SeoBlock(
                keywords=[keyword.strip() for keyword in parsed.seo.keywords],
                meta_description=parsed.seo.meta_description.strip(),
            ),
            language=language,
        )
