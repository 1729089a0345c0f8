from __future__ import annotations

import re

from services.ai_prompt import SUMMARY_WORD_RANGES
from services.draft_models import Draft, Length

TITLE_MAX_CHARS = 100
META_MIN_CHARS = 120
META_MAX_CHARS = 160
HIGHLIGHT_MIN_WORDS = 3
HIGHLIGHT_MAX_WORDS = 10
MAX_HIGHLIGHTS = 7
MAX_KEYWORDS = 8
ELLIPSIS = "..."

PROHIBITED_TERMS: tuple[str, ...] = (
    # discrimination
    "solo per italiani", "solo italiani", "no stranieri", "preferibilmente",
    "только для", "без иностранцев", "только славянам",
    "no foreigners", "locals only", "only for",
    # absolute guarantees
    "garanzia", "garantito", "garantita", "sicuro al 100%", "senza rischi",
    "гарантировано", "гарантия", "100% безопасно", "без рисков",
    "guaranteed", "guarantee", "100% safe", "risk-free", "risk free",
    # unverifiable superlatives
    "il migliore", "la migliore", "unico al mondo",
    "лучший в городе", "уникальный в мире",
    "best in the city", "unique in the world",
    # medical claims
    "guarire", "curare", "terapeutico", "terapeutica",
    "лечит", "лечебный", "терапевтический",
    "heals", "healing", "cures", "therapeutic",
)

_PATTERNS = tuple(
    re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE) for term in PROHIBITED_TERMS
)
_SPACE_RUN = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"[ \t]+([,.;:!?])")


def strip_prohibited(text: str) -> str:
    cleaned = text
    removed = False
    for pattern in _PATTERNS:
        cleaned, count = pattern.subn("", cleaned)
        removed = removed or count > 0
    if removed:
        cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", _SPACE_RUN.sub(" ", cleaned))
    return cleaned.strip()


def _truncate_chars(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def _truncate_words(text: str, limit: int) -> str:
    words = text.split()
    if len(words) <= limit:
        return text
    return " ".join(words[:limit]).rstrip(",;:.") + ELLIPSIS


def sanitize_draft(draft: Draft, length: Length | str = Length.medium) -> list[str]:
    """Clean and bound a draft in place; return human-readable warnings.

    The disclaimer is legal copy and passes through untouched.
    """

    warnings: list[str] = []

    draft.title = _truncate_chars(strip_prohibited(draft.title), TITLE_MAX_CHARS)

    summary_min, summary_max = SUMMARY_WORD_RANGES.get(length, SUMMARY_WORD_RANGES[Length.medium])
    summary = _truncate_words(strip_prohibited(draft.summary), summary_max)
    if len(summary.split()) < summary_min:
        warnings.append(
            f"summary has {len(summary.split())} words, below the {summary_min}-{summary_max} target"
        )
    draft.summary = summary

    draft.description = strip_prohibited(draft.description)

    highlights = [strip_prohibited(item) for item in draft.highlights]
    draft.highlights = [
        item
        for item in highlights
        if HIGHLIGHT_MIN_WORDS <= len(item.split()) <= HIGHLIGHT_MAX_WORDS
    ][:MAX_HIGHLIGHTS]

    keywords = [strip_prohibited(keyword) for keyword in draft.seo.keywords]
    draft.seo.keywords = [keyword for keyword in keywords if keyword][:MAX_KEYWORDS]

    meta = _truncate_chars(strip_prohibited(draft.seo.meta_description), META_MAX_CHARS)
    if len(meta) < META_MIN_CHARS:
        warnings.append(f"meta description has {len(meta)} characters, below {META_MIN_CHARS}")
    draft.seo.meta_description = meta

    return warnings
