"""Coverage and structure scoring for generated drafts.

Coverage is a keyword heuristic, not a correctness check: an item counts as
covered when any of its search terms appears in the description.
"""

from __future__ import annotations

import re

from services.draft_models import Draft, MustCover, QualityMetrics

EXPECTED_PARAGRAPHS = 5

STOP_WORDS = frozenset(
    {
        # it
        "con", "senza", "per", "del", "della", "delle", "dei", "degli", "dal", "dalla",
        "nel", "nella", "nei", "sul", "sulla", "una", "uno", "che", "sono", "alla", "allo",
        # ru
        "без", "для", "или", "это", "при", "над", "под", "через", "между", "около",
        # en
        "the", "and", "with", "without", "for", "from", "into", "near", "per", "are",
        # units
        "min", "мин", "мес", "month", "mese",
    }
)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_NUMBER_UNIT = re.compile(
    r"\d+(?:[.,]\d+)?\s?(?:m²|m2|mq|м²|кв\.?\s?м|min|мин|km|км|€|%)",
    re.IGNORECASE,
)
_WORD = re.compile(r"[^\W\d_]+")


def split_paragraphs(text: str) -> list[str]:
    return [part.strip() for part in _PARAGRAPH_BREAK.split(text.strip()) if part.strip()]


def search_terms(item: str) -> list[str]:
    phrase = item.strip().lower()
    terms = [phrase]
    for match in _NUMBER_UNIT.finditer(phrase):
        token = match.group(0)
        terms.append(token)
        compact = re.sub(r"\s+", "", token)
        if compact != token:
            terms.append(compact)
    for word in _WORD.findall(phrase):
        if len(word) > 2 and word not in STOP_WORDS:
            terms.append(word)
    return list(dict.fromkeys(term for term in terms if term))


def is_covered(item: str, text: str) -> bool:
    haystack = text.lower()
    return any(term in haystack for term in search_terms(item))


def score_draft(draft: Draft, must_cover: MustCover) -> QualityMetrics:
    paragraphs = split_paragraphs(draft.description)
    missing = tuple(item for item in must_cover.items() if not is_covered(item, draft.description))
    total = must_cover.total
    coverage = 1.0 if total == 0 else (total - len(missing)) / total
    return QualityMetrics(
        coverage_score=coverage,
        structure_valid=len(paragraphs) == EXPECTED_PARAGRAPHS,
        paragraph_count=len(paragraphs),
        highlight_count=len(draft.highlights),
        missing_items=missing,
    )
