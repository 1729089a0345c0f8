from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Tone(str, Enum):
    professional = "professional"
    informal = "informal"
    premium = "premium"

    @classmethod
    def _missing_(cls, value: object) -> Tone | None:
        # Legacy Italian spellings accepted by older clients.
        aliases = {"professionale": cls.professional, "informale": cls.informal}
        if isinstance(value, str):
            return aliases.get(value.strip().lower())
        return None


class Length(str, Enum):
    short = "short"
    medium = "medium"
    long = "long"


class DraftRequestError(ValueError):
    """Raised when a draft request is malformed on the caller side."""


@dataclass(frozen=True)
class ListingFacts:
    """Read-only listing data consumed by the draft pipeline."""

    id: str
    type: str
    property_type: str
    title: str | None = None
    price: float | None = None
    user_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def is_sale(self) -> bool:
        return str(self.type).strip().lower() == "sale"

    def to_prompt_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": str(self.type).upper(),
            "propertyType": self.property_type,
            "title": self.title,
            "price": self.price,
            "userFields": dict(self.user_fields),
        }


@dataclass(frozen=True)
class GenerationRequest:
    locale: str = "it-IT"
    tone: Tone = Tone.professional
    length: Length = Length.medium


@dataclass(frozen=True)
class ContentPlan:
    """Target word counts for the five description sections, in order."""

    intro: int
    interior: int
    exterior: int
    area_transport: int
    terms: int

    SECTION_NAMES = ("intro", "interior", "exterior", "area_transport", "terms")

    def sections(self) -> list[tuple[str, int]]:
        return [(name, getattr(self, name)) for name in self.SECTION_NAMES]

    @property
    def total(self) -> int:
        return sum(words for _, words in self.sections())


@dataclass(frozen=True)
class MustCover:
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.required) + len(self.optional)

    def items(self) -> list[str]:
        return [*self.required, *self.optional]


@dataclass
class SeoBlock:
    keywords: list[str]
    meta_description: str


@dataclass
class Draft:
    """Work-in-progress listing copy threaded through generation and sanitization."""

    title: str
    summary: str
    description: str
    highlights: list[str]
    disclaimer: str
    seo: SeoBlock
    language: str = "it"
    fallback: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Model-facing JSON shape, used when asking for a refinement."""

        return {
            "title": self.title,
            "summary": self.summary,
            "description": self.description,
            "highlights": list(self.highlights),
            "disclaimer": self.disclaimer,
            "seo": {
                "keywords": list(self.seo.keywords),
                "metaDescription": self.seo.meta_description,
            },
        }


@dataclass(frozen=True)
class QualityMetrics:
    coverage_score: float
    structure_valid: bool
    paragraph_count: int
    highlight_count: int
    missing_items: tuple[str, ...] = ()
