from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from services.draft_models import Length, Tone


class GenerateDraftRequest(BaseModel):
    locale: str = Field(default="it-IT", min_length=2, max_length=16)
    tone: Tone = Tone.professional
    length: Length = Length.medium


class SeoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    keywords: list[str]
    meta_description: str = Field(alias="metaDescription")


class DraftResponse(BaseModel):
    title: str
    summary: str
    description: str
    highlights: list[str]
    disclaimer: str
    seo: SeoResponse
    language: str
    fallback: bool
