from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from services.draft_models import ContentPlan, Draft, Length, ListingFacts, MustCover, Tone
from services.localization import render, resolve_language

logger = logging.getLogger(__name__)

ChatMessage = dict[str, str]

# Words per section: intro, interior, exterior, area/transport, terms.
CONTENT_PLAN_TABLE: dict[Length, tuple[int, int, int, int, int]] = {
    Length.short: (30, 40, 25, 30, 25),
    Length.medium: (50, 70, 40, 50, 40),
    Length.long: (80, 110, 60, 80, 70),
}
CONTENT_PLAN_TOTALS: dict[Length, int] = {
    Length.short: 150,
    Length.medium: 250,
    Length.long: 400,
}

SUMMARY_WORD_RANGES: dict[Length, tuple[int, int]] = {
    Length.short: (80, 120),
    Length.medium: (100, 200),
    Length.long: (150, 250),
}

_LOCATION_KEYS = ("district", "neighborhood", "neighbourhood", "quarter", "city")
_AREA_KEYS = ("squareMeters", "square_meters", "area", "sqm", "surface")
_LAYOUT_KEYS = (("rooms", "must.rooms"), ("bedrooms", "must.bedrooms"), ("bathrooms", "must.bathrooms"))
_ELEVATOR_KEYS = ("elevator", "lift")
_OUTDOOR_KEYS = ("balcony", "terrace", "garden")
_HEATING_KEYS = ("heating", "heatingType", "heating_type")
_ENERGY_KEYS = ("energyClass", "energy_class")
_WALK_KEYS = (
    (("metroDistance", "walkToMetro", "metro_distance"), "walk.metro"),
    (("parkDistance", "walkToPark", "park_distance"), "walk.park"),
    (("shopsDistance", "walkToShops", "shops_distance"), "walk.shops"),
)
_FEES_KEYS = ("condoFees", "condominiumFees", "condo_fees")
_NUMERIC = re.compile(r"\d+(?:[.,]\d+)?")


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _first(fields: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = fields.get(key)
        if _is_present(value):
            return value
    return None


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _measure(value: Any, language: str, unit_id: str) -> str:
    # Free-text values may already carry their own unit; only bare numbers get one.
    text = _fmt(value)
    if isinstance(value, bool):
        return text
    if isinstance(value, (int, float)) or _NUMERIC.fullmatch(text):
        return f"{text} {render(language, unit_id)}"
    return text


def _as_flag(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "si", "sì", "да", "1"}:
            return True
        if lowered in {"false", "no", "нет", "0"}:
            return False
    return None


class PromptBuilderService:
    """Turn listing facts and generation options into chat messages for the model."""

    @staticmethod
    def compute_content_plan(length: Length | str | None) -> ContentPlan:
        try:
            tier = Length(length) if length is not None else Length.medium
        except ValueError:
            logger.debug("Unknown length %r; using medium content plan", length)
            tier = Length.medium
        return ContentPlan(*CONTENT_PLAN_TABLE[tier])

    def compute_must_cover(self, listing: ListingFacts, language: str) -> MustCover:
        language = resolve_language(language)
        fields = listing.user_fields or {}
        required: list[str] = []
        optional: list[str] = []

        location = [_fmt(fields[key]) for key in _LOCATION_KEYS if _is_present(fields.get(key))]
        if location:
            required.append(render(language, "must.location", value=", ".join(location)))

        area = _first(fields, _AREA_KEYS)
        if area is not None:
            area_phrase = _measure(area, language, "unit.area")
            required.append(render(language, "must.area", value=area_phrase))

        layout = [
            render(language, template_id, value=_fmt(fields[key]))
            for key, template_id in _LAYOUT_KEYS
            if _is_present(fields.get(key))
        ]
        if layout:
            required.append(", ".join(layout))

        floor = fields.get("floor")
        if _is_present(floor):
            phrase = render(language, "must.floor", value=_fmt(floor))
            elevator = _as_flag(_first(fields, _ELEVATOR_KEYS))
            if elevator is not None:
                suffix = "must.elevator_yes" if elevator else "must.elevator_no"
                phrase = f"{phrase}, {render(language, suffix)}"
            required.append(phrase)

        outdoor = self._outdoor_phrase(fields, language)
        if outdoor:
            optional.append(render(language, "must.outdoor", value=outdoor))

        heating = _first(fields, _HEATING_KEYS)
        if heating is not None:
            optional.append(render(language, "must.heating", value=_fmt(heating)))

        energy = _first(fields, _ENERGY_KEYS)
        if energy is not None:
            optional.append(render(language, "must.energy", value=_fmt(energy)))

        walking = [
            render(language, template_id, value=_measure(value, language, "unit.minutes"))
            for keys, template_id in _WALK_KEYS
            if (value := _first(fields, keys)) is not None
        ]
        if walking:
            optional.append(render(language, "must.walking", value=", ".join(walking)))

        fees = _first(fields, _FEES_KEYS)
        if fees is not None:
            optional.append(render(language, "must.fees", value=_measure(fees, language, "unit.fees")))

        return MustCover(required=tuple(required), optional=tuple(optional))

    @staticmethod
    def _outdoor_phrase(fields: Mapping[str, Any], language: str) -> str | None:
        explicit = fields.get("outdoorSpace")
        if _is_present(explicit) and not isinstance(explicit, bool):
            return _fmt(explicit)

        parts: list[str] = []
        for key in _OUTDOOR_KEYS:
            value = fields.get(key)
            if value is None or value is False:
                continue
            flag = _as_flag(value)
            if flag is False:
                continue
            noun = render(language, f"outdoor.{key}")
            parts.append(noun if flag is True else f"{noun} {_fmt(value)}")
        return ", ".join(parts) or None

    def build_initial_messages(
        self,
        listing: ListingFacts,
        locale: str,
        tone: Tone,
        length: Length,
        plan: ContentPlan | None = None,
        must_cover: MustCover | None = None,
    ) -> list[ChatMessage]:
        language = resolve_language(locale)
        plan = plan or self.compute_content_plan(length)
        must_cover = must_cover or self.compute_must_cover(listing, language)

        system = render(
            language,
            "system",
            tone_instructions=self._tone_instructions(tone, language),
            length_instructions=self._length_instructions(length, language),
        )
        user = render(
            language,
            "user",
            listing_json=self._listing_json(listing),
            plan=self._format_plan(plan, language),
            required=self._format_items(must_cover.required, language),
            optional=self._format_items(must_cover.optional, language),
        )
        return [
            {"role": "system", "content": system},
            {"role": "developer", "content": self._developer_prompt(plan, length, language)},
            {"role": "user", "content": render(language, "fewshot.user")},
            {"role": "assistant", "content": render(language, "fewshot.assistant")},
            {"role": "user", "content": user},
        ]

    def build_refine_messages(
        self,
        listing: ListingFacts,
        draft: Draft,
        plan: ContentPlan,
        must_cover: MustCover,
        language: str,
        tone: Tone = Tone.professional,
        length: Length = Length.medium,
    ) -> list[ChatMessage]:
        language = resolve_language(language)
        system = render(
            language,
            "refine.system",
            tone_instructions=self._tone_instructions(tone, language),
        )
        user = render(
            language,
            "refine.user",
            listing_json=self._listing_json(listing),
            draft_json=json.dumps(draft.to_payload(), ensure_ascii=False, indent=2),
            plan=self._format_plan(plan, language),
            required=self._format_items(must_cover.required, language),
            optional=self._format_items(must_cover.optional, language),
        )
        return [
            {"role": "system", "content": system},
            {"role": "developer", "content": self._developer_prompt(plan, length, language)},
            {"role": "user", "content": user},
        ]

    def _developer_prompt(self, plan: ContentPlan, length: Length, language: str) -> str:
        summary_min, summary_max = SUMMARY_WORD_RANGES.get(
            length, SUMMARY_WORD_RANGES[Length.medium]
        )
        labels = {
            f"label_{name}": render(language, f"section.{name}")
            for name in ContentPlan.SECTION_NAMES
        }
        return render(
            language,
            "developer",
            summary_min=summary_min,
            summary_max=summary_max,
            **dict(plan.sections()),
            **labels,
        )

    @staticmethod
    def _tone_instructions(tone: Tone | str, language: str) -> str:
        try:
            tone = Tone(tone)
        except ValueError:
            tone = Tone.professional
        return render(language, f"tone.{tone.value}")

    @staticmethod
    def _length_instructions(length: Length | str, language: str) -> str:
        try:
            length = Length(length)
        except ValueError:
            length = Length.medium
        return render(language, f"length.{length.value}")

    @staticmethod
    def _listing_json(listing: ListingFacts) -> str:
        return json.dumps(listing.to_prompt_dict(), ensure_ascii=False, indent=2, default=str)

    @staticmethod
    def _format_plan(plan: ContentPlan, language: str) -> str:
        return "\n".join(
            f"{index}. {render(language, f'section.{name}')}: {words}"
            for index, (name, words) in enumerate(plan.sections(), start=1)
        )

    @staticmethod
    def _format_items(items: tuple[str, ...], language: str) -> str:
        if not items:
            return render(language, "list.none")
        return "\n".join(f"- {item}" for item in items)
