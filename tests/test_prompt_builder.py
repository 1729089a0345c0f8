"""Tests for content plans, must-cover facts and chat message assembly."""

import json

import pytest

from services.ai_prompt import CONTENT_PLAN_TOTALS, PromptBuilderService
from services.draft_models import ContentPlan, Draft, Length, ListingFacts, SeoBlock, Tone


@pytest.fixture
def builder():
    return PromptBuilderService()


class TestContentPlan:
    @pytest.mark.parametrize("length", list(Length))
    def test_sections_sum_to_documented_total(self, builder, length):
        plan = builder.compute_content_plan(length)
        words = [count for _, count in plan.sections()]
        assert len(words) == 5
        assert all(count > 0 for count in words)
        expected = CONTENT_PLAN_TOTALS[length]
        assert abs(plan.total - expected) <= expected * 0.05

    def test_section_order(self, builder):
        plan = builder.compute_content_plan(Length.short)
        assert [name for name, _ in plan.sections()] == [
            "intro",
            "interior",
            "exterior",
            "area_transport",
            "terms",
        ]

    @pytest.mark.parametrize("value", [None, "huge", ""])
    def test_unknown_length_falls_back_to_medium(self, builder, value):
        assert builder.compute_content_plan(value) == builder.compute_content_plan(Length.medium)

    def test_plan_is_immutable(self, builder):
        plan = builder.compute_content_plan(Length.long)
        with pytest.raises(AttributeError):
            plan.intro = 1  # type: ignore[misc]


class TestMustCover:
    def test_milan_rent_scenario(self, builder):
        listing = ListingFacts(
            id="1",
            type="RENT",
            property_type="apartment",
            price=1200,
            user_fields={"city": "Milano", "squareMeters": 60},
        )
        must_cover = builder.compute_must_cover(listing, "it")
        assert must_cover.required == ("ubicazione: Milano", "superficie 60 m²")
        assert must_cover.optional == ()

    @pytest.mark.parametrize("language", ["it", "ru", "en"])
    def test_no_optional_items_without_optional_fields(self, builder, milan_listing, language):
        must_cover = builder.compute_must_cover(milan_listing, language)
        assert len(must_cover.required) == 2
        assert must_cover.optional == ()
        assert "Milano" in must_cover.required[0]
        assert "60" in must_cover.required[1]

    def test_empty_fields_produce_nothing(self, builder):
        listing = ListingFacts(id="1", type="sale", property_type="house")
        must_cover = builder.compute_must_cover(listing, "en")
        assert must_cover.total == 0

    def test_required_and_optional_order(self, builder, full_listing):
        must_cover = builder.compute_must_cover(full_listing, "it")
        assert must_cover.required == (
            "ubicazione: Crocetta, Torino",
            "superficie 95 m²",
            "4 locali, 2 bagni",
            "piano 2, con ascensore",
        )
        assert must_cover.optional == (
            "spazio esterno: balcone",
            "riscaldamento autonomo",
            "classe energetica C",
            "a piedi: metro 5 min",
            "spese condominiali 150 €/mese",
        )

    def test_ground_floor_counts_as_present(self, builder):
        listing = ListingFacts(
            id="1",
            type="sale",
            property_type="apartment",
            user_fields={"floor": 0, "elevator": False},
        )
        must_cover = builder.compute_must_cover(listing, "en")
        assert must_cover.required == ("floor 0, without elevator",)

    def test_values_with_their_own_unit_are_kept_verbatim(self, builder):
        listing = ListingFacts(
            id="1",
            type="rent",
            property_type="apartment",
            user_fields={"metroDistance": "500 m", "squareMeters": "60 m²", "condoFees": "incluse"},
        )
        must_cover = builder.compute_must_cover(listing, "en")
        assert must_cover.required == ("area 60 m²",)
        assert must_cover.optional == ("on foot: metro 500 m", "condo fees incluse")

    def test_numeric_strings_get_a_unit(self, builder):
        listing = ListingFacts(
            id="1",
            type="rent",
            property_type="apartment",
            user_fields={"metroDistance": "7", "squareMeters": "62.5"},
        )
        must_cover = builder.compute_must_cover(listing, "en")
        assert must_cover.required == ("area 62.5 m²",)
        assert must_cover.optional == ("on foot: metro 7 min",)

    def test_unknown_language_defaults_to_italian(self, builder, milan_listing):
        must_cover = builder.compute_must_cover(milan_listing, "de")
        assert must_cover.required[1] == "superficie 60 m²"

    def test_blank_values_are_skipped(self, builder):
        listing = ListingFacts(
            id="1",
            type="sale",
            property_type="apartment",
            user_fields={"city": "  ", "energyClass": "", "heating": None},
        )
        assert builder.compute_must_cover(listing, "it").total == 0

    def test_russian_phrases(self, builder, full_listing):
        must_cover = builder.compute_must_cover(full_listing, "ru")
        assert must_cover.required[1] == "площадь 95 м²"
        assert must_cover.required[3] == "этаж 2, с лифтом"


class TestInitialMessages:
    def test_role_order(self, builder, milan_listing):
        messages = builder.build_initial_messages(
            milan_listing, "it-IT", Tone.premium, Length.short
        )
        assert [message["role"] for message in messages] == [
            "system",
            "developer",
            "user",
            "assistant",
            "user",
        ]

    def test_few_shot_answer_is_valid_json(self, builder, milan_listing):
        for locale in ("it-IT", "ru-RU", "en-GB"):
            messages = builder.build_initial_messages(
                milan_listing, locale, Tone.professional, Length.medium
            )
            example = json.loads(messages[3]["content"])
            assert len(example["description"].split("\n\n")) == 5

    def test_user_block_carries_facts_plan_and_must_cover(self, builder, milan_listing):
        messages = builder.build_initial_messages(
            milan_listing, "it-IT", Tone.professional, Length.short
        )
        user = messages[-1]["content"]
        assert '"city": "Milano"' in user
        assert '"type": "RENT"' in user
        assert "superficie 60 m²" in user
        assert "(nessuno)" in user
        for words in (30, 40, 25):
            assert str(words) in user

    def test_developer_block_has_schema_and_word_targets(self, builder, milan_listing):
        messages = builder.build_initial_messages(
            milan_listing, "en-US", Tone.informal, Length.long
        )
        developer = messages[1]["content"]
        assert "metaDescription" in developer
        assert "110" in developer

    def test_tone_changes_system_block(self, builder, milan_listing):
        premium = builder.build_initial_messages(milan_listing, "it", Tone.premium, Length.short)
        informal = builder.build_initial_messages(milan_listing, "it", Tone.informal, Length.short)
        assert premium[0]["content"] != informal[0]["content"]

    def test_messages_are_deterministic(self, builder, full_listing):
        first = builder.build_initial_messages(full_listing, "ru-RU", Tone.premium, Length.long)
        second = builder.build_initial_messages(full_listing, "ru-RU", Tone.premium, Length.long)
        assert first == second


class TestRefineMessages:
    def test_refine_embeds_current_draft(self, builder, milan_listing):
        draft = Draft(
            title="Bilocale a Milano",
            summary="Breve sintesi",
            description="Uno\n\nDue",
            highlights=["Tre parole qui"],
            disclaimer="Disclaimer",
            seo=SeoBlock(keywords=["milano"], meta_description="Meta"),
        )
        plan = builder.compute_content_plan(Length.medium)
        must_cover = builder.compute_must_cover(milan_listing, "it")
        messages = builder.build_refine_messages(milan_listing, draft, plan, must_cover, "it")

        assert [message["role"] for message in messages] == ["system", "developer", "user"]
        assert '"title": "Bilocale a Milano"' in messages[-1]["content"]
        assert "ubicazione: Milano" in messages[-1]["content"]
        assert isinstance(plan, ContentPlan)
