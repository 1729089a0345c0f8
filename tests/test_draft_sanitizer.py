import copy

from services.draft_models import Draft, Length, SeoBlock
from services.draft_sanitizer import (
    META_MAX_CHARS,
    TITLE_MAX_CHARS,
    sanitize_draft,
    strip_prohibited,
)

DISCLAIMER = "Prezzo garantito dal venditore: le informazioni sono indicative."


def words(count, word="parola"):
    return " ".join([word] * count)


def make_draft(**overrides):
    values = dict(
        title="Trilocale a Porta Romana",
        summary=words(120),
        description="Primo.\n\nSecondo.\n\nTerzo.\n\nQuarto.\n\nQuinto.",
        highlights=["Balcone con vista cortile", "Terzo piano con ascensore", "Metro a cinque minuti"],
        disclaimer=DISCLAIMER,
        seo=SeoBlock(keywords=["trilocale", "Milano"], meta_description="m" * 130),
    )
    values.update(overrides)
    return Draft(**values)


class TestStripProhibited:
    def test_removes_terms_case_insensitively(self):
        assert strip_prohibited("Appartamento GARANTITO e luminoso") == "Appartamento e luminoso"

    def test_word_boundaries_protect_longer_words(self):
        assert strip_prohibited("A secure building") == "A secure building"

    def test_multiword_terms(self):
        assert strip_prohibited("Casa il migliore, vicino al parco.") == "Casa, vicino al parco."

    def test_cyrillic_terms(self):
        assert strip_prohibited("Квартира гарантия качества") == "Квартира качества"

    def test_clean_text_is_untouched(self):
        text = "Bilocale  luminoso"
        assert strip_prohibited(text) == text


class TestSanitizeDraft:
    def test_disclaimer_passes_through_verbatim(self):
        draft = make_draft()
        sanitize_draft(draft, Length.medium)
        assert draft.disclaimer == DISCLAIMER

    def test_denylist_applies_to_every_other_field(self):
        draft = make_draft(
            title="Casa garantita al mare",
            description="Zona senza rischi.\n\nDue.\n\nTre.\n\nQuattro.\n\nCinque.",
            highlights=["Affare garantito per tutti voi"],
            seo=SeoBlock(keywords=["garanzia", "mare"], meta_description="Casa garantito " + "x" * 130),
        )
        sanitize_draft(draft, Length.medium)
        assert draft.title == "Casa al mare"
        assert "senza rischi" not in draft.description
        assert draft.highlights == ["Affare per tutti voi"]
        assert draft.seo.keywords == ["mare"]
        assert "garantito" not in draft.seo.meta_description

    def test_title_truncated_with_ellipsis(self):
        draft = make_draft(title="t" * 150)
        sanitize_draft(draft)
        assert len(draft.title) == TITLE_MAX_CHARS
        assert draft.title.endswith("...")

    def test_summary_clamped_to_length_range(self):
        draft = make_draft(summary=words(300))
        sanitize_draft(draft, Length.short)
        assert len(draft.summary.split()) == 120
        assert draft.summary.endswith("...")

    def test_short_summary_kept_with_warning(self):
        draft = make_draft(summary=words(20))
        warnings = sanitize_draft(draft, Length.long)
        assert draft.summary == words(20)
        assert any("summary" in warning for warning in warnings)

    def test_highlights_filtered_by_word_count_and_capped(self):
        highlights = ["troppo corto", words(11)] + [f"Punto di forza {index}" for index in range(10)]
        draft = make_draft(highlights=highlights)
        sanitize_draft(draft)
        assert len(draft.highlights) == 7
        assert all(3 <= len(item.split()) <= 10 for item in draft.highlights)

    def test_keywords_non_empty_and_capped(self):
        draft = make_draft(seo=SeoBlock(keywords=["", " "] + [f"k{i}" for i in range(12)], meta_description="m" * 130))
        sanitize_draft(draft)
        assert draft.seo.keywords == [f"k{i}" for i in range(8)]

    def test_meta_description_bounds(self):
        long_meta = make_draft(seo=SeoBlock(keywords=["a"], meta_description="m" * 200))
        sanitize_draft(long_meta)
        assert len(long_meta.seo.meta_description) == META_MAX_CHARS
        assert long_meta.seo.meta_description == "m" * 157 + "..."

        short_meta = make_draft(seo=SeoBlock(keywords=["a"], meta_description="breve"))
        warnings = sanitize_draft(short_meta)
        assert short_meta.seo.meta_description == "breve"
        assert any("meta description" in warning for warning in warnings)

    def test_idempotent_on_clean_draft(self):
        draft = make_draft(title="t" * 150, summary=words(250), seo=SeoBlock(keywords=["a"], meta_description="m" * 200))
        sanitize_draft(draft, Length.medium)
        once = copy.deepcopy(draft)
        sanitize_draft(draft, Length.medium)
        assert draft == once
