import pytest

from brujula.models import Language
from brujula.search.normalizer import QueryNormalizer, fold


@pytest.fixture
def normalizer():
    return QueryNormalizer()


class TestQueryNormalizer:
    @pytest.mark.parametrize("raw", [None, "", "   ", "\n\t"])
    def test_empty_input_never_raises(self, normalizer, raw):
        query = normalizer.normalize(raw)
        assert query.normalized_text == ""
        assert query.language == Language.UNKNOWN

    def test_lowercases_and_strips_punctuation(self, normalizer):
        query = normalizer.normalize("  ¿Casa en   CANCÚN?  ")
        assert query.normalized_text == "casa en cancún"
        assert query.raw_text == "  ¿Casa en   CANCÚN?  "

    def test_keeps_numeric_tokens(self, normalizer):
        query = normalizer.normalize("Casa de $2,500,000 con 1.5 baños, 2-4 recámaras.")
        assert "$2,500,000" in query.normalized_text
        assert "1.5" in query.normalized_text
        assert "2-4" in query.normalized_text
        assert not query.normalized_text.endswith(".")
        assert "baños," not in query.normalized_text

    def test_detects_spanish(self, normalizer):
        assert normalizer.normalize("casa con alberca en Cancún").language == Language.ES

    def test_detects_english(self, normalizer):
        assert normalizer.normalize("modern apartment downtown").language == Language.EN

    def test_accents_count_as_spanish(self, normalizer):
        assert normalizer.normalize("mérida").language == Language.ES

    def test_tie_is_unknown(self, normalizer):
        assert normalizer.normalize("loft").language == Language.UNKNOWN

    def test_is_idempotent(self, normalizer):
        first = normalizer.normalize("Depa  en la CDMX, ¡urgente!")
        second = normalizer.normalize(first.normalized_text)
        assert second.normalized_text == first.normalized_text


class TestFold:
    def test_removes_diacritics(self):
        assert fold("cancún mérida año") == "cancun merida ano"

    def test_preserves_length(self):
        text = "jardín, baños y recámaras en querétaro"
        assert len(fold(text)) == len(text)
