import itertools

import pytest

from brujula.models import Language, PropertyType
from brujula.search.extractor import FilterExtractor
from brujula.search.normalizer import QueryNormalizer, fold


@pytest.fixture(scope="module")
def extractor():
    return FilterExtractor()


def extract(extractor, raw):
    query = QueryNormalizer().normalize(raw)
    return extractor.extract(query.normalized_text, query.language)


class TestScenarios:
    def test_spanish_house_with_pool_in_cancun(self, extractor):
        result = extract(extractor, "casa con alberca en Cancún bajo 5 millones")

        assert result.filters.property_type == PropertyType.HOUSE
        assert result.filters.features == {"pool"}
        assert result.filters.city == "Cancún"
        assert result.filters.price_max == 5_000_000
        assert result.filters.price_min is None
        assert result.residual == ""

    def test_english_modern_apartment(self, extractor):
        result = extract(extractor, "modern apartment downtown")

        assert result.filters.property_type == PropertyType.APARTMENT
        assert result.residual == "modern downtown"

    def test_empty_query(self, extractor):
        result = extract(extractor, "")

        assert result.filters.is_empty()
        assert result.filters.to_api_dict() == {}
        assert result.residual == ""


class TestPrice:
    @pytest.mark.parametrize(
        "raw, price_min, price_max",
        [
            ("casa bajo 3 millones", None, 3_000_000),
            ("depa menos de 2.5 millones", None, 2_500_000),
            ("house under 300k", None, 300_000),
            ("casa más de 4 millones", 4_000_000, None),
            ("home over 1 million", 1_000_000, None),
            ("casa entre 2 y 4 millones", 2_000_000, 4_000_000),
            ("house between 200k and 400k", 200_000, 400_000),
            ("casa de 1,500,000 a 3,000,000", 1_500_000, 3_000_000),
            ("casa de $3,500,000", None, 3_500_000),
            ("casa 5 millones", None, 5_000_000),
            ("casa hasta 800 mil pesos", None, 800_000),
        ],
    )
    def test_bounds(self, extractor, raw, price_min, price_max):
        filters = extract(extractor, raw).filters
        assert filters.price_min == price_min
        assert filters.price_max == price_max

    def test_around_is_twenty_percent_band(self, extractor):
        filters = extract(extractor, "casa alrededor de 3 millones").filters
        assert filters.price_min == 2_400_000
        assert filters.price_max == 3_600_000

    def test_dollars_set_currency(self, extractor):
        filters = extract(extractor, "house with pool under $500k usd").filters
        assert filters.price_max == 500_000
        assert filters.currency == "USD"
        assert filters.property_type == PropertyType.HOUSE
        assert filters.features == {"pool"}

    def test_pesos_set_currency(self, extractor):
        filters = extract(extractor, "casa bajo 2 millones de pesos").filters
        assert filters.price_max == 2_000_000
        assert filters.currency == "MXN"

    def test_small_unmarked_number_is_not_price(self, extractor):
        filters = extract(extractor, "casa 3 recámaras").filters
        assert filters.price_max is None
        assert filters.price_min is None
        assert filters.bedrooms == 3

    def test_short_million_suffix(self, extractor):
        result = extract(extractor, "apartment 2 beds under 3m")
        assert result.filters.price_max == 3_000_000
        assert result.filters.bedrooms == 2
        assert result.filters.property_type == PropertyType.APARTMENT
        assert result.residual == ""

    def test_short_suffix_needs_to_touch_the_number(self, extractor):
        filters = extract(extractor, "terreno a 500 m de la playa").filters
        assert filters.price_max is None

    def test_area_is_not_price(self, extractor):
        result = extract(extractor, "terreno de 500 m2")
        assert result.filters.price_min is None
        assert result.filters.price_max is None
        assert result.filters.property_type == PropertyType.LAND


class TestRooms:
    def test_bedrooms_and_bathrooms(self, extractor):
        result = extract(extractor, "departamento de 3 recámaras y 2 baños en cdmx")

        assert result.filters.bedrooms == 3
        assert result.filters.bathrooms == 2
        assert result.filters.property_type == PropertyType.APARTMENT
        assert result.filters.region == "Ciudad de México"
        assert result.residual == ""

    def test_number_words(self, extractor):
        assert extract(extractor, "casa con tres recámaras").filters.bedrooms == 3
        assert extract(extractor, "two bedroom flat").filters.bedrooms == 2

    def test_plus_and_at_least(self, extractor):
        assert extract(extractor, "house with 4+ bedrooms").filters.bedrooms == 4
        assert extract(extractor, "at least 2 baths").filters.bathrooms == 2

    @pytest.mark.parametrize(
        "raw, bedrooms",
        [
            ("casa de 3 o 4 recámaras", 3),
            ("entre 2 y 3 recámaras en mérida", 2),
            ("2-3 bedroom apartment", 2),
            ("house with 3 or 4 beds", 3),
            ("depa de dos a tres recámaras", 2),
        ],
    )
    def test_ranges_take_the_lower_count(self, extractor, raw, bedrooms):
        result = extract(extractor, raw)
        assert result.filters.bedrooms == bedrooms
        assert not any(char.isdigit() for char in result.residual)
        assert "entre" not in result.residual

    def test_price_number_is_not_reused_as_rooms(self, extractor):
        filters = extract(extractor, "casa bajo 3 millones con 2 recámaras").filters
        assert filters.price_max == 3_000_000
        assert filters.bedrooms == 2


class TestTypeLocationFeatures:
    def test_first_property_type_wins(self, extractor):
        result = extract(extractor, "casa o departamento en mérida")
        assert result.filters.property_type == PropertyType.HOUSE
        assert result.filters.city == "Mérida"
        assert "departamento" not in result.residual

    def test_longest_type_phrase(self, extractor):
        filters = extract(extractor, "casa adosada en querétaro").filters
        assert filters.property_type == PropertyType.TOWNHOUSE

    def test_location_without_accents(self, extractor):
        assert extract(extractor, "depa en merida").filters.city == "Mérida"

    def test_mexico_city_aliases(self, extractor):
        for raw in ("depa en cdmx", "apartment in mexico city", "casa en el df"):
            assert extract(extractor, raw).filters.region == "Ciudad de México"

    def test_a_lot_of_is_not_land(self, extractor):
        filters = extract(extractor, "quiet place with a lot of natural light near the beach").filters
        assert filters.property_type is None
        assert extract(extractor, "vacant lot in tulum").filters.property_type == PropertyType.LAND

    def test_alcaldia_is_a_city(self, extractor):
        assert extract(extractor, "depa en coyoacán").filters.city == "Coyoacán"

    def test_multiple_features(self, extractor):
        filters = extract(extractor, "casa con alberca, jardín y cochera").filters
        assert filters.features == {"pool", "garden", "garage"}

    def test_english_features(self, extractor):
        filters = extract(extractor, "beachfront condo with ocean view and gym").filters
        assert filters.property_type == PropertyType.CONDO
        assert filters.features == {"beachfront", "ocean_view", "gym"}

    def test_negated_feature_is_excluded(self, extractor):
        filters = extract(extractor, "casa con jardín sin alberca").filters
        assert filters.features == {"garden"}
        assert filters.excluded_features == {"pool"}

    def test_mixed_language_query(self, extractor):
        filters = extract(extractor, "house con alberca en Tulum").filters
        assert filters.property_type == PropertyType.HOUSE
        assert filters.features == {"pool"}
        assert filters.city == "Tulum"


class TestResidualProperties:
    QUERIES = [
        "casa con alberca en Cancún bajo 5 millones",
        "modern apartment downtown",
        "departamento luminoso de 2 recámaras en cdmx cerca del metro",
        "quiet house with garden under 4 million near the beach",
        "terreno de 500 m2 en tulum",
        "casa sin alberca pero con vista al mar",
    ]

    @pytest.mark.parametrize("raw", QUERIES)
    def test_residual_has_no_consumed_span(self, extractor, raw):
        result = extract(extractor, raw)
        residual = f" {fold(result.residual)} "
        for span in result.matched_spans:
            assert f" {fold(span)} " not in residual

    @pytest.mark.parametrize("raw", QUERIES)
    def test_extracting_the_residual_yields_no_filters(self, extractor, raw):
        result = extract(extractor, raw)
        again = extractor.extract(result.residual, Language.UNKNOWN)
        assert again.filters.is_empty()
        assert again.residual == result.residual

    def test_fillers_between_number_and_noun(self, extractor):
        result = extract(extractor, "casa 2 de recamaras")
        assert result.filters.bedrooms == 2
        assert result.residual == ""

    def test_residual_is_stable_for_generated_queries(self, extractor):
        vocabulary = [
            "casa", "2", "de", "recamaras", "3", "y", "millones", "bajo",
            "con", "alberca", "sin", "en", "cancun", "o", "m2", "a",
        ]
        for words in itertools.permutations(vocabulary, 3):
            raw = " ".join(words)
            result = extract(extractor, raw)
            again = extractor.extract(result.residual, Language.UNKNOWN)
            assert again.filters.is_empty(), raw
            assert again.residual == result.residual, raw

    @pytest.mark.parametrize("language", [Language.ES, Language.EN, Language.UNKNOWN])
    def test_language_hint_only_changes_order(self, extractor, language):
        result = extractor.extract("casa con alberca en cancun", language)
        assert result.filters.property_type == PropertyType.HOUSE
        assert result.filters.features == {"pool"}
