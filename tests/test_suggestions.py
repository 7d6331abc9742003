from brujula.models import ExtractionResult, Language, PropertyType, StructuredFilters
from brujula.search.suggestions import no_results_tips, suggest_refinements


def extraction(**filters):
    return ExtractionResult(filters=StructuredFilters(**filters))


class TestSuggestRefinements:
    def test_empty_query_gets_starting_points(self):
        assert suggest_refinements("", extraction(), Language.UNKNOWN) == [
            "casa",
            "en Cancún",
            "bajo 5 millones",
        ]

    def test_property_type_goes_first(self):
        suggestions = suggest_refinements("modern downtown", extraction(), Language.EN)
        assert suggestions[0] == "house modern downtown"
        assert suggestions[1] == "modern downtown in Cancún"

    def test_complete_query_has_nothing_to_add(self):
        full = extraction(
            property_type=PropertyType.HOUSE,
            city="Cancún",
            price_max=5_000_000,
            bedrooms=3,
            features={"pool"},
        )
        assert suggest_refinements("casa", full, Language.ES) == []


class TestNoResultsTips:
    def test_spanish_tips(self):
        tips = no_results_tips("casa", extraction(property_type=PropertyType.HOUSE), Language.ES)
        assert len(tips) == 3
        assert tips[0].startswith("Incluí números concretos")

    def test_english_tips(self):
        tips = no_results_tips("3 bedroom house", extraction(bedrooms=3), Language.EN)
        assert tips == [
            "Add property type (house, apartment, land)",
            'Try searching for a specific city (e.g., "houses in Cancún")',
            'Include a budget range (e.g., "under 5 million pesos")',
        ]
