from brujula.models import PropertyType, StructuredFilters


class TestStructuredFilters:
    def test_empty_by_default(self):
        assert StructuredFilters().is_empty()

    def test_inverted_price_range_is_swapped(self):
        filters = StructuredFilters(price_min=5_000_000, price_max=2_000_000)
        assert filters.price_min == 2_000_000
        assert filters.price_max == 5_000_000

    def test_explicit_fields_win(self):
        extracted = StructuredFilters(
            property_type=PropertyType.HOUSE, city="Cancún", price_max=5_000_000
        )
        explicit = StructuredFilters(city="Tulum", bedrooms=2)

        merged = extracted.merged_with(explicit)

        assert merged.city == "Tulum"
        assert merged.bedrooms == 2
        assert merged.property_type == PropertyType.HOUSE
        assert merged.price_max == 5_000_000

    def test_empty_explicit_fields_do_not_clear(self):
        extracted = StructuredFilters(city="Cancún", features={"pool"})
        merged = extracted.merged_with(StructuredFilters(city=None, features=set()))
        assert merged.city == "Cancún"
        assert merged.features == {"pool"}

    def test_explicit_price_is_read_in_pesos(self):
        extracted = StructuredFilters(price_max=300_000, currency="USD")
        merged = extracted.merged_with(StructuredFilters(price_max=5_000_000))

        assert merged.currency == "MXN"
        assert merged.price_bounds_mxn(18.0) == (None, 5_000_000)

    def test_explicit_price_replaces_whole_extracted_range(self):
        extracted = StructuredFilters(price_min=6_000_000, price_max=8_000_000)
        merged = extracted.merged_with(StructuredFilters(price_max=5_000_000))

        assert merged.price_min is None
        assert merged.price_max == 5_000_000

    def test_explicit_currency_is_kept(self):
        extracted = StructuredFilters(price_max=4_000_000, currency="MXN")
        merged = extracted.merged_with(StructuredFilters(price_min=100_000, currency="USD"))

        assert merged.price_min == 100_000
        assert merged.price_max is None
        assert merged.currency == "USD"

    def test_extracted_currency_survives_without_explicit_price(self):
        extracted = StructuredFilters(price_max=300_000, currency="USD")
        merged = extracted.merged_with(StructuredFilters(bedrooms=2))
        assert merged.currency == "USD"
        assert merged.price_max == 300_000

    def test_merge_without_explicit_is_a_copy(self):
        extracted = StructuredFilters(features={"pool"})
        merged = extracted.merged_with(None)
        merged.features.add("garden")
        assert extracted.features == {"pool"}

    def test_price_bounds_in_mxn(self):
        usd = StructuredFilters(price_max=300_000, currency="USD")
        mxn = StructuredFilters(price_min=1_000_000)
        assert usd.price_bounds_mxn(18.0) == (None, 5_400_000)
        assert mxn.price_bounds_mxn(18.0) == (1_000_000, None)

    def test_api_dict_uses_camel_case(self):
        filters = StructuredFilters(
            price_max=5_000_000,
            property_type=PropertyType.HOUSE,
            features={"pool", "garden"},
        )
        assert filters.to_api_dict() == {
            "priceMax": 5_000_000,
            "propertyType": "house",
            "features": ["garden", "pool"],
        }

    def test_accepts_camel_case_input(self):
        filters = StructuredFilters.model_validate({"priceMin": 100_000, "propertyType": "condo"})
        assert filters.price_min == 100_000
        assert filters.property_type == PropertyType.CONDO
