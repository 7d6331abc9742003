"""
Sugerencias para refinar una búsqueda.

Dos usos: consultas refinadas para el autocompletado (`suggest`) y
consejos genéricos cuando una búsqueda no devuelve nada.
"""

from brujula.models import ExtractionResult, Language

# Frases que se agregan a la query según lo que le falte
_REFINEMENTS: dict[str, dict[Language, str]] = {
    "property_type": {Language.ES: "casa", Language.EN: "house"},
    "location": {Language.ES: "en Cancún", Language.EN: "in Cancún"},
    "price": {Language.ES: "bajo 5 millones", Language.EN: "under 5 million"},
    "bedrooms": {Language.ES: "con 3 recámaras", Language.EN: "with 3 bedrooms"},
    "features": {Language.ES: "con alberca", Language.EN: "with pool"},
}

_TIPS: dict[Language, dict[str, str]] = {
    Language.ES: {
        "numbers": 'Incluí números concretos (ej: "3 recámaras")',
        "location": 'Buscá en una ciudad específica (ej: "casas en Cancún")',
        "property_type": "Agregá el tipo de propiedad (casa, departamento, terreno)",
        "price": 'Indicá un rango de presupuesto (ej: "bajo 5 millones de pesos")',
        "features": "Especificá amenidades (alberca, jardín, cochera)",
        "rooms": "Agregá cantidad de recámaras o baños",
    },
    Language.EN: {
        "numbers": 'Include specific numbers (e.g., "3 bedrooms")',
        "location": 'Try searching for a specific city (e.g., "houses in Cancún")',
        "property_type": "Add property type (house, apartment, land)",
        "price": 'Include a budget range (e.g., "under 5 million pesos")',
        "features": "Specify features (pool, garden, garage)",
        "rooms": "Add number of bedrooms or bathrooms",
    },
}

MAX_SUGGESTIONS = 3


def _missing(extraction: ExtractionResult) -> list[str]:
    """Dimensiones de filtro que la query no especifica, en orden de utilidad."""
    filters = extraction.filters
    missing = []
    if filters.property_type is None:
        missing.append("property_type")
    if filters.city is None and filters.region is None:
        missing.append("location")
    if filters.price_min is None and filters.price_max is None:
        missing.append("price")
    if filters.bedrooms is None:
        missing.append("bedrooms")
    if not filters.features:
        missing.append("features")
    return missing


def _language(language: Language) -> Language:
    return Language.EN if language == Language.EN else Language.ES


def suggest_refinements(text: str, extraction: ExtractionResult, language: Language) -> list[str]:
    """
    Queries refinadas a partir de la original.

    Cada sugerencia agrega una sola dimensión que falta; el tipo de
    propiedad va al principio, el resto al final.
    """
    lang = _language(language)
    base = text.strip()
    suggestions = []
    for dimension in _missing(extraction):
        phrase = _REFINEMENTS[dimension][lang]
        if not base:
            suggestions.append(phrase)
        elif dimension == "property_type":
            suggestions.append(f"{phrase} {base}")
        else:
            suggestions.append(f"{base} {phrase}")
        if len(suggestions) == MAX_SUGGESTIONS:
            break
    return suggestions


def no_results_tips(text: str, extraction: ExtractionResult, language: Language) -> list[str]:
    """Consejos genéricos para una búsqueda sin resultados."""
    tips = _TIPS[_language(language)]
    keys = []
    if not any(char.isdigit() for char in text):
        keys.append("numbers")
    for dimension in _missing(extraction):
        key = "rooms" if dimension == "bedrooms" else dimension
        if key not in keys:
            keys.append(key)
    if len(keys) < MAX_SUGGESTIONS:
        keys.extend(k for k in ("location", "property_type", "price") if k not in keys)
    return [tips[key] for key in keys[:MAX_SUGGESTIONS]]
