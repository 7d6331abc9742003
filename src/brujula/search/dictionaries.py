"""
Diccionarios bilingües del extractor.

Son datos, no lógica: agregar un sinónimo o un idioma es agregar
una entrada acá. Las frases se escriben en minúscula y pueden llevar
acentos; el extractor las compara sin diacríticos.
"""

from brujula.config import MEXICO_CITIES, MEXICO_REGIONS, CDMX_ALCALDIAS
from brujula.models import Language, PropertyType

# Palabras que delatan el idioma de la query
LANGUAGE_MARKERS: dict[Language, set[str]] = {
    Language.ES: {
        "de", "del", "la", "las", "el", "los", "en", "con", "y", "que", "para",
        "por", "una", "un", "al", "sin", "cerca", "busco", "quiero", "bajo",
        "menos", "más", "entre", "hasta", "desde", "casa", "casas",
        "departamento", "depa", "recámaras", "recámara", "habitaciones",
        "baños", "millones", "millón", "alberca", "jardín", "terreno",
        "barato", "económico", "moderna", "moderno", "playa", "vista",
    },
    Language.EN: {
        "the", "an", "in", "with", "and", "for", "of", "near", "under", "over",
        "below", "above", "between", "without", "looking", "want", "need",
        "house", "houses", "home", "apartment", "apartments", "flat", "bedroom",
        "bedrooms", "bathroom", "bathrooms", "million", "pool", "garden",
        "cheap", "modern", "beach", "view", "downtown", "at", "least",
    },
}

# Palabras de relleno que no aportan al residuo semántico
FILLER_WORDS: dict[Language, set[str]] = {
    Language.ES: {
        "a", "al", "de", "del", "el", "la", "las", "los", "lo", "en", "con",
        "y", "o", "u", "un", "una", "unos", "unas", "que", "para", "por",
        "busco", "buscamos", "quiero", "queremos", "necesito", "me", "mi",
        "algo", "alguna", "algún", "tipo", "zona", "ubicada", "ubicado",
        "dame", "muéstrame", "mostrar", "hay", "pesos", "mxn",
    },
    Language.EN: {
        "a", "an", "the", "in", "on", "at", "with", "and", "or", "for", "of",
        "to", "i", "im", "we", "me", "my", "want", "need", "looking",
        "find", "show", "some", "any", "something", "located", "is", "are",
        "that", "which", "dollars", "usd",
    },
}

# Números escritos en palabras (1-10)
NUMBER_WORDS: dict[str, int] = {
    "un": 1, "uno": 1, "una": 1, "one": 1,
    "dos": 2, "two": 2,
    "tres": 3, "three": 3,
    "cuatro": 4, "four": 4,
    "cinco": 5, "five": 5,
    "seis": 6, "six": 6,
    "siete": 7, "seven": 7,
    "ocho": 8, "eight": 8,
    "nueve": 9, "nine": 9,
    "diez": 10, "ten": 10,
}

# Multiplicadores de unidades de precio
PRICE_UNITS: dict[int, list[str]] = {
    1_000_000: ["millones", "millón", "millon", "million", "millions", "mdp", "mm", "mill"],
    1_000: ["mil", "k", "thousand"],
}

# Unidades que solo valen pegadas al número: "3m", "3.5m"
PRICE_SUFFIX_UNITS: dict[str, int] = {
    "m": 1_000_000,
}

# Palabras de moneda
CURRENCY_WORDS: dict[str, list[str]] = {
    "MXN": ["pesos", "peso", "mxn", "mxp"],
    "USD": ["dólares", "dolares", "dólar", "dolar", "usd", "dollars", "dollar", "us$"],
}

# Calificadores de precio: tipo de cota -> idioma -> frases
PRICE_QUALIFIERS: dict[str, dict[Language, list[str]]] = {
    "max": {
        Language.ES: [
            "por menos de", "menos de", "no más de", "no mas de", "máximo",
            "maximo", "hasta", "bajo", "debajo de", "por debajo de", "tope de",
        ],
        Language.EN: [
            "under", "below", "less than", "up to", "max", "maximum",
            "no more than", "at most", "cheaper than",
        ],
    },
    "min": {
        Language.ES: [
            "más de", "mas de", "mínimo", "minimo", "desde", "arriba de",
            "por encima de", "a partir de",
        ],
        Language.EN: [
            "over", "above", "more than", "at least", "from", "min", "minimum",
            "starting at",
        ],
    },
    "around": {
        Language.ES: ["alrededor de", "cerca de", "aproximadamente", "aprox", "como"],
        Language.EN: ["around", "about", "approximately", "approx", "roughly"],
    },
}

# Calificadores que van después del monto: "5 millones máximo"
PRICE_POSTFIX_QUALIFIERS: dict[str, dict[Language, list[str]]] = {
    "max": {
        Language.ES: ["máximo", "maximo", "max", "o menos", "tope"],
        Language.EN: ["max", "maximum", "or less", "tops"],
    },
    "min": {
        Language.ES: ["mínimo", "minimo", "o más", "o mas", "para arriba"],
        Language.EN: ["min", "minimum", "or more", "and up", "plus"],
    },
}

# Unidades de superficie: un número seguido de estas no es precio
AREA_UNITS: list[str] = [
    "m2", "m²", "mts", "mts2", "metros", "metro", "hectáreas", "hectareas",
    "ha", "sqft", "sq", "ft", "square", "acres", "pisos", "niveles", "floors",
    "stories", "años", "years",
]

# Conectores de rango: "entre N y M", "between N and M"
RANGE_CONNECTORS: dict[Language, tuple[list[str], list[str]]] = {
    Language.ES: (["entre", "desde", "de"], ["y", "hasta", "a"]),
    Language.EN: (["between", "from"], ["and", "to"]),
}

# Alternativas de cantidad de cuartos: "3 o 4 recámaras", "2 or 3 beds"
ROOM_ALTERNATIVES: dict[Language, list[str]] = {
    Language.ES: ["o", "u"],
    Language.EN: ["or"],
}

# Sustantivos de cuartos
ROOM_NOUNS: dict[str, dict[Language, list[str]]] = {
    "bedrooms": {
        Language.ES: [
            "recámaras", "recámara", "recamaras", "recamara", "habitaciones",
            "habitación", "habitacion", "cuartos", "cuarto", "dormitorios",
            "dormitorio", "rec",
        ],
        Language.EN: ["bedrooms", "bedroom", "beds", "bed", "br", "bdr", "bd"],
    },
    "bathrooms": {
        Language.ES: ["baños", "baño", "banos", "bano"],
        Language.EN: ["bathrooms", "bathroom", "baths", "bath", "ba"],
    },
}

# Calificadores de cota mínima para cuartos
ROOM_MIN_QUALIFIERS: dict[Language, list[str]] = {
    Language.ES: ["al menos", "mínimo", "minimo", "por lo menos", "más de", "mas de"],
    Language.EN: ["at least", "minimum", "min"],
}

# Tipo de propiedad -> idioma -> sinónimos
PROPERTY_TYPE_SYNONYMS: dict[PropertyType, dict[Language, list[str]]] = {
    PropertyType.TOWNHOUSE: {
        Language.ES: ["casa adosada", "casas adosadas", "casa en condominio horizontal"],
        Language.EN: ["townhouse", "townhouses", "town house", "townhome", "townhomes"],
    },
    PropertyType.HOUSE: {
        Language.ES: ["casa", "casas", "residencia", "residencias", "chalet"],
        Language.EN: ["house", "houses", "home", "homes", "villa", "villas"],
    },
    PropertyType.APARTMENT: {
        Language.ES: [
            "departamento", "departamentos", "depa", "depas", "depto", "deptos",
            "loft", "penthouse",
        ],
        Language.EN: ["apartment", "apartments", "flat", "flats", "apt", "loft", "penthouse"],
    },
    PropertyType.CONDO: {
        Language.ES: ["condominio", "condominios"],
        Language.EN: ["condo", "condos", "condominium", "condominiums"],
    },
    PropertyType.LAND: {
        Language.ES: ["terreno", "terrenos", "lote", "lotes", "predio", "predios"],
        Language.EN: ["land", "plot", "plots", "vacant lot", "building lot", "land lot"],
    },
    PropertyType.COMMERCIAL: {
        Language.ES: [
            "local comercial", "locales comerciales", "bodega", "bodegas",
            "nave industrial", "comercial",
        ],
        Language.EN: ["commercial", "retail space", "warehouse", "warehouses", "storefront"],
    },
    PropertyType.OFFICE: {
        Language.ES: ["oficina", "oficinas", "consultorio"],
        Language.EN: ["office", "offices", "office space"],
    },
}

# Tag de amenity -> idioma -> frases disparadoras
FEATURE_SYNONYMS: dict[str, dict[Language, list[str]]] = {
    "pool": {
        Language.ES: ["alberca", "albercas", "piscina", "pileta"],
        Language.EN: ["pool", "swimming pool"],
    },
    "garden": {
        Language.ES: ["jardín", "jardin", "jardines", "patio trasero"],
        Language.EN: ["garden", "yard", "backyard"],
    },
    "garage": {
        Language.ES: ["garaje", "garage", "cochera", "cocheras", "estacionamiento"],
        Language.EN: ["garage", "parking", "parking spot", "carport"],
    },
    "beachfront": {
        Language.ES: ["frente al mar", "frente a la playa", "pie de playa", "a pie de playa"],
        Language.EN: ["beachfront", "beach front", "oceanfront", "ocean front", "on the beach"],
    },
    "ocean_view": {
        Language.ES: ["vista al mar", "vista al océano", "vista al oceano"],
        Language.EN: ["ocean view", "sea view", "ocean views"],
    },
    "terrace": {
        Language.ES: ["terraza", "roof garden", "azotea"],
        Language.EN: ["terrace", "rooftop", "roof garden", "roof deck"],
    },
    "balcony": {
        Language.ES: ["balcón", "balcon", "balcones"],
        Language.EN: ["balcony", "balconies"],
    },
    "gym": {
        Language.ES: ["gimnasio", "gym"],
        Language.EN: ["gym", "fitness center"],
    },
    "security": {
        Language.ES: ["seguridad", "vigilancia", "caseta de vigilancia", "fraccionamiento cerrado"],
        Language.EN: ["security", "gated", "gated community", "doorman"],
    },
    "furnished": {
        Language.ES: ["amueblado", "amueblada", "amueblados", "amuebladas"],
        Language.EN: ["furnished"],
    },
    "pet_friendly": {
        Language.ES: ["acepta mascotas", "se aceptan mascotas", "pet friendly"],
        Language.EN: ["pet friendly", "pets allowed", "pet-friendly"],
    },
    "elevator": {
        Language.ES: ["elevador", "ascensor"],
        Language.EN: ["elevator", "lift"],
    },
    "air_conditioning": {
        Language.ES: ["aire acondicionado", "minisplit", "mini split"],
        Language.EN: ["air conditioning", "a/c", "ac"],
    },
    "storage": {
        Language.ES: ["cuarto de guardado", "cuarto de servicio"],
        Language.EN: ["storage room", "storage unit"],
    },
}

# Negaciones que convierten un tag en exclusión ("sin alberca ni jardín")
NEGATIONS: dict[Language, list[str]] = {
    Language.ES: ["sin", "no", "ni"],
    Language.EN: ["without", "no", "nor"],
}


def _build_gazetteer() -> list[tuple[str, str, list[str]]]:
    """(tipo, nombre canónico, alias) para cada ubicación conocida."""
    entries: list[tuple[str, str, list[str]]] = []
    for name, aliases in MEXICO_REGIONS.items():
        entries.append(("region", name, [name.lower(), *aliases]))
    for name, aliases in MEXICO_CITIES.items():
        entries.append(("city", name, [name.lower(), *aliases]))
    for name in CDMX_ALCALDIAS:
        entries.append(("city", name, [name.lower()]))
    return entries


# Gazetteer: ubicaciones conocidas (ciudades, alcaldías y estados)
LOCATION_GAZETTEER: list[tuple[str, str, list[str]]] = _build_gazetteer()
