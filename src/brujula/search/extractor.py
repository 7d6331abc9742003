"""
Extractor de filtros estructurados.

Convierte la query normalizada en StructuredFilters + texto residual
mediante una lista ordenada de etapas independientes:

1. Precio (primero, para que su número no se reutilice como recámaras)
2. Recámaras / baños
3. Tipo de propiedad
4. Ubicación
5. Amenities

Cada etapa consume (blanquea) los fragmentos que reconoce. Lo que
queda, sin palabras de relleno, es el residuo semántico que se
manda a embeddings.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import structlog

from brujula.models import ExtractionResult, Language, PropertyType, StructuredFilters
from brujula.search.dictionaries import (
    AREA_UNITS,
    CURRENCY_WORDS,
    FEATURE_SYNONYMS,
    FILLER_WORDS,
    LOCATION_GAZETTEER,
    NEGATIONS,
    NUMBER_WORDS,
    PRICE_POSTFIX_QUALIFIERS,
    PRICE_QUALIFIERS,
    PRICE_SUFFIX_UNITS,
    PRICE_UNITS,
    PROPERTY_TYPE_SYNONYMS,
    RANGE_CONNECTORS,
    ROOM_ALTERNATIVES,
    ROOM_MIN_QUALIFIERS,
    ROOM_NOUNS,
)
from brujula.search.normalizer import fold

logger = structlog.get_logger()

# Límites de palabra: no empezar pegado a una letra, dígito o '$'
_B = r"(?<![\w$])"
_E = r"(?!\w)"

_DIGITS = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d{1,3}(?:\.\d{3}){2,}|\d+(?:[.,]\d+)?"
_THOUSANDS_COMMA = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_THOUSANDS_DOT = re.compile(r"^\d{1,3}(?:\.\d{3}){2,}$")
_PUNCT_ONLY = re.compile(r"^[^\w]+$")
_SPACES = re.compile(r"\s+")

# Un número sin unidad ni moneda menor a esto no se toma como precio
_MIN_UNMARKED_PRICE = 1000


def _key(text: str) -> str:
    """Clave de lookup: sin acentos, minúscula, espacios simples."""
    return " ".join(fold(text).lower().split())


def _alternation(phrases) -> str:
    """Alternativa regex de frases, las más largas primero."""
    unique = sorted({_key(p) for p in phrases if p.strip()}, key=len, reverse=True)
    return "|".join(
        r"\s+".join(re.escape(word) for word in phrase.split()) for phrase in unique
    )


@dataclass
class ExtractionState:
    """Estado mutable de una extracción (vive solo durante extract())."""

    text: str
    language: Language
    folded: str = ""
    filters: dict = field(default_factory=dict)
    features: set[str] = field(default_factory=set)
    excluded_features: set[str] = field(default_factory=set)
    spans: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.folded = fold(self.text)
        self._chars = list(self.text)

    @property
    def languages(self) -> list[Language]:
        """Idiomas a probar, el detectado primero."""
        if self.language == Language.EN:
            return [Language.EN, Language.ES]
        return [Language.ES, Language.EN]

    def consume(self, start: int, end: int) -> None:
        """Marca un fragmento como consumido y lo borra del texto de trabajo."""
        span = "".join(self._chars[start:end]).strip()
        if span:
            self.spans.append(span)
        blank = " " * (end - start)
        self.folded = self.folded[:start] + blank + self.folded[end:]
        self._chars[start:end] = list(blank)

    def set_once(self, name: str, value) -> None:
        """Primera mención gana."""
        if self.filters.get(name) is None:
            self.filters[name] = value

    def remaining_text(self) -> str:
        return "".join(self._chars)


class ExtractionStage(ABC):
    """Etapa del extractor: reconoce un tipo de filtro y consume su texto."""

    name: str = "base"

    @abstractmethod
    def apply(self, state: ExtractionState) -> None:
        """Extrae su filtro de `state.folded` y consume los fragmentos."""


class _TableStage(ExtractionStage):
    """Etapa basada en una tabla clave -> idioma -> frases."""

    table: dict = {}

    def __init__(self):
        self._patterns: dict[Language, re.Pattern] = {}
        self._lookup: dict[str, object] = {}
        for key, by_lang in self.table.items():
            for phrases in by_lang.values():
                for phrase in phrases:
                    self._lookup.setdefault(_key(phrase), key)
        for language in (Language.ES, Language.EN):
            phrases = [p for by_lang in self.table.values() for p in by_lang.get(language, [])]
            if phrases:
                self._patterns[language] = re.compile(self._wrap(_alternation(phrases)))

    def _wrap(self, alternation: str) -> str:
        return rf"{_B}(?P<phrase>{alternation}){_E}"

    def scan(self, state: ExtractionState) -> list[tuple[int, int, object, re.Match]]:
        """
        Busca menciones en el idioma detectado y luego en el otro.

        Todas las menciones se consumen; devuelve las del idioma con
        matches primero, cada grupo en orden de aparición.
        """
        found = []
        for language in state.languages:
            pattern = self._patterns.get(language)
            if pattern is None:
                continue
            for match in pattern.finditer(state.folded):
                key = self._lookup.get(_key(match.group("phrase")))
                if key is None:
                    continue
                found.append((match.start(), match.end(), key, match))
                state.consume(match.start(), match.end())
        return found


class PriceStage(ExtractionStage):
    """
    Rangos de precio: "bajo 5 millones", "entre 2 y 4 millones",
    "under 300k usd", "$3,500,000", "alrededor de 3 millones".
    """

    name = "price"

    def __init__(self):
        self._unit_lookup = {
            _key(word): factor for factor, words in PRICE_UNITS.items() for word in words
        }
        self._currency_lookup = {
            _key(word): code for code, words in CURRENCY_WORDS.items() for word in words
        }
        self._qualifier_lookup = {
            _key(phrase): kind
            for kind, by_lang in PRICE_QUALIFIERS.items()
            for phrases in by_lang.values()
            for phrase in phrases
        }
        self._postfix_lookup = {
            _key(phrase): kind
            for kind, by_lang in PRICE_POSTFIX_QUALIFIERS.items()
            for phrases in by_lang.values()
            for phrase in phrases
        }

        units = _alternation([w for words in PRICE_UNITS.values() for w in words])
        suffixes = _alternation(PRICE_SUFFIX_UNITS)
        currencies = _alternation([w for words in CURRENCY_WORDS.values() for w in words])
        number_words = _alternation(NUMBER_WORDS)
        area = _alternation(AREA_UNITS)
        openers = _alternation([w for pair in RANGE_CONNECTORS.values() for w in pair[0]])
        connectors = _alternation([w for pair in RANGE_CONNECTORS.values() for w in pair[1]])

        def amount(p: str) -> str:
            return (
                rf"(?:(?P<{p}pcur>{currencies})\s*)?"
                rf"(?P<{p}dollar>\$\s*)?"
                rf"(?P<{p}num>(?:{_DIGITS})(?![.,]?\d)|(?:{number_words}){_E})"
                rf"(?:(?P<{p}suffix>{suffixes}){_E}|\s*(?P<{p}unit>{units}){_E})?"
                rf"(?:\s+(?:de\s+)?(?P<{p}cur>{currencies}){_E})?"
                rf"(?!\s*(?:{area}){_E})"
            )

        self._range = re.compile(
            rf"{_B}(?:(?:{openers}){_E}\s*)?{amount('a')}\s*"
            rf"(?:(?:{connectors}){_E}|-)\s*{amount('b')}"
        )
        self._prefixed = re.compile(
            rf"{_B}(?P<qual>{_alternation(self._qualifier_lookup)}){_E}\s*{amount('q')}"
        )
        self._postfixed = re.compile(
            rf"{_B}{amount('s')}\s+(?P<post>{_alternation(self._postfix_lookup)}){_E}"
        )
        self._bare = re.compile(rf"{_B}{amount('x')}")

    def _parse(self, match: re.Match, p: str) -> tuple[float, bool, Optional[str], Optional[int]]:
        """(valor, tiene_marca, moneda, factor de unidad) de un monto."""
        raw = match.group(f"{p}num")
        if raw in NUMBER_WORDS:
            value = float(NUMBER_WORDS[raw])
        elif _THOUSANDS_COMMA.match(raw):
            value = float(raw.replace(",", ""))
        elif _THOUSANDS_DOT.match(raw):
            value = float(raw.replace(".", ""))
        else:
            value = float(raw.replace(",", "."))

        unit = match.group(f"{p}unit")
        suffix = match.group(f"{p}suffix")
        if suffix:
            factor = PRICE_SUFFIX_UNITS[suffix]
        else:
            factor = self._unit_lookup.get(_key(unit)) if unit else None
        if factor:
            value *= factor

        cur_word = match.group(f"{p}cur") or match.group(f"{p}pcur")
        currency = self._currency_lookup.get(_key(cur_word)) if cur_word else None
        marked = bool(unit or suffix or cur_word or match.group(f"{p}dollar"))
        return value, marked, currency, factor

    def _is_price(self, value: float, marked: bool, raw: str) -> bool:
        if raw in NUMBER_WORDS and not marked:
            return False
        return marked or value >= _MIN_UNMARKED_PRICE

    def _set_currency(self, state: ExtractionState, currency: Optional[str]) -> None:
        if currency:
            state.set_once("currency", currency)

    def apply(self, state: ExtractionState) -> None:
        for match in self._range.finditer(state.folded):
            low, low_marked, low_cur, low_factor = self._parse(match, "a")
            high, high_marked, high_cur, high_factor = self._parse(match, "b")
            if not high_marked and (low < _MIN_UNMARKED_PRICE or high < _MIN_UNMARKED_PRICE):
                continue
            if low_factor is None and high_factor and low < _MIN_UNMARKED_PRICE:
                # "entre 2 y 4 millones": la unidad aplica a ambos
                low *= high_factor
            state.set_once("price_min", low)
            state.set_once("price_max", high)
            self._set_currency(state, low_cur or high_cur)
            state.consume(match.start(), match.end())

        for match in self._prefixed.finditer(state.folded):
            value, marked, currency, _ = self._parse(match, "q")
            if not self._is_price(value, marked, match.group("qnum")):
                continue
            kind = self._qualifier_lookup[_key(match.group("qual"))]
            self._apply_bound(state, kind, value)
            self._set_currency(state, currency)
            state.consume(match.start(), match.end())

        for match in self._postfixed.finditer(state.folded):
            value, marked, currency, _ = self._parse(match, "s")
            if not marked:
                continue
            kind = self._postfix_lookup[_key(match.group("post"))]
            self._apply_bound(state, kind, value)
            self._set_currency(state, currency)
            state.consume(match.start(), match.end())

        for match in self._bare.finditer(state.folded):
            value, marked, currency, _ = self._parse(match, "x")
            if not marked:
                continue
            # Un monto suelto con unidad o moneda se toma como presupuesto
            self._apply_bound(state, "max", value)
            self._set_currency(state, currency)
            state.consume(match.start(), match.end())

    def _apply_bound(self, state: ExtractionState, kind: str, value: float) -> None:
        if kind == "max":
            state.set_once("price_max", value)
        elif kind == "min":
            state.set_once("price_min", value)
        elif kind == "around":
            state.set_once("price_min", round(value * 0.8, 2))
            state.set_once("price_max", round(value * 1.2, 2))


class RoomStage(ExtractionStage):
    """
    Recámaras y baños como cota mínima: "3 recámaras", "2+ baths".

    Rangos y alternativas ("3 o 4 recámaras", "entre 2 y 3 baños")
    toman el número menor.
    """

    name = "rooms"

    def __init__(self):
        self._noun_lookup = {
            _key(noun): field_name
            for field_name, by_lang in ROOM_NOUNS.items()
            for nouns in by_lang.values()
            for noun in nouns
        }
        nouns = _alternation(self._noun_lookup)
        count = rf"\d+(?:\.5)?|(?:{_alternation(NUMBER_WORDS)}){_E}"
        qualifiers = _alternation([q for qs in ROOM_MIN_QUALIFIERS.values() for q in qs])
        openers = _alternation([w for pair in RANGE_CONNECTORS.values() for w in pair[0]])
        links = _alternation(
            [w for pair in RANGE_CONNECTORS.values() for w in pair[1]]
            + [w for words in ROOM_ALTERNATIVES.values() for w in words]
        )
        self._range = re.compile(
            rf"{_B}(?:(?:{openers}){_E}\s*)?"
            rf"(?P<low>{count})\s*(?:(?:{links}){_E}|-)\s*"
            rf"(?P<num>{count})\s*\+?\s*"
            rf"(?P<noun>{nouns}){_E}"
        )
        self._pattern = re.compile(
            rf"{_B}(?:(?:{qualifiers}){_E}\s*)?"
            rf"(?P<num>{count})\s*\+?\s*"
            rf"(?P<noun>{nouns}){_E}"
            rf"(?:\s*(?:\+|(?:o\s+mas|or\s+more){_E}))?"
        )

    @staticmethod
    def _count(raw: str) -> int:
        return NUMBER_WORDS[raw] if raw in NUMBER_WORDS else int(float(raw))

    def apply(self, state: ExtractionState) -> None:
        for match in self._range.finditer(state.folded):
            count = min(self._count(match.group("low")), self._count(match.group("num")))
            state.set_once(self._noun_lookup[_key(match.group("noun"))], count)
            state.consume(match.start(), match.end())

        for match in self._pattern.finditer(state.folded):
            field_name = self._noun_lookup[_key(match.group("noun"))]
            state.set_once(field_name, self._count(match.group("num")))
            state.consume(match.start(), match.end())


class PropertyTypeStage(_TableStage):
    """Tipo de propiedad por sinónimos bilingües."""

    name = "property_type"
    table = PROPERTY_TYPE_SYNONYMS

    def apply(self, state: ExtractionState) -> None:
        found = self.scan(state)
        if found:
            first: PropertyType = found[0][2]
            state.set_once("property_type", first)


class LocationStage(ExtractionStage):
    """Ciudad y/o región contra el gazetteer (sin acentos ni mayúsculas)."""

    name = "location"

    def __init__(self):
        self._lookup: dict[str, tuple[str, str]] = {}
        for kind, name, aliases in LOCATION_GAZETTEER:
            for alias in aliases:
                self._lookup.setdefault(_key(alias), (kind, name))
        self._pattern = re.compile(rf"{_B}(?P<phrase>{_alternation(self._lookup)}){_E}")

    def apply(self, state: ExtractionState) -> None:
        for match in self._pattern.finditer(state.folded):
            kind, name = self._lookup[_key(match.group("phrase"))]
            state.set_once(kind, name)
            state.consume(match.start(), match.end())


class FeatureStage(_TableStage):
    """Tags de amenities; con negación previa pasan a exclusiones."""

    name = "features"
    table = FEATURE_SYNONYMS

    def _wrap(self, alternation: str) -> str:
        negations = _alternation([n for ns in NEGATIONS.values() for n in ns])
        return rf"{_B}(?:(?P<neg>{negations}){_E}\s+)?(?P<phrase>{alternation}){_E}"

    def apply(self, state: ExtractionState) -> None:
        for _, _, tag, match in self.scan(state):
            if match.group("neg"):
                state.excluded_features.add(tag)
            else:
                state.features.add(tag)
        state.features -= state.excluded_features


DEFAULT_STAGES: tuple[type[ExtractionStage], ...] = (
    PriceStage,
    RoomStage,
    PropertyTypeStage,
    LocationStage,
    FeatureStage,
)


class FilterExtractor:
    """
    Extrae filtros estructurados con etapas ordenadas.

    El orden importa: el precio corre antes que recámaras para que
    "bajo 3 millones" no se lea como 3 de algo.
    """

    def __init__(self, stages: Optional[list[ExtractionStage]] = None):
        self.stages: list[ExtractionStage] = (
            stages if stages is not None else [stage() for stage in DEFAULT_STAGES]
        )
        self._fillers = {_key(w) for words in FILLER_WORDS.values() for w in words}

    def extract(self, normalized_text: str, language: Language = Language.UNKNOWN) -> ExtractionResult:
        """
        Extrae filtros y residuo de una query ya normalizada.

        Args:
            normalized_text: Texto del QueryNormalizer
            language: Idioma detectado (define qué diccionario se prueba primero)

        Returns:
            ExtractionResult con filtros, residuo y fragmentos consumidos
        """
        if not normalized_text or not normalized_text.strip():
            return ExtractionResult()

        state = self._run_stages(normalized_text, language)
        residual = self.build_residual(state.remaining_text())

        # Sacar relleno puede juntar fragmentos ("2 de recamaras"):
        # se repite sobre el residuo hasta que no quede nada por extraer
        while residual:
            again = self._run_stages(residual, language)
            if not again.spans:
                break
            for name, value in again.filters.items():
                state.set_once(name, value)
            state.features |= again.features
            state.excluded_features |= again.excluded_features
            state.features -= state.excluded_features
            state.spans.extend(again.spans)
            residual = self.build_residual(again.remaining_text())

        filters = StructuredFilters(
            **state.filters,
            features=state.features,
            excluded_features=state.excluded_features,
        )

        logger.debug(
            "Filtros extraídos",
            filters=filters.to_api_dict(),
            residual=residual,
            spans=state.spans,
        )
        return ExtractionResult(filters=filters, residual=residual, matched_spans=state.spans)

    def _run_stages(self, text: str, language: Language) -> ExtractionState:
        state = ExtractionState(text=text, language=language)
        for stage in self.stages:
            stage.apply(state)
        return state

    def build_residual(self, text: str) -> str:
        """Texto sin fragmentos consumidos, relleno ni signos sueltos."""
        tokens = []
        for token in _SPACES.split(text.strip()):
            if not token or _PUNCT_ONLY.match(token):
                continue
            if _key(token) in self._fillers:
                continue
            tokens.append(token)
        return " ".join(tokens)
