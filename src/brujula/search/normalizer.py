"""
Normalizador de queries.

Limpia el texto libre del usuario y detecta el idioma con un
puntaje simple de palabras clave. Nunca falla: una query vacía o
ilegible se convierte en texto vacío con idioma 'unknown'.
"""

import re
import unicodedata
from typing import Optional

import structlog

from brujula.models import Language, Query
from brujula.search.dictionaries import LANGUAGE_MARKERS

logger = structlog.get_logger()

# Cualquier cosa que no sea palabra, espacio o símbolo numérico útil
_DISALLOWED = re.compile(r"[^\w\s$.,+/%-]")
# Puntos, comas y guiones que no están entre dígitos
_LOOSE_PUNCT = re.compile(r"(?<!\d)[.,-]|[.,-](?!\d)")
_SPACES = re.compile(r"\s+")
_ACCENTED = re.compile(r"[áéíóúüñ¿¡]")


def fold_char(char: str) -> str:
    """Quita diacríticos de un carácter sin cambiar la longitud."""
    decomposed = unicodedata.normalize("NFD", char)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base if len(base) == 1 else char


def fold(text: str) -> str:
    """
    Versión sin acentos del texto, con la misma longitud.

    Permite buscar patrones sin diacríticos y usar las posiciones
    del match sobre el texto original.
    """
    return "".join(fold_char(c) for c in text)


class QueryNormalizer:
    """Normaliza texto y detecta idioma (es/en)."""

    def normalize(self, raw: Optional[str]) -> Query:
        """
        Normaliza una query cruda.

        Args:
            raw: Texto del usuario (puede ser None o vacío)

        Returns:
            Query con texto normalizado e idioma detectado
        """
        raw_text = raw if isinstance(raw, str) else ""
        text = self.clean(raw_text)
        if not text:
            return Query(raw_text=raw_text, normalized_text="", language=Language.UNKNOWN)

        language = self.detect_language(text)
        logger.debug("Query normalizada", normalized=text, language=language.value)
        return Query(raw_text=raw_text, normalized_text=text, language=language)

    def clean(self, text: str) -> str:
        text = unicodedata.normalize("NFC", text or "").lower()
        text = text.replace("¿", " ").replace("¡", " ")
        text = _DISALLOWED.sub(" ", text)
        text = _LOOSE_PUNCT.sub(" ", text)
        return _SPACES.sub(" ", text).strip()

    def detect_language(self, text: str) -> Language:
        """
        Detecta el idioma por conteo de marcadores.

        Cada stopword española o palabra con acento/ñ suma a 'es',
        cada stopword inglesa suma a 'en'. Empate -> 'unknown'.
        """
        es_score = 0
        en_score = 0
        for token in text.split():
            if token in LANGUAGE_MARKERS[Language.ES]:
                es_score += 1
            elif _ACCENTED.search(token):
                es_score += 1
            if token in LANGUAGE_MARKERS[Language.EN]:
                en_score += 1

        if es_score > en_score:
            return Language.ES
        if en_score > es_score:
            return Language.EN
        return Language.UNKNOWN
