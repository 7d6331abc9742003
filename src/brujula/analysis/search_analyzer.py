"""
Resumen en lenguaje natural de un set de resultados.

Se genera después del ranking y es opcional: si el LLM falla o tarda
demasiado, el response sale sin el campo.
"""

import asyncio
from typing import Optional

import structlog

from brujula.analysis.llm_providers import BaseLLMProvider, get_llm_provider
from brujula.config import get_settings
from brujula.exceptions import AnalysisUnavailable
from brujula.models import PROPERTY_TYPE_DB_LABELS, Language, Query, RankedResult

logger = structlog.get_logger()


SEARCH_SYSTEM_PROMPT = (
    "Sos un asesor inmobiliario que resume resultados de búsqueda de propiedades en México. "
    "No inventes datos: usá solo los que vienen en el prompt."
)

SEARCH_USER_PROMPT_TEMPLATE = """Analizá estos resultados para la búsqueda: "{query}"

- Propiedades encontradas: {count}
- Rango de precios: {price_range}
- Ubicaciones: {locations}
- Tipos de propiedad: {types}

Escribí 2-3 frases cortas sobre qué muestran los resultados, qué se ve en los precios
y en las ubicaciones, y una recomendación si aplica.
No uses listas ni markdown. {language_rule}"""

_LANGUAGE_RULES = {
    Language.ES: "Respondé en español.",
    Language.EN: "Respond in English.",
    Language.UNKNOWN: "Respondé en el mismo idioma que la búsqueda.",
}


def format_price(price: Optional[float]) -> str:
    """Formatea un precio en MXN: 3500000 -> '$3,500,000 MXN'."""
    if not price:
        return "$0 MXN"
    return f"${price:,.0f} MXN"


class SearchAnalyzer:
    """Genera un resumen breve del set de resultados con el LLM configurado."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        timeout_s: Optional[float] = None,
    ):
        self._provider = provider or get_llm_provider()
        self.timeout_s = timeout_s or get_settings().analysis_timeout_s

    def _build_context(self, results: list[RankedResult]) -> dict:
        prices = [r.price for r in results if r.price]
        if prices:
            price_range = f"{format_price(min(prices))} - {format_price(max(prices))}"
        else:
            price_range = "sin datos"

        locations = []
        for r in results:
            place = ", ".join(part for part in (r.city, r.region) if part)
            if place and place not in locations:
                locations.append(place)

        types = []
        for r in results:
            if r.property_type is None:
                continue
            label = PROPERTY_TYPE_DB_LABELS[r.property_type]
            if label not in types:
                types.append(label)

        return {
            "count": len(results),
            "price_range": price_range,
            "locations": "; ".join(locations[:8]) or "sin datos",
            "types": ", ".join(types) or "sin datos",
        }

    def build_prompt(self, results: list[RankedResult], query: Query) -> str:
        context = self._build_context(results)
        return SEARCH_USER_PROMPT_TEMPLATE.format(
            query=query.raw_text.strip() or query.normalized_text,
            language_rule=_LANGUAGE_RULES[query.language],
            **context,
        )

    async def summarize(self, results: list[RankedResult], query: Query) -> str:
        """
        Resume los resultados en el idioma de la query.

        Args:
            results: Resultados ya rankeados (no vacíos)
            query: Query original normalizada

        Returns:
            Texto de 2-3 frases

        Raises:
            AnalysisUnavailable: Sin resultados, timeout, error del LLM o texto vacío
        """
        if not results:
            raise AnalysisUnavailable("Sin resultados para analizar")

        user_prompt = self.build_prompt(results, query)
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            response = await asyncio.wait_for(
                self._provider.generate(
                    system_prompt=SEARCH_SYSTEM_PROMPT,
                    user_prompt=user_prompt,
                    temperature=0.5,
                    max_tokens=200,
                ),
                timeout=self.timeout_s,
            )
        except Exception as e:
            took_ms = round((loop.time() - started) * 1000, 1)
            logger.warning(
                "Error generando análisis de búsqueda",
                query=query.raw_text,
                stage="analysis",
                took_ms=took_ms,
                error=str(e) or type(e).__name__,
            )
            raise AnalysisUnavailable(
                f"Análisis no disponible: {type(e).__name__}", took_ms=took_ms
            ) from e

        text = (response.text or "").strip()
        if text.startswith("```"):
            text = text.strip("`").strip()
        if not text:
            raise AnalysisUnavailable("El LLM devolvió un texto vacío")

        logger.debug(
            "Análisis generado",
            provider=response.provider,
            tokens=response.tokens_used,
            length=len(text),
        )
        return text
