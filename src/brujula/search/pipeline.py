"""
Pipeline de búsqueda en lenguaje natural.

Flujo:
1. Normalizar la query y detectar idioma
2. Extraer filtros estructurados y residuo semántico
3. Camino vectorial (embedding + índice) con fallback a SQL
4. Merge, post-filtro y ranking
5. Resumen opcional con LLM
"""

import asyncio
import time
from enum import Enum
from typing import Optional

import structlog

from brujula.analysis import EmbeddingClient, SearchAnalyzer
from brujula.config import get_settings
from brujula.exceptions import (
    AnalysisUnavailable,
    EmbeddingUnavailable,
    SqlSearchFailure,
    VectorSearchUnavailable,
)
from brujula.models import Candidate, SearchMethod, SearchResponse, StructuredFilters
from brujula.search.extractor import FilterExtractor
from brujula.search.normalizer import QueryNormalizer
from brujula.search.ranker import ResultRanker
from brujula.search.sql_search import SqlSearch
from brujula.search.suggestions import no_results_tips, suggest_refinements
from brujula.search.vector_search import VectorSearchEngine

logger = structlog.get_logger()


class FallbackState(str, Enum):
    TRY_VECTOR = "try_vector"
    TRY_SQL = "try_sql"
    DONE = "done"


class VectorOutcome(str, Enum):
    """Cómo terminó el camino vectorial."""

    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    INSUFFICIENT = "insufficient"
    SKIPPED = "skipped"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


class SearchPipeline:
    """
    Orquesta una búsqueda de punta a punta.

    Cada llamada a search() es independiente: el pipeline no guarda
    estado entre requests, así que una instancia se puede compartir.
    """

    def __init__(
        self,
        normalizer: Optional[QueryNormalizer] = None,
        extractor: Optional[FilterExtractor] = None,
        embedder: Optional[EmbeddingClient] = None,
        vector_engine: Optional[VectorSearchEngine] = None,
        sql_search: Optional[SqlSearch] = None,
        ranker: Optional[ResultRanker] = None,
        analyzer: Optional[SearchAnalyzer] = None,
        analysis_enabled: Optional[bool] = None,
    ):
        self.settings = get_settings()
        self.normalizer = normalizer or QueryNormalizer()
        self.extractor = extractor or FilterExtractor()
        self.embedder = embedder or EmbeddingClient()
        self.vector_engine = vector_engine or VectorSearchEngine()
        self.sql_search = sql_search or SqlSearch()
        self.ranker = ranker or ResultRanker()

        if analysis_enabled is None:
            analysis_enabled = self.settings.analysis_enabled
        if analysis_enabled and analyzer is None:
            analyzer = SearchAnalyzer()
        self.analyzer = analyzer if analysis_enabled else None

    def resolve_limit(self, limit: Optional[int]) -> int:
        """Limit pedido acotado a [1, max_result_limit]."""
        if limit is None:
            limit = self.settings.default_result_limit
        return max(1, min(int(limit), self.settings.max_result_limit))

    async def search(
        self,
        query: Optional[str],
        explicit_filters: Optional[StructuredFilters] = None,
        limit: Optional[int] = None,
    ) -> SearchResponse:
        """
        Ejecuta una búsqueda.

        Args:
            query: Texto libre en español o inglés (puede ser vacío)
            explicit_filters: Filtros de la UI; sus campos con valor pisan a los extraídos
            limit: Cantidad máxima de resultados

        Returns:
            SearchResponse con resultados rankeados y filtros aplicados

        Raises:
            SqlSearchFailure: La base no respondió y no hay más fallback
        """
        started = time.perf_counter()
        limit = self.resolve_limit(limit)

        normalized = self.normalizer.normalize(query)
        extraction = self.extractor.extract(normalized.normalized_text, normalized.language)
        filters = extraction.filters.merged_with(explicit_filters)
        residual = extraction.residual

        log = logger.bind(query=normalized.raw_text[:200], language=normalized.language.value)
        log.debug("Query interpretada", filters=filters.to_api_dict(), residual=residual)

        try:
            outcome, reason, vector_candidates, sql_candidates = await self._run_fallback(
                residual, filters, limit, log
            )
        except SqlSearchFailure as e:
            log.error(
                "Búsqueda fallida",
                stage=e.stage,
                took_ms=_elapsed_ms(started),
                error=str(e),
            )
            raise

        results = self.ranker.rank(vector_candidates, sql_candidates, filters, limit)

        if not residual and filters.is_empty():
            method = SearchMethod.BROWSE
        elif outcome == VectorOutcome.SUCCESS:
            method = SearchMethod.VECTOR
        elif vector_candidates:
            method = SearchMethod.HYBRID
        else:
            method = SearchMethod.SQL

        fallback_reason = None
        if outcome != VectorOutcome.SUCCESS and method != SearchMethod.BROWSE:
            fallback_reason = reason

        response = SearchResponse(
            query=normalized,
            results=results,
            filters_applied=filters,
            residual=residual,
            search_method=method,
            fallback_reason=fallback_reason,
        )

        if results:
            response.analysis = await self._analyze(results, normalized, log)
        else:
            response.suggestions = no_results_tips(
                normalized.normalized_text, extraction, normalized.language
            )

        response.took_ms = _elapsed_ms(started)
        log.info(
            "Búsqueda completada",
            method=method.value,
            fallback_reason=fallback_reason,
            results=len(results),
            vector_candidates=len(vector_candidates),
            sql_candidates=len(sql_candidates),
            took_ms=response.took_ms,
        )
        return response

    async def _run_fallback(
        self,
        residual: str,
        filters: StructuredFilters,
        limit: int,
        log,
    ) -> tuple[VectorOutcome, Optional[str], list[Candidate], list[Candidate]]:
        """
        Máquina de estados TRY_VECTOR -> TRY_SQL -> DONE.

        Con residuo corto el SQL se lanza en paralelo al vector y se
        cancela si el vector alcanza.
        """
        state = FallbackState.TRY_VECTOR
        outcome = VectorOutcome.SKIPPED
        vector_candidates: list[Candidate] = []
        sql_candidates: list[Candidate] = []
        reason: Optional[str] = None

        eager_sql: Optional[asyncio.Task] = None
        if residual and len(residual.split()) <= self.settings.eager_sql_max_residual_words:
            eager_sql = asyncio.create_task(self.sql_search.search(filters, limit))

        try:
            while state != FallbackState.DONE:
                if state == FallbackState.TRY_VECTOR:
                    outcome, reason, vector_candidates = await self._try_vector(
                        residual, filters, limit, log
                    )
                    state = (
                        FallbackState.DONE
                        if outcome == VectorOutcome.SUCCESS
                        else FallbackState.TRY_SQL
                    )
                elif state == FallbackState.TRY_SQL:
                    if eager_sql is not None:
                        task, eager_sql = eager_sql, None
                        sql_candidates = await task
                    else:
                        sql_candidates = await self.sql_search.search(filters, limit)
                    state = FallbackState.DONE
        finally:
            if eager_sql is not None:
                if not eager_sql.done():
                    eager_sql.cancel()
                    log.debug("SQL anticipado cancelado", stage="sql_search")
                elif not eager_sql.cancelled() and eager_sql.exception() is not None:
                    log.warning(
                        "SQL anticipado falló sin ser necesario",
                        stage="sql_search",
                        error=str(eager_sql.exception()),
                    )

        return outcome, reason, vector_candidates, sql_candidates

    async def _try_vector(
        self,
        residual: str,
        filters: StructuredFilters,
        limit: int,
        log,
    ) -> tuple[VectorOutcome, Optional[str], list[Candidate]]:
        if not residual:
            return VectorOutcome.SKIPPED, "empty_residual", []

        started = time.perf_counter()
        try:
            vector = await self.embedder.embed(residual)
        except EmbeddingUnavailable as e:
            log.warning(
                "Fallback a SQL",
                stage=e.stage,
                reason="embedding_unavailable",
                took_ms=_elapsed_ms(started),
            )
            return VectorOutcome.UNAVAILABLE, "embedding_unavailable", []

        top_k = max(self.settings.vector_top_k, limit)
        try:
            candidates = await self.vector_engine.search(vector, filters, top_k)
        except VectorSearchUnavailable as e:
            log.warning(
                "Fallback a SQL",
                stage=e.stage,
                reason="vector_unavailable",
                took_ms=_elapsed_ms(started),
            )
            return VectorOutcome.UNAVAILABLE, "vector_unavailable", []

        if len(candidates) < self.settings.min_vector_results:
            log.info(
                "Pocos resultados vectoriales, se complementa con SQL",
                stage="vector_search",
                results=len(candidates),
                took_ms=_elapsed_ms(started),
            )
            return VectorOutcome.INSUFFICIENT, "insufficient_vector_results", candidates

        return VectorOutcome.SUCCESS, None, candidates

    async def _analyze(self, results, query, log) -> Optional[str]:
        if self.analyzer is None:
            return None
        try:
            return await self.analyzer.summarize(results, query)
        except AnalysisUnavailable as e:
            log.warning("Análisis omitido", stage=e.stage, took_ms=e.took_ms, error=str(e))
            return None

    async def suggest(self, query: Optional[str]) -> list[str]:
        """Queries refinadas que agregan lo que a la búsqueda le falta."""
        normalized = self.normalizer.normalize(query)
        extraction = self.extractor.extract(normalized.normalized_text, normalized.language)
        return suggest_refinements(normalized.normalized_text, extraction, normalized.language)
