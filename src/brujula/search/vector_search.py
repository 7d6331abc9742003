"""
Búsqueda semántica sobre el índice de embeddings de propiedades.

El índice es intercambiable (igual que los proveedores de LLM): en
producción es la función pgvector de Supabase, en tests o demos un
índice en memoria.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from brujula.analysis.embeddings import EmbeddingClient
from brujula.config import REGION_CITIES, get_settings
from brujula.database import PropertyRepository, SupabaseClient, get_supabase_client
from brujula.exceptions import VectorSearchUnavailable
from brujula.models import PROPERTY_TYPE_DB_LABELS, Candidate, CandidateSource, StructuredFilters
from brujula.search.ranker import filter_violations, property_id_sort_key

logger = structlog.get_logger()


class BaseVectorIndex(ABC):
    """Índice vectorial con pre-filtro de metadata."""

    name: str = "base"

    @abstractmethod
    def query(
        self,
        vector: list[float],
        filters: StructuredFilters,
        top_k: int,
    ) -> list[Candidate]:
        """
        Vecinos más cercanos que cumplen los filtros (llamada bloqueante).

        Returns:
            Candidatos con source=vector y raw_score = similitud
        """


class SupabaseVectorIndex(BaseVectorIndex):
    """
    Índice pgvector expuesto como función RPC de Supabase.

    La función recibe el embedding, la cantidad de vecinos y los
    pre-filtros (precio ya en MXN, tipo con la etiqueta de la base).
    Devuelve filas de la tabla de propiedades más una columna `similarity`.
    Para CDMX también recibe `filter_region_cities`: la región se cumple
    por estado o por ciudad en esa lista.
    """

    name = "supabase"

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        function_name: Optional[str] = None,
        usd_to_mxn_rate: Optional[float] = None,
    ):
        settings = get_settings()
        self._client = client or get_supabase_client()
        self.function_name = function_name or settings.vector_match_rpc
        self.usd_to_mxn_rate = usd_to_mxn_rate or settings.usd_to_mxn_rate

    def build_filters(self, filters: StructuredFilters) -> dict:
        """Pre-filtros del RPC con sus nombres de parámetro."""
        price_min, price_max = filters.price_bounds_mxn(self.usd_to_mxn_rate)
        return {
            "filter_city": filters.city,
            "filter_region": filters.region,
            "filter_region_cities": REGION_CITIES.get(filters.region),
            "filter_property_type": (
                PROPERTY_TYPE_DB_LABELS[filters.property_type] if filters.property_type else None
            ),
            "filter_price_min": price_min,
            "filter_price_max": price_max,
            "filter_bedrooms": filters.bedrooms,
            "filter_bathrooms": filters.bathrooms,
        }

    def query(
        self,
        vector: list[float],
        filters: StructuredFilters,
        top_k: int,
    ) -> list[Candidate]:
        rows = self._client.vector_match(
            self.function_name, vector, top_k, self.build_filters(filters)
        )
        return [
            PropertyRepository.to_candidate(
                row, CandidateSource.VECTOR, float(row.get("similarity") or 0.0)
            )
            for row in rows
        ]


class InMemoryVectorIndex(BaseVectorIndex):
    """
    Índice en memoria con similitud de coseno.

    La similitud se normaliza a 0-1 ((coseno + 1) / 2) y el pre-filtro
    usa la misma regla que el post-filtro del ranker.
    """

    name = "memory"

    def __init__(self, usd_to_mxn_rate: Optional[float] = None):
        self.usd_to_mxn_rate = usd_to_mxn_rate or get_settings().usd_to_mxn_rate
        self._entries: list[tuple[Candidate, list[float]]] = []

    def add(self, candidate: Candidate, vector: list[float]) -> None:
        self._entries.append((candidate, list(vector)))

    def __len__(self) -> int:
        return len(self._entries)

    def query(
        self,
        vector: list[float],
        filters: StructuredFilters,
        top_k: int,
    ) -> list[Candidate]:
        scored = []
        for candidate, stored in self._entries:
            if filter_violations(candidate, filters, self.usd_to_mxn_rate):
                continue
            similarity = EmbeddingClient.cosine_similarity(vector, stored)
            score = max(0.0, min(1.0, (similarity + 1) / 2))
            scored.append(
                candidate.model_copy(update={"source": CandidateSource.VECTOR, "raw_score": score})
            )
        scored.sort(key=lambda c: (-c.raw_score, property_id_sort_key(c.property_id)))
        return scored[:top_k]


class VectorSearchEngine:
    """
    Búsqueda por similitud con pre-filtro estructurado.

    Cualquier falla del índice (error, timeout, respuesta inválida) se
    reporta como VectorSearchUnavailable para que el pipeline caiga a SQL.
    """

    def __init__(
        self,
        index: Optional[BaseVectorIndex] = None,
        timeout_s: Optional[float] = None,
        default_top_k: Optional[int] = None,
    ):
        settings = get_settings()
        self.index = index or SupabaseVectorIndex()
        self.timeout_s = timeout_s or settings.vector_timeout_s
        self.default_top_k = default_top_k or settings.vector_top_k

    async def search(
        self,
        vector: list[float],
        filters: StructuredFilters,
        top_k: Optional[int] = None,
    ) -> list[Candidate]:
        """
        Busca los `top_k` vecinos más cercanos que cumplen los filtros.

        Returns:
            Candidatos ordenados por similitud desc, empates por ID asc

        Raises:
            VectorSearchUnavailable: Índice caído, timeout o vector vacío
        """
        if not vector:
            raise VectorSearchUnavailable("Vector de query vacío")

        top_k = top_k or self.default_top_k
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            candidates = await asyncio.wait_for(
                asyncio.to_thread(self.index.query, vector, filters, top_k),
                timeout=self.timeout_s,
            )
        except Exception as e:
            took_ms = round((loop.time() - started) * 1000, 1)
            logger.warning(
                "Error en búsqueda vectorial",
                index=self.index.name,
                stage="vector_search",
                took_ms=took_ms,
                error=str(e) or type(e).__name__,
            )
            raise VectorSearchUnavailable(
                f"Índice vectorial no disponible: {type(e).__name__}", took_ms=took_ms
            ) from e

        candidates.sort(key=lambda c: (-c.raw_score, property_id_sort_key(c.property_id)))
        candidates = candidates[:top_k]
        logger.debug(
            "Búsqueda vectorial ejecutada",
            index=self.index.name,
            results=len(candidates),
            took_ms=round((loop.time() - started) * 1000, 1),
        )
        return candidates
