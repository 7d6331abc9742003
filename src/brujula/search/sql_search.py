"""
Búsqueda SQL por filtros estructurados.

Es el último recurso del pipeline: si falla, la búsqueda falla.
"""

import asyncio
from typing import Optional

import structlog

from brujula.config import get_settings
from brujula.database import PropertyRepository
from brujula.exceptions import SqlSearchFailure
from brujula.models import Candidate, CandidateSource, StructuredFilters

logger = structlog.get_logger()


class SqlSearch:
    """Wrapper async del repositorio con timeout y errores de dominio."""

    def __init__(
        self,
        repository: Optional[PropertyRepository] = None,
        timeout_s: Optional[float] = None,
        usd_to_mxn_rate: Optional[float] = None,
    ):
        settings = get_settings()
        self.repository = repository or PropertyRepository()
        self.timeout_s = timeout_s or settings.sql_timeout_s
        self.usd_to_mxn_rate = usd_to_mxn_rate or settings.usd_to_mxn_rate

    async def search(self, filters: StructuredFilters, limit: int) -> list[Candidate]:
        """
        Propiedades que cumplen todos los filtros, más nuevas primero.

        Todas salen con raw_score 1.0 y source=sql.

        Raises:
            SqlSearchFailure: Base no disponible o timeout
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(
                    self.repository.search_by_filters,
                    filters,
                    limit,
                    self.usd_to_mxn_rate,
                ),
                timeout=self.timeout_s,
            )
        except Exception as e:
            took_ms = round((loop.time() - started) * 1000, 1)
            logger.error(
                "Error en búsqueda SQL",
                stage="sql_search",
                took_ms=took_ms,
                filters=filters.to_api_dict(),
                error=str(e) or type(e).__name__,
            )
            raise SqlSearchFailure(
                f"Búsqueda SQL no disponible: {type(e).__name__}", took_ms=took_ms
            ) from e

        return [
            PropertyRepository.to_candidate(row, CandidateSource.SQL, 1.0) for row in rows
        ]
