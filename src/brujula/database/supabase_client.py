"""
Cliente de Supabase.

Singleton para conexión a la base de propiedades y al índice pgvector.
"""

from functools import lru_cache
from typing import Optional

import structlog
from supabase import create_client, Client

from brujula.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper del cliente de Supabase con métodos de utilidad."""

    def __init__(self, client: Client):
        self._client = client

    @property
    def client(self) -> Client:
        """Acceso directo al cliente de Supabase."""
        return self._client

    def table(self, name: str):
        """Acceso a una tabla específica."""
        return self._client.table(name)

    def rpc(self, function_name: str, params: Optional[dict] = None) -> list:
        """
        Ejecuta una función RPC de PostgreSQL (bloqueante).

        Args:
            function_name: Nombre de la función en Supabase
            params: Parámetros de la función

        Returns:
            Lista de filas devueltas
        """
        try:
            response = self._client.rpc(function_name, params or {}).execute()
            return response.data or []
        except Exception as e:
            logger.error(
                "Error ejecutando RPC",
                function=function_name,
                error=str(e),
            )
            raise

    def vector_match(
        self,
        function_name: str,
        query_embedding: list[float],
        match_count: int,
        filters: Optional[dict] = None,
    ) -> list:
        """
        Vecinos más cercanos vía la función RPC de pgvector.

        Los pre-filtros sin valor no se mandan: la función los toma
        como "sin restricción".

        Returns:
            Filas de propiedades con su columna `similarity`
        """
        params = {"query_embedding": query_embedding, "match_count": match_count}
        params.update({key: value for key, value in (filters or {}).items() if value is not None})
        rows = self.rpc(function_name, params)
        logger.debug("Búsqueda vectorial ejecutada", function=function_name, rows=len(rows))
        return rows


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """
    Obtiene el cliente de Supabase (singleton cacheado).

    Returns:
        SupabaseClient configurado

    Raises:
        ValueError: Si las credenciales no están configuradas
    """
    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError(
            "SUPABASE_URL y SUPABASE_KEY son requeridos. "
            "Configura las variables de entorno."
        )

    # La búsqueda solo lee: la anon key alcanza, la service key es opcional
    key = settings.supabase_service_key or settings.supabase_key

    client = create_client(settings.supabase_url, key)
    logger.info("Cliente de Supabase inicializado", url=settings.supabase_url)

    return SupabaseClient(client)
