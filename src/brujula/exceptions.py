"""
Errores del pipeline de búsqueda.

Los errores de embedding y del índice vectorial no llegan al usuario:
disparan la búsqueda SQL. El único error visible es SqlSearchFailure.
"""

from typing import Optional


class BrujulaError(Exception):
    """Clase base de los errores del sistema."""

    stage: str = "pipeline"

    def __init__(self, message: str, *, took_ms: Optional[float] = None):
        super().__init__(message)
        self.took_ms = took_ms


class EmbeddingUnavailable(BrujulaError):
    """El modelo de embeddings no respondió (timeout, cuota, red)."""

    stage = "embedding"


class VectorSearchUnavailable(BrujulaError):
    """El índice vectorial falló o no respondió a tiempo."""

    stage = "vector_search"


class SqlSearchFailure(BrujulaError):
    """La base relacional no está disponible. No hay más fallback."""

    stage = "sql_search"


class AnalysisUnavailable(BrujulaError):
    """El LLM no pudo generar el resumen. Se omite del response."""

    stage = "analysis"
