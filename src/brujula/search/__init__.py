"""
Búsqueda en lenguaje natural.

Normaliza la query, extrae filtros, busca por similitud con fallback
a SQL y rankea el resultado.
"""

from brujula.search.normalizer import QueryNormalizer, fold
from brujula.search.extractor import FilterExtractor, ExtractionStage
from brujula.search.vector_search import (
    BaseVectorIndex,
    SupabaseVectorIndex,
    InMemoryVectorIndex,
    VectorSearchEngine,
)
from brujula.search.sql_search import SqlSearch
from brujula.search.ranker import ResultRanker, filter_violations
from brujula.search.pipeline import SearchPipeline

__all__ = [
    # Interpretación de la query
    "QueryNormalizer",
    "fold",
    "FilterExtractor",
    "ExtractionStage",
    # Búsqueda
    "BaseVectorIndex",
    "SupabaseVectorIndex",
    "InMemoryVectorIndex",
    "VectorSearchEngine",
    "SqlSearch",
    # Ranking
    "ResultRanker",
    "filter_violations",
    # Orquestación
    "SearchPipeline",
]
