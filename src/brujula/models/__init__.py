"""
Modelos de datos del pipeline de búsqueda.

Todos son efímeros: se crean por request y no se persisten.
"""

from brujula.models.search import (
    PROPERTY_TYPE_DB_LABELS,
    Candidate,
    CandidateSource,
    ExtractionResult,
    Language,
    PropertyType,
    Query,
    RankedResult,
    SearchMethod,
    SearchResponse,
    StructuredFilters,
)

__all__ = [
    "PROPERTY_TYPE_DB_LABELS",
    # Query
    "Query",
    "Language",
    # Filtros
    "StructuredFilters",
    "PropertyType",
    "ExtractionResult",
    # Resultados
    "Candidate",
    "CandidateSource",
    "RankedResult",
    "SearchMethod",
    "SearchResponse",
]
