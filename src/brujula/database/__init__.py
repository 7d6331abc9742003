"""
Módulo de base de datos.

Provee acceso de lectura a Supabase (tabla de propiedades y RPC pgvector).
"""

from brujula.database.supabase_client import get_supabase_client, SupabaseClient
from brujula.database.repositories import (
    BaseRepository,
    PropertyRepository,
    property_type_from_label,
    region_clause,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "BaseRepository",
    "PropertyRepository",
    "property_type_from_label",
    "region_clause",
]
