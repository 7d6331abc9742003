"""
Repositorios de lectura sobre Supabase.

El esquema de la tabla de propiedades es externo; acá solo se leen
las columnas que el pipeline necesita para filtrar y rankear.
"""

from datetime import datetime
from typing import Optional

import structlog
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from brujula.config import REGION_CITIES, REGION_STATE_NAMES, get_settings
from brujula.database.supabase_client import get_supabase_client, SupabaseClient
from brujula.models import (
    PROPERTY_TYPE_DB_LABELS,
    Candidate,
    CandidateSource,
    PropertyType,
    StructuredFilters,
)

logger = structlog.get_logger()

# Etiqueta guardada en la base (o nombre del enum) -> PropertyType
_LABEL_TO_TYPE: dict[str, PropertyType] = {
    **{label.lower(): ptype for ptype, label in PROPERTY_TYPE_DB_LABELS.items()},
    **{ptype.value: ptype for ptype in PropertyType},
}


def property_type_from_label(label: Optional[str]) -> Optional[PropertyType]:
    """Traduce la etiqueta de la base ('Casa', 'Departamento') al enum."""
    if not label:
        return None
    return _LABEL_TO_TYPE.get(str(label).strip().lower())


def region_clause(region: str) -> str:
    """
    Filtro `or` de PostgREST para regiones con municipios en `city`.

    "Ciudad de México" se cumple si el estado tiene alguno de sus
    nombres o si la ciudad es una de las alcaldías.
    """
    clauses = [
        f"state.ilike.%{name}%" for name in REGION_STATE_NAMES.get(region, [region])
    ]
    cities = ",".join(f'"{city}"' for city in REGION_CITIES.get(region, []))
    if cities:
        clauses.append(f"city.in.({cities})")
    return ",".join(clauses)


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).replace(",", ""))
    except (ValueError, TypeError):
        return None


def _to_int(value) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _to_feature_tags(value) -> set[str]:
    """
    Normaliza amenities a un set de tags.

    Acepta lista de tags (["pool", "garage"]) o dict de booleanos
    ({"has_pool": true, "is_furnished": false}).
    """
    if not value:
        return set()
    if isinstance(value, dict):
        tags = set()
        for key, enabled in value.items():
            if not enabled:
                continue
            tag = str(key).lower()
            for prefix in ("has_", "is_"):
                if tag.startswith(prefix):
                    tag = tag[len(prefix):]
            tags.add(tag)
        return tags
    if isinstance(value, (list, tuple, set)):
        return {str(tag).lower() for tag in value if tag}
    return set()


class BaseRepository:
    """Clase base para repositorios."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client


class PropertyRepository(BaseRepository):
    """Repositorio de solo lectura para la tabla de propiedades."""

    COLUMNS = "id, title, price, bedrooms, bathrooms, property_type, city, state, features, created_at"

    def __init__(self, client: Optional[SupabaseClient] = None, table: Optional[str] = None):
        super().__init__(client)
        self.table = table or get_settings().properties_table

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=1),
        retry=retry_if_not_exception_type(ValueError),
        reraise=True,
    )
    def search_by_filters(
        self,
        filters: StructuredFilters,
        limit: int = 20,
        usd_to_mxn_rate: float = 1.0,
    ) -> list[dict]:
        """
        Búsqueda por filtros estructurados.

        Semántica: precio inclusive en MXN, recámaras/baños como mínimo,
        tipo exacto, ciudad/estado por substring sin mayúsculas, y
        amenities con AND (todas las pedidas deben estar).

        Returns:
            Filas ordenadas por fecha de publicación (más nuevas primero)
        """
        query = self.client.table(self.table).select(self.COLUMNS)

        if filters.city:
            query = query.ilike("city", f"%{filters.city}%")
        if filters.region in REGION_CITIES:
            query = query.or_(region_clause(filters.region))
        elif filters.region:
            query = query.ilike("state", f"%{filters.region}%")
        if filters.property_type:
            query = query.ilike("property_type", PROPERTY_TYPE_DB_LABELS[filters.property_type])

        price_min, price_max = filters.price_bounds_mxn(usd_to_mxn_rate)
        if price_min is not None:
            query = query.gte("price", price_min)
        if price_max is not None:
            query = query.lte("price", price_max)

        if filters.bedrooms is not None:
            query = query.gte("bedrooms", filters.bedrooms)
        if filters.bathrooms is not None:
            query = query.gte("bathrooms", filters.bathrooms)

        if filters.features:
            query = query.contains("features", sorted(filters.features))
        for tag in sorted(filters.excluded_features):
            query = query.not_.contains("features", [tag])

        response = query.order("created_at", desc=True).limit(limit).execute()
        rows = response.data or []
        logger.debug("Búsqueda SQL ejecutada", filters=filters.to_api_dict(), rows=len(rows))
        return rows

    @staticmethod
    def to_candidate(row: dict, source: CandidateSource, score: float) -> Candidate:
        """Convierte una fila (tabla o RPC vectorial) en Candidate."""
        return Candidate(
            property_id=str(row.get("id") or row.get("property_id")),
            source=source,
            raw_score=score,
            price=_to_float(row.get("price")),
            bedrooms=_to_int(row.get("bedrooms")),
            bathrooms=_to_int(row.get("bathrooms")),
            property_type=property_type_from_label(row.get("property_type")),
            city=row.get("city") or None,
            region=row.get("state") or row.get("region") or None,
            features=_to_feature_tags(row.get("features") or row.get("amenities")),
            title=row.get("title") or None,
            listed_at=_to_datetime(row.get("created_at")),
        )
