"""
Modelos del pipeline de búsqueda en lenguaje natural.

Todas las entidades viven lo que dura un request: se crean al recibir
la query y se descartan al devolver el response.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Language(str, Enum):
    """Idioma detectado en la query."""

    ES = "es"
    EN = "en"
    UNKNOWN = "unknown"


class PropertyType(str, Enum):
    """Tipos de propiedad reconocidos por el extractor."""

    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    LAND = "land"
    COMMERCIAL = "commercial"
    OFFICE = "office"
    TOWNHOUSE = "townhouse"


# Etiqueta con la que la base guarda cada tipo
PROPERTY_TYPE_DB_LABELS: dict[PropertyType, str] = {
    PropertyType.HOUSE: "Casa",
    PropertyType.APARTMENT: "Departamento",
    PropertyType.CONDO: "Condominio",
    PropertyType.LAND: "Terreno",
    PropertyType.COMMERCIAL: "Comercial",
    PropertyType.OFFICE: "Oficina",
    PropertyType.TOWNHOUSE: "Casa Adosada",
}


class CandidateSource(str, Enum):
    VECTOR = "vector"
    SQL = "sql"


class SearchMethod(str, Enum):
    """Camino que produjo el resultado final."""

    VECTOR = "vector"
    SQL = "sql"
    HYBRID = "hybrid"
    BROWSE = "browse"


class _ApiModel(BaseModel):
    """Base con alias camelCase para el contrato de la API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Query(_ApiModel):
    """Query del usuario ya normalizada."""

    raw_text: str = Field(default="", description="Texto tal cual llegó")
    normalized_text: str = Field(default="", description="Texto limpio para extracción")
    language: Language = Field(default=Language.UNKNOWN)
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Timestamp de recepción ISO",
    )


_PRICE_FIELDS = {"price_min", "price_max", "currency"}


class StructuredFilters(_ApiModel):
    """
    Filtros exactos extraídos de la query o enviados por la UI.

    Todos los campos son opcionales: filtros vacíos significan
    "sin restricción", no "ningún resultado".
    """

    # Precio (inclusive). Sin moneda explícita se asume MXN.
    price_min: Optional[float] = Field(None, ge=0, description="Precio mínimo")
    price_max: Optional[float] = Field(None, ge=0, description="Precio máximo")
    currency: Optional[str] = Field(None, description="MXN o USD si la query lo indica")

    # Cotas inferiores (>=)
    bedrooms: Optional[int] = Field(None, ge=0, description="Mínimo de recámaras")
    bathrooms: Optional[int] = Field(None, ge=0, description="Mínimo de baños")

    property_type: Optional[PropertyType] = None

    # Ubicación (nombres canónicos del gazetteer)
    city: Optional[str] = None
    region: Optional[str] = None

    # Tags de amenities: se exigen todos (AND)
    features: set[str] = Field(default_factory=set)
    excluded_features: set[str] = Field(default_factory=set)

    @model_validator(mode="after")
    def _order_price_range(self) -> "StructuredFilters":
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            self.price_min, self.price_max = self.price_max, self.price_min
        return self

    def is_empty(self) -> bool:
        """True si no hay ninguna restricción activa."""
        return (
            self.price_min is None
            and self.price_max is None
            and self.bedrooms is None
            and self.bathrooms is None
            and self.property_type is None
            and self.city is None
            and self.region is None
            and not self.features
            and not self.excluded_features
        )

    def merged_with(self, explicit: Optional["StructuredFilters"]) -> "StructuredFilters":
        """
        Combina filtros extraídos con filtros explícitos de la UI.

        Los campos explícitos con valor pisan a los extraídos;
        los explícitos vacíos (None o set vacío) no borran nada.
        El rango de precio va como bloque: si la UI manda alguna cota,
        reemplaza ambas cotas y la moneda extraídas (MXN si no indica).
        """
        if explicit is None:
            return self.model_copy(deep=True)

        data = self.model_dump()
        if explicit.price_min is not None or explicit.price_max is not None:
            data["price_min"] = explicit.price_min
            data["price_max"] = explicit.price_max
            data["currency"] = explicit.currency or "MXN"
        for name in explicit.model_fields_set - _PRICE_FIELDS:
            value = getattr(explicit, name)
            if value is None or (isinstance(value, set) and not value):
                continue
            data[name] = value
        return StructuredFilters(**data)

    def price_bounds_mxn(self, usd_to_mxn_rate: float) -> tuple[Optional[float], Optional[float]]:
        """Rango de precio convertido a MXN para comparar contra la base."""
        factor = usd_to_mxn_rate if (self.currency or "").upper() == "USD" else 1.0
        low = round(self.price_min * factor, 2) if self.price_min is not None else None
        high = round(self.price_max * factor, 2) if self.price_max is not None else None
        return low, high

    def to_api_dict(self) -> dict:
        """Representación camelCase sin campos vacíos."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        for key in ("features", "excludedFeatures"):
            if not data.get(key):
                data.pop(key, None)
            else:
                data[key] = sorted(data[key])
        return data


class ExtractionResult(_ApiModel):
    """Salida del extractor: filtros + texto semántico restante."""

    filters: StructuredFilters = Field(default_factory=StructuredFilters)
    residual: str = Field(default="", description="Texto no consumido por los filtros")
    matched_spans: list[str] = Field(
        default_factory=list, description="Fragmentos consumidos, en orden de extracción"
    )


class Candidate(_ApiModel):
    """Propiedad candidata antes del ranking final."""

    property_id: str
    source: CandidateSource
    raw_score: float = Field(..., description="Similitud [0,1] o 1.0 si viene de SQL")

    # Atributos necesarios para el post-filtrado
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    property_type: Optional[PropertyType] = None
    city: Optional[str] = None
    region: Optional[str] = None
    features: set[str] = Field(default_factory=set)

    title: Optional[str] = None
    listed_at: Optional[datetime] = None


class RankedResult(Candidate):
    """Candidato con score compuesto y posición final."""

    relevance_score: float = Field(..., ge=0, le=1)
    rank: int = Field(..., ge=1)


class SearchResponse(_ApiModel):
    """Respuesta del pipeline hacia la capa de API."""

    query: Query
    results: list[RankedResult] = Field(default_factory=list)
    filters_applied: StructuredFilters = Field(default_factory=StructuredFilters)
    residual: str = ""
    analysis: Optional[str] = None
    search_method: SearchMethod = SearchMethod.BROWSE
    fallback_reason: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    took_ms: float = 0.0

    def to_api_dict(self) -> dict:
        """Serializa para la API; 'analysis' se omite si no hay."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        data["filtersApplied"] = self.filters_applied.to_api_dict()
        return data
