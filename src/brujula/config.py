"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> brujula/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase")
    supabase_key: str = Field(..., description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )
    properties_table: str = Field("properties", description="Tabla de propiedades")
    vector_match_rpc: str = Field(
        "match_properties",
        description="Función RPC de pgvector para búsqueda por similitud con pre-filtros",
    )

    # LLM Provider
    llm_provider: str = Field(
        "gemini",
        description="Proveedor de LLM a usar: 'gemini' o 'groq'"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="API key de Google Gemini")
    gemini_model: str = Field("gemini-2.0-flash", description="Modelo de Gemini a usar")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="API key de Groq")
    groq_model: str = Field(
        "llama-3.1-8b-instant",
        description="Modelo de Groq a usar (llama-3.1-8b-instant, llama-3.3-70b-versatile)"
    )

    # Embeddings
    embedding_model: str = Field("gemini-embedding-001", description="Modelo de embeddings")
    embedding_dimensions: int = Field(
        768, description="Dimensión del vector (gemini-embedding-001 soporta 768, 1536, 3072)"
    )

    # Timeouts (segundos)
    embedding_timeout_s: float = Field(4.0, gt=0, description="Timeout del embedding de la query")
    vector_timeout_s: float = Field(4.0, gt=0, description="Timeout de la búsqueda vectorial")
    sql_timeout_s: float = Field(8.0, gt=0, description="Timeout de la búsqueda SQL")
    analysis_timeout_s: float = Field(6.0, gt=0, description="Timeout del análisis con LLM")

    # Búsqueda
    vector_top_k: int = Field(30, ge=1, le=200, description="Vecinos a pedir al índice vectorial")
    min_vector_results: int = Field(
        3, ge=0, description="Mínimo de resultados vectoriales antes de complementar con SQL"
    )
    default_result_limit: int = Field(20, ge=1, description="Resultados por defecto")
    max_result_limit: int = Field(100, ge=1, description="Tope de resultados por request")
    sql_baseline_score: float = Field(
        0.5, ge=0.0, le=1.0, description="Score fijo de candidatos que solo vienen de SQL"
    )
    eager_sql_max_residual_words: int = Field(
        2,
        ge=0,
        description="Con residuo de hasta N palabras se lanza SQL en paralelo al vector",
    )

    # Análisis
    analysis_enabled: bool = Field(True, description="Adjuntar resumen de resultados con LLM")

    # Exchange Rate
    usd_to_mxn_rate: float = Field(18.0, gt=0, description="Tipo de cambio USD/MXN")

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


DEFAULT_CURRENCY = "MXN"

CURRENCY_CODES = ["MXN", "USD"]

# Alcaldías de la Ciudad de México (en la base figuran como ciudad)
CDMX_ALCALDIAS = [
    "Álvaro Obregón",
    "Azcapotzalco",
    "Benito Juárez",
    "Coyoacán",
    "Cuajimalpa",
    "Cuauhtémoc",
    "Gustavo A. Madero",
    "Iztacalco",
    "Iztapalapa",
    "Magdalena Contreras",
    "Miguel Hidalgo",
    "Milpa Alta",
    "Tláhuac",
    "Tlalpan",
    "Venustiano Carranza",
    "Xochimilco",
]

# Ciudades conocidas: nombre canónico -> alias adicionales
MEXICO_CITIES: dict[str, list[str]] = {
    "Cancún": [],
    "Playa del Carmen": [],
    "Tulum": [],
    "Puerto Morelos": [],
    "Cozumel": [],
    "Guadalajara": ["gdl"],
    "Zapopan": [],
    "Monterrey": ["mty"],
    "San Pedro Garza García": ["san pedro"],
    "Puebla": [],
    "Mérida": [],
    "Querétaro": [],
    "San Miguel de Allende": [],
    "Puerto Vallarta": ["vallarta"],
    "Los Cabos": ["cabo san lucas", "cabo"],
    "San José del Cabo": [],
    "La Paz": [],
    "Oaxaca": [],
    "Huatulco": [],
    "Mazatlán": [],
    "Acapulco": [],
    "Cuernavaca": [],
    "Tijuana": [],
    "Ensenada": [],
    "León": [],
    "Aguascalientes": [],
    "San Luis Potosí": [],
    "Morelia": [],
    "Chihuahua": [],
    "Hermosillo": [],
    "Toluca": [],
    "Pachuca": [],
    "Veracruz": [],
    "Bacalar": [],
    "Valle de Bravo": [],
}

# Estados / regiones: nombre canónico -> alias adicionales
MEXICO_REGIONS: dict[str, list[str]] = {
    "Ciudad de México": ["cdmx", "df", "mexico city", "distrito federal", "mexico df"],
    "Quintana Roo": ["riviera maya"],
    "Jalisco": [],
    "Nuevo León": [],
    "Yucatán": [],
    "Baja California Sur": ["bcs"],
    "Baja California": [],
    "Estado de México": ["edomex"],
    "Guanajuato": [],
    "Morelos": [],
    "Sinaloa": [],
    "Sonora": [],
    "Guerrero": [],
    "Nayarit": ["riviera nayarit"],
}

# Regiones cuyas filas guardan el municipio en `city` y el estado con
# nombres variables: la región se cumple por estado o por ciudad listada
REGION_STATE_NAMES: dict[str, list[str]] = {
    "Ciudad de México": ["Ciudad de México", "CDMX", "Distrito Federal"],
}
REGION_CITIES: dict[str, list[str]] = {
    "Ciudad de México": CDMX_ALCALDIAS,
}
