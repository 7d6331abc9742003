"""
Cliente de embeddings para el residuo semántico de la query.

Usa gemini-embedding-001 de Google. La dimensión se toma de settings
y tiene que coincidir con la del índice pgvector.
"""

import asyncio
import math
from typing import Optional

from google import genai
from google.genai import types
import structlog

from brujula.config import get_settings
from brujula.exceptions import EmbeddingUnavailable

logger = structlog.get_logger()


class EmbeddingClient:
    """
    Genera el embedding de una query de búsqueda.

    Un solo intento por llamada: si el modelo no responde a tiempo el
    pipeline cae a SQL, así que reintentar solo agregaría latencia.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout_s: Optional[float] = None,
        client: Optional[genai.Client] = None,
    ):
        settings = get_settings()
        self.model_name = model or settings.embedding_model
        self.output_dim = dimensions or settings.embedding_dimensions
        self.timeout_s = timeout_s or settings.embedding_timeout_s

        if client is None:
            api_key = api_key or settings.gemini_api_key
            if not api_key:
                raise ValueError(
                    "GEMINI_API_KEY es requerida para embeddings. "
                    "Groq no tiene modelos de embedding, usamos Gemini para esto."
                )
            client = genai.Client(api_key=api_key)

        self.client = client
        logger.info("Embedding client inicializado", model=self.model_name, dim=self.output_dim)

    async def embed(self, text: str) -> list[float]:
        """
        Genera el embedding del texto.

        Args:
            text: Residuo semántico (ej: "moderno luminoso cerca del centro")

        Returns:
            Vector de `embedding_dimensions` floats

        Raises:
            EmbeddingUnavailable: Timeout, cuota, red o respuesta inválida
        """
        if not text or not text.strip():
            raise EmbeddingUnavailable("Texto vacío: no hay nada que embeber")

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.embed_content(
                    model=self.model_name,
                    contents=text,
                    config=types.EmbedContentConfig(output_dimensionality=self.output_dim),
                ),
                timeout=self.timeout_s,
            )
            vector = list(response.embeddings[0].values)
        except Exception as e:
            took_ms = round((loop.time() - started) * 1000, 1)
            logger.warning(
                "Error generando embedding de query",
                query=text[:50],
                stage="embedding",
                took_ms=took_ms,
                error=str(e) or type(e).__name__,
            )
            raise EmbeddingUnavailable(
                f"Embedding no disponible: {type(e).__name__}", took_ms=took_ms
            ) from e

        if len(vector) != self.output_dim:
            raise EmbeddingUnavailable(
                f"Dimensión inesperada: {len(vector)} (esperada {self.output_dim})"
            )
        return vector

    @staticmethod
    def cosine_similarity(vec1: list[float], vec2: list[float]) -> float:
        """
        Similitud de coseno entre dos vectores.

        Returns:
            Similitud de coseno (-1.0 a 1.0); 0.0 si algún vector es nulo
        """
        dot_product = sum(a * b for a, b in zip(vec1, vec2))
        norm1 = math.sqrt(sum(a * a for a in vec1))
        norm2 = math.sqrt(sum(b * b for b in vec2))

        if norm1 == 0 or norm2 == 0:
            return 0.0

        return dot_product / (norm1 * norm2)
