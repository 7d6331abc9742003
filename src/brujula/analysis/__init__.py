"""
Módulo de IA.

Embeddings de la query (Gemini) y resumen de resultados con LLM (Gemini/Groq).
"""

from brujula.analysis.embeddings import EmbeddingClient
from brujula.analysis.search_analyzer import SearchAnalyzer
from brujula.analysis.llm_providers import (
    get_llm_provider,
    BaseLLMProvider,
    GeminiProvider,
    GroqProvider,
    LLMResponse,
)

__all__ = [
    # Embeddings
    "EmbeddingClient",
    # Resumen de resultados
    "SearchAnalyzer",
    # Proveedores LLM
    "get_llm_provider",
    "BaseLLMProvider",
    "GeminiProvider",
    "GroqProvider",
    "LLMResponse",
]
