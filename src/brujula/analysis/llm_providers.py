"""
Abstracción de proveedores LLM para el resumen de resultados.

El analizador no sabe si habla con Gemini o con Groq; el proveedor
se elige por settings.llm_provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import structlog

from brujula.config import get_settings

logger = structlog.get_logger()


@dataclass
class LLMResponse:
    """Respuesta normalizada de cualquier LLM."""
    text: str
    model: str
    provider: str
    tokens_used: Optional[int] = None


class BaseLLMProvider(ABC):
    """Clase base para proveedores de LLM."""

    provider_name: str = "base"

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 300,
    ) -> LLMResponse:
        """
        Genera una respuesta corta del LLM.

        Args:
            system_prompt: Instrucciones del sistema
            user_prompt: Datos de la búsqueda a resumir
            temperature: Temperatura de generación (0.0-1.0)
            max_tokens: Máximo de tokens a generar

        Returns:
            LLMResponse con el texto generado
        """


class GeminiProvider(BaseLLMProvider):
    """Proveedor de Google Gemini."""

    provider_name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        from google import genai

        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model

        if not self.api_key:
            raise ValueError("GEMINI_API_KEY no configurada")

        self.client = genai.Client(api_key=self.api_key)
        logger.info("GeminiProvider inicializado", model=self.model)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 300,
    ) -> LLMResponse:
        from google.genai import types

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=temperature,
                top_p=0.8,
                max_output_tokens=max_tokens,
            ),
        )

        usage = getattr(response, "usage_metadata", None)
        return LLMResponse(
            text=(response.text or "").strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=getattr(usage, "total_token_count", None),
        )


class GroqProvider(BaseLLMProvider):
    """
    Proveedor de Groq (LPU inference).

    Para resúmenes de 2-3 frases alcanza con llama-3.1-8b-instant.
    """

    provider_name = "groq"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        from groq import AsyncGroq

        settings = get_settings()
        self.api_key = api_key or settings.groq_api_key
        self.model = model or settings.groq_model

        if not self.api_key:
            raise ValueError("GROQ_API_KEY no configurada")

        self.client = AsyncGroq(api_key=self.api_key)
        logger.info("GroqProvider inicializado", model=self.model)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 300,
    ) -> LLMResponse:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        text = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else None

        return LLMResponse(
            text=text.strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=tokens,
        )


_PROVIDERS: dict[str, type[BaseLLMProvider]] = {
    "gemini": GeminiProvider,
    "groq": GroqProvider,
}


def get_llm_provider(
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> BaseLLMProvider:
    """
    Factory del proveedor de LLM configurado.

    Args:
        provider: 'gemini' o 'groq' (default: settings.llm_provider)
        api_key: API key (default: del settings según provider)
        model: Modelo a usar (default: del settings según provider)

    Raises:
        ValueError: Proveedor desconocido o sin API key
    """
    name = (provider or get_settings().llm_provider).lower()
    provider_cls = _PROVIDERS.get(name)
    if provider_cls is None:
        raise ValueError(f"Proveedor LLM no soportado: {name}. Usar 'gemini' o 'groq'")
    return provider_cls(api_key=api_key, model=model)
