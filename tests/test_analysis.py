import asyncio
from types import SimpleNamespace

import pytest

from brujula.analysis.embeddings import EmbeddingClient
from brujula.analysis.llm_providers import GroqProvider, get_llm_provider
from brujula.analysis.search_analyzer import SearchAnalyzer, format_price
from brujula.exceptions import AnalysisUnavailable, EmbeddingUnavailable
from brujula.models import Language, PropertyType, Query, RankedResult

from fakes import HOUSE_IN_CANCUN, FakeLLMProvider


class FakeModels:
    def __init__(self, values=None, error=None, delay=0.0):
        self.values = values
        self.error = error
        self.delay = delay
        self.requests = []

    async def embed_content(self, model, contents, config):
        self.requests.append((model, contents, config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(embeddings=[SimpleNamespace(values=self.values)])


def genai_client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def ranked(property_id, rank, **attrs):
    return RankedResult(
        property_id=property_id,
        source="vector",
        raw_score=0.9,
        relevance_score=0.9,
        rank=rank,
        **attrs,
    )


class TestEmbeddingClient:
    def test_returns_vector(self):
        models = FakeModels(values=[0.5] * 4)
        client = EmbeddingClient(client=genai_client(models), dimensions=4, timeout_s=1.0)

        vector = asyncio.run(client.embed("moderno luminoso"))

        assert vector == [0.5] * 4
        model, contents, config = models.requests[0]
        assert model == "gemini-embedding-001"
        assert contents == "moderno luminoso"
        assert config.output_dimensionality == 4

    def test_api_error_is_unavailable(self):
        models = FakeModels(error=RuntimeError("429 quota exceeded"))
        client = EmbeddingClient(client=genai_client(models), dimensions=4, timeout_s=1.0)

        with pytest.raises(EmbeddingUnavailable) as exc_info:
            asyncio.run(client.embed("moderno"))
        assert exc_info.value.stage == "embedding"
        assert len(models.requests) == 1

    def test_timeout_is_unavailable(self):
        models = FakeModels(values=[0.1] * 4, delay=0.5)
        client = EmbeddingClient(client=genai_client(models), dimensions=4, timeout_s=0.05)

        with pytest.raises(EmbeddingUnavailable):
            asyncio.run(client.embed("moderno"))

    def test_wrong_dimension_is_unavailable(self):
        models = FakeModels(values=[0.1] * 3)
        client = EmbeddingClient(client=genai_client(models), dimensions=4, timeout_s=1.0)

        with pytest.raises(EmbeddingUnavailable):
            asyncio.run(client.embed("moderno"))

    def test_blank_text_is_unavailable(self):
        client = EmbeddingClient(client=genai_client(FakeModels()), dimensions=4)
        with pytest.raises(EmbeddingUnavailable):
            asyncio.run(client.embed("   "))

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY")
        from brujula.config import get_settings

        get_settings.cache_clear()
        with pytest.raises(ValueError):
            EmbeddingClient()

    def test_cosine_similarity(self):
        assert EmbeddingClient.cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
        assert EmbeddingClient.cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert EmbeddingClient.cosine_similarity([0, 0], [1, 1]) == 0.0


class TestSearchAnalyzer:
    RESULTS = [
        ranked("1", 1, **HOUSE_IN_CANCUN),
        ranked("2", 2, **dict(HOUSE_IN_CANCUN, price=6_500_000.0, city="Tulum")),
    ]

    def test_prompt_carries_result_facts(self):
        provider = FakeLLMProvider("Hay dos casas con alberca en Quintana Roo.")
        analyzer = SearchAnalyzer(provider=provider, timeout_s=1.0)
        query = Query(raw_text="casa con alberca", normalized_text="casa con alberca", language=Language.ES)

        text = asyncio.run(analyzer.summarize(self.RESULTS, query))

        assert text == "Hay dos casas con alberca en Quintana Roo."
        _, prompt = provider.prompts[0]
        assert '"casa con alberca"' in prompt
        assert "Propiedades encontradas: 2" in prompt
        assert "$4,000,000 MXN - $6,500,000 MXN" in prompt
        assert "Cancún, Quintana Roo; Tulum, Quintana Roo" in prompt
        assert "Casa" in prompt
        assert "Respondé en español." in prompt

    def test_english_query_asks_for_english(self):
        provider = FakeLLMProvider("Two houses.")
        analyzer = SearchAnalyzer(provider=provider, timeout_s=1.0)
        query = Query(raw_text="house with pool", normalized_text="house with pool", language=Language.EN)

        asyncio.run(analyzer.summarize(self.RESULTS, query))

        assert "Respond in English." in provider.prompts[0][1]

    def test_provider_error_is_unavailable(self):
        analyzer = SearchAnalyzer(provider=FakeLLMProvider(error=RuntimeError("503")), timeout_s=1.0)
        with pytest.raises(AnalysisUnavailable):
            asyncio.run(analyzer.summarize(self.RESULTS, Query(raw_text="casa")))

    def test_empty_text_is_unavailable(self):
        analyzer = SearchAnalyzer(provider=FakeLLMProvider(""), timeout_s=1.0)
        with pytest.raises(AnalysisUnavailable):
            asyncio.run(analyzer.summarize(self.RESULTS, Query(raw_text="casa")))

    def test_no_results_is_unavailable(self):
        provider = FakeLLMProvider()
        analyzer = SearchAnalyzer(provider=provider, timeout_s=1.0)
        with pytest.raises(AnalysisUnavailable):
            asyncio.run(analyzer.summarize([], Query(raw_text="casa")))
        assert provider.prompts == []

    def test_types_use_store_labels(self):
        analyzer = SearchAnalyzer(provider=FakeLLMProvider(), timeout_s=1.0)
        results = [ranked("1", 1, property_type=PropertyType.APARTMENT)]
        prompt = analyzer.build_prompt(results, Query(raw_text="depa"))
        assert "Tipos de propiedad: Departamento" in prompt
        assert "Rango de precios: sin datos" in prompt


def test_format_price():
    assert format_price(3_500_000) == "$3,500,000 MXN"
    assert format_price(None) == "$0 MXN"


class TestLLMProviderFactory:
    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_llm_provider("openai")

    def test_groq_requires_key(self, monkeypatch):
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        with pytest.raises(ValueError):
            get_llm_provider("groq")

    def test_groq_with_key(self):
        provider = get_llm_provider("groq", api_key="gsk-test")
        assert isinstance(provider, GroqProvider)
        assert provider.model == "llama-3.1-8b-instant"
