"""Colaboradores falsos en memoria para los tests."""

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional

from brujula.analysis.llm_providers import BaseLLMProvider, LLMResponse
from brujula.database import SupabaseClient
from brujula.exceptions import EmbeddingUnavailable, SqlSearchFailure, VectorSearchUnavailable
from brujula.models import Candidate, CandidateSource, PropertyType


def make_candidate(
    property_id: str,
    source: CandidateSource = CandidateSource.VECTOR,
    score: float = 0.9,
    listed_day: int = 1,
    **attrs,
) -> Candidate:
    return Candidate(
        property_id=property_id,
        source=source,
        raw_score=score,
        listed_at=datetime(2024, 1, listed_day, tzinfo=timezone.utc),
        **attrs,
    )


class FakeQuery:
    """Query builder de Supabase que registra las llamadas."""

    def __init__(self, rows: list[dict], failures: Optional[list[Exception]] = None):
        self.rows = rows
        self.failures = list(failures or [])
        self.calls: list[tuple] = []
        self.executions = 0
        self._negate = False

    def _record(self, name, *args, **kwargs):
        if self._negate:
            name = f"not.{name}"
            self._negate = False
        self.calls.append((name, *args, *kwargs.values()))
        return self

    def select(self, *args):
        return self._record("select", *args)

    def ilike(self, column, pattern):
        return self._record("ilike", column, pattern)

    def gte(self, column, value):
        return self._record("gte", column, value)

    def lte(self, column, value):
        return self._record("lte", column, value)

    def contains(self, column, value):
        return self._record("contains", column, value)

    def or_(self, filters):
        return self._record("or", filters)

    @property
    def not_(self):
        self._negate = True
        return self

    def order(self, column, desc=False):
        return self._record("order", column, desc)

    def limit(self, size):
        return self._record("limit", size)

    def execute(self):
        self.executions += 1
        if self.failures:
            raise self.failures.pop(0)
        return SimpleNamespace(data=self.rows)


class FakeSupabaseClient(SupabaseClient):
    """SupabaseClient con tabla y RPC en memoria."""

    def __init__(self, rows=None, rpc_rows=None, failures=None, rpc_error=None):
        super().__init__(client=None)
        self.query = FakeQuery(rows or [], failures)
        self.rpc_rows = rpc_rows or []
        self.rpc_error = rpc_error
        self.tables: list[str] = []
        self.rpc_calls: list[tuple[str, dict]] = []

    def table(self, name):
        self.tables.append(name)
        return self.query

    def rpc(self, function_name, params=None):
        self.rpc_calls.append((function_name, params or {}))
        if self.rpc_error:
            raise self.rpc_error
        return self.rpc_rows


class FakeEmbedder:
    def __init__(self, vector=None, error: bool = False):
        self.vector = vector or [0.1, 0.2, 0.3]
        self.error = error
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise EmbeddingUnavailable("timeout")
        return self.vector


class FakeVectorEngine:
    def __init__(self, candidates=None, error: bool = False):
        self.candidates = candidates or []
        self.error = error
        self.calls: list[tuple] = []

    async def search(self, vector, filters, top_k=None):
        self.calls.append((vector, filters, top_k))
        if self.error:
            raise VectorSearchUnavailable("índice caído")
        return list(self.candidates)


class FakeSqlSearch:
    def __init__(self, candidates=None, error: bool = False, delay: float = 0.0):
        self.candidates = candidates or []
        self.error = error
        self.delay = delay
        self.calls: list[tuple] = []

    async def search(self, filters, limit):
        self.calls.append((filters, limit))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise SqlSearchFailure("base caída")
        return list(self.candidates)


class FakeLLMProvider(BaseLLMProvider):
    provider_name = "fake"

    def __init__(self, text: str = "Hay buenas opciones.", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.prompts: list[tuple[str, str]] = []

    async def generate(self, system_prompt, user_prompt, temperature=0.3, max_tokens=300):
        self.prompts.append((system_prompt, user_prompt))
        if self.error:
            raise self.error
        return LLMResponse(text=self.text, model="fake-model", provider=self.provider_name)


def property_row(property_id, **overrides) -> dict:
    """Fila de la tabla de propiedades con valores por defecto."""
    row = {
        "id": property_id,
        "title": f"Propiedad {property_id}",
        "price": 3_000_000,
        "bedrooms": 3,
        "bathrooms": 2,
        "property_type": "Casa",
        "city": "Cancún",
        "state": "Quintana Roo",
        "features": ["pool"],
        "created_at": "2024-03-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


HOUSE_IN_CANCUN = {
    "property_type": PropertyType.HOUSE,
    "city": "Cancún",
    "region": "Quintana Roo",
    "price": 4_000_000.0,
    "bedrooms": 3,
    "bathrooms": 2,
    "features": {"pool", "garden"},
}
