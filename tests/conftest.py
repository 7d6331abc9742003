import pytest

from brujula.config import get_settings


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Entorno mínimo para Settings; nada sale a la red."""
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "test-anon-key")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("ANALYSIS_ENABLED", "false")
    monkeypatch.setenv("USD_TO_MXN_RATE", "18")
    monkeypatch.setenv("MIN_VECTOR_RESULTS", "3")
    monkeypatch.setenv("EAGER_SQL_MAX_RESIDUAL_WORDS", "2")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
