"""관심사 임베딩 서비스 테스트."""

from __future__ import annotations

from types import SimpleNamespace

from app.core.config import get_settings
from app.services import embedding as embedding_module
from app.services.embedding import RETRIEVAL_PREFIX, EmbeddingService


class _FakeEmbeddings:
    def __init__(self):
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])


class _FakeOpenAI:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.embeddings = _FakeEmbeddings()


def _set_required_env(monkeypatch, **overrides: str) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("SERVICE_SECRET", "test-service-secret")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


def test_embedding_client_uses_external_api_timeout(monkeypatch) -> None:
    _set_required_env(monkeypatch, EXTERNAL_API_TIMEOUT_SECONDS="7")
    monkeypatch.setattr(embedding_module, "OpenAI", _FakeOpenAI)

    service = EmbeddingService()

    assert service.client.kwargs == {"api_key": "test-key", "timeout": 7}


def test_get_embedding_adds_retrieval_prefix_once(monkeypatch) -> None:
    _set_required_env(monkeypatch, EMBEDDING_DIMENSION="3")
    monkeypatch.setattr(embedding_module, "OpenAI", _FakeOpenAI)
    service = EmbeddingService()

    assert service.get_embedding("history culture") == [0.1, 0.2, 0.3]
    assert service.get_embedding(RETRIEVAL_PREFIX + "beaches") == [0.1, 0.2, 0.3]

    calls = service.client.embeddings.calls
    assert calls[0]["input"] == RETRIEVAL_PREFIX + "history culture"
    assert calls[1]["input"] == RETRIEVAL_PREFIX + "beaches"
    assert calls[0]["dimensions"] == 3


def test_get_embedding_returns_none_for_blank_text(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.setattr(embedding_module, "OpenAI", _FakeOpenAI)

    assert EmbeddingService().get_embedding("   ") is None
