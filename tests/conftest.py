"""Shared pytest fixtures."""

import pytest

from support_assistant.utils.config import reset_settings
from tests.fakes import FakeEmbedder, FakeVectorStore


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Provide the required endpoints and re-read settings for every test."""
    monkeypatch.setenv("QDRANT_URL", "http://localhost:6333")
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://localhost:11434")
    monkeypatch.setenv("EMBEDDING_DIMENSION", "4")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_store():
    return FakeVectorStore()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()
