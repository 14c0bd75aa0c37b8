"""Tests for the chat API."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from support_assistant.agents.support_agent import StreamedAnswer, SupportAgent
from support_assistant.api.app import (
    APOLOGY_MESSAGE,
    ChatRequest,
    create_app,
    stream_chat_events,
    stream_until_disconnect,
)
from support_assistant.llm.ollama_client import OllamaChatGenerator, OllamaEmbedder
from support_assistant.rag.retriever import RAGRetriever
from support_assistant.rag.models import AssembledContext, Source
from support_assistant.utils.errors import ConfigurationError, UpstreamServiceError
from tests.fakes import FakeVectorStore


def parse_events(body: str):
    events = []
    for block in body.strip().split("\n\n"):
        assert block.startswith("data: ")
        data = block[len("data: "):]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


class FakeAgent:
    """Agent double returning a fixed context and fragments."""

    def __init__(self, fragments=("Plug ", "it in."), error=None, generation_error=None):
        self.fragments = list(fragments)
        self.error = error
        self.generation_error = generation_error
        self.calls = []
        self.fragments_closed = False
        self.retriever = type("Retriever", (), {"vector_store": FakeVectorStore()})()

    def _fragments(self):
        try:
            yield from self.fragments
            if self.generation_error:
                raise self.generation_error
        finally:
            self.fragments_closed = True

    def stream_answer(self, query, history=(), document=None):
        self.calls.append({"query": query, "history": list(history), "document": document})
        if self.error:
            raise self.error
        context = AssembledContext(
            context_block="...",
            sources=[Source(document="VoltDrive Troubleshooting Guide", page=2,
                            content="Plug the cable in firmly.", similarity=0.81)],
            system_prompt="SYSTEM",
        )
        return StreamedAnswer(context=context, fragments=self._fragments())


class TestChatEndpoint:
    """Test cases for POST /api/chat."""

    def setup_method(self):
        self.agent = FakeAgent()
        self.client = TestClient(create_app(agent=self.agent))

    def test_missing_message(self):
        response = self.client.post("/api/chat", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        assert self.agent.calls == []

    def test_blank_message(self):
        response = self.client.post("/api/chat", json={"message": "   "})

        assert response.status_code == 400
        assert self.agent.calls == []

    def test_event_order(self):
        response = self.client.post("/api/chat", json={"message": "Charger light is red"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = parse_events(response.text)
        assert events[0]["type"] == "sources"
        assert events[0]["sources"][0]["document"] == "VoltDrive Troubleshooting Guide"
        assert events[0]["sources"][0]["page"] == 2
        assert [e["content"] for e in events[1:-1]] == ["Plug ", "it in."]
        assert events[-1] == "[DONE]"

    def test_history_alias(self):
        self.client.post("/api/chat", json={
            "message": "And after that?",
            "conversationHistory": [
                {"role": "user", "content": "Charger light is red"},
                {"role": "assistant", "content": "Restart the charger."},
            ],
        })

        history = self.agent.calls[0]["history"]
        assert [turn.role for turn in history] == ["user", "assistant"]
        assert history[1].content == "Restart the charger."

    def test_retrieval_failure(self):
        self.agent.error = UpstreamServiceError("vector_store", "connection refused")

        response = self.client.post("/api/chat", json={"message": "warranty"})

        assert response.status_code == 200
        events = parse_events(response.text)
        assert events[0] == {"type": "sources", "sources": []}
        assert events[1] == {"type": "content", "content": APOLOGY_MESSAGE}
        assert events[2] == "[DONE]"

    def test_generation_failure_mid_stream(self):
        self.agent.generation_error = UpstreamServiceError("generation", "model crashed")

        events = parse_events(self.client.post("/api/chat", json={"message": "warranty"}).text)

        assert [e["type"] for e in events[:-1]] == ["sources", "content", "content", "content"]
        assert events[-2]["content"] == APOLOGY_MESSAGE
        assert events[-1] == "[DONE]"


    def test_unexpected_error(self):
        self.agent.error = RuntimeError("bad payload")

        events = parse_events(self.client.post("/api/chat", json={"message": "warranty"}).text)

        assert events == [
            {"type": "sources", "sources": []},
            {"type": "content", "content": APOLOGY_MESSAGE},
            "[DONE]",
        ]

    def test_ollama_unreachable(self, fake_store):
        ollama_client = MagicMock()
        ollama_client.embeddings.side_effect = ConnectionError("Failed to connect to Ollama")
        ollama_client.chat.side_effect = ConnectionError("Failed to connect to Ollama")
        agent = SupportAgent(
            retriever=RAGRetriever(vector_store=fake_store, embedder=OllamaEmbedder(client=ollama_client)),
            generator=OllamaChatGenerator(client=ollama_client),
        )
        client = TestClient(create_app(agent=agent))

        events = parse_events(client.post("/api/chat", json={"message": "Charger light is red"}).text)

        assert events == [
            {"type": "sources", "sources": []},
            {"type": "content", "content": APOLOGY_MESSAGE},
            "[DONE]",
        ]
        assert fake_store.search_calls == []


class DisconnectingRequest:
    """Request double that reports a disconnect after a number of checks."""

    def __init__(self, connected_checks):
        self.connected_checks = connected_checks

    async def is_disconnected(self):
        self.connected_checks -= 1
        return self.connected_checks < 0


async def collect(events):
    return [event async for event in events]


class TestStreamUntilDisconnect:
    """Test cases for client disconnects during streaming."""

    def test_disconnect_closes_model_stream(self):
        agent = FakeAgent(fragments=("one ", "two ", "three"))
        events = stream_chat_events(agent, ChatRequest(message="warranty"))

        received = asyncio.run(collect(stream_until_disconnect(DisconnectingRequest(2), events)))

        assert len(received) == 2
        assert json.loads(received[1][len("data: "):]) == {"type": "content", "content": "one "}
        assert agent.fragments_closed

    def test_connected_client_receives_everything(self):
        agent = FakeAgent()
        events = stream_chat_events(agent, ChatRequest(message="warranty"))

        received = asyncio.run(collect(stream_until_disconnect(DisconnectingRequest(100), events)))

        assert received[-1] == "data: [DONE]\n\n"
        assert agent.fragments_closed


class TestHealthEndpoint:
    """Test cases for GET /health."""

    def test_healthy(self):
        client = TestClient(create_app(agent=FakeAgent()))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["healthy"] is True
        assert response.json()["collection"] == "voltdrive_documents"

    def test_collection_missing(self):
        agent = FakeAgent()
        agent.retriever.vector_store.get_collection_info = lambda: None
        client = TestClient(create_app(agent=agent))

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "collection_not_found"


def test_create_app_requires_endpoints(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OLLAMA_BASE_URL")

    with pytest.raises(ConfigurationError):
        create_app(agent=FakeAgent())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
