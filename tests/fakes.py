"""Test doubles for the vector store and model services."""

from types import SimpleNamespace
from typing import List

from support_assistant.rag.models import ChunkMetadata, RetrievalCandidate
from support_assistant.utils.errors import UpstreamServiceError


def make_candidate(
    content: str,
    similarity: float,
    document: str = "VoltDrive Warranty & Pricing",
    page: int = 1,
    chunk_index: int = 0,
    candidate_id: str = None
) -> RetrievalCandidate:
    """Create a retrieval candidate for tests."""
    return RetrievalCandidate(
        id=candidate_id or f"{document}-{page}-{chunk_index}",
        content=content,
        metadata=ChunkMetadata(document=document, page=page, chunk_index=chunk_index),
        similarity=similarity,
    )


class FakeVectorStore:
    """In-memory stand-in for QdrantVectorStore."""

    def __init__(self, vector_size: int = 4):
        self.vector_size = vector_size
        self.chunks = []
        self.batches: List[int] = []
        self.clear_calls = 0
        self.search_results: List[RetrievalCandidate] = []
        self.search_calls = []

    def clear(self):
        self.clear_calls += 1
        self.chunks = []

    def insert(self, chunks):
        for chunk in chunks:
            chunk.validate(self.vector_size)
        self.chunks.extend(chunks)
        self.batches.append(len(chunks))
        return len(chunks)

    def search(self, embedding, top_k, score_threshold, document=None):
        self.search_calls.append(SimpleNamespace(
            embedding=embedding, top_k=top_k,
            score_threshold=score_threshold, document=document,
        ))
        return list(self.search_results)

    def count(self):
        return len(self.chunks)

    def get_collection_info(self):
        return {
            "name": "voltdrive_documents",
            "points_count": len(self.chunks),
            "vector_size": self.vector_size,
            "status": "green",
        }


class FakeEmbedder:
    """Embedder returning a fixed vector and recording its inputs."""

    def __init__(self, dimension: int = 4, fail_on: str = None):
        self.dimension = dimension
        self.fail_on = fail_on
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise UpstreamServiceError("embedding", "model unavailable")
        return [0.1] * self.dimension
