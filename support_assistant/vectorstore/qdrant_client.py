"""Qdrant vector database client implementation."""

import uuid
from typing import Any, Dict, List, Optional

import httpx
from qdrant_client import QdrantClient
from qdrant_client.http import models
from qdrant_client.http.exceptions import ResponseHandlingException
from qdrant_client.models import Distance, Filter, PointStruct, VectorParams

from support_assistant.rag.models import ChunkMetadata, DocumentChunk, RetrievalCandidate
from support_assistant.utils.config import get_settings
from support_assistant.utils.errors import UpstreamServiceError, UpstreamTimeoutError
from support_assistant.utils.logger import get_logger

logger = get_logger()


def _translate_error(error: Exception) -> UpstreamServiceError:
    source = getattr(error, "source", None) if isinstance(error, ResponseHandlingException) else error
    if isinstance(source, httpx.TimeoutException):
        return UpstreamTimeoutError("vector_store", f"request timed out: {error}")
    return UpstreamServiceError("vector_store", str(error))


class QdrantVectorStore:
    """Qdrant store of embedded document chunks.

    Ingestion is the only writer. Queries issued while a re-ingestion is in
    progress may observe a partially cleared or partially rebuilt collection.
    """

    def __init__(
        self,
        client: Optional[QdrantClient] = None,
        collection_name: Optional[str] = None,
        vector_size: Optional[int] = None
    ):
        """Initialize Qdrant configuration. The client connects lazily."""
        self.settings = get_settings()
        self._client = client
        self.collection_name = collection_name or self.settings.qdrant_collection_name
        self.vector_size = vector_size or self.settings.embedding_dimension

    @property
    def client(self) -> QdrantClient:
        if self._client is None:
            logger.info(f"Connecting to Qdrant at {self.settings.qdrant_url}")
            self._client = QdrantClient(
                url=self.settings.qdrant_url,
                api_key=self.settings.qdrant_api_key,
                timeout=self.settings.vector_store_timeout_seconds,
            )
        return self._client

    def collection_exists(self) -> bool:
        try:
            collections = self.client.get_collections()
        except Exception as e:
            raise _translate_error(e) from e
        return any(col.name == self.collection_name for col in collections.collections)

    def create_collection(self) -> None:
        """Create the collection with cosine distance if it doesn't exist."""
        if self.collection_exists():
            logger.debug(f"Collection '{self.collection_name}' already exists")
            return

        logger.info(
            f"Creating collection '{self.collection_name}' with vector size {self.vector_size}"
        )
        try:
            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(
                    size=self.vector_size,
                    distance=Distance.COSINE
                )
            )
        except Exception as e:
            raise _translate_error(e) from e

    def clear(self) -> None:
        """Delete every stored chunk by recreating the collection."""
        logger.warning(f"Clearing collection '{self.collection_name}'")
        try:
            if self.collection_exists():
                self.client.delete_collection(collection_name=self.collection_name)
        except UpstreamServiceError:
            raise
        except Exception as e:
            raise _translate_error(e) from e

        self.create_collection()

    def insert(self, chunks: List[DocumentChunk]) -> int:
        """
        Insert one batch of chunks.

        Args:
            chunks: Embedded chunks. Each is validated against the collection's
                vector size before anything is sent.

        Returns:
            Number of chunks inserted

        Raises:
            InvalidChunkError: If a chunk fails validation
            UpstreamServiceError: If the upsert failed
        """
        if not chunks:
            return 0

        for chunk in chunks:
            chunk.validate(self.vector_size)

        points = [
            PointStruct(
                id=str(uuid.uuid4()),
                vector=chunk.embedding,
                payload={
                    "content": chunk.content,
                    **chunk.metadata.to_dict()
                }
            )
            for chunk in chunks
        ]

        try:
            self.client.upsert(collection_name=self.collection_name, points=points)
        except Exception as e:
            raise _translate_error(e) from e

        return len(points)

    def search(
        self,
        embedding: List[float],
        top_k: int,
        score_threshold: float,
        document: Optional[str] = None
    ) -> List[RetrievalCandidate]:
        """
        Search for chunks similar to an embedding.

        Args:
            embedding: Query embedding
            top_k: Maximum number of results
            score_threshold: Minimum cosine similarity
            document: Restrict results to one source document

        Returns:
            Candidates ordered by descending similarity
        """
        query_filter = None
        if document:
            query_filter = Filter(
                must=[
                    models.FieldCondition(
                        key="document",
                        match=models.MatchValue(value=document)
                    )
                ]
            )

        try:
            points = self.client.query_points(
                collection_name=self.collection_name,
                query=embedding,
                limit=top_k,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True,
            ).points
        except Exception as e:
            raise _translate_error(e) from e

        return [self._to_candidate(point.id, point.payload or {}, point.score) for point in points]

    def count(self) -> int:
        try:
            return self.client.count(collection_name=self.collection_name, exact=True).count
        except Exception as e:
            raise _translate_error(e) from e

    def sample(self, limit: int = 3) -> List[RetrievalCandidate]:
        """Return a few stored chunks, for debugging."""
        try:
            records, _ = self.client.scroll(
                collection_name=self.collection_name,
                limit=limit,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            raise _translate_error(e) from e

        return [self._to_candidate(record.id, record.payload or {}, 0.0) for record in records]

    def get_collection_info(self) -> Optional[Dict[str, Any]]:
        """
        Get information about the collection.

        Returns:
            Dictionary with collection statistics, or None if it doesn't exist
        """
        if not self.collection_exists():
            return None

        try:
            info = self.client.get_collection(collection_name=self.collection_name)
        except Exception as e:
            raise _translate_error(e) from e

        return {
            "name": self.collection_name,
            "points_count": info.points_count,
            "vector_size": info.config.params.vectors.size,
            "status": str(info.status),
        }

    @staticmethod
    def _to_candidate(point_id: Any, payload: Dict[str, Any], score: float) -> RetrievalCandidate:
        return RetrievalCandidate(
            id=str(point_id),
            content=payload.get("content", ""),
            metadata=ChunkMetadata.from_dict(payload),
            similarity=score,
        )


# Singleton instance
_vector_store: Optional[QdrantVectorStore] = None


def get_vector_store() -> QdrantVectorStore:
    """Get or create the global vector store instance."""
    global _vector_store
    if _vector_store is None:
        _vector_store = QdrantVectorStore()
    return _vector_store
