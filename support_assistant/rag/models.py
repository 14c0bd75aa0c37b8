"""Records passed between the RAG pipeline stages."""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from support_assistant.utils.errors import InvalidChunkError


@dataclass
class ChunkMetadata:
    """Where a chunk came from in the corpus."""
    document: str
    page: int
    chunk_index: int
    section: Optional[str] = None

    def validate(self) -> None:
        """Check the metadata before it is persisted."""
        if not self.document or not self.document.strip():
            raise InvalidChunkError("metadata.document must be a non-empty name")
        if not isinstance(self.page, int) or self.page < 1:
            raise InvalidChunkError(f"metadata.page must be a positive integer, got {self.page!r}")
        if not isinstance(self.chunk_index, int) or self.chunk_index < 0:
            raise InvalidChunkError(
                f"metadata.chunk_index must be >= 0, got {self.chunk_index!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "document": self.document,
            "page": self.page,
            "chunk_index": self.chunk_index,
        }
        if self.section:
            data["section"] = self.section
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkMetadata":
        return cls(
            document=data.get("document", "Unknown"),
            page=int(data.get("page", 1)),
            chunk_index=int(data.get("chunk_index", 0)),
            section=data.get("section"),
        )


@dataclass
class DocumentChunk:
    """Persisted retrieval unit.

    ``content`` is the plain chunk text. The enriched text that was embedded
    is never stored.
    """
    content: str
    embedding: List[float]
    metadata: ChunkMetadata

    def validate(self, dimension: Optional[int] = None) -> None:
        """
        Validate the chunk before insert.

        Args:
            dimension: Expected embedding width, if known

        Raises:
            InvalidChunkError: If the chunk cannot be stored
        """
        if not self.content or not self.content.strip():
            raise InvalidChunkError("chunk content is empty")
        if not self.embedding:
            raise InvalidChunkError("chunk has no embedding")
        if dimension is not None and len(self.embedding) != dimension:
            raise InvalidChunkError(
                f"embedding has {len(self.embedding)} dimensions, store expects {dimension}"
            )
        self.metadata.validate()


@dataclass
class RetrievalCandidate:
    """A stored chunk returned by similarity search.

    After re-ranking ``similarity`` holds the hybrid score and the raw vector
    score is kept in ``original_similarity``.
    """
    id: str
    content: str
    metadata: ChunkMetadata
    similarity: float
    original_similarity: Optional[float] = None
    keyword_relevance: Optional[float] = None


@dataclass
class Source:
    """Citation shown to the caller next to an answer."""
    document: str
    page: int
    content: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConversationTurn:
    """One message of the caller's session history."""
    role: Literal["user", "assistant"]
    content: str
    sources: Optional[List[Source]] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class AssembledContext:
    """Output of the context builder, ready for the generation call."""
    context_block: str
    sources: List[Source]
    system_prompt: str
    is_fallback: bool = False
