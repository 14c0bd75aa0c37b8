"""RAG similarity retrieval."""

from typing import List, Optional

from support_assistant.llm.ollama_client import OllamaEmbedder
from support_assistant.rag.models import RetrievalCandidate
from support_assistant.utils.config import get_settings
from support_assistant.utils.logger import get_logger
from support_assistant.vectorstore.qdrant_client import QdrantVectorStore, get_vector_store

logger = get_logger()


class RAGRetriever:
    """Embeds a query and fetches similar chunks from the vector store.

    The threshold is kept low and top_k larger than the number of sources
    finally shown; the re-ranker restores precision.
    """

    def __init__(
        self,
        vector_store: Optional[QdrantVectorStore] = None,
        embedder: Optional[OllamaEmbedder] = None
    ):
        """Initialize RAG retriever."""
        self.settings = get_settings()
        self.vector_store = vector_store or get_vector_store()
        self.embedder = embedder or OllamaEmbedder()

    def retrieve(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
        document: Optional[str] = None
    ) -> List[RetrievalCandidate]:
        """
        Retrieve candidate chunks for a query.

        Args:
            query: Text to embed, normally the expanded query
            top_k: Maximum number of candidates (default from settings)
            threshold: Candidates must score strictly above this similarity
                (default from settings)
            document: Restrict results to one source document

        Returns:
            Candidates ordered by descending similarity. Empty when nothing
            clears the threshold.

        Raises:
            UpstreamServiceError: If embedding or search failed
        """
        top_k = top_k if top_k is not None else self.settings.rag_retrieval_top_k
        threshold = threshold if threshold is not None else self.settings.rag_similarity_threshold

        logger.info(f"Retrieving documents for query: '{query[:50]}...' "
                    f"(top_k={top_k}, threshold={threshold})")

        query_embedding = self.embedder.embed(query)

        results = self.vector_store.search(
            embedding=query_embedding,
            top_k=top_k,
            score_threshold=threshold,
            document=document
        )

        # Qdrant's score_threshold is inclusive
        candidates = [c for c in results if c.similarity > threshold]
        candidates.sort(key=lambda c: c.similarity, reverse=True)
        candidates = candidates[:top_k]

        if not candidates:
            logger.warning(f"No documents found for query: '{query[:50]}...'")
            return []

        logger.info(f"Retrieved {len(candidates)} candidates")
        for idx, candidate in enumerate(candidates[:3], 1):
            logger.debug(
                f"  {idx}. Similarity: {candidate.similarity:.3f}, "
                f"Doc: {candidate.metadata.document}, Page: {candidate.metadata.page}"
            )

        return candidates
