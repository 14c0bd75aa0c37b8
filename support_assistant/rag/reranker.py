"""Hybrid re-ranking of retrieved candidates.

Vector similarity alone is diluted by query expansion and the low retrieval
threshold. Lexical overlap against the original query is blended in to
re-anchor the ranking on the words the customer actually used.
"""

import re
import string
from dataclasses import replace
from typing import FrozenSet, List, Optional

from support_assistant.rag.models import RetrievalCandidate
from support_assistant.utils.config import get_settings
from support_assistant.utils.logger import get_logger

logger = get_logger()

STOP_WORDS: FrozenSet[str] = frozenset({
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'as', 'is', 'was', 'are', 'been', 'be',
    'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could',
    'should', 'may', 'might', 'can', 'about', 'into', 'through', 'during',
    'before', 'after', 'above', 'below', 'between', 'under', 'again',
    'further', 'then', 'once', 'here', 'there', 'when', 'where', 'why',
    'how', 'all', 'both', 'each', 'few', 'more', 'most', 'other', 'some',
    'such', 'only', 'own', 'same', 'so', 'than', 'too', 'very', 'just',
    'what', "what's", 'which', 'who', 'whom', 'this', 'that', 'these',
    'those', 'you', 'your', 'my', 'our', 'its', 'not', 'any', 'get',
})

_TOKEN_EDGE = string.punctuation + '‘’“”'

EXACT_MATCH_SCORE = 1.0
PARTIAL_MATCH_SCORE = 0.5


def keyword_tokens(query: str) -> List[str]:
    """Lowercased query words longer than two characters, minus stop words."""
    tokens = []
    for raw in query.lower().split():
        token = raw.strip(_TOKEN_EDGE).replace('’', "'")
        if len(token) > 2 and token not in STOP_WORDS:
            tokens.append(token)
    return tokens


def calculate_keyword_relevance(query: str, content: str) -> float:
    """
    Score the lexical overlap between a query and a chunk.

    Each meaningful query word scores 1 for a whole-word match in the
    content, 0.5 when it only appears inside a longer word, 0 otherwise.

    Args:
        query: The customer's original query
        content: Candidate chunk content

    Returns:
        Mean score per query word, in [0, 1]. 0 when the query has no
        meaningful words.
    """
    tokens = keyword_tokens(query)
    if not tokens:
        return 0.0

    content_lower = content.lower()
    total = 0.0

    for token in tokens:
        if re.search(r'\b' + re.escape(token) + r'\b', content_lower):
            total += EXACT_MATCH_SCORE
        elif token in content_lower:
            total += PARTIAL_MATCH_SCORE

    return min(total / len(tokens), 1.0)


class HybridReranker:
    """Blends vector similarity with keyword relevance and keeps the top N."""

    def __init__(
        self,
        vector_weight: Optional[float] = None,
        keyword_weight: Optional[float] = None,
        top_n: Optional[int] = None
    ):
        settings = get_settings()
        self.vector_weight = vector_weight if vector_weight is not None else settings.rag_vector_weight
        self.keyword_weight = keyword_weight if keyword_weight is not None else settings.rag_keyword_weight
        self.top_n = top_n if top_n is not None else settings.rag_final_top_n

        if self.vector_weight < 0 or self.keyword_weight < 0:
            raise ValueError("re-ranking weights must not be negative")

    def hybrid_score(self, similarity: float, keyword_relevance: float) -> float:
        return similarity * self.vector_weight + keyword_relevance * self.keyword_weight

    def rerank(
        self,
        original_query: str,
        candidates: List[RetrievalCandidate],
        top_n: Optional[int] = None
    ) -> List[RetrievalCandidate]:
        """
        Re-rank candidates by hybrid score.

        Args:
            original_query: The unexpanded customer query
            candidates: Candidates in retrieval order
            top_n: Number of candidates to keep (default from construction)

        Returns:
            New candidate records sorted by descending hybrid score, with
            retrieval order kept for ties. ``similarity`` holds the hybrid
            score and ``original_similarity`` the vector score.
        """
        top_n = top_n if top_n is not None else self.top_n

        scored = []
        for candidate in candidates:
            relevance = calculate_keyword_relevance(original_query, candidate.content)
            scored.append(replace(
                candidate,
                similarity=self.hybrid_score(candidate.similarity, relevance),
                original_similarity=candidate.similarity,
                keyword_relevance=relevance,
            ))

        # sorted() is stable, so equal scores keep retrieval order
        ranked = sorted(scored, key=lambda c: c.similarity, reverse=True)[:top_n]

        for idx, candidate in enumerate(ranked, 1):
            logger.debug(
                f"  {idx}. {candidate.metadata.document} p.{candidate.metadata.page}: "
                f"vector={candidate.original_similarity:.3f} "
                f"keyword={candidate.keyword_relevance:.2f} "
                f"hybrid={candidate.similarity:.3f}"
            )

        return ranked
