"""Support agent: retrieval pipeline plus streamed answer generation."""

import time
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from support_assistant.llm.ollama_client import OllamaChatGenerator, OllamaEmbedder
from support_assistant.rag.context_builder import assemble
from support_assistant.rag.models import AssembledContext, ConversationTurn
from support_assistant.rag.query_expander import QueryExpander
from support_assistant.rag.reranker import HybridReranker
from support_assistant.rag.retriever import RAGRetriever
from support_assistant.utils.config import get_settings
from support_assistant.utils.logger import get_logger

logger = get_logger()


@dataclass
class StreamedAnswer:
    """Sources for a query and the lazy stream of answer fragments."""
    context: AssembledContext
    fragments: Iterator[str]


class SupportAgent:
    """Answers customer questions from the VoltDrive documentation.

    Each query runs expand -> embed -> retrieve -> rerank -> assemble in
    sequence. The agent keeps no per-query state, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        retriever: Optional[RAGRetriever] = None,
        generator: Optional[OllamaChatGenerator] = None,
        expander: Optional[QueryExpander] = None,
        reranker: Optional[HybridReranker] = None
    ):
        self.settings = get_settings()
        self.retriever = retriever or RAGRetriever(embedder=OllamaEmbedder())
        self.generator = generator or OllamaChatGenerator()
        self.expander = expander or QueryExpander()
        self.reranker = reranker or HybridReranker()

        logger.info(f"Initialized SupportAgent with model {self.generator.model}")

    def prepare_context(self, query: str, document: Optional[str] = None) -> AssembledContext:
        """
        Retrieve, re-rank and assemble the context for a query.

        Args:
            query: Customer question
            document: Restrict retrieval to one source document

        Returns:
            AssembledContext (fallback prompt when nothing matched)

        Raises:
            UpstreamServiceError: If embedding or search failed
        """
        start_time = time.time()
        logger.info(f"Processing query: '{query[:50]}...'")

        expanded_query = self.expander.expand(query)
        candidates = self.retriever.retrieve(
            expanded_query,
            top_k=self.settings.rag_retrieval_top_k,
            threshold=self.settings.rag_similarity_threshold,
            document=document,
        )
        ranked = self.reranker.rerank(query, candidates)
        context = assemble(ranked)

        logger.info(
            f"Prepared context with {len(context.sources)} sources "
            f"in {time.time() - start_time:.2f}s"
        )
        return context

    def build_messages(
        self,
        system_prompt: str,
        query: str,
        history: Sequence[ConversationTurn] = ()
    ) -> List[Dict[str, str]]:
        """System prompt, the most recent history turns, then the question."""
        messages = [{"role": "system", "content": system_prompt}]

        turns = self.settings.conversation_history_turns
        recent = list(history)[-turns:] if turns > 0 else []
        messages.extend({"role": turn.role, "content": turn.content} for turn in recent)

        messages.append({"role": "user", "content": query})
        return messages

    def stream_answer(
        self,
        query: str,
        history: Sequence[ConversationTurn] = (),
        document: Optional[str] = None
    ) -> StreamedAnswer:
        """
        Prepare context and start a streamed answer.

        Retrieval runs eagerly so its failures surface here. Generation is
        lazy: nothing is requested until the fragments are iterated, and
        closing the iterator stops the upstream stream.
        """
        context = self.prepare_context(query, document=document)
        messages = self.build_messages(context.system_prompt, query, history)
        return StreamedAnswer(context=context, fragments=self.generator.stream(messages))

    def answer(
        self,
        query: str,
        history: Sequence[ConversationTurn] = (),
        document: Optional[str] = None
    ) -> ConversationTurn:
        """Generate a complete answer as an assistant turn."""
        streamed = self.stream_answer(query, history, document=document)
        text = "".join(streamed.fragments)
        return ConversationTurn(role="assistant", content=text, sources=streamed.context.sources)


# Singleton instance
_agent: Optional[SupportAgent] = None


def get_support_agent() -> SupportAgent:
    """Get or create the global support agent."""
    global _agent
    if _agent is None:
        _agent = SupportAgent()
    return _agent
