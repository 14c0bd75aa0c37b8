#!/usr/bin/env python3
"""
Demo script to run one question through the RAG pipeline.

This demonstrates the full workflow:
1. Query expansion and retrieval
2. Hybrid re-ranking of the candidates
3. Streamed LLM answer with source citations

Usage:
    python demo_rag_query.py "your question here"
"""

import sys

from support_assistant.agents.support_agent import get_support_agent
from support_assistant.utils.config import load_settings
from support_assistant.utils.errors import SupportAssistantError
from support_assistant.utils.logger import get_logger

logger = get_logger()


def main():
    """Main demo function."""
    query = " ".join(sys.argv[1:]) or "What's covered under warranty?"

    try:
        load_settings()
        agent = get_support_agent()

        print("=" * 80)
        print(f"❓ QUESTION: {query}")
        print("=" * 80)

        streamed = agent.stream_answer(query)

        print("\n📄 SOURCES:")
        if not streamed.context.sources:
            print("   (none - fallback prompt)")
        for i, source in enumerate(streamed.context.sources, 1):
            print(f"\n{i}. {source.document}, Page {source.page} "
                  f"(score {source.similarity:.3f})")
            print(f"   {source.content[:150]}...")

        print("\n" + "=" * 80)
        print("💬 ANSWER:")
        print("=" * 80)
        for fragment in streamed.fragments:
            print(fragment, end="", flush=True)
        print("\n")

    except SupportAssistantError as e:
        logger.error(f"Demo failed: {e}")
        print(f"\n✗ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
