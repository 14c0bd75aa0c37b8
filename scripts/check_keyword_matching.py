#!/usr/bin/env python3
"""Show how the re-ranker scores the keyword overlap of a query and a text."""

import argparse
import re
import sys

from support_assistant.rag.reranker import calculate_keyword_relevance, keyword_tokens

SAMPLE_QUERY = "What's covered under warranty?"
SAMPLE_CONTENT = (
    "Battery & Drive Unit: 8-year/100,000-mile warranty covering manufacturing "
    "defects. Covers battery capacity degradation below 70% of original capacity."
)


def main():
    parser = argparse.ArgumentParser(description="Keyword relevance diagnostics")
    parser.add_argument("--query", default=SAMPLE_QUERY)
    parser.add_argument("--content", default=SAMPLE_CONTENT)
    args = parser.parse_args()

    print(f"Query: {args.query}")
    print(f"Content: {args.content}\n---")

    tokens = keyword_tokens(args.query)
    print(f"Query words: {tokens}")

    content_lower = args.content.lower()
    for token in tokens:
        if re.search(r'\b' + re.escape(token) + r'\b', content_lower):
            print(f"  ✅ Exact match: \"{token}\"")
        elif token in content_lower:
            print(f"  ⚠️  Partial match: \"{token}\"")
        else:
            print(f"  ❌ No match: \"{token}\"")

    print(f"\nRelevance score: {calculate_keyword_relevance(args.query, args.content):.3f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
