#!/usr/bin/env python3
"""Print a few stored chunks to check what ingestion wrote."""

import argparse
import sys

from support_assistant.utils.config import load_settings
from support_assistant.vectorstore.qdrant_client import get_vector_store


def main():
    parser = argparse.ArgumentParser(description="Inspect stored document chunks")
    parser.add_argument("--limit", type=int, default=3)
    parser.add_argument(
        "--keyword", action="append", default=[],
        help="Report whether each chunk contains this word (repeatable)"
    )
    args = parser.parse_args()

    load_settings()
    store = get_vector_store()

    info = store.get_collection_info()
    if info is None:
        print("❌ Collection does not exist - run ingestion first")
        return 1

    print(f"🔍 Collection '{info['name']}': {info['points_count']} chunks\n")

    chunks = store.sample(limit=args.limit)
    if not chunks:
        print("❌ No chunks found in database")
        return 1

    keywords = args.keyword or ["warranty", "coverage"]
    for i, chunk in enumerate(chunks, 1):
        print(f"📄 Chunk {i}:")
        print(f"   Doc: {chunk.metadata.document}, Page: {chunk.metadata.page}, "
              f"Section: {chunk.metadata.section or '-'}")
        print(f"   Content length: {len(chunk.content)} chars")
        print(f"   First 200 chars: \"{chunk.content[:200]}...\"")
        for keyword in keywords:
            print(f"   Contains \"{keyword}\": {keyword.lower() in chunk.content.lower()}")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
