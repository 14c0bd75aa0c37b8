#!/usr/bin/env python3
"""
Standalone script to run the data ingestion pipeline.

This script orchestrates:
1. Clearing the Qdrant collection
2. Extracting per-page text from the VoltDrive PDF documents
3. Chunking, enriching and embedding every page via Ollama
4. Storing the chunks in batches

Usage:
    python run_ingestion.py [--yes] [--no-save] [--docs-path PATH]

Options:
    --yes           Skip the confirmation prompt
    --no-save       Don't save run statistics to disk
    --docs-path     Directory containing the PDF files

Note: The corpus and service endpoints are configured via environment
      variables (see .env.example).
"""

import sys
import argparse

from support_assistant.rag.ingestion import run_ingestion
from support_assistant.utils.config import load_settings
from support_assistant.utils.errors import ConfigurationError
from support_assistant.utils.logger import setup_logger, get_logger

logger = get_logger()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Rebuild the support knowledge base from the document corpus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rebuild the collection from the configured corpus
  python run_ingestion.py

  # Non-interactive run without saving stats
  python run_ingestion.py --yes --no-save
        """
    )

    parser.add_argument(
        '--yes',
        action='store_true',
        help='Do not ask for confirmation before clearing the collection'
    )
    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Do not save run statistics to disk'
    )
    parser.add_argument(
        '--docs-path',
        help='Directory containing the PDF documents (overrides DOCUMENTS_PATH)'
    )

    args = parser.parse_args()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"✗ {e}")
        return 2

    setup_logger()

    if args.docs_path:
        settings.documents_path = args.docs_path

    logger.warning("=" * 70)
    logger.warning("Ingestion DELETES all existing chunks before rebuilding!")
    logger.warning("Do not run two ingestions against the same collection at once.")
    logger.warning("=" * 70)

    if not args.yes:
        response = input("Are you sure you want to continue? (yes/no): ")
        if response.lower() != 'yes':
            logger.info("Ingestion cancelled by user")
            return 0

    logger.info("=" * 70)
    logger.info("Data Ingestion Pipeline Configuration")
    logger.info("=" * 70)
    logger.info(f"Collection: {settings.qdrant_collection_name}")
    logger.info(f"Documents path: {settings.documents_path}")
    for doc in settings.documents_manifest:
        logger.info(f"  - {doc.name}: {doc.path}")
    logger.info(f"Embedding model: {settings.ollama_embedding_model}")
    logger.info("=" * 70)

    try:
        stats = run_ingestion(save_artifacts=not args.no_save)

        print("\n" + "=" * 70)
        print("INGESTION SUMMARY")
        print("=" * 70)
        print(f"Success: {'✓' if stats.success else '✗'}")
        print(f"Documents processed: {stats.documents_processed}")
        print(f"Documents skipped: {stats.documents_skipped}")
        print(f"Pages processed: {stats.pages_processed}")
        print(f"Chunks created: {stats.chunks_created}")
        print(f"Embedding failures: {stats.embedding_failures}")
        print(f"Chunks stored: {stats.chunks_stored}")
        print(f"Duration: {stats.duration_seconds:.2f} seconds")
        print("=" * 70)

        return 0 if stats.success else 1

    except KeyboardInterrupt:
        logger.info("\nIngestion cancelled by user (Ctrl+C)")
        return 130


if __name__ == "__main__":
    sys.exit(main())
