"""Data ingestion pipeline for RAG system."""

import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from support_assistant.llm.ollama_client import OllamaEmbedder
from support_assistant.rag.chunker import DocumentChunker
from support_assistant.rag.document_loader import PdfDocumentLoader, SourceDocument, detect_sections
from support_assistant.rag.enricher import enrich
from support_assistant.rag.models import ChunkMetadata, DocumentChunk
from support_assistant.utils.config import CorpusDocument, get_settings
from support_assistant.utils.errors import SupportAssistantError, UpstreamServiceError
from support_assistant.utils.logger import get_logger
from support_assistant.vectorstore.qdrant_client import QdrantVectorStore

logger = get_logger()


@dataclass
class IngestionStats:
    """Statistics for an ingestion run."""
    run_timestamp: str
    documents_processed: int = 0
    documents_skipped: int = 0
    pages_processed: int = 0
    chunks_created: int = 0
    chunks_embedded: int = 0
    chunks_stored: int = 0
    embedding_failures: int = 0
    batches_stored: int = 0
    batch_failures: int = 0
    duration_seconds: float = 0.0
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def save(self, path: str):
        """Save stats to JSON file."""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


class DataIngestionPipeline:
    """Rebuilds the vector store from the document corpus.

    Every run clears the collection first, then chunks, enriches, embeds and
    stores each page. There is no rollback: a run that fails halfway leaves
    the batches stored so far. Runs against the same collection must not
    overlap.
    """

    def __init__(
        self,
        vector_store: Optional[QdrantVectorStore] = None,
        embedder: Optional[OllamaEmbedder] = None,
        loader: Optional[PdfDocumentLoader] = None,
        chunker: Optional[DocumentChunker] = None,
        batch_size: Optional[int] = None,
        embedding_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the ingestion pipeline.

        Args:
            vector_store: Destination store
            embedder: Embedding service
            loader: PDF page extractor
            chunker: Page chunker
            batch_size: Chunks per insert (default from settings)
            embedding_delay: Seconds to wait after each embedding call
                (default from settings)
            sleep: Sleep function used for the embedding delay
        """
        self.settings = get_settings()
        self.vector_store = vector_store or QdrantVectorStore()
        self.embedder = embedder or OllamaEmbedder()
        self.loader = loader or PdfDocumentLoader()
        self.chunker = chunker or DocumentChunker()
        self.batch_size = batch_size or self.settings.ingestion_batch_size
        self.embedding_delay = (
            embedding_delay if embedding_delay is not None
            else self.settings.ingestion_embedding_delay_seconds
        )
        self._sleep = sleep

        self._pending: List[DocumentChunk] = []
        self.stats = IngestionStats(run_timestamp=datetime.now().isoformat())

    def ingest(self, documents: Optional[List[CorpusDocument]] = None) -> int:
        """
        Replace the store's contents with the given corpus.

        Args:
            documents: Corpus entries (default from settings)

        Returns:
            Number of chunks stored
        """
        return self.run(documents).chunks_stored

    def run(self, documents: Optional[List[CorpusDocument]] = None) -> IngestionStats:
        """
        Run the complete ingestion pipeline.

        Args:
            documents: Corpus entries (default from settings)

        Returns:
            IngestionStats with results
        """
        corpus = documents if documents is not None else self.settings.documents_manifest
        start_time = datetime.now()
        self.stats = IngestionStats(run_timestamp=start_time.isoformat())
        self._pending = []

        logger.info("=" * 70)
        logger.info("Starting Data Ingestion Pipeline")
        logger.info(f"Documents: {len(corpus)}, batch size: {self.batch_size}")
        logger.info("=" * 70)

        try:
            # Step 1: Clear existing chunks
            self.vector_store.clear()

            # Step 2: Chunk, enrich, embed and store each document
            for source in self.loader.resolve(corpus):
                self._ingest_document(source)

            self._flush()
            self.stats.success = self.stats.batch_failures == 0

            # Step 3: Verify what the collection holds
            stored_total = self.vector_store.count()
            if stored_total != self.stats.chunks_stored:
                logger.warning(
                    f"Collection holds {stored_total} chunks, "
                    f"expected {self.stats.chunks_stored}"
                )

        except SupportAssistantError as e:
            logger.exception(f"Ingestion pipeline failed: {e}")
            self.stats.success = False

        self.stats.duration_seconds = (datetime.now() - start_time).total_seconds()

        logger.info("=" * 70)
        logger.info("Ingestion Pipeline Finished")
        logger.info(f"Documents processed: {self.stats.documents_processed}")
        logger.info(f"Documents skipped: {self.stats.documents_skipped}")
        logger.info(f"Chunks created: {self.stats.chunks_created}")
        logger.info(f"Embedding failures: {self.stats.embedding_failures}")
        logger.info(f"Chunks stored: {self.stats.chunks_stored}")
        logger.info(f"Duration: {self.stats.duration_seconds:.2f} seconds")
        logger.info("=" * 70)

        return self.stats

    def _ingest_document(self, source: SourceDocument):
        logger.info(f"Processing: {source.name}")

        pages = self.loader.load_pages(source.path)
        if not pages:
            logger.warning(f"Skipping {source.name}: no readable pages")
            self.stats.documents_skipped += 1
            return

        logger.info(f"  Found {len(pages)} pages")
        sections = detect_sections(pages)

        for page in pages:
            chunks = self.chunker.chunk_text(page.text)
            self.stats.pages_processed += 1
            self.stats.chunks_created += len(chunks)
            logger.debug(f"  Page {page.page}: {len(chunks)} chunks")

            for chunk_index, chunk_text in enumerate(chunks):
                metadata = ChunkMetadata(
                    document=source.name,
                    page=page.page,
                    chunk_index=chunk_index,
                    section=sections.get(page.page),
                )
                document_chunk = self._embed_chunk(chunk_text, metadata)
                if document_chunk is not None:
                    self._pending.append(document_chunk)
                    if len(self._pending) >= self.batch_size:
                        self._flush()

        self.stats.documents_processed += 1
        logger.info(f"Processed {source.name}")

    def _embed_chunk(self, chunk_text: str, metadata: ChunkMetadata) -> Optional[DocumentChunk]:
        """Embed the enriched chunk; the stored content stays plain."""
        enriched = enrich(chunk_text, metadata.document, metadata.page, metadata.section)

        try:
            embedding = self.embedder.embed(enriched)
        except UpstreamServiceError as e:
            logger.warning(
                f"Error generating embedding for chunk {metadata.chunk_index} "
                f"on page {metadata.page} of {metadata.document}: {e}"
            )
            self.stats.embedding_failures += 1
            return None
        finally:
            if self.embedding_delay > 0:
                self._sleep(self.embedding_delay)

        self.stats.chunks_embedded += 1
        return DocumentChunk(content=chunk_text, embedding=embedding, metadata=metadata)

    def _flush(self):
        """Insert the pending chunks as one batch."""
        if not self._pending:
            return

        batch, self._pending = self._pending, []
        batch_number = self.stats.batches_stored + self.stats.batch_failures + 1

        try:
            stored = self.vector_store.insert(batch)
        except (UpstreamServiceError, ValueError) as e:
            logger.error(f"Failed to store batch {batch_number} ({len(batch)} chunks): {e}")
            self.stats.batch_failures += 1
            return

        self.stats.chunks_stored += stored
        self.stats.batches_stored += 1
        logger.info(f"Inserted batch {batch_number} ({self.stats.chunks_stored} chunks stored)")


def run_ingestion(
    documents: Optional[List[CorpusDocument]] = None,
    save_artifacts: bool = True
) -> IngestionStats:
    """
    Convenience function to run the ingestion pipeline.

    Args:
        documents: Corpus entries (default from settings)
        save_artifacts: Whether to save run statistics to disk

    Returns:
        IngestionStats with results
    """
    pipeline = DataIngestionPipeline()
    stats = pipeline.run(documents)

    if save_artifacts:
        try:
            stats_dir = Path(pipeline.settings.ingestion_artifacts_path)
            stats_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            stats_file = stats_dir / f"stats_{timestamp}.json"
            stats.save(str(stats_file))
            logger.info(f"Saved ingestion stats to {stats_file}")
        except OSError as e:
            logger.error(f"Failed to save artifacts: {e}")

    return stats
