"""Document chunking for RAG pipeline."""

import re
from typing import List, Optional

from support_assistant.utils.config import get_settings
from support_assistant.utils.logger import get_logger

logger = get_logger()

# Terminal punctuation followed by whitespace ends a sentence
SENTENCE_BOUNDARY = re.compile(r'(?<=[.!?])\s+')


class DocumentChunker:
    """Splits page text into overlapping, sentence-bounded chunks."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        overlap_sentences: Optional[int] = None,
        min_chunk_length: Optional[int] = None
    ):
        """
        Initialize document chunker.

        Args:
            chunk_size: Maximum characters per chunk (default from settings)
            overlap_sentences: Sentences carried over from the previous chunk
                (default from settings)
            min_chunk_length: Chunks shorter than this are only emitted when
                they are the last chunk (default from settings, capped at half
                of chunk_size)
        """
        settings = get_settings()
        self.chunk_size = chunk_size if chunk_size is not None else settings.rag_chunk_size
        self.overlap_sentences = (
            overlap_sentences if overlap_sentences is not None
            else settings.rag_overlap_sentences
        )
        # The configured minimum is scaled down for small chunk sizes
        self.min_chunk_length = (
            min_chunk_length if min_chunk_length is not None
            else min(settings.rag_min_chunk_length, self.chunk_size // 2)
        )

        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.overlap_sentences < 0:
            raise ValueError("overlap_sentences must not be negative")
        if self.min_chunk_length >= self.chunk_size:
            raise ValueError("min_chunk_length must be less than chunk_size")

        logger.debug(
            f"Initialized DocumentChunker with chunk_size={self.chunk_size}, "
            f"overlap_sentences={self.overlap_sentences}, "
            f"min_chunk_length={self.min_chunk_length}"
        )

    def chunk_text(self, text: str) -> List[str]:
        """
        Split text into chunks.

        Args:
            text: Raw page text

        Returns:
            Ordered list of non-empty chunk strings
        """
        if not text or not text.strip():
            return []

        cleaned_text = self._clean_text(text)
        if not cleaned_text:
            return []

        if len(cleaned_text) <= self.chunk_size:
            return [cleaned_text]

        sentences = self.split_sentences(cleaned_text)
        return self._chunk_by_sentences(sentences)

    def split_sentences(self, text: str) -> List[str]:
        """Split normalized text on terminal punctuation boundaries."""
        return [s.strip() for s in SENTENCE_BOUNDARY.split(text) if s.strip()]

    def _clean_text(self, text: str) -> str:
        """
        Clean and normalize text.

        Args:
            text: Raw text

        Returns:
            Text with control characters removed and whitespace collapsed
        """
        text = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', text)
        text = re.sub(r'\s+', ' ', text)
        return text.strip()

    def _chunk_by_sentences(self, sentences: List[str]) -> List[str]:
        """
        Accumulate sentences into chunks, seeding each new chunk with the
        trailing sentences of the previous one.

        Args:
            sentences: Sentences in document order

        Returns:
            List of chunk strings
        """
        chunks: List[str] = []
        current_chunk: List[str] = []
        current_length = 0

        for sentence in sentences:
            sentence_length = len(sentence)
            joined_length = current_length + sentence_length + (1 if current_chunk else 0)

            if (
                joined_length > self.chunk_size
                and current_chunk
                and current_length >= self.min_chunk_length
            ):
                chunks.append(' '.join(current_chunk))

                # Start new chunk with overlap, dropping the oldest overlap
                # sentences when they would not leave room for this sentence
                overlap = current_chunk[-self.overlap_sentences:] if self.overlap_sentences else []
                while overlap and len(' '.join(overlap + [sentence])) > self.chunk_size:
                    overlap = overlap[1:]

                current_chunk = overlap
                current_length = len(' '.join(current_chunk))

            current_length += sentence_length + (1 if current_chunk else 0)
            current_chunk.append(sentence)

        if current_chunk:
            final_chunk = ' '.join(current_chunk)
            if final_chunk.strip():
                chunks.append(final_chunk)

        return chunks

