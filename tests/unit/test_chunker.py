"""Tests for document chunking functionality."""

import pytest
from support_assistant.rag.chunker import DocumentChunker


def numbered_sentences(count):
    """Sentences of exactly 19 characters: 'Sentence number 01.'"""
    return [f"Sentence number {i:02d}." for i in range(1, count + 1)]


class TestDocumentChunker:
    """Test cases for DocumentChunker."""

    def test_initialization(self):
        """Test chunker initialization with explicit settings."""
        chunker = DocumentChunker(chunk_size=500, overlap_sentences=2, min_chunk_length=50)
        assert chunker.chunk_size == 500
        assert chunker.overlap_sentences == 2
        assert chunker.min_chunk_length == 50

    def test_initialization_defaults_from_settings(self):
        chunker = DocumentChunker()
        assert chunker.chunk_size == 2000
        assert chunker.overlap_sentences == 3
        assert chunker.min_chunk_length == 100

    def test_initialization_invalid_min_length(self):
        """Test that a minimum length not below chunk size raises error."""
        with pytest.raises(ValueError):
            DocumentChunker(chunk_size=100, min_chunk_length=100)

    def test_small_chunk_size_scales_default_min_length(self):
        """Test that a chunk size below the configured minimum is accepted."""
        chunker = DocumentChunker(chunk_size=50)

        assert chunker.min_chunk_length == 25
        assert chunker.chunk_text("One. Two.") == ["One. Two."]

    def test_clean_text(self):
        """Test whitespace normalization."""
        chunker = DocumentChunker(chunk_size=500, min_chunk_length=50)

        cleaned = chunker._clean_text("Multiple    spaces   and\n\n\n\nmultiple\tnewlines ")
        assert cleaned == "Multiple spaces and multiple newlines"

    def test_empty_text(self):
        """Test handling of empty text."""
        chunker = DocumentChunker(chunk_size=500, min_chunk_length=50)

        assert chunker.chunk_text("") == []
        assert chunker.chunk_text("   ") == []
        assert chunker.chunk_text("\n\n\n") == []

    def test_short_text_single_chunk(self):
        """Text within chunk_size comes back whole, normalized."""
        chunker = DocumentChunker(chunk_size=500, min_chunk_length=50)

        chunks = chunker.chunk_text("Plug in the charger.\n\nWait for the  green light.")
        assert chunks == ["Plug in the charger. Wait for the green light."]

    def test_split_sentences(self):
        chunker = DocumentChunker(chunk_size=500, min_chunk_length=50)

        sentences = chunker.split_sentences("Is it charging? Yes! Check the app. Done")
        assert sentences == ["Is it charging?", "Yes!", "Check the app.", "Done"]

    def test_overlap_carries_last_three_sentences(self):
        """The next chunk starts with the last 3 sentences of the previous one."""
        chunker = DocumentChunker(chunk_size=100, overlap_sentences=3, min_chunk_length=20)
        sentences = numbered_sentences(20)

        chunks = chunker.chunk_text(" ".join(sentences))

        assert chunks[0] == " ".join(sentences[:5])
        assert chunks[1].startswith(" ".join(sentences[2:5]))
        assert chunks[1] == " ".join(sentences[2:7])

    def test_no_sentence_dropped(self):
        chunker = DocumentChunker(chunk_size=100, overlap_sentences=3, min_chunk_length=20)
        sentences = numbered_sentences(20)

        chunks = chunker.chunk_text(" ".join(sentences))

        for sentence in sentences:
            assert any(sentence in chunk for chunk in chunks), sentence
        assert chunks[-1].endswith("Sentence number 20.")

    def test_chunk_size_bound(self):
        """No chunk exceeds chunk_size by more than one sentence."""
        chunker = DocumentChunker(chunk_size=150, overlap_sentences=3, min_chunk_length=40)
        sentences = [
            "The charge port door opens from the touchscreen.",
            "Hold the button for three seconds.",
            "If the light flashes amber, the cable is not seated.",
            "Reseat the connector firmly.",
            "Charging starts within ten seconds.",
            "Contact support if it still fails.",
        ] * 4
        text = " ".join(sentences)
        longest = max(len(s) for s in sentences)

        chunks = chunker.chunk_text(text)

        assert len(chunks) > 1
        for chunk in chunks:
            assert len(chunk) <= chunker.chunk_size + longest + 1

    def test_short_opening_sentence_not_emitted_alone(self):
        """A chunk below the minimum length keeps growing instead of being closed."""
        chunker = DocumentChunker(chunk_size=80, overlap_sentences=3, min_chunk_length=50)
        long_sentence = "The battery thermal management system preconditions the pack before fast charging sessions."
        text = f"Note. {long_sentence} {long_sentence}"

        chunks = chunker.chunk_text(text)

        assert chunks[0].startswith("Note. The battery")
        assert all(chunk != "Note." for chunk in chunks)

    def test_oversized_sentence_kept_whole(self):
        chunker = DocumentChunker(chunk_size=50, overlap_sentences=3, min_chunk_length=10)
        long_sentence = "This sentence has no terminal punctuation until the very end and keeps going."
        text = f"First sentence here. {long_sentence} Last one."

        chunks = chunker.chunk_text(text)

        assert any(long_sentence in chunk for chunk in chunks)

    def test_chunks_are_never_blank(self):
        chunker = DocumentChunker(chunk_size=60, overlap_sentences=1, min_chunk_length=10)
        chunks = chunker.chunk_text("One. Two.   Three.\n\nFour. " * 10)

        assert chunks
        assert all(chunk.strip() for chunk in chunks)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
