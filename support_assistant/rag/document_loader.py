"""PDF document loader with per-page text and best-effort section detection."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import fitz  # PyMuPDF

from support_assistant.utils.config import CorpusDocument, get_settings
from support_assistant.utils.logger import get_logger

logger = get_logger()

ESTIMATED_CHARS_PER_PAGE = 2000
TEXT_SUFFIXES = {".txt", ".md"}
MAX_HEADER_LENGTH = 60

_NUMBERED_HEADER = re.compile(r'^\d+(\.\d+)*\.?\s+\S')
_NAMED_HEADER = re.compile(r'^(section|chapter|part)\s+[\w.]+', re.IGNORECASE)


@dataclass
class DocumentPage:
    """Text of one page, 1-based."""
    page: int
    text: str


@dataclass
class SourceDocument:
    """A corpus document resolved to a file on disk."""
    name: str
    path: Path


def is_header_line(line: str) -> bool:
    """Short all-caps or numbered lines look like section headers."""
    stripped = line.strip()
    if len(stripped) < 3 or len(stripped) > MAX_HEADER_LENGTH:
        return False

    letters = [c for c in stripped if c.isalpha()]
    if len(letters) >= 3 and stripped.upper() == stripped:
        return True

    return bool(_NUMBERED_HEADER.match(stripped) or _NAMED_HEADER.match(stripped))


def detect_sections(pages: List[DocumentPage]) -> Dict[int, Optional[str]]:
    """
    Map every page to the section it most likely belongs to.

    Header-like lines are located by character offset in the concatenated
    document text, and each offset is mapped back to its page. A page takes
    the first header found on it, otherwise the last header seen before it.

    Args:
        pages: Pages in document order

    Returns:
        Dictionary of page number to section title (None before any header)
    """
    page_ranges = []
    offset = 0
    for page in pages:
        page_ranges.append((page.page, offset, offset + len(page.text)))
        offset += len(page.text) + 1

    full_text = '\n'.join(page.text for page in pages)

    headers = []
    line_offset = 0
    for line in full_text.split('\n'):
        if is_header_line(line):
            headers.append((line_offset, line.strip()))
        line_offset += len(line) + 1

    sections: Dict[int, Optional[str]] = {}
    current: Optional[str] = None
    header_idx = 0

    for page_number, start, end in page_ranges:
        first_on_page: Optional[str] = None
        while header_idx < len(headers) and headers[header_idx][0] < end:
            header_offset, header = headers[header_idx]
            if header_offset >= start and first_on_page is None:
                first_on_page = header
            current = header
            header_idx += 1
        sections[page_number] = first_on_page or current

    return sections


def estimate_pages(full_text: str, chars_per_page: int = ESTIMATED_CHARS_PER_PAGE) -> List[DocumentPage]:
    """
    Split unsegmented text into pages of a fixed character count.

    Used when the extractor only yields the document's full text.
    """
    pages = []
    for idx, start in enumerate(range(0, len(full_text), chars_per_page)):
        text = full_text[start:start + chars_per_page]
        if text.strip():
            pages.append(DocumentPage(page=idx + 1, text=text))
    return pages


class PdfDocumentLoader:
    """Load per-page text from the documents of the support corpus.

    PDFs are split on their real page breaks. Plain-text exports (.txt, .md)
    carry no page segmentation, so their pages are estimated by length.
    """

    def __init__(self, docs_path: Optional[str] = None):
        """
        Initialize the document loader.

        Args:
            docs_path: Directory containing the corpus files (default from settings)
        """
        settings = get_settings()
        self.docs_path = Path(docs_path or settings.documents_path)

    def resolve(self, documents: List[CorpusDocument]) -> List[SourceDocument]:
        """Resolve corpus entries to paths under the documents directory."""
        resolved = []
        for doc in documents:
            path = Path(doc.path)
            if not path.is_absolute():
                path = self.docs_path / path
            resolved.append(SourceDocument(name=doc.name, path=path))
        return resolved

    def load_pages(self, path: Path) -> List[DocumentPage]:
        """
        Extract text from each page of a document.

        Args:
            path: PDF or plain-text file path

        Returns:
            Pages with extractable text. Empty if the file is missing or
            cannot be opened.
        """
        if not path.exists():
            logger.error(f"File not found: {path}")
            return []

        if path.suffix.lower() in TEXT_SUFFIXES:
            return self._load_text_pages(path)

        try:
            doc = fitz.open(str(path))
        except Exception as e:
            logger.error(f"Failed to open PDF {path}: {e}")
            return []

        pages: List[DocumentPage] = []
        try:
            for page_num in range(len(doc)):
                text = doc[page_num].get_text("text")
                if text.strip():
                    pages.append(DocumentPage(page=page_num + 1, text=text))
        finally:
            doc.close()

        if not pages:
            logger.warning(f"No text extracted from {path}")

        return pages

    def _load_text_pages(self, path: Path) -> List[DocumentPage]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return []

        pages = estimate_pages(text)
        logger.debug(f"Estimated {len(pages)} pages for {path.name}")
        return pages
