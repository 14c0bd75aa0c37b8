"""Structural metadata headers for chunk embeddings.

The embedding is computed over the enriched text so that the vector carries
the document and section context. Stored and displayed content is always the
plain chunk text; :func:`strip_headers` removes the headers wherever enriched
text may have leaked through.
"""

import re
from typing import Optional

SOURCE_HEADER = re.compile(r'^\[Source: [^\n]*\]$')
SECTION_HEADER = re.compile(r'^\[Section: [^\n]*\]$')

MIN_HEADER_LENGTH = 5
MAX_HEADER_LENGTH = 60


def detect_section_header(chunk_text: str) -> Optional[str]:
    """Return the first line of a multi-line chunk when it is short enough to be a header."""
    lines = chunk_text.strip().split('\n', 1)
    if len(lines) < 2:
        return None

    first_line = lines[0].strip()
    if MIN_HEADER_LENGTH <= len(first_line) <= MAX_HEADER_LENGTH:
        return first_line
    return None


def enrich(
    chunk_text: str,
    document_name: str,
    page: int,
    section: Optional[str] = None
) -> str:
    """
    Prepend source and section headers to a chunk for embedding.

    Args:
        chunk_text: Plain chunk text
        document_name: Name of the source document
        page: Page number the chunk came from
        section: Section title detected for the page, if any. When absent the
            chunk's own first line is used if it looks like a header.

    Returns:
        Enriched text, used only as input to the embedding call
    """
    headers = [f"[Source: {document_name}, Page {page}]"]

    section = section or detect_section_header(chunk_text)
    if section:
        headers.append(f"[Section: {section}]")

    return '\n'.join(headers) + '\n' + chunk_text


def strip_headers(text: str) -> str:
    """Remove leading ``[Source: ...]`` and ``[Section: ...]`` lines."""
    lines = text.split('\n')
    while lines and (SOURCE_HEADER.match(lines[0]) or SECTION_HEADER.match(lines[0])):
        lines.pop(0)
    return '\n'.join(lines)
