"""Context and system prompt preparation for the LLM."""

from typing import List, Tuple

from support_assistant.rag.enricher import strip_headers
from support_assistant.rag.models import AssembledContext, RetrievalCandidate, Source
from support_assistant.utils.logger import get_logger

logger = get_logger()

CONTEXT_SEPARATOR = "\n\n---\n\n"

SUPPORTED_TOPICS = [
    "Charging and charging equipment",
    "Battery health and driving range",
    "Warning lights, error codes and troubleshooting",
    "Warranty coverage and claims",
    "Pricing, plans and subscriptions",
    "Maintenance and service appointments",
    "Software updates and the mobile app",
]

SYSTEM_PROMPT_TEMPLATE = """You are a helpful VoltDrive customer support assistant. You help customers with questions about their VoltDrive electric vehicles.

Use the following excerpts from VoltDrive documentation to answer the question.

Context from VoltDrive documentation:
{context}

Instructions:
- Be friendly, professional, and concise
- Cite the source of every fact you state, using its number and document (e.g. "According to Source 2, the Warranty & Pricing guide...")
- If the context does not contain the answer, say so plainly instead of guessing, and offer to help with related topics
- When several sources are relevant, combine them into one coherent answer
- Safety and accuracy come before completeness: never invent procedures, figures or coverage terms, and direct safety concerns to VoltDrive service"""

FALLBACK_PROMPT_TEMPLATE = """You are a helpful VoltDrive customer support assistant. You help customers with questions about their VoltDrive electric vehicles.

No documentation matched the customer's question. Do not invent specific figures, procedures or coverage terms.

Let the customer know you could not find this in the VoltDrive documentation and invite them to rephrase their question. You can help with:
{topics}"""


def clean_content(candidate: RetrievalCandidate) -> str:
    """Chunk content without any enrichment headers."""
    return strip_headers(candidate.content).strip()


def build_context(candidates: List[RetrievalCandidate]) -> Tuple[str, List[Source]]:
    """
    Build the numbered context block and the citation list.

    Args:
        candidates: Re-ranked candidates, most relevant first

    Returns:
        Tuple of context block and sources in the same order
    """
    sources: List[Source] = []
    parts: List[str] = []

    for idx, candidate in enumerate(candidates, 1):
        content = clean_content(candidate)
        metadata = candidate.metadata

        sources.append(Source(
            document=metadata.document,
            page=metadata.page,
            content=content,
            similarity=candidate.similarity,
        ))
        parts.append(f"[Source {idx}: {metadata.document}, Page {metadata.page}]\n{content}")

    return CONTEXT_SEPARATOR.join(parts), sources


def build_system_prompt(context: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(context=context)


def build_fallback_prompt() -> str:
    topics = "\n".join(f"- {topic}" for topic in SUPPORTED_TOPICS)
    return FALLBACK_PROMPT_TEMPLATE.format(topics=topics)


def assemble(candidates: List[RetrievalCandidate]) -> AssembledContext:
    """
    Prepare everything the generation call needs.

    Args:
        candidates: Final ranked candidates, possibly empty

    Returns:
        AssembledContext. With no candidates the fallback prompt is used and
        there are no sources.
    """
    if not candidates:
        logger.warning("No documents found - using fallback prompt")
        return AssembledContext(
            context_block="",
            sources=[],
            system_prompt=build_fallback_prompt(),
            is_fallback=True,
        )

    context, sources = build_context(candidates)
    logger.info(f"Built context with {len(sources)} sources ({len(context)} characters)")

    return AssembledContext(
        context_block=context,
        sources=sources,
        system_prompt=build_system_prompt(context),
    )
