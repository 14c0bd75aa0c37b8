"""Ollama embedding and streamed chat generation clients."""

from typing import Dict, Iterator, List, Optional

import httpx
import ollama

from support_assistant.utils.config import get_settings
from support_assistant.utils.errors import (
    EmbeddingDimensionError,
    UpstreamServiceError,
    UpstreamTimeoutError,
)
from support_assistant.utils.logger import get_logger

logger = get_logger()


# ollama-python re-raises httpx.ConnectError as the builtin ConnectionError
OLLAMA_ERRORS = (ollama.ResponseError, httpx.HTTPError, ConnectionError)


def _translate_error(service: str, error: Exception) -> UpstreamServiceError:
    """Map an ollama/httpx failure onto the assistant's error taxonomy."""
    if isinstance(error, httpx.TimeoutException):
        return UpstreamTimeoutError(service, f"request timed out: {error}")
    if isinstance(error, ConnectionError):
        return UpstreamServiceError(service, f"Ollama is unreachable: {error}")
    return UpstreamServiceError(service, str(error))


class OllamaEmbedder:
    """Embedding service: text in, fixed-length vector out."""

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        dimension: Optional[int] = None,
        client: Optional[ollama.Client] = None
    ):
        """
        Initialize the embedder.

        Args:
            model: Embedding model name (default from settings)
            base_url: Ollama host (default from settings)
            timeout: Per-request timeout in seconds (default from settings)
            dimension: Expected vector width (default from settings)
            client: Preconfigured Ollama client
        """
        settings = get_settings()
        self.model = model or settings.ollama_embedding_model
        self.dimension = dimension or settings.embedding_dimension
        self.client = client or ollama.Client(
            host=base_url or settings.ollama_base_url,
            timeout=timeout or settings.embedding_timeout_seconds,
        )

    def embed(self, text: str) -> List[float]:
        """
        Generate embedding for text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            UpstreamTimeoutError: If the request timed out
            UpstreamServiceError: If Ollama failed or returned no vector
            EmbeddingDimensionError: If the vector width is unexpected
        """
        logger.debug(f"Generating embedding for text (length: {len(text)})")

        try:
            response = self.client.embeddings(model=self.model, prompt=text)
        except OLLAMA_ERRORS as e:
            raise _translate_error("embedding", e) from e

        embedding = response.get("embedding")
        if not embedding:
            raise UpstreamServiceError("embedding", "no embedding returned from Ollama")

        if len(embedding) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(embedding))

        return list(embedding)


class OllamaChatGenerator:
    """Generation service: message list in, streamed text fragments out."""

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[ollama.Client] = None
    ):
        settings = get_settings()
        self.settings = settings
        self.model = model or settings.ollama_chat_model
        self.client = client or ollama.Client(
            host=base_url or settings.ollama_base_url,
            timeout=timeout or settings.generation_timeout_seconds,
        )

    def stream(self, messages: List[Dict[str, str]]) -> Iterator[str]:
        """
        Stream a chat completion.

        The returned generator is lazy and single-use. Closing it closes the
        underlying HTTP stream, so no further tokens are requested.

        Args:
            messages: Ordered ``{"role", "content"}`` messages

        Yields:
            Non-empty text fragments

        Raises:
            UpstreamTimeoutError: If the request timed out
            UpstreamServiceError: If Ollama failed
        """
        logger.debug(f"Calling Ollama chat with model {self.model} ({len(messages)} messages)")

        try:
            response_stream = self.client.chat(
                model=self.model,
                messages=messages,
                stream=True,
                options={
                    "temperature": self.settings.response_temperature,
                    "num_predict": self.settings.max_response_tokens,
                }
            )
        except OLLAMA_ERRORS as e:
            raise _translate_error("generation", e) from e

        try:
            for part in response_stream:
                message = part.get("message")
                content = message.get("content") if message else None
                if content:
                    yield content
        except OLLAMA_ERRORS as e:
            raise _translate_error("generation", e) from e
        finally:
            close = getattr(response_stream, "close", None)
            if close is not None:
                close()
