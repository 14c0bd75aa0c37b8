"""Exception types shared across the assistant."""


class SupportAssistantError(Exception):
    """Base exception for the support assistant."""
    pass


class ConfigurationError(SupportAssistantError):
    """Required configuration is missing or invalid. Fatal at startup."""
    pass


class UpstreamServiceError(SupportAssistantError):
    """Exception raised when an embedding, generation or vector store call fails."""

    retryable = False

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class UpstreamTimeoutError(UpstreamServiceError):
    """An upstream call exceeded its timeout. The caller may retry."""

    retryable = True


class EmbeddingDimensionError(UpstreamServiceError):
    """Embedding width does not match the configured vector dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            "embedding",
            f"expected vector of size {expected}, got {actual}"
        )


class InvalidChunkError(SupportAssistantError, ValueError):
    """A document chunk failed validation before insert."""
    pass
