"""Query-time support agent combining retrieval and generation."""
