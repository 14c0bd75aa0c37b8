"""Vector database management for RAG.

This module provides:
- Qdrant connection and collection lifecycle
- Batched inserts of embedded document chunks
- Similarity search above a score threshold
"""
