"""Retrieval-Augmented Generation (RAG) pipeline.

This module handles:
- Document chunking, enrichment and ingestion into the vector database
- Query expansion and similarity retrieval
- Hybrid (vector + keyword) re-ranking
- Context and system prompt preparation for the LLM
"""
