"""Ollama-backed embedding and chat generation services."""
