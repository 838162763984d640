"""Embedding and language-model backends."""
