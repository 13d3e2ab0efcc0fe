"""Shared infrastructure: logging, metrics and LLM access."""
