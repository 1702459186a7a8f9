"""Concrete LLM provider adapters."""
