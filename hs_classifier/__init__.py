"""HS code classification with an LLM and a Postgres-backed history."""

__version__ = "0.1.0"
