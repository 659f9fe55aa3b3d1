"""In-memory DAL implementations for tests and embedded use."""

from .example_store import InMemoryExampleStore

__all__ = ["InMemoryExampleStore"]
