"""In-memory stores for lending records."""

from lendflow.store.memory import InMemoryLendingStore

__all__ = ["InMemoryLendingStore"]
