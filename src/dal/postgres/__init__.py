"""PostgreSQL DAL Implementations.

This package contains the concrete implementations of DAL interfaces for PostgreSQL.
"""

from .example_store import PostgresExampleStore

__all__ = ["PostgresExampleStore"]
