"""DAL Factory with singleton, environment-driven provider selection.

Environment Variables:
    EXAMPLE_STORE_PROVIDER: Provider for ExampleStore (default: "postgres")

Canonical Provider IDs:
    - "postgres": PostgreSQL-based implementation (requires ExamplesDatabase.init())
    - "memory": process-local in-memory implementation

Example:
    >>> from dal.factory import get_example_store
    >>> store = get_example_store()  # PostgresExampleStore by default
"""

import logging
from typing import Optional

from common.interfaces import ExampleStore
from dal.util.env import get_provider_env

logger = logging.getLogger(__name__)

EXAMPLE_STORE_PROVIDERS: "dict[str, type[ExampleStore]]" = {}

_example_store: Optional[ExampleStore] = None


def _register_builtin_providers() -> None:
    # Deferred: the store modules import from the dal package itself.
    if "memory" not in EXAMPLE_STORE_PROVIDERS:
        from dal.memory import InMemoryExampleStore

        EXAMPLE_STORE_PROVIDERS["memory"] = InMemoryExampleStore
    if "postgres" not in EXAMPLE_STORE_PROVIDERS:
        from dal.postgres import PostgresExampleStore

        EXAMPLE_STORE_PROVIDERS["postgres"] = PostgresExampleStore


def get_example_store() -> ExampleStore:
    """Get or create the singleton ExampleStore instance.

    Provider is selected via EXAMPLE_STORE_PROVIDER env var.
    Default: "postgres" (PostgresExampleStore)

    Returns:
        The singleton ExampleStore instance.

    Raises:
        ValueError: If EXAMPLE_STORE_PROVIDER is set to an invalid value.
    """
    global _example_store
    if _example_store is None:
        _register_builtin_providers()

        provider = get_provider_env(
            "EXAMPLE_STORE_PROVIDER",
            default="postgres",
            allowed=set(EXAMPLE_STORE_PROVIDERS.keys()),
        )
        logger.info(f"Initializing ExampleStore with provider: {provider}")

        store_cls = EXAMPLE_STORE_PROVIDERS[provider]
        _example_store = store_cls()

    return _example_store


def reset_singletons() -> None:
    """Reset singleton instances (tests and provider switches)."""
    global _example_store
    _example_store = None
