"""Provider normalization and environment variable helpers.

Canonical Provider IDs (internal, lowercase):
- "postgres" - PostgreSQL implementations
- "memory" - process-local in-memory implementations

User-Facing Aliases (case-insensitive):
- PostgreSQL: "postgresql", "postgres", "pg"
- In-memory: "memory", "inmemory", "in-memory", "mem"

Example:
    >>> normalize_provider("PostgreSQL")
    'postgres'
    >>> normalize_provider("in-memory")
    'memory'
"""

from typing import Set

# Alias mappings: user-friendly names -> canonical provider ID
PROVIDER_ALIASES: dict[str, str] = {
    "postgresql": "postgres",
    "postgres": "postgres",
    "pg": "postgres",
    "memory": "memory",
    "inmemory": "memory",
    "in-memory": "memory",
    "mem": "memory",
}


def normalize_provider(value: str) -> str:
    """Normalize a provider value to its canonical form.

    Unknown values pass through lowercased and stripped; validation happens
    in ``get_provider_env``.
    """
    cleaned = value.strip().lower()
    return PROVIDER_ALIASES.get(cleaned, cleaned)


def get_provider_env(var_name: str, default: str, allowed: Set[str]) -> str:
    """Read, normalize and validate a provider environment variable.

    Args:
        var_name: Name of the environment variable (e.g., "EXAMPLE_STORE_PROVIDER").
        default: Canonical provider ID used when the variable is unset.
        allowed: Valid canonical provider IDs.

    Returns:
        The normalized, validated canonical provider ID.

    Raises:
        ValueError: If the normalized value is not in the allowed set.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name)

    if raw_value is None:
        return default

    normalized = normalize_provider(raw_value)

    if normalized not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(
            f"Invalid provider for {var_name}: '{raw_value}'. Allowed values: {allowed_list}"
        )

    return normalized
