from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentifierProvider(Protocol):
    """Produces short, collision-resistant identifiers for new examples."""

    def generate(self) -> str:
        """Return a new unique identifier."""
        ...
