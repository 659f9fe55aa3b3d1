"""Collaborator interfaces consumed by the example repository core."""

from .canonical_decision import CanonicalDecisionFunction
from .example_store import ExampleStore
from .identifier_provider import IdentifierProvider
from .text_integrity import TextIntegrityCheck

__all__ = [
    "CanonicalDecisionFunction",
    "ExampleStore",
    "IdentifierProvider",
    "TextIntegrityCheck",
]
