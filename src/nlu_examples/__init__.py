"""Repository core for annotated NLU training examples."""

from nlu_examples.canonical import canonicalize_examples, switch_canonical
from nlu_examples.indexer import list_intents_and_entities
from nlu_examples.insertion import insert_examples
from nlu_examples.mutations import delete_examples, update_examples
from nlu_examples.query import get_examples
from nlu_examples.service import ExampleService

__all__ = [
    "ExampleService",
    "canonicalize_examples",
    "delete_examples",
    "get_examples",
    "insert_examples",
    "list_intents_and_entities",
    "switch_canonical",
    "update_examples",
]
