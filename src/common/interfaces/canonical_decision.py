from typing import List, Protocol, Sequence, runtime_checkable

from common.models.example import Example


@runtime_checkable
class CanonicalDecisionFunction(Protocol):
    """Assigns canonical flags to a batch of new examples.

    The returned list corresponds 1:1 (same order) to ``new_examples`` and,
    combined with ``existing_examples``, holds at most one canonical example
    per intent and exact entity signature.
    """

    def __call__(
        self, new_examples: Sequence[Example], existing_examples: Sequence[Example]
    ) -> List[Example]:
        ...
