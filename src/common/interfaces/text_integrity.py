from typing import Dict, List, Protocol, runtime_checkable


@runtime_checkable
class TextIntegrityCheck(Protocol):
    """Classifies example text into typed tokens.

    Any token with ``{"type": "emoji"}`` disqualifies the text.
    """

    def classify(self, text: str) -> List[Dict[str, str]]:
        """Split ``text`` into tokens tagged ``"emoji"`` or ``"text"``."""
        ...
