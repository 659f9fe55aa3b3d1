"""Write-time text integrity checks for examples."""

from typing import Dict, List, Optional

import emoji

from common.errors import ExampleValidationError
from common.interfaces import TextIntegrityCheck
from common.models.example import Example


class EmojiIntegrityCheck(TextIntegrityCheck):
    """Tokenizes text into emoji and non-emoji runs using the ``emoji`` package."""

    def classify(self, text: str) -> List[Dict[str, str]]:
        tokens: List[Dict[str, str]] = []
        position = 0
        for match in emoji.emoji_list(text or ""):
            start, end = match["match_start"], match["match_end"]
            if start > position:
                tokens.append({"type": "text", "value": text[position:start]})
            tokens.append({"type": "emoji", "value": match["emoji"]})
            position = end
        if text and position < len(text):
            tokens.append({"type": "text", "value": text[position:]})
        return tokens


_default_check = EmojiIntegrityCheck()


def check_no_emojis(example: Example, integrity: Optional[TextIntegrityCheck] = None) -> None:
    """Raise ExampleValidationError when the example text contains emoji glyphs."""
    checker = integrity or _default_check
    if any(token.get("type") == "emoji" for token in checker.classify(example.text)):
        raise ExampleValidationError("Emojis not allowed.", reason_code="emoji_in_text")
