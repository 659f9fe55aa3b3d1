"""Identifier generation for new examples."""

import base64
import uuid

from common.interfaces import IdentifierProvider


class ShortIdProvider(IdentifierProvider):
    """Generates 22-character url-safe ids from random UUIDs."""

    def generate(self) -> str:
        raw = uuid.uuid4().bytes
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
