"""Value transformers that can be applied to values before they are compared."""

from __future__ import annotations

import base64
import binascii


class TransformError(ValueError):
    """Raised when a value cannot be transformed."""


class DecodeBase64ValueTransformer:
    """Decodes a base64 string into text, replacing invalid UTF-8 sequences."""

    def transform(self, value: str) -> str:
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise TransformError(str(exc)) from exc
        return raw.decode("utf-8", errors="replace")


class ToLowercaseTransformer:
    """Converts a string to lower case."""

    def transform(self, value: str) -> str:
        return value.lower()