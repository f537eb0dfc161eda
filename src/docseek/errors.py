"""Exception types shared across docseek."""

from __future__ import annotations


class DocseekError(Exception):
    """Base class for docseek failures."""


class ConfigurationError(DocseekError):
    """Required settings (index endpoint, credentials) are missing."""


class VectorIndexError(DocseekError):
    """The vector index rejected a request or could not be reached."""


class RetrievalError(DocseekError):
    """A similarity query failed."""


class SynthesisError(DocseekError):
    """Answer generation failed before producing any text."""


class PartialStreamError(SynthesisError):
    """Answer generation failed after some text was already delivered."""

    def __init__(self, message: str, partial: str) -> None:
        super().__init__(message)
        self.partial = partial
