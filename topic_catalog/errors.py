"""Failure modes of the document-to-topic-catalog pipeline.

Every stage raises a subclass of :class:`TopicCatalogError`. The pipeline
boundary turns them into a single human-readable message, so each class
carries the coarse ``category`` the HTTP layer maps to a status code and a
``retryable`` hint for the user.
"""

from __future__ import annotations

__all__ = [
    "TopicCatalogError",
    "UnsupportedDocumentError",
    "MalformedContainerError",
    "EntryNotFoundError",
    "MarkupParseError",
    "DecompressionError",
    "LegacyDecodeError",
    "EmptySourceError",
    "AiConfigurationError",
    "ModelServiceError",
    "UnrecoverableModelOutputError",
    "NoTopicsRecoveredError",
    "InvalidCatalogFileError",
    "InvalidConnectionIdError",
]


class TopicCatalogError(RuntimeError):
    """Base exception for document ingestion and catalog extraction failures."""

    category = "pipeline"
    retryable = False


class UnsupportedDocumentError(TopicCatalogError):
    """Raised when a file extension is not one of the supported source types."""

    category = "unsupported_input"


class MalformedContainerError(TopicCatalogError):
    """Raised when a ZIP container is truncated, corrupt, or non-conforming."""

    category = "malformed_container"


class EntryNotFoundError(MalformedContainerError):
    """Raised when an expected entry is missing from a container."""

    def __init__(self, entry_name: str) -> None:
        super().__init__(f"entry not found: {entry_name}")
        self.entry_name = entry_name


class MarkupParseError(MalformedContainerError):
    """Raised when the document body markup cannot be parsed."""


class DecompressionError(TopicCatalogError):
    """Raised when a deflate payload cannot be inflated."""

    category = "decompression"


class LegacyDecodeError(TopicCatalogError):
    """Raised when neither encoding hypothesis yields readable legacy text."""

    category = "legacy_decode"


class EmptySourceError(TopicCatalogError):
    """Raised when parsing succeeds but no usable text remains."""

    category = "empty_source"


class AiConfigurationError(TopicCatalogError):
    """Raised when the completion service connection parameters are invalid."""

    category = "ai_configuration"


class ModelServiceError(TopicCatalogError):
    """Raised when the completion service call fails; keeps the service text."""

    category = "model_service"
    retryable = True


class UnrecoverableModelOutputError(TopicCatalogError):
    """Raised when no JSON value can be recovered from the model reply."""

    category = "unrecoverable_output"


class NoTopicsRecoveredError(UnrecoverableModelOutputError):
    """Raised when the recovered JSON yields zero usable topics."""

    def __init__(self, message: str = "no topics recovered") -> None:
        super().__init__(message)


class InvalidCatalogFileError(TopicCatalogError):
    """Raised when an imported topic catalog file has the wrong magic or shape."""

    category = "invalid_catalog_file"


class InvalidConnectionIdError(TopicCatalogError):
    """Raised when a connection id cannot address a topic document."""

    category = "invalid_connection"
