"""Exception hierarchy.

Item-level failures (one composite, one upload) are captured on the item and
never raised past the orchestrators. The exceptions below are the ones that
fail a whole operation.
"""

from typing import Any


class CreativeEngineError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CreativeEngineError):
    """A required credential or setting is missing."""


# Store


class BatchStoreError(CreativeEngineError):
    """A store write could not be completed."""


class BatchNotFoundError(CreativeEngineError):
    """No batch with the requested external id."""


class InvalidStatusTransitionError(BatchStoreError):
    """Attempted to move a batch status backwards."""


# Integrity


class IntegrityViolationError(CreativeEngineError):
    """A batch failed the pre-dispatch integrity gate."""

    def __init__(
        self,
        message: str,
        issues: list[str] | None = None,
        item: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.issues = issues or [message]
        self.item = item


class ContentIntegrityError(IntegrityViolationError):
    """Stored script content no longer matches its fingerprint."""


# Pipeline


class SubtitleError(CreativeEngineError):
    """No captions could be produced for a script."""


class PipelinePreconditionError(CreativeEngineError):
    """A render run was requested without the inputs it needs."""


class RenderRunFailedError(CreativeEngineError):
    """Nothing in a render or upload run succeeded."""

    def __init__(
        self,
        message: str,
        footage_errors: list[dict[str, str]],
        item_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            message, {"footage_errors": footage_errors, "item_errors": item_errors or []}
        )
        self.footage_errors = footage_errors
        self.item_errors = item_errors or []


# External services


class TransientExternalError(CreativeEngineError):
    """Timeout or connection failure; the caller may retry."""


class UploadTimeoutError(TransientExternalError):
    """Single-request upload timed out; retry with the resumable upload."""


class PermanentUploadError(CreativeEngineError):
    """The asset can never be uploaded as given (missing id, rejected)."""


class AdsPlatformError(CreativeEngineError):
    """The ads platform rejected a request."""


class BatchUploadFailedError(AdsPlatformError):
    """No asset of an upload batch reached the ads platform."""

    def __init__(self, message: str, outcomes: list[dict[str, Any]]) -> None:
        super().__init__(message, {"results": outcomes})
        self.outcomes = outcomes


class PublishPreconditionError(CreativeEngineError):
    """Publishing was requested without the inputs it needs."""


class StorageError(CreativeEngineError):
    """Remote storage rejected a request or the file does not exist."""


class LedgerError(CreativeEngineError):
    """The spreadsheet ledger could not be read or written."""


class NotifierError(CreativeEngineError):
    """The chat service rejected a message."""


class ScriptGenerationError(CreativeEngineError):
    """The LLM returned no usable scripts."""


class InteractionPayloadError(CreativeEngineError):
    """A chat interaction payload could not be parsed or verified."""
