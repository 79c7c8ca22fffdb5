"""Error taxonomy for clip operations.

Each error carries the HTTP status it maps to; ``voiceset.main`` renders
them as ``ErrorResponse`` bodies.
"""

from fastapi import status


class ClipError(Exception):
    """Base class for all clip pipeline errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "clip_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ClipValidationError(ClipError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class PayloadTooLargeError(ClipValidationError):
    status_code = 413
    code = "payload_too_large"


class InvalidStatusTransition(ClipValidationError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_status_transition"


class ClipNotFoundError(ClipError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, clip_id: str):
        super().__init__(f"Clip {clip_id} not found")
        self.clip_id = clip_id


class StorageError(ClipError):
    """Object store unreachable or rejected the request."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "storage_unavailable"


class MetadataStoreError(ClipError):
    """Database unreachable or the write failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "metadata_store_unavailable"


class TranscodeError(ClipError):
    """Transcoder failed, timed out or produced unreadable output."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "processing_failed"
