from zoe.core.errors import DomainError


class UploadValidationError(DomainError):
    """Raised when an uploaded file is rejected (type, extension, size or count)."""

    def __init__(self, message: str, filename: str | None = None):
        self.message = message
        self.filename = filename
        super().__init__(message)


class ImageProcessingError(DomainError):
    """Raised when an image cannot be decoded or re-encoded."""
