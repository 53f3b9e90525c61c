"""Custom exception hierarchy for the S3 to OneDrive uploader."""


class ShareUploadError(Exception):
    """Base exception for all uploader operations."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ShareUploadError):
    """A required environment setting is missing or invalid."""
    pass


class InvalidEventError(ShareUploadError):
    """The S3 notification does not carry a usable record."""
    pass


class AuthenticationError(ShareUploadError):
    """Token endpoint rejected the refresh grant or returned no token."""
    pass


class NotFoundError(ShareUploadError):
    """Target shared folder is absent from the sharedWithMe listing."""
    pass


class TransferError(ShareUploadError):
    """S3 download failed or produced an empty file."""
    pass


class UploadError(ShareUploadError):
    """OneDrive upload endpoint returned a non-success status."""
    pass


class TransportError(ShareUploadError):
    """Network failure talking to S3, the token endpoint or Graph."""
    pass
