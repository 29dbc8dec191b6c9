"""
Exceptions for the upload workflow.

Each failure mode of the three-phase upload has its own type so the
orchestrator can turn it into a tagged result without string matching.
"""


class UploadError(Exception):
    """Base upload error."""

    def __init__(self, message, **kwargs):
        super().__init__(message)
        self.message = message
        self.endpoint = kwargs.get('endpoint')
        self.status_code = kwargs.get('status_code')


class AccountNotReady(UploadError):
    """Linked account is missing or not connected. No network call was made."""

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)
        self.account_id = kwargs.get('account_id')


class AuthError(UploadError):
    """Login was rejected by the platform."""
    pass


class DiscoveryExhausted(UploadError):
    """No candidate endpoint yielded a transfer target."""

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)
        self.last_error = kwargs.get('last_error')
        self.attempted = list(kwargs.get('attempted') or [])


class TransferError(UploadError):
    """Storage target rejected the byte transfer."""
    pass


class LinkError(UploadError):
    """Both the link call and the asset-create fallback were rejected."""
    pass


class PublishError(UploadError):
    """Catalog item creation was rejected."""
    pass


class CategoryNotFound(UploadError):
    """Category key has no platform mapping."""

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)
        self.category = kwargs.get('category')


class FileValidationError(UploadError):
    """File failed pre-upload validation."""

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)
        self.file_path = kwargs.get('file_path')


class ConfigurationError(UploadError):
    """Configuration is missing or malformed."""

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)
        self.missing_vars = kwargs.get('missing_vars', [])


class SessionStateError(UploadError):
    """Illegal upload session state transition."""
    pass
