"""
Custom exceptions for document storage, retrieval and dispatch.
"""


class DocumentStorageError(Exception):
    """Base exception for document storage errors."""
    pass


class NoFileError(DocumentStorageError):
    """Store request without a file, or with an empty one."""
    pass


class ConfigurationError(DocumentStorageError):
    """Remote mode selected without usable credentials or folder."""
    pass


class BackendError(DocumentStorageError):
    """Remote provider errors (auth, quota, not found, network)."""

    def __init__(self, message: str, retryable: bool = False, status_code: int = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class NotFoundError(DocumentStorageError):
    """File not present under the configured or the default root."""
    pass


class SmtpNotConfiguredError(DocumentStorageError):
    """Notification requested but no SMTP host is configured."""
    pass


class RecipientMissingError(DocumentStorageError):
    """Recipient has no e-mail address on file."""
    pass


class DispatchError(DocumentStorageError):
    """SMTP send failed after preconditions passed."""
    pass


class OperationCancelledError(DocumentStorageError):
    """Caller cancelled the operation before the backend confirmed completion."""
    pass


class StorageUnavailableError(DocumentStorageError):
    """Neither the configured nor the default local root accepted the write."""
    pass
