"""
JSON error responses for document storage failures.
"""

from flask import current_app, jsonify

from clientdocs.services.storage.exceptions import (
    BackendError, ConfigurationError, DispatchError, DocumentStorageError, NoFileError, NotFoundError,
    OperationCancelledError, RecipientMissingError, SmtpNotConfiguredError, StorageUnavailableError,
)

STATUS_BY_ERROR = [
    (NoFileError, 400),
    (RecipientMissingError, 400),
    (NotFoundError, 404),
    (ConfigurationError, 500),
    (SmtpNotConfiguredError, 500),
    (DispatchError, 502),
    (OperationCancelledError, 503),
    (StorageUnavailableError, 503),
]


def status_for(error: DocumentStorageError) -> int:
    if isinstance(error, BackendError):
        return 503 if error.retryable else 502
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def handle_document_error(error: DocumentStorageError):
    status = status_for(error)
    payload = {'error': str(error), 'type': type(error).__name__}
    if isinstance(error, BackendError):
        payload['retryable'] = error.retryable

    if status >= 500:
        current_app.logger.error(f"{type(error).__name__}: {error}")
    else:
        current_app.logger.info(f"{type(error).__name__}: {error}")
    return jsonify(payload), status
