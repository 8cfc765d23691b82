"""Client document storage supporting local disk and Google Drive backends."""

from .exceptions import (
    BackendError, ConfigurationError, DispatchError, DocumentStorageError, NoFileError, NotFoundError,
    OperationCancelledError, RecipientMissingError, SmtpNotConfiguredError, StorageUnavailableError,
)
from .factory import load_storage_config, parse_mode, require_remote
from .interfaces import (
    BackendType, Contact, InboundFile, LocalDocument, RemoteCredentials, RemoteDocument, SmtpSettings,
    StorageConfig, StorageMode, StoredDocument,
)
from .service import StorageService, build_access_url, create_storage_service, get_storage_service

__all__ = [
    'BackendError',
    'ConfigurationError',
    'DispatchError',
    'DocumentStorageError',
    'NoFileError',
    'NotFoundError',
    'OperationCancelledError',
    'RecipientMissingError',
    'SmtpNotConfiguredError',
    'StorageUnavailableError',
    'load_storage_config',
    'parse_mode',
    'require_remote',
    'BackendType',
    'Contact',
    'InboundFile',
    'LocalDocument',
    'RemoteCredentials',
    'RemoteDocument',
    'SmtpSettings',
    'StorageConfig',
    'StorageMode',
    'StoredDocument',
    'StorageService',
    'build_access_url',
    'create_storage_service',
    'get_storage_service',
]
