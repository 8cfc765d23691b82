"""Storage router and retrieval gateway over the local and Drive backends."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .cancellation import raise_if_cancelled
from .drive import DriveStorageBackend
from .exceptions import NoFileError
from .factory import build_drive_backend, build_local_backend, require_remote
from .interfaces import InboundFile, LocalDocument, RemoteDocument, StorageConfig, StorageMode, StoredDocument
from .local import LocalStorageBackend

logger = logging.getLogger(__name__)

RETRIEVAL_PREFIX = '/uploads/'


def build_access_url(base_url: str, filename: str) -> str:
    return f"{(base_url or '').rstrip('/')}{RETRIEVAL_PREFIX}{filename}"


class StorageService:
    """Facade hiding the storage backends from request handlers.

    Holds no per-request state; the configuration is passed into every call.
    """

    def __init__(self, local: LocalStorageBackend, remote: DriveStorageBackend):
        self.local = local
        self.remote = remote

    def store(self, file: Optional[InboundFile], config: StorageConfig, base_url: str, *,
              timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None) -> StoredDocument:
        """Write file to the backend selected by config.mode.

        Exactly one backend is written per call. A REMOTE configuration
        without credentials fails instead of falling back to LOCAL.
        """
        if file is None or file.content is None or not file.size_bytes or file.size_bytes <= 0:
            raise NoFileError('No file provided')

        if config.mode is StorageMode.REMOTE:
            credentials, container_id = require_remote(config)
            raise_if_cancelled(cancel_event, 'Drive upload')
            result = self.remote.upload(file, container_id, credentials, timeout=timeout, cancel_event=cancel_event)
            return RemoteDocument(external_id=result.external_id, access_url=result.access_url)

        root = self.local.root_for(config.local_root)
        raise_if_cancelled(cancel_event, 'local write')
        written = self.local.write(file, root, cancel_event=cancel_event)
        return LocalDocument(
            filename=written.filename,
            local_path=written.local_path,
            access_url=build_access_url(base_url, written.filename),
        )

    def resolve_path(self, filename: str, config: StorageConfig, recorded_path: Optional[str] = None) -> Path:
        return self.local.resolve_path(filename, config.local_root, recorded_path)

    def resolve(self, filename: str, config: StorageConfig, recorded_path: Optional[str] = None) -> bytes:
        """Bytes of a locally stored file (configured root, then default root)."""
        return self.local.resolve(filename, config.local_root, recorded_path)


def create_storage_service(default_root: str, *, drive_chunk_size_mb: Optional[int] = None,
                           drive_timeout: Optional[float] = None) -> StorageService:
    return StorageService(
        local=build_local_backend(default_root),
        remote=build_drive_backend(drive_chunk_size_mb, drive_timeout),
    )


def get_storage_service() -> StorageService:
    """The StorageService registered on the current Flask app."""
    from flask import current_app

    return current_app.extensions['document_storage']
