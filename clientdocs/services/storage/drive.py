"""Google Drive storage backend (service account, drive.file scope)."""

from __future__ import annotations

import json
import logging
import threading
from typing import Optional

import google_auth_httplib2
import httplib2
from google.auth import exceptions as google_auth_exceptions
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from .cancellation import raise_if_cancelled
from .exceptions import BackendError
from .interfaces import InboundFile, RemoteCredentials, RemoteUploadResult

logger = logging.getLogger(__name__)

# Only files created by this app are visible to it
DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive.file']
UPLOAD_FIELDS = 'id, webViewLink'
DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

_RETRYABLE_STATUS = frozenset({408, 429})
_RATE_LIMIT_REASONS = frozenset({'rateLimitExceeded', 'userRateLimitExceeded'})


def _error_reasons(exc: HttpError) -> set:
    details = getattr(exc, 'error_details', None)
    if not isinstance(details, list):
        try:
            payload = json.loads(exc.content.decode('utf-8'))
            details = payload.get('error', {}).get('errors', [])
        except (AttributeError, ValueError):
            return set()
    if not isinstance(details, list):
        return set()
    return {d.get('reason') for d in details if isinstance(d, dict) and d.get('reason')}


def translate_http_error(exc: HttpError, container_id: str) -> BackendError:
    """Map a Drive API error onto BackendError with its retry classification."""
    status = getattr(exc.resp, 'status', None)
    try:
        status = int(status)
    except (TypeError, ValueError):
        status = None

    if status == 401:
        return BackendError('Drive rejected the service account credentials', retryable=False, status_code=status)
    if status == 404:
        return BackendError(f"Drive folder not found: {container_id}", retryable=False, status_code=status)
    if status == 403:
        if _error_reasons(exc) & _RATE_LIMIT_REASONS:
            return BackendError('Drive rate limit exceeded, try again later', retryable=True, status_code=status)
        return BackendError('Drive denied the upload (permission or quota)', retryable=False, status_code=status)
    if status is not None and (status in _RETRYABLE_STATUS or status >= 500):
        return BackendError(f"Drive temporarily unavailable (HTTP {status}), try again later", retryable=True, status_code=status)
    return BackendError(f"Drive upload failed (HTTP {status})", retryable=False, status_code=status)


class DriveStorageBackend:
    """Uploads documents into a Drive folder using a service account."""

    def __init__(self, *, chunk_size: int = DEFAULT_CHUNK_SIZE, timeout: Optional[float] = None):
        self.chunk_size = chunk_size
        self.timeout = timeout

    def _build_service(self, credentials: RemoteCredentials, timeout: Optional[float]):
        creds = service_account.Credentials.from_service_account_info(
            credentials.to_service_account_info(), scopes=DRIVE_SCOPES
        )
        http = google_auth_httplib2.AuthorizedHttp(creds, http=httplib2.Http(timeout=timeout))
        return build('drive', 'v3', http=http, cache_discovery=False)

    def upload(self, file: InboundFile, container_id: str, credentials: RemoteCredentials, *,
               timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None) -> RemoteUploadResult:
        """Stream the file into container_id and return (id, webViewLink).

        Success is only returned once Drive has answered the final chunk with
        the created file resource; an abandoned resumable session leaves no
        file behind.
        """
        timeout = timeout if timeout is not None else self.timeout
        try:
            service = self._build_service(credentials, timeout)
        except ValueError as exc:
            # Malformed private key or service-account payload
            raise BackendError(f"Invalid Drive service account credentials: {exc}", retryable=False) from exc

        media = MediaIoBaseUpload(
            file.content,
            mimetype=file.mime_type or 'application/octet-stream',
            chunksize=self.chunk_size,
            resumable=True,
        )
        request = service.files().create(
            body={'name': file.original_name, 'parents': [container_id]},
            media_body=media,
            fields=UPLOAD_FIELDS,
            supportsAllDrives=True,
        )

        response = None
        try:
            while response is None:
                raise_if_cancelled(cancel_event, 'Drive upload chunk')
                status, response = request.next_chunk()
                if status is not None:
                    logger.debug(f"Drive upload of {file.original_name!r}: {int(status.progress() * 100)}%")
        except HttpError as exc:
            error = translate_http_error(exc, container_id)
            logger.error(f"Drive upload of {file.original_name!r} failed: {error}")
            raise error from exc
        except google_auth_exceptions.RefreshError as exc:
            logger.error(f"Drive authentication failed for {credentials.client_email}: {exc}")
            raise BackendError('Drive authentication failed (bad or expired credentials)', retryable=False) from exc
        except (google_auth_exceptions.TransportError, httplib2.HttpLib2Error, OSError) as exc:
            logger.error(f"Network error uploading {file.original_name!r} to Drive: {exc}")
            raise BackendError(f"Network error talking to Drive: {exc}", retryable=True) from exc

        external_id = (response or {}).get('id')
        access_url = (response or {}).get('webViewLink')
        if not external_id or not access_url:
            raise BackendError('Drive response missing id or webViewLink', retryable=False)

        logger.info(f"Uploaded {file.original_name!r} to Drive folder {container_id} as {external_id}")
        return RemoteUploadResult(external_id=external_id, access_url=access_url)
