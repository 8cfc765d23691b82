"""Configuration provider and backend builders for document storage."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .drive import DEFAULT_CHUNK_SIZE, DriveStorageBackend
from .exceptions import ConfigurationError
from .interfaces import RemoteCredentials, SmtpSettings, StorageConfig, StorageMode
from .local import LocalStorageBackend

logger = logging.getLogger(__name__)

# SystemSetting keys holding the runtime configuration record
STORAGE_MODE_KEY = 'storage_mode'
LOCAL_ROOT_KEY = 'storage_local_root'
DRIVE_CREDENTIALS_KEY = 'drive_credentials'
DRIVE_FOLDER_KEY = 'drive_folder_id'
SMTP_HOST_KEY = 'smtp_host'
SMTP_PORT_KEY = 'smtp_port'
SMTP_SECURE_KEY = 'smtp_secure'
SMTP_USER_KEY = 'smtp_user'
SMTP_PASSWORD_KEY = 'smtp_password'
SMTP_FROM_KEY = 'smtp_from_address'


def parse_mode(value: Optional[str]) -> StorageMode:
    """Accept LOCAL/REMOTE; DRIVE is kept as an alias for REMOTE."""
    raw = (value or 'LOCAL').strip().upper()
    if raw == 'DRIVE':
        return StorageMode.REMOTE
    try:
        return StorageMode(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown storage mode: {value!r}") from exc


def load_storage_config() -> StorageConfig:
    """Read the configuration record from the database.

    Called once per operation and never cached, so a change made by an
    operator applies to the very next request. Requires an app context.
    """
    from clientdocs.models import SystemSetting

    smtp = SmtpSettings(
        host=(SystemSetting.get_setting(SMTP_HOST_KEY, '') or '').strip(),
        port=int(SystemSetting.get_setting(SMTP_PORT_KEY, 587) or 587),
        secure=bool(SystemSetting.get_setting(SMTP_SECURE_KEY, False)),
        user=SystemSetting.get_setting(SMTP_USER_KEY, '') or '',
        password=SystemSetting.get_setting(SMTP_PASSWORD_KEY, '') or '',
        from_address=SystemSetting.get_setting(SMTP_FROM_KEY, '') or '',
    )
    return StorageConfig(
        mode=parse_mode(SystemSetting.get_setting(STORAGE_MODE_KEY, 'LOCAL')),
        local_root=SystemSetting.get_setting(LOCAL_ROOT_KEY),
        remote_credentials=RemoteCredentials.from_payload(SystemSetting.get_setting(DRIVE_CREDENTIALS_KEY)),
        remote_container_id=(SystemSetting.get_setting(DRIVE_FOLDER_KEY, '') or '').strip() or None,
        smtp=smtp,
    )


def require_remote(config: StorageConfig) -> Tuple[RemoteCredentials, str]:
    """Credentials and folder for REMOTE mode, or ConfigurationError."""
    credentials = config.remote_credentials
    if credentials is None or not credentials.is_complete:
        raise ConfigurationError('Remote storage selected but service account credentials are missing')
    if not config.remote_container_id:
        raise ConfigurationError('Remote storage selected but no Drive folder id is configured')
    return credentials, config.remote_container_id


def build_local_backend(default_root: str) -> LocalStorageBackend:
    return LocalStorageBackend(default_root)


def build_drive_backend(chunk_size_mb: Optional[int] = None, timeout: Optional[float] = None) -> DriveStorageBackend:
    chunk_size = int(chunk_size_mb) * 1024 * 1024 if chunk_size_mb else DEFAULT_CHUNK_SIZE
    return DriveStorageBackend(chunk_size=chunk_size, timeout=timeout)
