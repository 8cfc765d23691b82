"""Storage configuration, inbound file and stored document dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Dict, Optional, Union


class StorageMode(str, Enum):
    LOCAL = 'LOCAL'
    REMOTE = 'REMOTE'


BackendType = StorageMode


@dataclass(frozen=True)
class RemoteCredentials:
    """Service-account payload for the remote backend."""

    client_email: str
    private_key: str
    extra: Dict[str, Any] = field(default_factory=dict)  # token_uri, project_id, ...

    @classmethod
    def from_payload(cls, payload: Optional[dict]) -> Optional['RemoteCredentials']:
        if not payload or not isinstance(payload, dict):
            return None
        extra = {k: v for k, v in payload.items() if k not in ('client_email', 'private_key')}
        return cls(
            client_email=str(payload.get('client_email') or '').strip(),
            private_key=str(payload.get('private_key') or ''),
            extra=extra,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.client_email and self.private_key.strip())

    def to_service_account_info(self) -> dict:
        info = dict(self.extra)
        info['client_email'] = self.client_email
        info['private_key'] = self.private_key
        info.setdefault('token_uri', 'https://oauth2.googleapis.com/token')
        return info


@dataclass(frozen=True)
class SmtpSettings:
    host: str = ''
    port: int = 587
    secure: bool = False  # implicit TLS (SMTPS); otherwise STARTTLS when offered
    user: str = ''
    password: str = ''
    from_address: str = ''

    @property
    def is_configured(self) -> bool:
        return bool((self.host or '').strip())

    @property
    def sender(self) -> str:
        return self.from_address or self.user


@dataclass(frozen=True)
class StorageConfig:
    """Snapshot of the storage configuration for a single operation."""

    mode: StorageMode = StorageMode.LOCAL
    local_root: Optional[str] = None
    remote_credentials: Optional[RemoteCredentials] = None
    remote_container_id: Optional[str] = None
    smtp: SmtpSettings = field(default_factory=SmtpSettings)


@dataclass
class InboundFile:
    """A file received in one store request."""

    original_name: str
    mime_type: Optional[str]
    size_bytes: int
    content: BinaryIO


@dataclass(frozen=True)
class LocalDocument:
    """Document written under a local root."""

    filename: str
    local_path: str
    access_url: str

    @property
    def backend_type(self) -> StorageMode:
        return StorageMode.LOCAL

    @property
    def external_id(self) -> str:
        return self.filename


@dataclass(frozen=True)
class RemoteDocument:
    """Document uploaded to the remote provider. Never has a local path."""

    external_id: str
    access_url: str

    @property
    def backend_type(self) -> StorageMode:
        return StorageMode.REMOTE


StoredDocument = Union[LocalDocument, RemoteDocument]


@dataclass(frozen=True)
class LocalWriteResult:
    filename: str
    local_path: str


@dataclass(frozen=True)
class RemoteUploadResult:
    external_id: str
    access_url: str


@dataclass(frozen=True)
class Contact:
    """Notification recipient."""

    name: Optional[str] = None
    email: Optional[str] = None
