"""
Document database model.

A Document row is the persisted form of a StoredDocument plus the free-form
metadata (display name, category, owning client) sent with the upload.
"""

from datetime import datetime
from clientdocs.database import db
from clientdocs.services.storage.interfaces import (
    BackendType, LocalDocument, RemoteDocument, StoredDocument,
)


class Document(db.Model):
    """A client document stored on the local disk or in Google Drive."""

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=True, index=True)  # id from the CRM client table, passed through
    display_name = db.Column(db.String(300), nullable=True)
    category = db.Column(db.String(100), nullable=True)  # policy, id, inspection, ...
    original_name = db.Column(db.String(500), nullable=True)
    mime_type = db.Column(db.String(100), nullable=True)
    size_bytes = db.Column(db.Integer)

    backend_type = db.Column(db.String(20), nullable=False)  # LOCAL | REMOTE
    external_id = db.Column(db.String(500), nullable=True)
    access_url = db.Column(db.String(1000), nullable=False)
    local_path = db.Column(db.String(1000), nullable=True)  # only for LOCAL

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def from_stored(cls, stored: StoredDocument, **metadata) -> 'Document':
        """Build a new row from a store result and the upload metadata."""
        return cls(
            backend_type=stored.backend_type.value,
            external_id=stored.external_id,
            access_url=stored.access_url,
            local_path=getattr(stored, 'local_path', None),
            **metadata
        )

    def to_stored(self) -> StoredDocument:
        """Rebuild the StoredDocument this row was created from.

        Raises ValueError when the row contradicts the backend invariant,
        e.g. a REMOTE row carrying a local path.
        """
        backend = BackendType(self.backend_type)
        if backend is BackendType.LOCAL:
            if not self.local_path:
                raise ValueError(f"Document {self.id} is LOCAL but has no local path")
            return LocalDocument(
                filename=self.external_id or self.local_path.replace('\\', '/').rsplit('/', 1)[-1],
                local_path=self.local_path,
                access_url=self.access_url,
            )
        if self.local_path:
            raise ValueError(f"Document {self.id} is REMOTE but carries a local path")
        if not self.external_id:
            raise ValueError(f"Document {self.id} is REMOTE but has no external id")
        return RemoteDocument(external_id=self.external_id, access_url=self.access_url)

    def to_dict(self):
        return {
            'id': self.id,
            'client_id': self.client_id,
            'display_name': self.display_name,
            'category': self.category,
            'original_name': self.original_name,
            'mime_type': self.mime_type,
            'size_bytes': self.size_bytes,
            'backend_type': self.backend_type,
            'external_id': self.external_id,
            'access_url': self.access_url,
            'local_path': self.local_path,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
