"""
Database models package for the client document service.

- System configuration (storage backend, Drive credentials, SMTP)
- Stored client documents
"""

from clientdocs.database import db

from .system import SystemSetting
from .document import Document

__all__ = [
    'db',
    'SystemSetting',
    'Document',
]
