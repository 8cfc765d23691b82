"""
Process configuration from the environment.

Operator-mutable storage settings (mode, roots, Drive, SMTP) live in the
SystemSetting table; the values here are process-wide and fixed at startup.
"""

import os

from dotenv import load_dotenv

load_dotenv()

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI', 'sqlite:////data/instance/clientdocs.db')
SECRET_KEY = os.environ.get('SECRET_KEY', 'default-dev-key-change-in-production')

# Fixed fallback root for local storage
DEFAULT_UPLOAD_ROOT = os.environ.get('DEFAULT_UPLOAD_ROOT', '/data/uploads')
MAX_CONTENT_LENGTH_MB = int(os.environ.get('MAX_CONTENT_LENGTH_MB', '50'))

# Caller-side deadlines for blocking I/O
SMTP_TIMEOUT_SECONDS = float(os.environ.get('SMTP_TIMEOUT_SECONDS', '30'))
DRIVE_TIMEOUT_SECONDS = float(os.environ.get('DRIVE_TIMEOUT_SECONDS', '60'))
DRIVE_CHUNK_SIZE_MB = int(os.environ.get('DRIVE_CHUNK_SIZE_MB', '5'))

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


def as_flask_config():
    """Flask config mapping with the environment defaults."""
    return {
        'SQLALCHEMY_DATABASE_URI': SQLALCHEMY_DATABASE_URI,
        'SECRET_KEY': SECRET_KEY,
        'DEFAULT_UPLOAD_ROOT': DEFAULT_UPLOAD_ROOT,
        'MAX_CONTENT_LENGTH': MAX_CONTENT_LENGTH_MB * 1024 * 1024,
        'SMTP_TIMEOUT_SECONDS': SMTP_TIMEOUT_SECONDS,
        'DRIVE_TIMEOUT_SECONDS': DRIVE_TIMEOUT_SECONDS,
        'DRIVE_CHUNK_SIZE_MB': DRIVE_CHUNK_SIZE_MB,
    }
