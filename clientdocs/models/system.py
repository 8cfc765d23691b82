"""
SystemSetting model for runtime configuration.

Storage mode, Drive credentials and SMTP settings are kept here so an
operator can change them without restarting the service. Values are read
on every request; nothing is cached.
"""

import json
import logging
from datetime import datetime
from clientdocs.database import db

logger = logging.getLogger(__name__)


class SystemSetting(db.Model):
    """Stores system-wide configuration settings."""

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)
    setting_type = db.Column(db.String(50), nullable=False, default='string')  # string, integer, boolean, json
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        """Convert model to dictionary representation."""
        return {
            'id': self.id,
            'key': self.key,
            'value': self.value,
            'description': self.description,
            'setting_type': self.setting_type,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }

    @staticmethod
    def get_setting(key, default_value=None):
        """Get a system setting value by key, with optional default."""
        setting = SystemSetting.query.filter_by(key=key).first()
        if not setting or setting.value is None:
            return default_value

        if setting.setting_type == 'integer':
            try:
                return int(setting.value)
            except (ValueError, TypeError):
                return default_value
        if setting.setting_type == 'boolean':
            return setting.value.lower() in ('true', '1', 'yes')
        if setting.setting_type == 'json':
            try:
                return json.loads(setting.value)
            except ValueError:
                logger.error(f"Setting '{key}' holds invalid JSON; ignoring stored value")
                return default_value
        return setting.value

    @staticmethod
    def set_setting(key, value, description=None, setting_type='string', commit=True):
        """Set a system setting value."""
        if value is None:
            stored = None
        elif setting_type == 'json':
            stored = json.dumps(value)
        elif setting_type == 'boolean':
            stored = 'true' if value else 'false'
        else:
            stored = str(value)

        setting = SystemSetting.query.filter_by(key=key).first()
        if setting:
            setting.value = stored
            setting.updated_at = datetime.utcnow()
            if description:
                setting.description = description
            if setting_type:
                setting.setting_type = setting_type
        else:
            setting = SystemSetting(
                key=key,
                value=stored,
                description=description,
                setting_type=setting_type
            )
            db.session.add(setting)
        if commit:
            db.session.commit()
        return setting
