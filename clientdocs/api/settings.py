"""
Storage, Drive and SMTP configuration endpoints.
"""

import json

from flask import Blueprint, current_app, jsonify, request

from clientdocs.database import db
from clientdocs.models import SystemSetting
from clientdocs.services.storage import ConfigurationError, load_storage_config, parse_mode
from clientdocs.services.storage import factory as keys

settings_bp = Blueprint('settings', __name__)


def _redacted_config():
    config = load_storage_config()
    credentials = config.remote_credentials
    return {
        'mode': config.mode.value,
        'local_root': config.local_root,
        'default_root': current_app.config.get('DEFAULT_UPLOAD_ROOT'),
        'drive': {
            'folder_id': config.remote_container_id,
            'client_email': credentials.client_email if credentials else None,
            'has_private_key': bool(credentials and credentials.private_key),
        },
        'smtp': {
            'host': config.smtp.host,
            'port': config.smtp.port,
            'secure': config.smtp.secure,
            'user': config.smtp.user,
            'has_password': bool(config.smtp.password),
            'from_address': config.smtp.from_address,
        },
    }


@settings_bp.route('/config/storage', methods=['GET'])
def get_storage_settings():
    return jsonify(_redacted_config())


@settings_bp.route('/config/storage', methods=['POST'])
def update_storage_settings():
    """Update storage mode, local root and SMTP settings."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON'}), 400

    if 'mode' in data:
        try:
            mode = parse_mode(data['mode'])
        except ConfigurationError as e:
            return jsonify({'error': str(e)}), 400
        SystemSetting.set_setting(keys.STORAGE_MODE_KEY, mode.value, 'Active storage backend', commit=False)

    if 'localRoot' in data:
        local_root = (data.get('localRoot') or '').strip() or None
        SystemSetting.set_setting(keys.LOCAL_ROOT_KEY, local_root, 'Local storage root override', commit=False)

    smtp = data.get('smtp')
    if isinstance(smtp, dict):
        if 'port' in smtp:
            try:
                port = int(smtp['port'])
            except (TypeError, ValueError):
                return jsonify({'error': 'SMTP port must be an integer'}), 400
            SystemSetting.set_setting(keys.SMTP_PORT_KEY, port, setting_type='integer', commit=False)
        if 'secure' in smtp:
            SystemSetting.set_setting(keys.SMTP_SECURE_KEY, bool(smtp['secure']), setting_type='boolean', commit=False)
        for field, key in (('host', keys.SMTP_HOST_KEY), ('user', keys.SMTP_USER_KEY),
                           ('password', keys.SMTP_PASSWORD_KEY), ('from', keys.SMTP_FROM_KEY)):
            if field in smtp:
                SystemSetting.set_setting(key, smtp[field] or '', commit=False)

    db.session.commit()
    current_app.logger.info('Storage configuration updated')
    return jsonify(_redacted_config())


@settings_bp.route('/config/drive', methods=['POST'])
def update_drive_settings():
    """Store the Drive folder id and service-account JSON."""
    data = request.get_json(silent=True) or {}
    folder_id = (data.get('folderId') or '').strip()
    raw_credentials = data.get('credentialsJson')

    try:
        credentials = json.loads(raw_credentials) if isinstance(raw_credentials, str) else raw_credentials
    except ValueError:
        return jsonify({'error': 'Invalid JSON'}), 400
    if not isinstance(credentials, dict):
        return jsonify({'error': 'Invalid JSON'}), 400

    SystemSetting.set_setting(keys.DRIVE_FOLDER_KEY, folder_id, 'Drive folder for uploads', commit=False)
    SystemSetting.set_setting(keys.DRIVE_CREDENTIALS_KEY, credentials, 'Drive service account',
                              setting_type='json', commit=False)
    db.session.commit()

    current_app.logger.info(f"Drive configuration updated for {credentials.get('client_email')}")
    return jsonify({'ok': True})
