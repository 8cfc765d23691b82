"""
Client document upload, retrieval and e-mail dispatch.
"""

import mimetypes
import os

from flask import Blueprint, current_app, jsonify, request, send_file

from clientdocs.database import db
from clientdocs.models import Document
from clientdocs.services.email import send_document
from clientdocs.services.storage import Contact, InboundFile, get_storage_service, load_storage_config

documents_bp = Blueprint('documents', __name__)

DEFAULT_SUBJECT = 'Your document'
DEFAULT_BODY = 'Hello {name},\n\nPlease find your document {document}: {link}\n'


def _inbound_file_from_request():
    """The single `file` field of the multipart request, or None."""
    file = request.files.get('file')
    if file is None or not file.filename:
        return None

    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)

    mime_type = file.mimetype or mimetypes.guess_type(file.filename)[0] or 'application/octet-stream'
    return InboundFile(original_name=file.filename, mime_type=mime_type, size_bytes=size, content=stream)


def _form_value(name):
    value = request.form.get(name)
    return value if value not in (None, '') else None


# --- Routes ---

@documents_bp.route('/documents', methods=['POST'])
def upload_document():
    """Store the uploaded file and record it against the client."""
    inbound = _inbound_file_from_request()
    config = load_storage_config()

    stored = get_storage_service().store(
        inbound,
        config,
        request.host_url,
        timeout=current_app.config.get('DRIVE_TIMEOUT_SECONDS'),
    )

    document = Document.from_stored(
        stored,
        client_id=_form_value('client_id'),
        display_name=_form_value('display_name') or inbound.original_name,
        category=_form_value('category'),
        original_name=inbound.original_name,
        mime_type=inbound.mime_type,
        size_bytes=inbound.size_bytes,
    )
    db.session.add(document)
    db.session.commit()

    current_app.logger.info(f"Document {document.id} stored ({document.backend_type}) for client {document.client_id}")
    return jsonify(document.to_dict()), 201


@documents_bp.route('/documents/<int:document_id>', methods=['GET'])
def get_document(document_id):
    document = db.session.get(Document, document_id)
    if document is None:
        return jsonify({'error': 'Document not found'}), 404
    return jsonify(document.to_dict())


@documents_bp.route('/uploads/<filename>', methods=['GET'])
def download_file(filename):
    """Serve a locally stored file from the configured root or the default root."""
    record = Document.query.filter_by(backend_type='LOCAL', external_id=filename).first()
    recorded_path = record.local_path if record else None
    path = get_storage_service().resolve_path(filename, load_storage_config(), recorded_path)
    mime_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
    return send_file(path, mimetype=mime_type, download_name=filename)


@documents_bp.route('/documents/<int:document_id>/send', methods=['POST'])
def send_document_email(document_id):
    """E-mail a stored document: attachment for local files, link for Drive."""
    document = db.session.get(Document, document_id)
    if document is None:
        return jsonify({'error': 'Document not found'}), 404

    data = request.get_json(silent=True) or {}
    try:
        stored = document.to_stored()
    except ValueError as e:
        current_app.logger.error(f"Inconsistent document record: {e}")
        return jsonify({'error': 'Document record is inconsistent'}), 500

    config = load_storage_config()
    recipient = Contact(name=data.get('name'), email=(data.get('email') or '').strip() or None)
    send_document(
        stored,
        recipient,
        data.get('subject') or DEFAULT_SUBJECT,
        data.get('body') or DEFAULT_BODY,
        config.smtp,
        attachment_name=document.original_name,
        timeout=current_app.config.get('SMTP_TIMEOUT_SECONDS'),
    )
    return jsonify({'success': True, 'document_id': document.id, 'backend_type': document.backend_type})
