#!/usr/bin/env python3
"""
Tests for the document notifier (clientdocs.services.email).

smtplib is mocked; assertions are made on the message handed to sendmail.
"""

import email
import os
import smtplib
import sys
import tempfile
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from clientdocs.services.email import render_body, send_document
from clientdocs.services.storage import (
    Contact, DispatchError, LocalDocument, NotFoundError, OperationCancelledError, RecipientMissingError,
    RemoteDocument, SmtpNotConfiguredError, SmtpSettings,
)

SMTP = SmtpSettings(host='smtp.example.com', port=587, user='broker@example.com', password='s3cret')
RECIPIENT = Contact(name='Maria Souza', email='maria@example.com')
DRIVE_URL = 'https://drive.google.com/file/d/1AbC/view'
TEMPLATE = 'Hello {name},\n\nHere is your document {document}: {link}\n'


def _sent_message(smtp_mock):
    server = smtp_mock.return_value
    server.sendmail.assert_called_once()
    sender, recipients, raw = server.sendmail.call_args.args
    return sender, recipients, email.message_from_string(raw)


def _attachments(message):
    return [part for part in message.walk() if part.get_content_disposition() == 'attachment']


def _body_text(message):
    for part in message.walk():
        if part.get_content_type() == 'text/plain' and part.get_content_disposition() != 'attachment':
            return part.get_payload(decode=True).decode('utf-8')
    return ''


class TestNotifier:

    def setup_method(self):
        self._tmp = tempfile.TemporaryDirectory()
        path = Path(self._tmp.name) / '1700000000000-apolice.pdf'
        path.write_bytes(b'%PDF-1.4 apolice')
        self.local_doc = LocalDocument(filename=path.name, local_path=str(path),
                                       access_url=f'http://crm.test/uploads/{path.name}')
        self.remote_doc = RemoteDocument(external_id='1AbC', access_url=DRIVE_URL)

    def teardown_method(self):
        self._tmp.cleanup()

    def test_local_document_is_attached(self):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(self.local_doc, RECIPIENT, 'Your policy', TEMPLATE, SMTP, attachment_name='apolice.pdf')

        sender, recipients, message = _sent_message(smtp_mock)
        assert sender == 'broker@example.com'
        assert recipients == ['maria@example.com']
        assert message['Subject'] == 'Your policy'

        attachments = _attachments(message)
        assert len(attachments) == 1
        assert attachments[0].get_filename() == 'apolice.pdf'
        assert attachments[0].get_payload(decode=True) == b'%PDF-1.4 apolice'

        body = _body_text(message)
        assert 'Maria Souza' in body
        assert self.local_doc.access_url not in body

    def test_image_attachment_keeps_its_type(self):
        path = Path(self._tmp.name) / '1-id.png'
        path.write_bytes(b'\x89PNG\r\n\x1a\nscan')
        scan = LocalDocument(filename=path.name, local_path=str(path), access_url=f'http://crm.test/uploads/{path.name}')
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(scan, RECIPIENT, 'Your ID', TEMPLATE, SMTP)

        _, _, message = _sent_message(smtp_mock)
        attachment, = _attachments(message)
        assert attachment.get_content_type() == 'image/png'
        assert attachment.get_filename() == '1-id.png'
        assert attachment.get_payload(decode=True) == b'\x89PNG\r\n\x1a\nscan'

    def test_unknown_extension_is_octet_stream(self):
        path = Path(self._tmp.name) / '1-notes.unknownext'
        path.write_bytes(b'raw')
        doc = LocalDocument(filename=path.name, local_path=str(path), access_url=f'http://crm.test/uploads/{path.name}')
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(doc, RECIPIENT, 'Notes', TEMPLATE, SMTP)

        _, _, message = _sent_message(smtp_mock)
        attachment, = _attachments(message)
        assert attachment.get_content_type() == 'application/octet-stream'

    def test_remote_document_is_linked(self):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(self.remote_doc, RECIPIENT, 'Your policy', TEMPLATE, SMTP)

        _, _, message = _sent_message(smtp_mock)
        assert _attachments(message) == []
        assert DRIVE_URL in _body_text(message)

    def test_remote_link_appended_when_template_has_no_placeholder(self):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(self.remote_doc, RECIPIENT, 'Policy', 'Dear {name}, see below.', SMTP)

        _, _, message = _sent_message(smtp_mock)
        body = _body_text(message)
        assert body.startswith('Dear Maria Souza, see below.')
        assert body.rstrip().endswith(DRIVE_URL)

    def test_session_uses_starttls_and_login(self):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, SMTP, timeout=7)

        smtp_mock.assert_called_once_with('smtp.example.com', 587, timeout=7)
        server = smtp_mock.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with('broker@example.com', 's3cret')

    def test_secure_uses_smtp_ssl(self):
        secure = SmtpSettings(host='smtp.example.com', port=465, secure=True, user='broker@example.com',
                              password='s3cret', from_address='docs@example.com')
        with patch('clientdocs.services.email.smtplib.SMTP_SSL') as ssl_mock, \
                patch('clientdocs.services.email.smtplib.SMTP') as plain_mock:
            send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, secure)

        plain_mock.assert_not_called()
        ssl_mock.assert_called_once_with('smtp.example.com', 465)
        ssl_mock.return_value.starttls.assert_not_called()
        sender, _, _ = _sent_message(ssl_mock)
        assert sender == 'docs@example.com'

    def test_no_login_without_user(self):
        anonymous = SmtpSettings(host='relay.internal', port=25, from_address='docs@example.com')
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, anonymous)
        smtp_mock.return_value.login.assert_not_called()

    @pytest.mark.parametrize('host', ['', '   '])
    def test_unconfigured_smtp_fails_before_any_socket(self, host):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock, \
                patch('clientdocs.services.email.smtplib.SMTP_SSL') as ssl_mock, \
                patch('socket.create_connection') as connect:
            with pytest.raises(SmtpNotConfiguredError):
                send_document(self.local_doc, RECIPIENT, 'Policy', TEMPLATE, SmtpSettings(host=host))
        smtp_mock.assert_not_called()
        ssl_mock.assert_not_called()
        connect.assert_not_called()

    @pytest.mark.parametrize('recipient', [Contact(name='No Mail'), Contact(name='Blank', email='  '), None])
    def test_recipient_without_email(self, recipient):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            with pytest.raises(RecipientMissingError):
                send_document(self.remote_doc, recipient, 'Policy', TEMPLATE, SMTP)
        smtp_mock.assert_not_called()

    def test_missing_attachment_fails_before_connecting(self):
        gone = LocalDocument(filename='1-gone.pdf', local_path=str(Path(self._tmp.name) / '1-gone.pdf'),
                             access_url='http://crm.test/uploads/1-gone.pdf')
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            with pytest.raises(NotFoundError):
                send_document(gone, RECIPIENT, 'Policy', TEMPLATE, SMTP)
        smtp_mock.assert_not_called()

    def test_auth_rejected_is_dispatch_error(self):
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            smtp_mock.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b'bad credentials')
            with pytest.raises(DispatchError):
                send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, SMTP)
        smtp_mock.return_value.sendmail.assert_not_called()

    def test_connection_refused_is_dispatch_error(self):
        with patch('clientdocs.services.email.smtplib.SMTP', side_effect=ConnectionRefusedError(111, 'refused')):
            with pytest.raises(DispatchError):
                send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, SMTP)

    def test_cancelled_before_connect(self):
        cancel = threading.Event()
        cancel.set()
        with patch('clientdocs.services.email.smtplib.SMTP') as smtp_mock:
            with pytest.raises(OperationCancelledError):
                send_document(self.remote_doc, RECIPIENT, 'Policy', TEMPLATE, SMTP, cancel_event=cancel)
        smtp_mock.assert_not_called()


class TestRenderBody:

    def test_placeholders(self):
        assert render_body('Hi {name}: {link}', {'name': 'Ana', 'link': 'x'}) == 'Hi Ana: x'

    def test_unknown_placeholder_kept(self):
        assert render_body('Hi {name}, policy {policy_number}', {'name': 'Ana'}) == 'Hi Ana, policy {policy_number}'

    def test_stray_braces_returned_verbatim(self):
        assert render_body('Total: {', {'name': 'Ana'}) == 'Total: {'

    def test_empty_template(self):
        assert render_body(None, {}) == ''
