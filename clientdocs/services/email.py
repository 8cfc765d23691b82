"""
Notifier: e-mails a stored document to a client.

Local documents travel as an attachment read from their local path; Drive
documents travel as a link in the body. One SMTP session per message,
opened with Python's built-in smtplib.
"""

import logging
import mimetypes
import os
import smtplib
import threading
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from clientdocs.services.storage.cancellation import raise_if_cancelled
from clientdocs.services.storage.exceptions import (
    DispatchError, NotFoundError, RecipientMissingError, SmtpNotConfiguredError,
)
from clientdocs.services.storage.interfaces import (
    Contact, LocalDocument, RemoteDocument, SmtpSettings, StoredDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_FROM_ADDRESS = os.environ.get('SMTP_FROM_ADDRESS', 'noreply@localhost')
DEFAULT_FROM_NAME = os.environ.get('SMTP_FROM_NAME', '')


class _TemplateContext(dict):
    """Leaves unknown placeholders untouched."""

    def __missing__(self, key):
        return '{' + key + '}'


def render_body(body_template: str, context: dict) -> str:
    try:
        return (body_template or '').format_map(_TemplateContext(context))
    except (ValueError, IndexError, AttributeError):
        # Stray braces or positional fields: send the template as written
        return body_template or ''


def _compose(document: StoredDocument, recipient: Contact, subject: str, body_template: str,
             sender: str, attachment_name: Optional[str]) -> MIMEMultipart:
    msg = MIMEMultipart()
    msg['Subject'] = subject or ''
    msg['From'] = formataddr((DEFAULT_FROM_NAME, sender)) if DEFAULT_FROM_NAME else sender
    msg['To'] = formataddr((recipient.name or '', recipient.email))

    if isinstance(document, LocalDocument):
        name = attachment_name or document.filename
        try:
            with open(document.local_path, 'rb') as f:
                payload = f.read()
        except FileNotFoundError as exc:
            raise NotFoundError(f"Attachment not found: {document.local_path}") from exc

        body = render_body(body_template, {'name': recipient.name or '', 'document': name, 'link': name})
        msg.attach(MIMEText(body, 'plain', 'utf-8'))

        mime_type, _ = mimetypes.guess_type(name)
        maintype, subtype = (mime_type or 'application/octet-stream').split('/', 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header('Content-Disposition', 'attachment', filename=name)
        msg.attach(part)
        return msg

    if isinstance(document, RemoteDocument):
        name = attachment_name or document.external_id
        body = render_body(body_template, {'name': recipient.name or '', 'document': name, 'link': document.access_url})
        if document.access_url not in body:
            body = f"{body.rstrip()}\n\n{document.access_url}\n"
        msg.attach(MIMEText(body, 'plain', 'utf-8'))
        return msg

    raise TypeError(f"Unsupported document type: {type(document).__name__}")


def send_document(document: StoredDocument, recipient: Contact, subject: str, body_template: str,
                  smtp: SmtpSettings, *, attachment_name: Optional[str] = None,
                  timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None) -> None:
    """
    Send a stored document to a recipient.

    Preconditions are checked before any socket is opened:
    SmtpNotConfiguredError when no host is set, RecipientMissingError when
    the recipient has no e-mail. SMTP failures raise DispatchError; there is
    no retry.
    """
    if smtp is None or not smtp.is_configured:
        raise SmtpNotConfiguredError('SMTP is not configured. Cannot send email.')

    if recipient is None or not (recipient.email or '').strip():
        raise RecipientMissingError('Recipient has no e-mail address on file')

    sender = smtp.sender or DEFAULT_FROM_ADDRESS
    msg = _compose(document, recipient, subject, body_template, sender, attachment_name)

    raise_if_cancelled(cancel_event, 'SMTP connect')
    connect_kwargs = {'timeout': timeout} if timeout is not None else {}
    try:
        if smtp.secure:
            server = smtplib.SMTP_SSL(smtp.host, smtp.port, **connect_kwargs)
        else:
            server = smtplib.SMTP(smtp.host, smtp.port, **connect_kwargs)

        with server:
            if not smtp.secure:
                server.ehlo()
                if server.has_extn('starttls'):
                    server.starttls()
                    server.ehlo()
            if smtp.user:
                server.login(smtp.user, smtp.password)
            raise_if_cancelled(cancel_event, 'SMTP send')
            server.sendmail(sender, [recipient.email], msg.as_string())

    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {e}")
        raise DispatchError(f"SMTP authentication failed: {e}") from e
    except smtplib.SMTPException as e:
        logger.error(f"SMTP error sending email: {e}")
        raise DispatchError(f"SMTP error sending email: {e}") from e
    except OSError as e:
        logger.error(f"Could not reach SMTP server {smtp.host}:{smtp.port}: {e}")
        raise DispatchError(f"Could not reach SMTP server: {e}") from e

    logger.info(f"Document {document.external_id} sent to {recipient.email} ({document.backend_type.value})")
