import base64
import mimetypes
import os
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers import mail as sg

from ..errors import DeliveryError, NotFound, StartupError


@dataclass(frozen=True)
class Attachment:
    key: str
    filename: str
    content_type: str


@dataclass(frozen=True)
class ConfirmationMessage:
    subject: str
    text: str
    html: str
    attachment: Optional[Attachment]


@dataclass(frozen=True)
class OutgoingMail:
    sender: str
    sender_name: str
    to: str
    bcc: Optional[str]
    message: ConfirmationMessage
    attachment_data: Optional[bytes] = None


def attachment_for(record):
    if not record.resume_file:
        return None
    ext = os.path.splitext(record.resume_file)[1]
    content_type = (
        record.resume_content_type
        or mimetypes.guess_type(record.resume_file)[0]
        or "application/octet-stream"
    )
    return Attachment(
        key=record.resume_file,
        filename=record.resume_original_name or f"resume{ext}",
        content_type=content_type,
    )


def compose_confirmation(record, resume_url=None):
    """Build the applicant's confirmation email. No I/O."""
    first_name = record.first_name or "Applicant"
    position = record.position or ""
    subject = f"Application received — {position or 'Application'}"

    text = (
        f"Hello {first_name},\n\n"
        f"Thank you for applying for the position of {position or 'the role'}.\n"
        f"We have received your application and will review it. "
        f"If we need more information, we will contact you at {record.email}.\n"
    )
    if resume_url:
        text += f"\nYour uploaded resume: {resume_url}\n"
    text += "\nBest regards,\nHR Team"

    email = escape(record.email or "")
    html = (
        f"<p>Hello <strong>{escape(first_name)}</strong>,</p>\n"
        f"<p>Thank you for applying for the <strong>{escape(position or 'role')}</strong>. "
        f"We have received your application and will review it. "
        f"If we need more information, we will contact you at "
        f'<a href="mailto:{email}">{email}</a>.</p>\n'
    )
    if resume_url:
        html += f'<p>Your uploaded resume: <a href="{escape(resume_url)}">Download</a></p>\n'
    html += "<p>Best regards,<br/>HR Team</p>"

    return ConfirmationMessage(subject=subject, text=text, html=html, attachment=attachment_for(record))


class SMTPTransport:
    def __init__(self, host, port, user=None, password=None, timeout=10, verify_tls=True):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout
        self.verify_tls = verify_tls

    def _connect(self):
        context = ssl.create_default_context()
        if not self.verify_tls:
            # self-signed relays
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)

    def _login(self, smtp):
        if self.user:
            smtp.login(self.user, self.password or "")

    def build_message(self, mail):
        msg = EmailMessage()
        msg["From"] = formataddr((mail.sender_name, mail.sender))
        msg["To"] = mail.to
        msg["Subject"] = mail.message.subject
        msg.set_content(mail.message.text)
        msg.add_alternative(mail.message.html, subtype="html")
        att = mail.message.attachment
        if att is not None and mail.attachment_data is not None:
            maintype, _, subtype = att.content_type.partition("/")
            msg.add_attachment(
                mail.attachment_data,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=att.filename,
            )
        return msg

    def send(self, mail):
        # Bcc stays out of the headers, envelope only
        recipients = [mail.to] + ([mail.bcc] if mail.bcc else [])
        try:
            # header values with CR/LF raise ValueError here
            msg = self.build_message(mail)
            with self._connect() as smtp:
                self._login(smtp)
                smtp.send_message(msg, to_addrs=recipients)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise DeliveryError(str(e) or e.__class__.__name__) from e

    def verify(self):
        try:
            with self._connect() as smtp:
                self._login(smtp)
                smtp.noop()
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(str(e) or e.__class__.__name__) from e


class SendGridTransport:
    def __init__(self, api_key, client=None):
        self.client = client or SendGridAPIClient(api_key=api_key)

    def build_message(self, mail):
        message = sg.Mail(
            from_email=(mail.sender, mail.sender_name),
            to_emails=mail.to,
            subject=mail.message.subject,
            plain_text_content=mail.message.text,
            html_content=mail.message.html,
        )
        if mail.bcc:
            message.add_bcc(sg.Bcc(mail.bcc))
        att = mail.message.attachment
        if att is not None and mail.attachment_data is not None:
            message.attachment = sg.Attachment(
                sg.FileContent(base64.b64encode(mail.attachment_data).decode("ascii")),
                sg.FileName(att.filename),
                sg.FileType(att.content_type),
                sg.Disposition("attachment"),
            )
        return message

    def send(self, mail):
        try:
            message = self.build_message(mail)
        except (ValueError, TypeError) as e:
            raise DeliveryError(f"could not build message: {e}") from e
        try:
            resp = self.client.send(message)
        except HTTPError as e:
            raise DeliveryError(f"SendGrid rejected the message: {getattr(e, 'body', None) or e}") from e
        except OSError as e:
            raise DeliveryError(str(e) or e.__class__.__name__) from e
        if resp.status_code >= 400:
            raise DeliveryError(f"SendGrid responded with status {resp.status_code}")

    def verify(self):
        return None


class Notifier:
    """Sends the confirmation for one stored applicant. One attempt, no retries."""

    def __init__(self, transport, artifacts, sender, sender_name="HR Team", bcc=None):
        self.transport = transport
        self.artifacts = artifacts
        self.sender = sender
        self.sender_name = sender_name
        self.bcc = bcc or None

    def send_confirmation(self, record, resume_url=None):
        to = (record.email or "").strip()
        if not to:
            raise DeliveryError("missing recipient address")

        message = compose_confirmation(record, resume_url)
        data = None
        if message.attachment is not None:
            try:
                with self.artifacts.open(message.attachment.key) as fh:
                    data = fh.read()
            except NotFound as e:
                raise DeliveryError("resume attachment is missing from storage") from e

        self.transport.send(OutgoingMail(
            sender=self.sender,
            sender_name=self.sender_name,
            to=to,
            bcc=self.bcc,
            message=message,
            attachment_data=data,
        ))
        return message


def build_transport(config):
    backend = config.get("MAIL_BACKEND", "smtp")
    if backend == "smtp":
        return SMTPTransport(
            host=config.get("MAIL_HOST"),
            port=int(config.get("MAIL_PORT", 465)),
            user=config.get("EMAIL_USER"),
            password=config.get("EMAIL_PASS"),
            timeout=config.get("MAIL_TIMEOUT", 10),
            verify_tls=config.get("MAIL_TLS_VERIFY", True),
        )
    if backend == "sendgrid":
        if not config.get("SENDGRID_API_KEY"):
            raise StartupError("MAIL_BACKEND=sendgrid requires SENDGRID_API_KEY")
        return SendGridTransport(config["SENDGRID_API_KEY"])
    raise StartupError(f"unknown MAIL_BACKEND: {backend!r}")
