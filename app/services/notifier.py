"""
Booking notifications
Sends the admin copy of every stored booking (with the uploaded PDF, if any)
and a confirmation to the client when the submission carries a contact email.
The admin copy is the operational record: if it fails the whole notification
fails, a failed client confirmation is only reported.
"""
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import parseaddr
from typing import Any, Dict, NamedTuple, Optional

from starlette.concurrency import run_in_threadpool

from app.config.settings import Settings
from app.models.booking import Attachment
from app.services.email_renderer import Audience, render
from app.services.field_classifier import CONTACT_EMAIL_KEY, is_blank
from app.utils.errors import NotificationError

logger = logging.getLogger(__name__)


class NotificationResult(NamedTuple):
    admin_sent: bool
    client_sent: bool
    client_error: Optional[str] = None


class SmtpTransport:
    """Blocking SMTP delivery using the configured host and credentials"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, message: EmailMessage) -> None:
        s = self.settings
        if not s.SMTP_HOST:
            raise NotificationError("SMTP_HOST is not configured")
        try:
            if s.SMTP_SECURE:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT, context=context) as server:
                    self._deliver(server, message)
            else:
                with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT) as server:
                    server.ehlo()
                    if server.has_extn("starttls"):
                        server.starttls(context=ssl.create_default_context())
                        server.ehlo()
                    self._deliver(server, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery to {message['To']} failed: {exc}") from exc

    def _deliver(self, server: smtplib.SMTP, message: EmailMessage) -> None:
        if self.settings.SMTP_USER and self.settings.SMTP_PASS:
            server.login(self.settings.SMTP_USER, self.settings.SMTP_PASS)
        server.send_message(message)


def clean_address(value: Any) -> Optional[str]:
    """
    A single bare address usable in a header, or None.

    Lists yield their first non-blank item; values carrying CR/LF or
    more than one address are refused.
    """
    if isinstance(value, (list, tuple)):
        value = next((item for item in value if not is_blank(item)), None)
    if not isinstance(value, str) or is_blank(value):
        return None
    value = value.strip()
    if "\r" in value or "\n" in value or "," in value:
        return None
    _, address = parseaddr(value)
    if not address or "@" not in address or " " in address:
        return None
    return address


class Notifier:
    def __init__(self, settings: Settings, transport=None):
        self.settings = settings
        self.transport = transport or SmtpTransport(settings)

    def build_admin_message(self, record: Dict[str, Any], attachment: Optional[Attachment] = None) -> EmailMessage:
        reply_to = clean_address(record.get(CONTACT_EMAIL_KEY)) or self.settings.MAIL_FROM
        message = self._build_message(
            to=self.settings.ADMIN_EMAIL,
            subject=self.settings.ADMIN_SUBJECT,
            record=record,
            audience=Audience.ADMIN,
        )
        message["Reply-To"] = reply_to
        if attachment is not None:
            maintype, _, subtype = attachment.content_type.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return message

    def build_client_message(self, record: Dict[str, Any], address: str) -> EmailMessage:
        return self._build_message(
            to=address,
            subject=self.settings.CLIENT_SUBJECT,
            record=record,
            audience=Audience.CLIENT,
        )

    def _build_message(self, to: str, subject: str, record: Dict[str, Any], audience: Audience) -> EmailMessage:
        body = render(record, audience)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.settings.MAIL_FROM
        message["To"] = to
        message.set_content(body.text)
        message.add_alternative(body.html, subtype="html")
        return message

    async def _send(self, message: EmailMessage) -> None:
        try:
            await run_in_threadpool(self.transport.send, message)
        except NotificationError:
            raise
        except Exception as exc:
            raise NotificationError(f"Sending to {message['To']} failed: {exc}") from exc

    async def notify(self, record: Dict[str, Any], attachment: Optional[Attachment] = None) -> NotificationResult:
        """
        Send the admin email, then the client confirmation.

        Raises NotificationError when the admin email cannot be built or
        sent; the client email is not attempted in that case.
        """
        if not self.settings.ADMIN_EMAIL:
            raise NotificationError("ADMIN_EMAIL is not configured")

        try:
            admin_message = self.build_admin_message(record, attachment)
        except (ValueError, TypeError) as exc:
            raise NotificationError(f"Could not build admin email: {exc}") from exc
        await self._send(admin_message)
        logger.info("📧 Admin notification sent for booking %s", record.get("_id"))

        client_email = record.get(CONTACT_EMAIL_KEY)
        if is_blank(client_email):
            return NotificationResult(admin_sent=True, client_sent=False)

        address = clean_address(client_email)
        if address is None:
            logger.warning("⚠️ Booking %s has an unusable contact email, no confirmation sent", record.get("_id"))
            return NotificationResult(admin_sent=True, client_sent=False, client_error="Invalid contact email")

        try:
            await self._send(self.build_client_message(record, address))
        except (ValueError, TypeError, NotificationError) as exc:
            logger.warning("⚠️ Client confirmation for booking %s failed: %s", record.get("_id"), exc)
            return NotificationResult(admin_sent=True, client_sent=False, client_error=str(exc))

        logger.info("📧 Client confirmation sent to %s", address)
        return NotificationResult(admin_sent=True, client_sent=True)
