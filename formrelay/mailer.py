import html
import logging
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import aiosmtplib

from .errors import NotificationError

logger = logging.getLogger(__name__)

SUBJECT = "New Website Lead!"
VERIFY_TIMEOUT = 10


@dataclass(frozen=True)
class Notification:
    subject: str
    html: str


def build_notification(submission) -> Notification:
    """Render a submission as the lead notification email.

    Every user supplied value is HTML escaped before it is embedded.
    """
    def esc(value) -> str:
        return html.escape(str(value), quote=True)

    body = f"""
<h2>New Lead From Website</h2>
<p><strong>Name:</strong> {esc(submission.name)}</p>
<p><strong>Email:</strong> {esc(submission.email)}</p>
<p><strong>Phone:</strong> {esc(submission.phone or "Not provided")}</p>
<p><strong>Service:</strong> {esc(submission.service)}</p>
<p><strong>Message:</strong> {esc(submission.message)}</p>
"""
    return Notification(subject=SUBJECT, html=body)


class Mailer:
    """SMTP transport for lead notifications, configured once at startup."""

    def __init__(
        self,
        host: str,
        port: int,
        use_tls: bool,
        username: str,
        password: str,
        sender_name: str,
        recipient: str,
    ):
        self.host = host
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.sender_name = sender_name
        self.recipient = recipient

    def build_message(self, notification: Notification) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.sender_name, self.username))
        msg["To"] = self.recipient
        msg["Subject"] = notification.subject
        msg.attach(MIMEText(notification.html, "html", "utf-8"))
        return msg

    async def verify(self) -> bool:
        """Connect and log in once. Failure is only a warning."""
        smtp = aiosmtplib.SMTP(
            hostname=self.host, port=self.port, use_tls=self.use_tls, timeout=VERIFY_TIMEOUT
        )
        try:
            await smtp.connect()
            await smtp.login(self.username, self.password)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("SMTP verification failed for %s:%s: %s", self.host, self.port, e)
            return False
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except (aiosmtplib.SMTPException, OSError):
                    smtp.close()
        logger.info("SMTP ready (%s:%s)", self.host, self.port)
        return True

    async def send(self, notification: Notification) -> None:
        msg = self.build_message(notification)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                use_tls=self.use_tls,
                username=self.username,
                password=self.password,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise NotificationError(str(e) or e.__class__.__name__) from e
        logger.info("Notification email sent to %s", self.recipient)
