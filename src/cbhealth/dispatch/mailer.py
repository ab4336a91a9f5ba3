"""Report delivery by email.

Each recipient set gets its own ``text/html`` message.  A delivery is one
synchronous attempt; a failure is recorded in its :class:`DeliveryResult`
and the remaining sets are still attempted.
"""

from __future__ import annotations

import logging
import shlex
import smtplib
import subprocess
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from cbhealth.config import MailConfig, MailTransportType, RecipientSet

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when a message cannot be handed to the mail system."""

    pass


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class SendmailTransport:
    """Pipes messages into a local ``sendmail -t -oi``."""

    def __init__(self, command: str = "sendmail", timeout: float = 60.0):
        self.argv = shlex.split(command) + ["-t", "-oi"]
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        try:
            payload = message.as_bytes()
        except (ValueError, UnicodeError) as e:
            raise DeliveryError(f"message cannot be serialised: {e}") from e

        try:
            result = subprocess.run(
                self.argv,
                input=payload,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DeliveryError(f"{self.argv[0]} failed: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise DeliveryError(f"{self.argv[0]} exited {result.returncode}: {stderr[:200]}")


class SmtpTransport:
    """Sends messages through an SMTP relay."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 25,
        timeout: float = 30.0,
        username: str = "",
        password: str = "",
        starttls: bool = False,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.username = username
        self.password = password
        self.starttls = starttls

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.starttls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (OSError, smtplib.SMTPException) as e:
            raise DeliveryError(f"SMTP delivery via {self.host}:{self.port} failed: {e}") from e


def transport_from_config(mail: MailConfig) -> MailTransport:
    if mail.transport == MailTransportType.SMTP:
        return SmtpTransport(
            host=mail.smtp_host,
            port=mail.smtp_port,
            timeout=mail.smtp_timeout,
            username=mail.smtp_username,
            password=mail.smtp_password,
            starttls=mail.smtp_starttls,
        )
    return SendmailTransport(mail.sendmail_command)


def build_message(
    document: str,
    recipients: RecipientSet,
    sender: str,
    subject: str,
) -> EmailMessage:
    """Build the HTML message for one recipient set."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(recipients.to)
    if recipients.cc:
        msg["Cc"] = ", ".join(recipients.cc)
    msg["Subject"] = subject
    msg.set_content(document, subtype="html", charset="utf-8")
    return msg


@dataclass
class DeliveryResult:
    """Outcome of one delivery."""

    recipient_set: str
    success: bool
    error: str | None = None


class Dispatcher:
    """Delivers a rendered report to recipient sets.

    Args:
        transport: Object with a ``send(EmailMessage)`` method.
        sender: ``From`` address.
        subject: Subject template; ``{date}`` is replaced by the run date.
    """

    def __init__(self, transport: MailTransport, sender: str, subject: str):
        self.transport = transport
        self.sender = sender
        self.subject = subject

    @classmethod
    def from_config(cls, mail: MailConfig) -> Dispatcher:
        return cls(transport_from_config(mail), mail.sender, mail.subject)

    def deliver(self, document: str, recipients: RecipientSet, date: str) -> DeliveryResult:
        """Send *document* to one recipient set; never raises."""
        if not recipients.to:
            logger.error("No recipients configured for '%s'", recipients.name)
            return DeliveryResult(recipients.name, False, "no recipients configured")

        try:
            msg = build_message(document, recipients, self.sender, self.subject.format(date=date))
            self.transport.send(msg)
        except (DeliveryError, ValueError, UnicodeError) as e:
            logger.error("Failed to send '%s' mail: %s", recipients.name, e)
            return DeliveryResult(recipients.name, False, str(e))

        logger.info("'%s' email sent to %s", recipients.name, msg["To"])
        return DeliveryResult(recipients.name, True)

    def dispatch(
        self,
        document: str,
        recipient_sets: list[RecipientSet],
        date: str,
    ) -> list[DeliveryResult]:
        """Deliver to every set in order, continuing past failures."""
        return [self.deliver(document, rs, date) for rs in recipient_sets]
