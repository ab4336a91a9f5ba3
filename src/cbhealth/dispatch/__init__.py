"""Report delivery for cbhealth."""

from .mailer import (
    DeliveryError,
    DeliveryResult,
    Dispatcher,
    SendmailTransport,
    SmtpTransport,
    build_message,
    transport_from_config,
)
from .period import classify_period, current_period, select_recipients

__all__ = [
    "Dispatcher",
    "DeliveryResult",
    "DeliveryError",
    "SendmailTransport",
    "SmtpTransport",
    "build_message",
    "transport_from_config",
    "classify_period",
    "current_period",
    "select_recipients",
]
