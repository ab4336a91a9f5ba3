"""Period classification and recipient selection."""

from __future__ import annotations

from datetime import datetime

from cbhealth.config import MailConfig, Period, RecipientSet

# Local hours [start, end) that count as the EST morning run
EST_WINDOW = (7, 16)


def classify_period(hour: int) -> Period:
    """Classify a local clock hour (0-23).

    Hours in ``[7, 16)`` are the EST morning; everything else is the IST
    morning.  This reads the host's clock, it is not timezone arithmetic.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be within 0-23, got {hour}")
    start, end = EST_WINDOW
    if start <= hour < end:
        return Period.EST_MORNING
    return Period.IST_MORNING


def current_period(now: datetime | None = None) -> Period:
    """Classify the current local time (or *now*)."""
    now = now or datetime.now()
    return classify_period(now.hour)


def select_recipients(period: Period, mail: MailConfig) -> list[RecipientSet]:
    """Recipient sets for *period*, in delivery order."""
    return list(mail.recipients.get(period, []))
