"""Notification band classification - maps a balance to an alert severity"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from debt_escalator.domain.models import Message


class NotificationBand(str, Enum):
    NONE = "none"
    PENDING = "pending"
    ELEVATED = "elevated"
    CRITICAL = "critical"


@dataclass(frozen=True)
class BandThresholds:
    """Lower bounds (exclusive) of each non-none band"""

    pending: int = 20
    elevated: int = 40
    critical: int = 50


DEFAULT_THRESHOLDS = BandThresholds()


# Templates take {balance} and {currency}
BAND_TEMPLATES: Dict[NotificationBand, Message] = {
    NotificationBand.PENDING: Message(
        subject="Reminder: Outstanding Debt",
        body="Your debt is now {balance} {currency}. Please consider making a payment.",
    ),
    NotificationBand.ELEVATED: Message(
        subject="Warning: Debt Increasing",
        body="Your debt has reached {balance} {currency}. Pay soon to avoid further increases.",
    ),
    NotificationBand.CRITICAL: Message(
        subject="Urgent: Critical Debt Level",
        body="Your debt is {balance} {currency}, above the critical level. Immediate payment is required.",
    ),
}


def classify(balance: int, thresholds: BandThresholds = DEFAULT_THRESHOLDS) -> NotificationBand:
    """
    Map a balance to its notification band.

    Bands (lower bound exclusive, upper bound inclusive):
    - b <= 20:       none (no notification)
    - 20 < b <= 40:  pending
    - 40 < b <= 50:  elevated
    - b > 50:        critical
    """
    if balance > thresholds.critical:
        return NotificationBand.CRITICAL
    elif balance > thresholds.elevated:
        return NotificationBand.ELEVATED
    elif balance > thresholds.pending:
        return NotificationBand.PENDING
    else:
        return NotificationBand.NONE


def render_band_alert(band: NotificationBand, balance: int, currency: str = "Kz") -> Optional[Message]:
    """Fill the band's template, or None for the silent band"""
    template = BAND_TEMPLATES.get(band)
    if template is None:
        return None
    return Message(
        subject=template.subject,
        body=template.body.format(balance=balance, currency=currency),
    )
