"""Message composition for escalation warnings and payment receipts"""

from debt_escalator.domain.models import Message


def _format_lead(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds:g} seconds"


def compose_increment_warning(
    snapshot_balance: int,
    increment: int,
    lead_seconds: float,
    currency: str = "Kz",
) -> Message:
    """
    Warn that an increment is coming.

    Uses the balance captured at tick time, so the projected figure can be stale
    if a payment lands before the increment fires.
    """
    projected = snapshot_balance + increment
    return Message(
        subject="Notice: Debt Increment",
        body=(
            f"Your debt will be increased by {increment} {currency} in {_format_lead(lead_seconds)}. "
            f"The new debt will be {projected} {currency}."
        ),
    )


def compose_payment_confirmation(amount: int, balance: int, currency: str = "Kz") -> Message:
    return Message(
        subject="Payment Received",
        body=f"We received your payment of {amount} {currency}. Your remaining debt is {balance} {currency}.",
    )
