"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class MutationKind(str, Enum):
    """What last changed a balance"""

    INCREMENT = "increment"
    PAYMENT = "payment"


@dataclass
class AccountBalance:
    """Current debt of one account"""

    account_id: int
    balance: int
    last_updated: Optional[datetime]
    last_mutation: Optional[MutationKind] = None


@dataclass
class DebtHistoryEntry:
    """Balance value recorded after an increment or payment"""

    balance: int
    recorded_at: datetime


@dataclass
class PaymentHistoryEntry:
    """Amount paid against a debt"""

    amount: int
    paid_at: datetime


@dataclass
class PaymentResult:
    """Outcome of a successful payment"""

    account_id: int
    amount: int
    balance: int


@dataclass
class Message:
    """Rendered notification ready for the notifier"""

    subject: str
    body: str
