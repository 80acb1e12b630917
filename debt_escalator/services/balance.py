"""Balance operations: reads, payments, increments, and history queries"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from debt_escalator.config import Settings, settings as default_settings
from debt_escalator.domain.bands import BandThresholds, NotificationBand, classify, render_band_alert
from debt_escalator.domain.exceptions import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    StoreFailureError,
)
from debt_escalator.domain.messages import compose_payment_confirmation
from debt_escalator.domain.models import (
    AccountBalance,
    DebtHistoryEntry,
    MutationKind,
    PaymentHistoryEntry,
    PaymentResult,
)
from debt_escalator.infrastructure.clients.notifier import NotifierClient
from debt_escalator.infrastructure.database.repositories import HistoryTable, LedgerRepository
from debt_escalator.infrastructure.observability.logging import log_increment, log_payment
from debt_escalator.infrastructure.observability.metrics import increment_counter, payment_counter, record_band
from debt_escalator.services.history import HistoryTrimmer
from debt_escalator.services.locks import AccountLocks
from debt_escalator.utils.date_utils import Clock, utcnow, within_window

logger = logging.getLogger(__name__)


@dataclass
class IncrementResult:
    """Outcome of one scheduled increment"""

    account_id: int
    previous_balance: int
    balance: int
    band: NotificationBand


def thresholds_from(config: Settings) -> BandThresholds:
    return BandThresholds(
        pending=config.band_pending_floor,
        elevated=config.band_elevated_floor,
        critical=config.band_critical_floor,
    )


class BalanceService:
    """
    Operations over one account's debt.

    Every balance mutation runs under the account's lock so that a scheduled
    increment and a payment never interleave their read and write. The balance
    write is committed on its own; history bookkeeping follows in a second
    transaction whose failure is logged and never undoes the balance change.
    """

    def __init__(
        self,
        db: Session,
        notifier: NotifierClient,
        locks: AccountLocks,
        config: Settings | None = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.repository = LedgerRepository(db)
        self.trimmer = HistoryTrimmer(self.repository)
        self.notifier = notifier
        self.locks = locks
        self.config = config or default_settings
        self.clock = clock

    def get_balance(self, account_id: int) -> AccountBalance:
        """
        Raises:
            AccountNotFoundError: Unknown account id
            StoreFailureError: Database read failed
        """
        try:
            balance = self.repository.read_balance(account_id)
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read debt {account_id}: {e}") from e
        if balance is None:
            raise AccountNotFoundError(account_id)
        return balance

    async def apply_payment(self, account_id: int, amount: int, request_id: str | None = None) -> PaymentResult:
        """
        Subtract a payment from the balance.

        Flow:
        1. Reject amounts below the minimum payment
        2. Under the account lock, re-read the balance and reject overpayment
        3. Write the reduced balance
        4. Record debt and payment history, trimming both tables
        5. Send a payment confirmation

        Raises:
            InvalidAmountError, AccountNotFoundError, InsufficientBalanceError, StoreFailureError
        """
        if amount < self.config.minimum_payment:
            payment_counter.labels(outcome="invalid_amount").inc()
            raise InvalidAmountError(amount, self.config.minimum_payment)

        async with self.locks.hold(account_id):
            try:
                current = self.get_balance(account_id)
            except AccountNotFoundError:
                payment_counter.labels(outcome="not_found").inc()
                raise

            if amount > current.balance:
                payment_counter.labels(outcome="insufficient_balance").inc()
                raise InsufficientBalanceError(amount, current.balance)

            new_balance = current.balance - amount
            now = self.clock()
            self._write_balance(account_id, new_balance, now, MutationKind.PAYMENT)
            self._record_history(account_id, new_balance, now, paid_amount=amount)

        payment_counter.labels(outcome="accepted").inc()
        log_payment(account_id, amount, new_balance, request_id)

        message = compose_payment_confirmation(amount, new_balance, self.config.currency_label)
        await self.notifier.send(self.config.notification_destination, message.subject, message.body)

        return PaymentResult(account_id=account_id, amount=amount, balance=new_balance)

    async def apply_increment(self, account_id: int) -> IncrementResult:
        """
        Add the fixed increment to the balance as it is now.

        The balance is re-read at call time, never taken from an earlier
        snapshot, so a payment that landed in between is respected.
        """
        async with self.locks.hold(account_id):
            current = self.get_balance(account_id)
            new_balance = current.balance + self.config.increment_amount
            now = self.clock()
            self._write_balance(account_id, new_balance, now, MutationKind.INCREMENT)
            self._record_history(account_id, new_balance, now)

        band = classify(new_balance, thresholds_from(self.config))
        increment_counter.inc()
        record_band(band)
        log_increment(account_id, current.balance, new_balance, band.value)

        alert = render_band_alert(band, new_balance, self.config.currency_label)
        if alert is not None:
            await self.notifier.send(self.config.notification_destination, alert.subject, alert.body)

        return IncrementResult(
            account_id=account_id,
            previous_balance=current.balance,
            balance=new_balance,
            band=band,
        )

    def was_recently_incremented(self, account_id: int) -> bool:
        """
        True if the balance changed within the recent window (default 1 minute).

        Payments update the same timestamp, so a payment inside the window also
        yields True. Use last_mutation_kind() to tell the two apart.
        """
        balance = self.get_balance(account_id)
        window = timedelta(seconds=self.config.recent_window_seconds)
        return within_window(balance.last_updated, window, now=self.clock())

    def last_mutation_kind(self, account_id: int) -> Optional[MutationKind]:
        return self.get_balance(account_id).last_mutation

    def get_debt_history(self, account_id: int) -> List[DebtHistoryEntry]:
        try:
            return self.repository.get_debt_history(account_id)
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read debt history for {account_id}: {e}") from e

    def get_payment_history(self, account_id: int) -> List[PaymentHistoryEntry]:
        try:
            return self.repository.get_payment_history(account_id)
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read payment history for {account_id}: {e}") from e

    def _write_balance(self, account_id: int, value: int, at: datetime, kind: MutationKind) -> None:
        try:
            found = self.repository.write_balance(account_id, value, at, kind)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureError(f"Failed to write debt {account_id}: {e}") from e
        if not found:
            raise AccountNotFoundError(account_id)

    def _record_history(self, account_id: int, balance: int, at: datetime, paid_amount: int | None = None) -> None:
        """Insert history rows and trim them in one transaction; failures are logged only"""
        try:
            self.repository.insert_debt_history(account_id, balance, at)
            self.trimmer.trim(HistoryTable.DEBT, account_id, self.config.debt_history_retention)
            if paid_amount is not None:
                self.repository.insert_payment_history(account_id, paid_amount, at)
                self.trimmer.trim(HistoryTable.PAYMENT, account_id, self.config.payment_history_retention)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"History bookkeeping failed: {e}", extra={"debt_id": account_id})
