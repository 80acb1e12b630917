"""Data access layer for debts and their history tables"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from debt_escalator.infrastructure.database.models import Debt, DebtHistory, PaymentHistory
from debt_escalator.domain.models import AccountBalance, DebtHistoryEntry, MutationKind, PaymentHistoryEntry


class HistoryTable(str, Enum):
    """History tables subject to retention trimming"""

    DEBT = "debt_history"
    PAYMENT = "payment_history"


_HISTORY_COLUMNS = {
    HistoryTable.DEBT: (DebtHistory, DebtHistory.recorded_at),
    HistoryTable.PAYMENT: (PaymentHistory, PaymentHistory.paid_at),
}


class LedgerRepository:
    """
    Repository for debt balances and history.

    Never commits; callers own the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_all_tracked_ids(self) -> List[int]:
        """Ids of every debt the scheduler escalates"""
        return [row.id for row in self.db.query(Debt.id).order_by(Debt.id).all()]

    def read_balance(self, debt_id: int) -> Optional[AccountBalance]:
        """Fresh read from the database, bypassing any identity-map copy"""
        debt = self.db.query(Debt).populate_existing().filter(Debt.id == debt_id).first()
        if debt is None:
            return None
        return AccountBalance(
            account_id=debt.id,
            balance=debt.balance,
            last_updated=debt.last_updated,
            last_mutation=MutationKind(debt.last_mutation) if debt.last_mutation else None,
        )

    def write_balance(self, debt_id: int, value: int, timestamp: datetime, kind: MutationKind) -> bool:
        """Set balance, timestamp and mutation kind together. Returns False if the debt is missing."""
        updated = (
            self.db.query(Debt)
            .filter(Debt.id == debt_id)
            .update(
                {Debt.balance: value, Debt.last_updated: timestamp, Debt.last_mutation: kind.value},
                synchronize_session=False,
            )
        )
        return updated > 0

    def insert_debt_history(self, debt_id: int, value: int, recorded_at: datetime) -> DebtHistory:
        entry = DebtHistory(debt_id=debt_id, balance=value, recorded_at=recorded_at)
        self.db.add(entry)
        self.db.flush()
        return entry

    def insert_payment_history(self, debt_id: int, amount: int, paid_at: datetime) -> PaymentHistory:
        entry = PaymentHistory(debt_id=debt_id, amount=amount, paid_at=paid_at)
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_recent_ids(self, table: HistoryTable, debt_id: int, limit: int) -> List[int]:
        """Ids of the `limit` most recent rows for a debt, newest first"""
        model, timestamp = _HISTORY_COLUMNS[table]
        rows = (
            self.db.query(model.id)
            .filter(model.debt_id == debt_id)
            .order_by(timestamp.desc(), model.id.desc())
            .limit(limit)
            .all()
        )
        return [row.id for row in rows]

    def delete_except(self, table: HistoryTable, debt_id: int, keep_ids: Sequence[int]) -> int:
        """Delete every row of this debt whose id is not in keep_ids"""
        model, _ = _HISTORY_COLUMNS[table]
        query = self.db.query(model).filter(model.debt_id == debt_id)
        if keep_ids:
            query = query.filter(model.id.notin_(list(keep_ids)))
        return query.delete(synchronize_session=False)

    def get_debt_history(self, debt_id: int) -> List[DebtHistoryEntry]:
        """Recorded balances, oldest first"""
        rows = (
            self.db.query(DebtHistory)
            .filter(DebtHistory.debt_id == debt_id)
            .order_by(DebtHistory.recorded_at.asc(), DebtHistory.id.asc())
            .all()
        )
        return [DebtHistoryEntry(balance=row.balance, recorded_at=row.recorded_at) for row in rows]

    def get_payment_history(self, debt_id: int) -> List[PaymentHistoryEntry]:
        """Payments, most recent first"""
        rows = (
            self.db.query(PaymentHistory)
            .filter(PaymentHistory.debt_id == debt_id)
            .order_by(PaymentHistory.paid_at.desc(), PaymentHistory.id.desc())
            .all()
        )
        return [PaymentHistoryEntry(amount=row.amount, paid_at=row.paid_at) for row in rows]
