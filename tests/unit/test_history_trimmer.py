"""Unit tests for history retention trimming"""

from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from debt_escalator.infrastructure.database.models import DebtHistory, PaymentHistory
from debt_escalator.infrastructure.database.repositories import HistoryTable, LedgerRepository
from debt_escalator.services.history import HistoryTrimmer

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _insert_debt_history(repo: LedgerRepository, debt_id: int, count: int) -> None:
    for i in range(count):
        repo.insert_debt_history(debt_id, 10 * (i + 1), BASE_TIME + timedelta(minutes=i))
    repo.db.commit()


def test_trim_keeps_most_recent(db: Session, make_debt):
    """25 inserts with retention 20 leave exactly the newest 20"""
    debt_id = make_debt(0)
    repo = LedgerRepository(db)
    _insert_debt_history(repo, debt_id, 25)

    deleted = HistoryTrimmer(repo).trim(HistoryTable.DEBT, debt_id, 20)
    db.commit()

    assert deleted == 5
    balances = [entry.balance for entry in repo.get_debt_history(debt_id)]
    assert len(balances) == 20
    assert balances == [10 * (i + 1) for i in range(5, 25)]  # oldest 5 gone


def test_trim_under_limit_keeps_everything(db: Session, make_debt):
    debt_id = make_debt(0)
    repo = LedgerRepository(db)
    _insert_debt_history(repo, debt_id, 3)

    deleted = HistoryTrimmer(repo).trim(HistoryTable.DEBT, debt_id, 20)
    db.commit()

    assert deleted == 0
    assert len(repo.get_debt_history(debt_id)) == 3


def test_trim_is_idempotent(db: Session, make_debt):
    debt_id = make_debt(0)
    repo = LedgerRepository(db)
    trimmer = HistoryTrimmer(repo)
    _insert_debt_history(repo, debt_id, 8)

    trimmer.trim(HistoryTable.DEBT, debt_id, 5)
    db.commit()
    kept_after_first = repo.list_recent_ids(HistoryTable.DEBT, debt_id, 100)

    assert trimmer.trim(HistoryTable.DEBT, debt_id, 5) == 0
    db.commit()
    assert repo.list_recent_ids(HistoryTable.DEBT, debt_id, 100) == kept_after_first


def test_trim_with_no_rows_is_noop(db: Session, make_debt):
    debt_id = make_debt(0)
    repo = LedgerRepository(db)

    assert HistoryTrimmer(repo).trim(HistoryTable.PAYMENT, debt_id, 15) == 0


def test_trim_is_scoped_to_account(db: Session, make_debt):
    """Trimming one debt never deletes another debt's rows"""
    first = make_debt(0)
    second = make_debt(0)
    repo = LedgerRepository(db)
    _insert_debt_history(repo, first, 10)
    _insert_debt_history(repo, second, 10)

    HistoryTrimmer(repo).trim(HistoryTable.DEBT, first, 2)
    db.commit()

    assert db.query(DebtHistory).filter(DebtHistory.debt_id == first).count() == 2
    assert db.query(DebtHistory).filter(DebtHistory.debt_id == second).count() == 10


def test_trim_payment_history(db: Session, make_debt):
    debt_id = make_debt(100)
    repo = LedgerRepository(db)
    for i in range(18):
        repo.insert_payment_history(debt_id, 10 + i, BASE_TIME + timedelta(minutes=i))
    db.commit()

    HistoryTrimmer(repo).trim(HistoryTable.PAYMENT, debt_id, 15)
    db.commit()

    amounts = [p.amount for p in repo.get_payment_history(debt_id)]
    assert db.query(PaymentHistory).count() == 15
    assert amounts[0] == 27  # most recent first
    assert amounts[-1] == 13


def test_trim_breaks_timestamp_ties_by_insert_order(db: Session, make_debt):
    """Rows sharing a timestamp are ranked by id"""
    debt_id = make_debt(0)
    repo = LedgerRepository(db)
    for value in range(1, 7):
        repo.insert_debt_history(debt_id, value, BASE_TIME)
    db.commit()

    HistoryTrimmer(repo).trim(HistoryTable.DEBT, debt_id, 3)
    db.commit()

    assert [e.balance for e in repo.get_debt_history(debt_id)] == [4, 5, 6]
