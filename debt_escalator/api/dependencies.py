"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from debt_escalator.infrastructure.clients.notifier import NotifierClient
from debt_escalator.infrastructure.database.session import get_db
from debt_escalator.services.balance import BalanceService
from debt_escalator.services.locks import AccountLocks


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notifier(request: Request) -> NotifierClient:
    """Notifier shared with the escalation scheduler"""
    return request.app.state.notifier


def get_account_locks(request: Request) -> AccountLocks:
    """Per-account locks shared with the escalation scheduler"""
    return request.app.state.account_locks


def get_balance_service(
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotifierClient = Depends(get_notifier),
    locks: AccountLocks = Depends(get_account_locks),
) -> BalanceService:
    """Provide a balance service bound to the request's session"""
    return BalanceService(db, notifier, locks, config=request.app.state.settings)
