"""GET /v1/debts/{debt_id}/history and /payments - audit trails"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from debt_escalator.api.v1.schemas import (
    DebtHistoryItem,
    DebtHistoryResponse,
    PaymentHistoryItem,
    PaymentHistoryResponse,
)
from debt_escalator.api.dependencies import get_balance_service
from debt_escalator.domain.exceptions import StoreFailureError
from debt_escalator.services.balance import BalanceService

router = APIRouter()


@router.get("/debts/{debt_id}/history", response_model=DebtHistoryResponse)
def get_debt_history(debt_id: int, service: BalanceService = Depends(get_balance_service)):
    """
    Retrieve recorded balances for a debt.

    Returns:
        Up to the retention limit of entries, oldest first
    """
    try:
        entries = service.get_debt_history(debt_id)
    except StoreFailureError as e:
        logging.error(f"Debt history read failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch debt history")

    return DebtHistoryResponse(
        debt_id=debt_id,
        history=[DebtHistoryItem(balance=e.balance, recorded_at=e.recorded_at) for e in entries],
    )


@router.get("/debts/{debt_id}/payments", response_model=PaymentHistoryResponse)
def get_payment_history(debt_id: int, service: BalanceService = Depends(get_balance_service)):
    """
    Retrieve payments made against a debt.

    Returns:
        Up to the retention limit of payments, most recent first
    """
    try:
        entries = service.get_payment_history(debt_id)
    except StoreFailureError as e:
        logging.error(f"Payment history read failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch payment history")

    return PaymentHistoryResponse(
        debt_id=debt_id,
        payments=[PaymentHistoryItem(amount=p.amount, paid_at=p.paid_at) for p in entries],
    )
