"""Debt balance endpoints - read, subtract, and recent-change check"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from debt_escalator.api.v1.schemas import (
    BalanceResponse,
    IncrementedResponse,
    SubtractRequest,
    SubtractResponse,
)
from debt_escalator.api.dependencies import get_balance_service, get_request_id
from debt_escalator.domain.exceptions import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    StoreFailureError,
)
from debt_escalator.services.balance import BalanceService

router = APIRouter()


@router.get("/debts/{debt_id}", response_model=BalanceResponse)
def get_debt(debt_id: int, service: BalanceService = Depends(get_balance_service)):
    """Current balance of a debt"""
    try:
        balance = service.get_balance(debt_id)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Debt not found")
    except StoreFailureError as e:
        logging.error(f"Balance read failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch debt")

    return BalanceResponse(debt_id=balance.account_id, balance=balance.balance, last_updated=balance.last_updated)


@router.post("/debts/{debt_id}/subtract", response_model=SubtractResponse)
async def subtract_from_debt(
    debt_id: int,
    request_body: SubtractRequest,
    request: Request,
    service: BalanceService = Depends(get_balance_service),
):
    """
    Apply a payment to a debt.

    Errors:
    - 400: amount below the minimum payment, or larger than the balance
    - 404: unknown debt
    - 500: storage failure
    """
    request_id = get_request_id(request)

    try:
        result = await service.apply_payment(debt_id, request_body.amount, request_id=request_id)
    except InvalidAmountError as e:
        raise HTTPException(status_code=400, detail=f"Minimum payment is {e.minimum}")
    except InsufficientBalanceError:
        raise HTTPException(status_code=400, detail="Insufficient debt to subtract this amount")
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Debt not found")
    except StoreFailureError as e:
        logging.error(f"Payment failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to subtract from debt")

    return SubtractResponse(debt_id=result.account_id, amount=result.amount, balance=result.balance)


@router.get("/debts/{debt_id}/incremented", response_model=IncrementedResponse)
def get_recently_incremented(debt_id: int, service: BalanceService = Depends(get_balance_service)):
    """
    Whether the debt changed within the recent window.

    A payment inside the window also counts; `last_mutation` says which it was.
    """
    try:
        balance = service.get_balance(debt_id)
        incremented = service.was_recently_incremented(debt_id)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Debt not found")
    except StoreFailureError as e:
        logging.error(f"Increment check failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to check debt increment")

    last_mutation = balance.last_mutation.value if balance.last_mutation else None
    return IncrementedResponse(debt_id=debt_id, incremented=incremented, last_mutation=last_mutation)
