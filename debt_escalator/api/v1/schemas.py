"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class BalanceResponse(BaseModel):
    """Response for GET /v1/debts/{debt_id}"""

    debt_id: int
    balance: int
    last_updated: Optional[datetime] = None


class SubtractRequest(BaseModel):
    """Request body for POST /v1/debts/{debt_id}/subtract"""

    amount: int = Field(..., description="Amount to pay, in whole currency units")


class SubtractResponse(BaseModel):
    """Response for POST /v1/debts/{debt_id}/subtract"""

    debt_id: int
    amount: int
    balance: int


class IncrementedResponse(BaseModel):
    """Response for GET /v1/debts/{debt_id}/incremented"""

    debt_id: int
    incremented: bool
    last_mutation: Optional[str] = None  # increment | payment; the flag alone cannot tell them apart


class DebtHistoryItem(BaseModel):
    """Balance recorded after an increment or payment"""

    balance: int
    recorded_at: datetime


class DebtHistoryResponse(BaseModel):
    """Response for GET /v1/debts/{debt_id}/history (oldest first)"""

    debt_id: int
    history: List[DebtHistoryItem]


class PaymentHistoryItem(BaseModel):
    """Single payment"""

    amount: int
    paid_at: datetime


class PaymentHistoryResponse(BaseModel):
    """Response for GET /v1/debts/{debt_id}/payments (most recent first)"""

    debt_id: int
    payments: List[PaymentHistoryItem]
