"""Unit tests for per-account locks"""

import asyncio
import pytest

from debt_escalator.domain.exceptions import AccountNotFoundError
from debt_escalator.services.balance import BalanceService
from debt_escalator.services.locks import AccountLocks


async def test_concurrent_holders_share_one_lock_and_release_it():
    locks = AccountLocks()
    order = []
    first_inside = asyncio.Event()

    async def first():
        async with locks.hold(7):
            first_inside.set()
            await asyncio.sleep(0.05)
            order.append("first")

    async def second():
        await first_inside.wait()
        async with locks.hold(7):
            order.append("second")

    waiter = asyncio.create_task(second())
    holder = asyncio.create_task(first())
    await first_inside.wait()
    await asyncio.sleep(0)

    assert len(locks) == 1
    await asyncio.gather(holder, waiter)

    assert order == ["first", "second"]
    assert len(locks) == 0


async def test_lock_is_released_when_body_raises():
    locks = AccountLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold(1):
            raise RuntimeError("boom")

    assert len(locks) == 0


async def test_payments_for_unknown_ids_leave_no_locks(service: BalanceService, locks: AccountLocks):
    for account_id in range(1000, 1500):
        with pytest.raises(AccountNotFoundError):
            await service.apply_payment(account_id, 10)

    assert len(locks) == 0
