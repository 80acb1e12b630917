"""Escalation scheduler - periodic debt increments with pre-increment warnings"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from debt_escalator.config import Settings, settings as default_settings
from debt_escalator.domain.exceptions import DomainException
from debt_escalator.domain.messages import compose_increment_warning
from debt_escalator.infrastructure.clients.notifier import NotifierClient
from debt_escalator.infrastructure.database.repositories import LedgerRepository
from debt_escalator.infrastructure.observability.metrics import scheduler_failure_counter, scheduler_tick_counter
from debt_escalator.services.balance import BalanceService, IncrementResult
from debt_escalator.services.locks import AccountLocks
from debt_escalator.utils.date_utils import Clock, utcnow

logger = logging.getLogger(__name__)

WARNING = "warning"
INCREMENT = "increment"
TICK_JOB_ID = "escalation_tick"


@dataclass(eq=False)
class ScheduledTask:
    """A delayed per-account action and its cancel handle"""

    account_id: int
    kind: str  # warning | increment
    due_at: datetime
    job: Optional[Job] = field(default=None, repr=False)
    finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def cancel(self) -> None:
        if self.job is not None and not self.done:
            try:
                self.job.remove()
            except JobLookupError:
                pass  # already fired
        self.finished.set()

    @property
    def done(self) -> bool:
        return self.finished.is_set()


class EscalationScheduler:
    """
    Drives time-based debt growth on an APScheduler AsyncIOScheduler.

    Every `escalation_cadence_seconds` an interval job ticks: it reads all
    tracked debts and, for each one, adds two date jobs: a warning
    (`warning_lead_seconds` before the increment, using the balance seen at
    tick time) and an increment at the end of the cycle (re-reading the
    balance when it fires).

    Cycles may overlap: with the default timings the increment of cycle N is
    due at the same moment as tick N+1. Overlapping cycles are neither merged
    nor skipped; balance mutations are serialized through AccountLocks.
    Jobs live in the in-memory job store and are lost on restart.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: NotifierClient,
        locks: AccountLocks,
        config: Settings | None = None,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.locks = locks
        self.config = config or default_settings
        self.clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._pending: Set[ScheduledTask] = set()

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.get_job(TICK_JOB_ID) is not None

    @property
    def pending(self) -> List[ScheduledTask]:
        """Scheduled actions that have not fired yet"""
        return [entry for entry in self._pending if not entry.done]

    def start(self) -> "EscalationScheduler":
        """Start the cadence job. Restarting cancels everything the previous run scheduled."""
        if self.scheduler is not None:
            logger.warning("Escalation scheduler already running, restarting")
            self.stop()

        self._ensure_started().add_job(
            func=self._run_tick,
            trigger=IntervalTrigger(seconds=self.config.escalation_cadence_seconds),
            id=TICK_JOB_ID,
            name="Escalation Tick",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info(
            "Escalation scheduler started",
            extra={
                "cadence_seconds": self.config.escalation_cadence_seconds,
                "warning_lead_seconds": self.config.warning_lead_seconds,
            },
        )
        return self

    def stop(self) -> None:
        """Remove the cadence job and every pending warning/increment, then shut down"""
        cancelled = 0
        for entry in list(self._pending):
            if not entry.done:
                cancelled += 1
            entry.cancel()
        self._pending.clear()

        if self.scheduler is not None:
            self.scheduler.remove_all_jobs()
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
        logger.info("Escalation scheduler stopped", extra={"cancelled_tasks": cancelled})

    async def wait_pending(self) -> None:
        """Block until every currently scheduled action has finished"""
        waits = [entry.finished.wait() for entry in self.pending]
        if waits:
            await asyncio.gather(*waits)

    def _ensure_started(self) -> AsyncIOScheduler:
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop(), timezone="UTC")
            self.scheduler.start()
        return self.scheduler

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        except Exception as e:
            scheduler_failure_counter.labels(action="tick").inc()
            logger.error(f"Escalation tick failed: {e}", exc_info=True)

    async def tick(self) -> List[ScheduledTask]:
        """
        Schedule one cycle for every tracked debt.

        A debt whose balance cannot be read is skipped for this cycle only.
        Returns the entries scheduled by this tick.
        """
        scheduler_tick_counter.inc()
        with self.session_factory() as db:
            repository = LedgerRepository(db)
            try:
                account_ids = repository.list_all_tracked_ids()
            except SQLAlchemyError as e:
                scheduler_failure_counter.labels(action="tick").inc()
                logger.error(f"Failed to list tracked debts: {e}")
                return []

            if not account_ids:
                logger.info("No debts found")
                return []

            scheduled: List[ScheduledTask] = []
            for account_id in account_ids:
                try:
                    snapshot = repository.read_balance(account_id)
                except SQLAlchemyError as e:
                    db.rollback()
                    scheduler_failure_counter.labels(action="tick").inc()
                    logger.error(f"Failed to read debt: {e}", extra={"debt_id": account_id})
                    continue
                if snapshot is None:
                    continue

                scheduled.append(
                    self._schedule(
                        account_id,
                        WARNING,
                        self.config.warning_delay_seconds,
                        lambda a=account_id, b=snapshot.balance: self._warn(a, b),
                    )
                )
                scheduled.append(
                    self._schedule(
                        account_id,
                        INCREMENT,
                        self.config.escalation_cadence_seconds,
                        lambda a=account_id: self._increment(a),
                    )
                )
                # Let other work run between accounts
                await asyncio.sleep(0)

        logger.info("Escalation cycle scheduled", extra={"debts": len(scheduled) // 2})
        return scheduled

    def _schedule(
        self,
        account_id: int,
        kind: str,
        delay: float,
        action: Callable[[], Awaitable[object]],
    ) -> ScheduledTask:
        run_date = utcnow() + timedelta(seconds=delay)
        entry = ScheduledTask(account_id=account_id, kind=kind, due_at=run_date)
        entry.job = self._ensure_started().add_job(
            func=self._fire,
            trigger=DateTrigger(run_date=run_date),
            args=[entry, action],
            id=f"{kind}:{account_id}:{uuid.uuid4().hex}",
            name=f"Debt {account_id} {kind}",
            misfire_grace_time=None,  # late is better than never
        )
        self._pending.add(entry)
        return entry

    async def _fire(self, entry: ScheduledTask, action: Callable[[], Awaitable[object]]) -> None:
        try:
            await action()
        except Exception as e:
            scheduler_failure_counter.labels(action=entry.kind).inc()
            logger.error(f"Scheduled {entry.kind} failed: {e}", extra={"debt_id": entry.account_id}, exc_info=True)
        finally:
            entry.finished.set()
            self._pending.discard(entry)

    async def _warn(self, account_id: int, snapshot_balance: int) -> None:
        """Best-effort warning built from the tick-time balance"""
        message = compose_increment_warning(
            snapshot_balance,
            self.config.increment_amount,
            self.config.warning_lead_seconds,
            self.config.currency_label,
        )
        await self.notifier.send(self.config.notification_destination, message.subject, message.body)
        logger.info("Increment warning issued", extra={"debt_id": account_id, "snapshot_balance": snapshot_balance})

    async def _increment(self, account_id: int) -> Optional[IncrementResult]:
        """Apply one increment; failures are logged and the debt waits for the next cycle"""
        with self.session_factory() as db:
            service = BalanceService(db, self.notifier, self.locks, self.config, self.clock)
            try:
                return await service.apply_increment(account_id)
            except DomainException as e:
                scheduler_failure_counter.labels(action=INCREMENT).inc()
                logger.error(f"Increment skipped: {e}", extra={"debt_id": account_id})
                return None
