"""Bounded retention for debt and payment history"""

import logging

from debt_escalator.infrastructure.database.repositories import HistoryTable, LedgerRepository
from debt_escalator.infrastructure.observability.metrics import history_trimmed_counter

logger = logging.getLogger(__name__)


class HistoryTrimmer:
    """Keeps only the most recent rows per account in a history table"""

    def __init__(self, repository: LedgerRepository):
        self.repository = repository

    def trim(self, table: HistoryTable, account_id: int, keep_count: int) -> int:
        """
        Delete all but the `keep_count` most recent rows for one account.

        Scoped strictly to account_id. A no-op when the account has no rows,
        and idempotent: a second call with the same keep_count deletes nothing.

        Returns:
            Number of rows deleted
        """
        keep_ids = self.repository.list_recent_ids(table, account_id, keep_count)
        if not keep_ids and keep_count > 0:
            return 0

        deleted = self.repository.delete_except(table, account_id, keep_ids)
        if deleted:
            history_trimmed_counter.labels(table=table.value).inc(deleted)
            logger.debug(
                "History trimmed",
                extra={"debt_id": account_id, "table": table.value, "deleted": deleted},
            )
        return deleted
