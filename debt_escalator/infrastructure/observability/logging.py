"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "debt-escalator", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "debt-escalator") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_increment(debt_id: int, previous: int, balance: int, band: str) -> None:
    """Log a scheduled increment with the band it produced"""
    logging.getLogger("debt_escalator.scheduler").info(
        "Debt incremented",
        extra={
            "debt_id": debt_id,
            "step": "increment_applied",
            "previous_balance": previous,
            "balance": balance,
            "band": band,
        },
    )


def log_payment(debt_id: int, amount: int, balance: int, request_id: str | None = None) -> None:
    """Log an accepted payment"""
    logging.getLogger("debt_escalator.balance").info(
        "Payment applied",
        extra={
            "request_id": request_id,
            "debt_id": debt_id,
            "step": "payment_applied",
            "amount": amount,
            "balance": balance,
        },
    )
