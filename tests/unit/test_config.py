"""Unit tests for settings validation"""

import pytest
from pydantic import ValidationError

from debt_escalator.config import Settings


def test_defaults_are_valid():
    config = Settings()
    assert config.minimum_payment == 10
    assert config.warning_delay_seconds == 120.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"minimum_payment": 0},
        {"minimum_payment": -5},
        {"increment_amount": 0},
        {"debt_history_retention": -1},
        {"payment_history_retention": -1},
        {"escalation_cadence_seconds": 0},
        {"warning_lead_seconds": -1},
    ],
)
def test_rejects_out_of_range_values(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_rejects_warning_lead_outside_cadence():
    with pytest.raises(ValidationError):
        Settings(escalation_cadence_seconds=60, warning_lead_seconds=60)


def test_rejects_descending_band_thresholds():
    with pytest.raises(ValidationError):
        Settings(band_pending_floor=40, band_elevated_floor=20)


def test_zero_retention_is_allowed():
    config = Settings(debt_history_retention=0, payment_history_retention=0)
    assert config.debt_history_retention == 0
