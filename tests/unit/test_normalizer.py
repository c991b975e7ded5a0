"""Tests for the record normalizer — age labels, lifecycle, formatting."""

from __future__ import annotations

import pytest

from conftest import ALICE, BOB, DAY, FIXED_EPOCH, FIXED_NOW, HOUR, TENTH
from gigledger.core.errors import DataIntegrityError
from gigledger.core.normalizer import age_label, classify, normalize
from gigledger.models.project import LifecycleState


class TestAgeLabel:
    def test_minutes_ago_is_just_now(self):
        assert age_label(FIXED_EPOCH - 59 * 60, FIXED_NOW) == "Just now"

    def test_same_instant_is_just_now(self):
        assert age_label(FIXED_EPOCH, FIXED_NOW) == "Just now"

    def test_future_timestamp_is_just_now(self):
        assert age_label(FIXED_EPOCH + 5 * DAY, FIXED_NOW) == "Just now"

    def test_one_hour(self):
        assert age_label(FIXED_EPOCH - HOUR, FIXED_NOW) == "1 hour ago"

    def test_hours_plural(self):
        assert age_label(FIXED_EPOCH - 3 * HOUR - 59, FIXED_NOW) == "3 hours ago"

    def test_one_day(self):
        assert age_label(FIXED_EPOCH - DAY, FIXED_NOW) == "1 day ago"

    def test_days_win_over_hours(self):
        assert age_label(FIXED_EPOCH - 2 * DAY - 5 * HOUR, FIXED_NOW) == "2 days ago"

    def test_deterministic_for_fixed_now(self):
        deadline = FIXED_EPOCH - 7 * HOUR
        assert age_label(deadline, FIXED_NOW) == age_label(deadline, FIXED_NOW)


class TestClassify:
    def test_open_without_counterparty(self, make_record):
        assert classify(make_record()) == LifecycleState.OPEN

    def test_accepted_with_counterparty(self, make_record):
        record = make_record(counterparty=BOB, is_accepted=True)
        assert classify(record) == LifecycleState.ACCEPTED

    def test_completed(self, make_record):
        record = make_record(counterparty=BOB, is_accepted=True, is_completed=True)
        assert classify(record) == LifecycleState.COMPLETED

    def test_completed_without_acceptance_is_integrity_error(self, make_record):
        record = make_record(is_completed=True)
        with pytest.raises(DataIntegrityError, match="never accepted"):
            classify(record)

    def test_completed_flag_without_counterparty_is_integrity_error(self, make_record):
        record = make_record(is_accepted=True, is_completed=True)
        with pytest.raises(DataIntegrityError):
            classify(record)

    def test_counterparty_decides_open_even_if_flag_lags(self, make_record):
        # Lifecycle follows the counterparty; the accepted flag alone is not enough.
        record = make_record(is_accepted=True)
        assert classify(record) == LifecycleState.OPEN


class TestNormalize:
    def test_enriches_record(self, make_record):
        record = make_record(id=4, amount=TENTH, deadline=FIXED_EPOCH - 2 * HOUR)
        project = normalize(record, FIXED_NOW)
        assert project.formatted_amount == "0.1"
        assert project.age_label == "2 hours ago"
        assert project.lifecycle_state == LifecycleState.OPEN
        assert project.deadline_at.timestamp() == record.deadline

    def test_read_through_fields(self, make_record):
        record = make_record(id=2, name="Audit", creator=ALICE)
        project = normalize(record, FIXED_NOW)
        assert project.id == 2
        assert project.name == "Audit"
        assert project.creator == ALICE
        assert project.amount == record.amount

    def test_underlying_amount_untouched(self, make_record):
        record = make_record(amount=123456789012345678)
        project = normalize(record, FIXED_NOW)
        assert project.amount == 123456789012345678
        assert project.formatted_amount == "0.123456789012345678"
