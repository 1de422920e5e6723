"""
Complaint number allocation tests.

Verifies:
- CMP-YYYYMMDD-NNNN format and successor arithmetic
- Two allocations in the same millisecond differ only by sequence
- Collisions on insert are retried with a fresh number
- Exhausted retries surface as CreationFailedError
"""

from datetime import date

import pytest

from seedcare.models import Complaint
from seedcare.services import complaint_number_service, complaint_service, concurrency
from seedcare.services.complaint_errors import CreationFailedError
from seedcare.services.complaint_number_service import (
    compose_suffix,
    date_prefix,
    generate_complaint_number,
    is_valid_complaint_number,
    next_sequence,
)


DAY = date(2026, 10, 17)


class TestNumberArithmetic:
    def test_date_prefix(self):
        assert date_prefix(DAY) == "CMP-20261017-"

    def test_next_sequence(self):
        assert next_sequence(None) == 1
        assert next_sequence("CMP-20261017-0041") == 42
        assert next_sequence("CMP-20261017-XXXX") == 1

    def test_compose_suffix_wraps(self):
        assert compose_suffix(1, 1_700_000_001_234) == 1235
        assert compose_suffix(5, 9_999) == 4

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("CMP-20261017-0001", True),
            ("CMP-20261017-001", False),
            ("cmp-20261017-0001", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_valid(self, value, expected):
        assert is_valid_complaint_number(value) is expected


class TestGenerate:
    def test_first_number_of_the_day(self, monkeypatch):
        monkeypatch.setattr(complaint_number_service, "latest_number_for", lambda prefix: None)
        monkeypatch.setattr(complaint_number_service, "_now_ms", lambda: 1_700_000_000_000)
        assert generate_complaint_number(DAY) == "CMP-20261017-0001"

    def test_successor_mixes_clock(self, monkeypatch):
        monkeypatch.setattr(complaint_number_service, "latest_number_for", lambda prefix: "CMP-20261017-0007")
        monkeypatch.setattr(complaint_number_service, "_now_ms", lambda: 1_700_000_000_100)
        assert generate_complaint_number(DAY) == "CMP-20261017-0108"

    def test_latest_number_reads_same_day_only(self, db_session, make_complaint):
        make_complaint(complaint_number="CMP-20261017-0009")
        make_complaint(complaint_number="CMP-20261017-0120")
        make_complaint(complaint_number="CMP-20261018-9999")
        assert complaint_number_service.latest_number_for("CMP-20261017-") == "CMP-20261017-0120"
        assert complaint_number_service.latest_number_for("CMP-20261016-") is None


class TestCollisionRetry:
    def test_retries_with_fresh_number(self, db_session, make_complaint, new_complaint, monkeypatch):
        make_complaint(complaint_number="CMP-20261017-0001")
        candidates = iter(["CMP-20261017-0001", "CMP-20261017-0001", "CMP-20261017-0002"])
        sleeps = []
        monkeypatch.setattr(complaint_service, "generate_complaint_number", lambda day=None: next(candidates))
        monkeypatch.setattr(concurrency.time, "sleep", sleeps.append)

        complaint = complaint_service.create_complaint(new_complaint())

        assert complaint.complaint_number == "CMP-20261017-0002"
        assert len(sleeps) == 2
        assert db_session.query(Complaint).count() == 2

    def test_exhausted_retries(self, app, db_session, make_complaint, new_complaint, monkeypatch):
        make_complaint(complaint_number="CMP-20261017-0001")
        monkeypatch.setitem(app.config, "COMPLAINT_NUMBER_MAX_ATTEMPTS", 3)
        monkeypatch.setattr(complaint_service, "generate_complaint_number", lambda day=None: "CMP-20261017-0001")
        monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)

        with pytest.raises(CreationFailedError) as exc:
            complaint_service.create_complaint(new_complaint())

        assert exc.value.attempts == 3
        assert db_session.query(Complaint).count() == 1

    def test_ten_racing_creations_get_distinct_numbers(self, db_session, new_complaint, sent, monkeypatch):
        # Every creation reads a stale "no number yet today" and the clock
        # ticks once per two reads, so most first attempts collide.
        ticks = iter(ms for ms in range(100) for _ in (0, 1))
        monkeypatch.setattr(complaint_number_service, "latest_number_for", lambda prefix: None)
        monkeypatch.setattr(complaint_number_service, "_now_ms", lambda: next(ticks))
        monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)

        numbers = [complaint_service.create_complaint(new_complaint()).complaint_number for _ in range(10)]

        assert len(set(numbers)) == 10
        assert all(is_valid_complaint_number(n) for n in numbers)
