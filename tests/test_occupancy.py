"""
Tests for occupancy checking.
"""

import pytest

from slotengine.domain.models import Appointment, AppointmentStatus, CapacityMode, SlotCandidate
from slotengine.domain.occupancy import OccupancyChecker, annotate, resolve_capacity
from slotengine.domain.time_model import MinuteInterval, parse_date

MONDAY = parse_date("2024-11-25")


def _candidate(start: str, end: str, capacity_override=None) -> SlotCandidate:
    return SlotCandidate(interval=MinuteInterval.parse(start, end), capacity_override=capacity_override)


def _appointment(start: str, end: str, status=AppointmentStatus.CONFIRMED, appointment_id="apt") -> Appointment:
    return Appointment(
        id=appointment_id,
        business_id="biz",
        service_id="svc",
        date=MONDAY,
        interval=MinuteInterval.parse(start, end),
        status=status,
    )


class TestResolveCapacity:
    """Tests for capacity precedence."""

    def test_single_mode_is_always_one(self):
        assert resolve_capacity(CapacityMode.SINGLE, 10, 20, 30) == 1

    @pytest.mark.parametrize(
        "service,window,default,expected",
        [
            (5, 20, 12, 5),
            (None, 20, 12, 20),
            (None, None, 12, 12),
            (None, None, None, None),
            (0, 20, 12, None),
            (None, None, 0, None),
        ],
    )
    def test_multiple_mode_precedence(self, service, window, default, expected):
        """Service capacity beats the window override, which beats the default; 0 means unlimited."""
        assert resolve_capacity(CapacityMode.MULTIPLE, service, window, default) == expected


class TestSingleMode:
    """Tests for SINGLE capacity mode."""

    def test_overlapping_appointment_blocks_slot(self):
        slots = annotate(
            [_candidate("09:00", "09:30"), _candidate("09:30", "10:00"), _candidate("10:00", "10:30")],
            [_appointment("09:45", "10:15")],
            CapacityMode.SINGLE,
            1,
        )

        assert [s.available for s in slots] == [True, False, False]
        assert all(s.spots_left is None for s in slots)

    def test_touching_appointment_does_not_block(self):
        """Intervals are half-open, so back-to-back bookings are fine."""
        slots = annotate([_candidate("10:30", "11:00")], [_appointment("10:00", "10:30")], CapacityMode.SINGLE, 1)

        assert slots[0].available

    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW])
    def test_non_blocking_statuses_are_ignored(self, status):
        slots = annotate([_candidate("10:00", "10:30")], [_appointment("10:00", "10:30", status=status)], CapacityMode.SINGLE, 1)

        assert slots[0].available

    def test_completed_appointments_still_block(self):
        slots = annotate(
            [_candidate("10:00", "10:30")],
            [_appointment("10:00", "10:30", status=AppointmentStatus.COMPLETED)],
            CapacityMode.SINGLE,
            1,
        )

        assert not slots[0].available


class TestMultipleMode:
    """Tests for MULTIPLE capacity mode."""

    def test_spots_left_counts_overlaps(self):
        appointments = [_appointment("10:00", "10:30", appointment_id=f"apt-{i}") for i in range(2)]

        slot = annotate([_candidate("10:00", "10:30")], appointments, CapacityMode.MULTIPLE, 3)[0]

        assert slot.available
        assert slot.spots_left == 1
        assert slot.total_capacity == 3

    def test_full_slot_is_unavailable(self):
        appointments = [_appointment("10:00", "10:30", appointment_id=f"apt-{i}") for i in range(3)]

        slot = annotate([_candidate("10:00", "10:30")], appointments, CapacityMode.MULTIPLE, 3)[0]

        assert not slot.available
        assert slot.spots_left == 0

    def test_unlimited_capacity(self):
        """Without any capacity value every slot stays open and spots are omitted."""
        appointments = [_appointment("10:00", "10:30", appointment_id=f"apt-{i}") for i in range(50)]

        slot = annotate([_candidate("10:00", "10:30")], appointments, CapacityMode.MULTIPLE, None)[0]

        assert slot.available
        assert slot.spots_left is None
        assert "spotsLeft" not in slot.to_payload()

    def test_window_override_and_service_capacity(self):
        """The window override replaces the default, a service capacity replaces both."""
        candidate = _candidate("10:00", "10:30", capacity_override=20)
        appointments = [_appointment("10:00", "10:30")]

        by_window = OccupancyChecker(CapacityMode.MULTIPLE, 12).annotate([candidate], appointments)[0]
        by_service = OccupancyChecker(CapacityMode.MULTIPLE, 12, service_capacity=1).annotate(
            [candidate], appointments
        )[0]

        assert by_window.spots_left == 19
        assert not by_service.available
        assert by_service.to_payload() == {
            "startTime": "10:00",
            "endTime": "10:30",
            "available": False,
            "spotsLeft": 0,
            "totalCapacity": 1,
        }


class TestOccupancyChecker:
    """Tests for buffers, past filtering and blocking."""

    def test_buffer_extends_appointments(self):
        checker = OccupancyChecker(CapacityMode.SINGLE, buffer_minutes=15)

        slots = checker.annotate(
            [_candidate("10:30", "11:00"), _candidate("11:00", "11:30")],
            [_appointment("10:00", "10:30")],
        )

        assert [s.available for s in slots] == [False, True]

    def test_past_cutoff_marks_started_slots(self):
        checker = OccupancyChecker(CapacityMode.SINGLE, past_cutoff=615.0)

        slots = checker.annotate([_candidate("10:00", "10:30"), _candidate("10:30", "11:00")], [])

        assert [s.is_past for s in slots] == [True, False]
        assert [s.available for s in slots] == [False, True]
        assert slots[0].to_payload()["isPast"] is True

    def test_blocked_checker_marks_everything_unavailable(self):
        checker = OccupancyChecker(CapacityMode.MULTIPLE, 10, blocked=True)

        slots = checker.annotate([_candidate("10:00", "10:30")], [])

        assert not slots[0].available
        assert slots[0].spots_left == 10

    def test_output_is_sorted_by_start(self):
        checker = OccupancyChecker(CapacityMode.SINGLE)

        slots = checker.annotate([_candidate("11:00", "11:30"), _candidate("09:00", "09:30")], [])

        assert [s.start_time for s in slots] == ["09:00", "11:00"]
