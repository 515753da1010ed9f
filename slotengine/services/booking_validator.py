"""
Booking-time re-validation of a single requested slot.

A slot list shown to a client may be stale by the time they book, so the
write path re-derives the working windows and re-runs the occupancy check
against the current appointments instead of trusting the earlier result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pendulum import Date

from ..domain.models import AppointmentStatus, Employee, ScheduleSnapshot, Service, SlotCandidate
from ..domain.rule_resolver import Closed
from ..domain.time_model import (
    Clock,
    MINUTES_PER_DAY,
    MinuteInterval,
    SystemClock,
    format_time,
    local_datetime,
)
from .availability import SERVICE_INACTIVE_REASON, AvailabilityCalculator

logger = logging.getLogger(__name__)


class BookingOutcome(str, Enum):
    OK = "OK"
    CONFLICT = "CONFLICT"
    CLOSED = "CLOSED"
    PAST_SLOT = "PAST_SLOT"
    OFF_GRID = "OFF_GRID"
    BOOKING_WINDOW = "BOOKING_WINDOW"
    DAILY_LIMIT = "DAILY_LIMIT"

    @property
    def http_status(self) -> int:
        if self is BookingOutcome.OK:
            return 201
        if self in (BookingOutcome.CONFLICT, BookingOutcome.DAILY_LIMIT):
            return 409
        return 400


@dataclass(frozen=True)
class BookingRequest:
    business_id: str
    service_id: str
    date: Date
    start_time: int  # minutes since midnight
    employee_id: Optional[str] = None
    allow_past_slots: bool = False
    exclude_appointment_id: Optional[str] = None


@dataclass(frozen=True)
class BookingDecision:
    outcome: BookingOutcome
    message: str
    interval: Optional[MinuteInterval] = None
    initial_status: Optional[AppointmentStatus] = None

    @property
    def ok(self) -> bool:
        return self.outcome is BookingOutcome.OK

    @property
    def http_status(self) -> int:
        return self.outcome.http_status

    def to_payload(self) -> dict:
        payload = {
            "outcome": self.outcome.value,
            "message": self.message,
            "httpStatus": self.http_status,
        }
        if self.interval is not None:
            payload["startTime"] = format_time(self.interval.start)
            payload["endTime"] = format_time(self.interval.end)
        if self.initial_status is not None:
            payload["initialStatus"] = self.initial_status.value
        return payload


class BookingValidator:
    """
    Decides whether one requested slot can be booked right now.

    Grid alignment is enforced: the start time must be one of the start
    times the slot generator would produce, not merely fit in a window.
    """

    def __init__(self, calculator: Optional[AvailabilityCalculator] = None, clock: Optional[Clock] = None):
        self.calculator = calculator or AvailabilityCalculator(clock=clock or SystemClock())

    @property
    def clock(self) -> Clock:
        return self.calculator.clock

    def validate(
        self,
        snapshot: ScheduleSnapshot,
        service: Service,
        request: BookingRequest,
        employee: Optional[Employee] = None,
    ) -> BookingDecision:
        business = snapshot.business
        settings = business.settings

        if service.duration <= 0 or request.start_time + service.duration > MINUTES_PER_DAY:
            return BookingDecision(BookingOutcome.OFF_GRID, "Requested time is outside working hours")

        requested = MinuteInterval(start=request.start_time, end=request.start_time + service.duration)
        start_label = format_time(requested.start)

        if not service.is_active:
            return BookingDecision(BookingOutcome.CLOSED, SERVICE_INACTIVE_REASON, requested)

        now = self.clock.now(business.timezone)
        starts_at = local_datetime(request.date, requested.start, business.timezone)

        if not request.allow_past_slots:
            if starts_at <= now:
                return BookingDecision(
                    BookingOutcome.PAST_SLOT,
                    f"Time slot {start_label} on {request.date.format('YYYY-MM-DD')} has already passed",
                    requested,
                )

            window_violation = self._booking_window_violation(now, starts_at, settings)
            if window_violation:
                return BookingDecision(BookingOutcome.BOOKING_WINDOW, window_violation, requested)

        appointments = snapshot.appointments_on(
            request.date,
            employee_id=employee.id if employee else None,
            exclude_appointment_id=request.exclude_appointment_id,
        )

        if not request.allow_past_slots and settings.max_appointments_per_day > 0:
            booked_today = len(
                snapshot.appointments_on(request.date, exclude_appointment_id=request.exclude_appointment_id)
            )
            if booked_today >= settings.max_appointments_per_day:
                return BookingDecision(
                    BookingOutcome.DAILY_LIMIT,
                    f"Maximum appointments for {request.date.format('YYYY-MM-DD')} has been reached",
                    requested,
                )

        if self.calculator.employee_at_capacity(employee, len(appointments)):
            return BookingDecision(
                BookingOutcome.DAILY_LIMIT,
                f"{employee.name or employee.id} has no more appointments available on this date",
                requested,
            )

        resolution = self.calculator.resolve(snapshot, request.date, employee)

        if isinstance(resolution, Closed):
            return BookingDecision(BookingOutcome.CLOSED, resolution.reason, requested)

        generator = self.calculator.generator_for(business, service)
        capacity_override = None
        on_grid = False

        for window in resolution.windows:
            for sub_window in window.sub_windows:
                if generator.is_on_grid(sub_window, requested.start):
                    on_grid = True
                    capacity_override = window.capacity_override
                    break
            if on_grid:
                break

        if not on_grid:
            logger.debug("Rejected off-grid start %s on %s", start_label, request.date)
            return BookingDecision(
                BookingOutcome.OFF_GRID,
                f"Time slot {start_label} is not a bookable start time",
                requested,
            )

        checker = self.calculator.checker_for(business, service)
        occupied = checker.occupied_intervals(appointments)
        slot = checker.annotate_one(
            SlotCandidate(interval=requested, capacity_override=capacity_override),
            occupied,
        )

        if not slot.available:
            return BookingDecision(
                BookingOutcome.CONFLICT,
                f"Time slot {start_label} is no longer available",
                requested,
            )

        return BookingDecision(
            BookingOutcome.OK,
            "Time slot is available",
            requested,
            initial_status=self.initial_status(settings),
        )

    @staticmethod
    def initial_status(settings) -> AppointmentStatus:
        """
        PENDING while an email confirmation or manual approval is outstanding,
        CONFIRMED otherwise.
        """
        if settings.require_email_confirmation or not settings.auto_confirm:
            return AppointmentStatus.PENDING
        return AppointmentStatus.CONFIRMED

    @staticmethod
    def _booking_window_violation(now, starts_at, settings) -> Optional[str]:
        notice = settings.min_booking_notice_hours
        if notice > 0 and starts_at < now.add(hours=notice):
            plural = "s" if notice > 1 else ""
            return f"Appointments must be booked at least {notice} hour{plural} in advance"

        advance = settings.max_advance_booking_days
        if advance > 0 and starts_at > now.add(days=advance):
            return f"Appointments cannot be booked more than {advance} days in advance"

        return None
