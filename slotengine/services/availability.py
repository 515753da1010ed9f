"""
Per-day and date-range availability.

Drives rule resolution, slot generation and occupancy for each requested date
of a ``ScheduleSnapshot``. Everything here is synchronous and side-effect free;
fetching the snapshot is the job of ``BookingEngine``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pendulum import Date

from ..domain.models import (
    Business,
    CapacityMode,
    DayResult,
    Employee,
    RangeResult,
    ScheduleSnapshot,
    Service,
)
from ..domain.occupancy import OccupancyChecker, resolve_capacity
from ..domain.rule_resolver import Closed, Resolution, RuleResolver
from ..domain.slot_generator import SlotGenerator
from ..domain.time_model import Clock, SystemClock, iter_dates, minutes_into_day

logger = logging.getLogger(__name__)

SERVICE_INACTIVE_REASON = "Service is not active"
PAST_DATE_REASON = "Date is in the past"
NO_FITTING_WINDOW_REASON = "Service duration does not fit the working hours on this date"


class AvailabilityCalculator:
    """
    Computes bookable slots for one service.

    The clock is injected so "now" (and with it past-slot filtering) is
    resolved in the business timezone without relying on the system clock.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def compute_day(
        self,
        snapshot: ScheduleSnapshot,
        service: Service,
        date: Date,
        *,
        employee: Optional[Employee] = None,
        allow_past_slots: bool = False,
        exclude_appointment_id: Optional[str] = None,
    ) -> DayResult:
        """
        Availability of a single date.

        Args:
            snapshot: Schedule data read as of one point in time
            service: Service being booked
            date: Business-local calendar date
            employee: Restrict to one employee's schedule and bookings
            allow_past_slots: Keep elapsed slots bookable (business-side booking)
            exclude_appointment_id: Appointment ignored for occupancy (rescheduling)

        Returns:
            DayResult, unavailable with a reason or carrying annotated slots
        """
        business = snapshot.business

        if not service.is_active:
            return DayResult.unavailable(date, SERVICE_INACTIVE_REASON, service)

        now = self.clock.now(business.timezone)
        today = now.date()

        if not allow_past_slots and date < today:
            return DayResult.unavailable(date, PAST_DATE_REASON, service)

        resolution = self.resolve(snapshot, date, employee)

        if isinstance(resolution, Closed):
            logger.debug("%s closed for %s: %s", resolution.scope, date, resolution.reason)
            return DayResult.unavailable(date, resolution.reason, service)

        generator = self.generator_for(business, service)
        candidates = generator.generate(resolution)

        if not candidates:
            return DayResult.unavailable(date, NO_FITTING_WINDOW_REASON, service)

        appointments = snapshot.appointments_on(
            date,
            employee_id=employee.id if employee else None,
            exclude_appointment_id=exclude_appointment_id,
        )
        at_capacity = self.employee_at_capacity(employee, len(appointments))

        past_cutoff = None
        if not allow_past_slots and date == today:
            past_cutoff = minutes_into_day(now)

        checker = self.checker_for(business, service, past_cutoff=past_cutoff, blocked=at_capacity)
        slots = checker.annotate(candidates, appointments)

        logger.debug(
            "Computed %d slots (%d available) for service %s on %s",
            len(slots), sum(1 for s in slots if s.available), service.id, date,
        )

        first_override = resolution.windows[0].capacity_override if resolution.windows else None

        return DayResult(
            date=date,
            available=True,
            windows=resolution.hours,
            breaks=resolution.breaks,
            capacity_mode=business.capacity_mode,
            capacity=resolve_capacity(
                business.capacity_mode,
                service.custom_capacity,
                first_override,
                business.default_capacity,
            ),
            service=service,
            employee=employee,
            employee_at_capacity=at_capacity,
            slots=slots,
        )

    def compute_range(
        self,
        snapshot: ScheduleSnapshot,
        service: Service,
        start_date: Date,
        end_date: Date,
        *,
        employee: Optional[Employee] = None,
        allow_past_slots: bool = False,
    ) -> RangeResult:
        """Run ``compute_day`` for every date from start_date to end_date inclusive."""
        days: List[DayResult] = [
            self.compute_day(
                snapshot,
                service,
                day,
                employee=employee,
                allow_past_slots=allow_past_slots,
            )
            for day in iter_dates(start_date, end_date)
        ]
        return RangeResult(days=days)

    @staticmethod
    def resolve(snapshot: ScheduleSnapshot, date: Date, employee: Optional[Employee]) -> Resolution:
        employee_layer = snapshot.layer_for(employee.id) if employee else None
        return RuleResolver(snapshot.business_layer, employee_layer).resolve(date)

    @staticmethod
    def step_interval(business: Business, service: Service) -> int:
        return service.slot_interval or business.default_slot_interval or service.duration

    def generator_for(self, business: Business, service: Service) -> SlotGenerator:
        return SlotGenerator(
            service_duration=service.duration,
            step_interval=self.step_interval(business, service),
        )

    @staticmethod
    def checker_for(
        business: Business,
        service: Service,
        *,
        past_cutoff: Optional[float] = None,
        blocked: bool = False,
    ) -> OccupancyChecker:
        return OccupancyChecker(
            capacity_mode=business.capacity_mode,
            capacity=business.default_capacity if business.capacity_mode == CapacityMode.MULTIPLE else 1,
            service_capacity=service.custom_capacity,
            buffer_minutes=business.settings.buffer_minutes,
            past_cutoff=past_cutoff,
            blocked=blocked,
        )

    @staticmethod
    def employee_at_capacity(employee: Optional[Employee], booked: int) -> bool:
        if employee is None or employee.max_daily_appointments <= 0:
            return False
        return booked >= employee.max_daily_appointments
