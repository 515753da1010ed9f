"""
Application service exposing the availability engine to callers.

The engine fetches one ``ScheduleSnapshot`` per call through a repository
adapter and delegates the actual computation to ``AvailabilityCalculator`` and
``BookingValidator``. Caller-level validation (unknown ids, reversed or
oversized ranges, employee selection policy) happens here so the calculators
only ever see well-formed input.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol

from pendulum import Date

from ..domain.exceptions import InvalidDateRangeError, InvalidInputError, NotFoundError
from ..domain.models import DayResult, Employee, RangeResult, ScheduleSnapshot, Service
from ..domain.time_model import Clock, SystemClock, format_date
from .availability import AvailabilityCalculator
from .booking_validator import BookingDecision, BookingRequest, BookingValidator

logger = logging.getLogger(__name__)

DEFAULT_MAX_RANGE_DAYS = 30

ReserveCallback = Callable[[BookingRequest, BookingDecision], Awaitable[None]]


class ScheduleRepositoryProtocol(Protocol):
    """Protocol describing the data access needed by the engine."""

    async def load_snapshot(
        self,
        business_id: str,
        start_date: Date,
        end_date: Date,
    ) -> ScheduleSnapshot:
        """
        Return rules, services, employees and the appointments between
        start_date and end_date, all read as of the same moment.

        Raises NotFoundError for an unknown business.
        """


class BookingEngine:
    """
    Orchestrates snapshot retrieval, availability and booking checks.

    Dependency inversion toward a protocol makes it easy to plug in a
    database-backed repository or the in-memory one in tests.
    """

    def __init__(
        self,
        repository: ScheduleRepositoryProtocol,
        clock: Optional[Clock] = None,
        max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
    ) -> None:
        self._repository = repository
        self._calculator = AvailabilityCalculator(clock=clock or SystemClock())
        self._validator = BookingValidator(calculator=self._calculator)
        self.max_range_days = max_range_days

    async def compute_day(
        self,
        *,
        business_id: str,
        service_id: str,
        date: Date,
        employee_id: Optional[str] = None,
        allow_past_slots: bool = False,
        exclude_appointment_id: Optional[str] = None,
    ) -> DayResult:
        """Availability of one date for a service, optionally for one employee."""
        snapshot = await self._repository.load_snapshot(business_id, date, date)
        service, employee = self._resolve_entities(
            snapshot, service_id, employee_id, allow_past_slots
        )

        return self._calculator.compute_day(
            snapshot,
            service,
            date,
            employee=employee,
            allow_past_slots=allow_past_slots,
            exclude_appointment_id=exclude_appointment_id,
        )

    async def compute_range(
        self,
        *,
        business_id: str,
        service_id: str,
        start_date: Date,
        end_date: Date,
        employee_id: Optional[str] = None,
        allow_past_slots: bool = False,
    ) -> RangeResult:
        """Availability of every date between start_date and end_date inclusive."""
        self.validate_range(start_date, end_date)

        snapshot = await self._repository.load_snapshot(business_id, start_date, end_date)
        service, employee = self._resolve_entities(
            snapshot, service_id, employee_id, allow_past_slots
        )

        logger.info(
            "Computing availability for service %s from %s to %s",
            service_id, format_date(start_date), format_date(end_date),
        )

        return self._calculator.compute_range(
            snapshot,
            service,
            start_date,
            end_date,
            employee=employee,
            allow_past_slots=allow_past_slots,
        )

    async def validate_and_reserve(
        self,
        request: BookingRequest,
        reserve: Optional[ReserveCallback] = None,
    ) -> BookingDecision:
        """
        Re-check a requested slot against freshly loaded data.

        Call this inside the transaction that inserts the appointment; the
        optional ``reserve`` callback is awaited only when the slot is free.
        """
        snapshot = await self._repository.load_snapshot(
            request.business_id, request.date, request.date
        )
        service, employee = self._resolve_entities(
            snapshot, request.service_id, request.employee_id, request.allow_past_slots
        )

        decision = self._validator.validate(snapshot, service, request, employee=employee)

        logger.info(
            "Booking check for %s %s: %s",
            format_date(request.date), decision.interval, decision.outcome.value,
        )

        if decision.ok and reserve is not None:
            await reserve(request, decision)

        return decision

    def validate_range(self, start_date: Date, end_date: Date) -> None:
        """
        The limit applies to the distance between the dates, so a 30 day
        limit accepts 31 calendar days (e.g. the 1st to the 31st).
        """
        if start_date > end_date:
            raise InvalidDateRangeError("startDate must be before or equal to endDate")

        days = (end_date - start_date).days
        if self.max_range_days > 0 and days > self.max_range_days:
            raise InvalidDateRangeError(
                f"Date range cannot exceed {self.max_range_days} days, got {days}"
            )

    @staticmethod
    def _resolve_entities(
        snapshot: ScheduleSnapshot,
        service_id: str,
        employee_id: Optional[str],
        allow_past_slots: bool,
    ) -> tuple[Service, Optional[Employee]]:
        """
        Look up the service and employee, raising for unknown ids.

        Public callers (``allow_past_slots=False``) may only pick an employee
        when the business enables employee booking.
        """
        business = snapshot.business
        service = snapshot.services.get(service_id)

        if service is None or service.business_id != business.id:
            raise NotFoundError(f"Service not found for this business: {service_id}")

        if employee_id is None:
            return service, None

        employee = snapshot.employees.get(employee_id)

        if employee is None or employee.business_id != business.id or not employee.is_active:
            raise NotFoundError(f"Employee not found or inactive: {employee_id}")

        if not allow_past_slots and not business.settings.allow_employee_booking:
            raise InvalidInputError("Employee selection is not enabled for this business")

        if not employee.can_perform(service.id):
            raise InvalidInputError("Selected employee is not assigned to this service")

        return service, employee
