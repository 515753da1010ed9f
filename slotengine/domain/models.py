"""
Domain models for businesses, schedules, appointments and computed slots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pendulum import Date

from .time_model import DEFAULT_TIMEZONE, MinuteInterval, day_of_week, format_date, format_time


class CapacityMode(str, Enum):
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

    @property
    def is_blocking(self) -> bool:
        """Whether an appointment in this status occupies capacity."""
        return self in BLOCKING_STATUSES


BLOCKING_STATUSES = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED}
)


@dataclass(frozen=True)
class BookingSettings:
    """
    Typed booking policy of a business.

    Hour/day/count limits use 0 to mean "no limit".
    """
    allow_employee_booking: bool = False
    min_booking_notice_hours: int = 2
    max_advance_booking_days: int = 30
    max_appointments_per_day: int = 0
    buffer_minutes: int = 0
    auto_confirm: bool = True
    require_email_confirmation: bool = False


@dataclass(frozen=True)
class Business:
    id: str
    name: str = ""
    capacity_mode: CapacityMode = CapacityMode.SINGLE
    default_capacity: Optional[int] = 1
    default_slot_interval: int = 15
    timezone: str = DEFAULT_TIMEZONE
    settings: BookingSettings = field(default_factory=BookingSettings)


@dataclass(frozen=True)
class Service:
    id: str
    business_id: str
    duration: int  # minutes
    name: str = ""
    custom_capacity: Optional[int] = None
    slot_interval: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class Employee:
    id: str
    business_id: str
    name: str = ""
    is_active: bool = True
    service_ids: FrozenSet[str] = frozenset()
    max_daily_appointments: int = 0  # 0 = no limit

    def can_perform(self, service_id: str) -> bool:
        return service_id in self.service_ids


@dataclass(frozen=True)
class WeeklyRule:
    """
    Recurring working hours for one weekday (0=Sunday, 6=Saturday).

    Breaks belong to this rule only.
    """
    id: str
    day_of_week: int
    hours: MinuteInterval
    is_available: bool = True
    capacity_override: Optional[int] = None
    breaks: Tuple[MinuteInterval, ...] = ()


@dataclass(frozen=True)
class SpecialDate:
    """
    Override for one calendar date.

    Closed dates shut the scope down; open dates with hours replace the
    weekly schedule, open dates without hours keep the weekly schedule.
    """
    date: Date
    is_available: bool = False
    hours: Optional[MinuteInterval] = None
    reason: Optional[str] = None
    capacity_override: Optional[int] = None


@dataclass(frozen=True)
class ScheduleLayer:
    """Weekly rules and special dates of one scope (business or employee)."""
    weekly_rules: Tuple[WeeklyRule, ...] = ()
    special_dates: Tuple[SpecialDate, ...] = ()

    @property
    def is_customized(self) -> bool:
        return bool(self.weekly_rules or self.special_dates)

    def special_date_for(self, value: Date) -> Optional[SpecialDate]:
        for special in self.special_dates:
            if special.date == value:
                return special
        return None

    def rules_for(self, value: Date) -> List[WeeklyRule]:
        weekday = day_of_week(value)
        return sorted(
            (rule for rule in self.weekly_rules if rule.day_of_week == weekday),
            key=lambda rule: rule.hours.start,
        )


@dataclass(frozen=True)
class Appointment:
    id: str
    business_id: str
    service_id: str
    date: Date
    interval: MinuteInterval
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    employee_id: Optional[str] = None

    @property
    def is_blocking(self) -> bool:
        return self.status.is_blocking


@dataclass
class ScheduleSnapshot:
    """
    Everything the engine reads for one business, taken at one point in time.
    """
    business: Business
    services: Dict[str, Service] = field(default_factory=dict)
    employees: Dict[str, Employee] = field(default_factory=dict)
    business_layer: ScheduleLayer = field(default_factory=ScheduleLayer)
    employee_layers: Dict[str, ScheduleLayer] = field(default_factory=dict)
    appointments: List[Appointment] = field(default_factory=list)

    def layer_for(self, employee_id: Optional[str]) -> Optional[ScheduleLayer]:
        if employee_id is None:
            return None
        return self.employee_layers.get(employee_id, ScheduleLayer())

    def appointments_on(
        self,
        value: Date,
        employee_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Appointment]:
        """
        Blocking appointments of a date, scoped to an employee when given.
        """
        return [
            appointment for appointment in self.appointments
            if appointment.date == value
            and appointment.is_blocking
            and appointment.id != exclude_appointment_id
            and (employee_id is None or appointment.employee_id == employee_id)
        ]


@dataclass(frozen=True)
class SlotCandidate:
    """A generated interval, not yet checked against appointments."""
    interval: MinuteInterval
    capacity_override: Optional[int] = None


@dataclass(frozen=True)
class Slot:
    """A candidate annotated with its occupancy."""
    interval: MinuteInterval
    available: bool
    spots_left: Optional[int] = None
    total_capacity: Optional[int] = None
    is_past: bool = False

    @property
    def start_time(self) -> str:
        return format_time(self.interval.start)

    @property
    def end_time(self) -> str:
        return format_time(self.interval.end)

    def to_payload(self) -> dict:
        payload = {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "available": self.available,
        }
        if self.spots_left is not None:
            payload["spotsLeft"] = self.spots_left
            payload["totalCapacity"] = self.total_capacity
        if self.is_past:
            payload["isPast"] = True
        return payload


@dataclass
class DayResult:
    """
    Availability of one date.

    Unavailable results only carry a reason; available results carry the
    resolved working hours and the annotated slots.
    """
    date: Date
    available: bool
    reason: Optional[str] = None
    windows: List[MinuteInterval] = field(default_factory=list)
    breaks: List[MinuteInterval] = field(default_factory=list)
    capacity_mode: Optional[CapacityMode] = None
    capacity: Optional[int] = None
    service: Optional[Service] = None
    employee: Optional[Employee] = None
    employee_at_capacity: bool = False
    slots: List[Slot] = field(default_factory=list)

    @classmethod
    def unavailable(cls, value: Date, reason: str, service: Optional[Service] = None) -> "DayResult":
        return cls(date=value, available=False, reason=reason, service=service)

    @property
    def total_slots(self) -> int:
        return len(self.slots)

    @property
    def available_slots(self) -> List[Slot]:
        return [slot for slot in self.slots if slot.available]

    @property
    def working_hours(self) -> Optional[MinuteInterval]:
        if not self.windows:
            return None
        return MinuteInterval(
            start=min(w.start for w in self.windows),
            end=max(w.end for w in self.windows),
        )

    def to_payload(self) -> dict:
        payload: dict = {
            "date": format_date(self.date),
            "available": self.available,
        }

        if not self.available:
            payload["reason"] = self.reason
            payload["slots"] = []
            return payload

        payload.update(
            {
                "workingHours": self.working_hours.to_payload(),
                "windows": [w.to_payload() for w in self.windows],
                "breaks": [b.to_payload() for b in self.breaks],
                "capacityMode": self.capacity_mode.value,
                "capacity": self.capacity,
                "totalSlots": self.total_slots,
                "availableSlots": len(self.available_slots),
                "slots": [slot.to_payload() for slot in self.slots],
            }
        )
        if self.service is not None:
            payload["service"] = {
                "id": self.service.id,
                "name": self.service.name,
                "duration": self.service.duration,
            }
        if self.employee is not None:
            payload["employee"] = {
                "id": self.employee.id,
                "name": self.employee.name,
                "atCapacity": self.employee_at_capacity,
            }
        return payload


@dataclass
class RangeResult:
    days: List[DayResult] = field(default_factory=list)

    @property
    def total_days(self) -> int:
        return len(self.days)

    def to_payload(self) -> dict:
        return {
            "days": [day.to_payload() for day in self.days],
            "totalDays": self.total_days,
        }
