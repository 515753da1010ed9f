"""
Occupancy of candidate slots against existing appointments.
"""

from typing import List, Optional, Sequence

from .models import Appointment, CapacityMode, Slot, SlotCandidate
from .time_model import MinuteInterval


def resolve_capacity(
    capacity_mode: CapacityMode,
    service_capacity: Optional[int],
    window_capacity: Optional[int],
    default_capacity: Optional[int],
) -> Optional[int]:
    """
    Effective capacity of a slot. None means unlimited.

    SINGLE businesses always hold one booking per interval. For MULTIPLE the
    service capacity wins over the window override, which wins over the
    business default; 0 is treated as unlimited.
    """
    if capacity_mode == CapacityMode.SINGLE:
        return 1

    for capacity in (service_capacity, window_capacity, default_capacity):
        if capacity is not None:
            return capacity or None

    return None


class OccupancyChecker:
    """
    Marks candidates as available or full.

    Args:
        capacity_mode: SINGLE or MULTIPLE
        capacity: Default capacity for candidates without their own override
        service_capacity: Capacity of the booked service, if customised
        buffer_minutes: Extra minutes blocked after every appointment
        past_cutoff: Minutes since midnight at or before which a slot is past;
            None disables past filtering
        blocked: Mark every slot unavailable (employee daily limit reached)
    """

    def __init__(
        self,
        capacity_mode: CapacityMode,
        capacity: Optional[int] = 1,
        *,
        service_capacity: Optional[int] = None,
        buffer_minutes: int = 0,
        past_cutoff: Optional[float] = None,
        blocked: bool = False,
    ):
        self.capacity_mode = capacity_mode
        self.capacity = capacity
        self.service_capacity = service_capacity
        self.buffer_minutes = buffer_minutes
        self.past_cutoff = past_cutoff
        self.blocked = blocked

    def annotate(self, candidates: Sequence[SlotCandidate], appointments: Sequence[Appointment]) -> List[Slot]:
        occupied = self.occupied_intervals(appointments)
        slots = [self.annotate_one(candidate, occupied) for candidate in candidates]
        return sorted(slots, key=lambda s: s.interval.start)

    def annotate_one(self, candidate: SlotCandidate, occupied: Sequence[MinuteInterval]) -> Slot:
        interval = candidate.interval
        overlapping = sum(1 for busy in occupied if busy.overlaps(interval))
        is_past = self.past_cutoff is not None and interval.start <= self.past_cutoff

        if self.capacity_mode == CapacityMode.SINGLE:
            available = overlapping == 0
            spots_left = None
            total_capacity = None
        else:
            total_capacity = resolve_capacity(
                self.capacity_mode,
                self.service_capacity,
                candidate.capacity_override,
                self.capacity,
            )
            if total_capacity is None:
                available = True
                spots_left = None
            else:
                spots_left = max(total_capacity - overlapping, 0)
                available = overlapping < total_capacity

        if is_past or self.blocked:
            available = False

        return Slot(
            interval=interval,
            available=available,
            spots_left=spots_left,
            total_capacity=total_capacity,
            is_past=is_past,
        )

    def occupied_intervals(self, appointments: Sequence[Appointment]) -> List[MinuteInterval]:
        return [
            MinuteInterval(
                start=appointment.interval.start,
                end=appointment.interval.end + self.buffer_minutes,
            )
            for appointment in appointments
            if appointment.is_blocking
        ]


def annotate(
    candidates: Sequence[SlotCandidate],
    existing_appointments: Sequence[Appointment],
    capacity_mode: CapacityMode,
    capacity: Optional[int],
) -> List[Slot]:
    """Plain occupancy check without past filtering or buffers."""
    return OccupancyChecker(capacity_mode=capacity_mode, capacity=capacity).annotate(
        candidates, existing_appointments
    )
