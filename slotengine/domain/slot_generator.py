"""
Enumeration of candidate slot start times inside open windows.
"""

from typing import List

from .models import SlotCandidate
from .rule_resolver import EffectiveWindow, ResolvedWindow
from .time_model import MinuteInterval


class SlotGenerator:
    """
    Steps through each open sub-window and emits every interval of the
    service duration that fits.

    Breaks are already excised from the sub-windows, so no candidate can
    span one.
    """

    def __init__(self, service_duration: int, step_interval: int):
        if service_duration <= 0:
            raise ValueError(f"Service duration must be positive, got {service_duration}")
        if step_interval <= 0:
            raise ValueError(f"Slot interval must be positive, got {step_interval}")

        self.service_duration = service_duration
        self.step_interval = step_interval

    def generate(self, effective: EffectiveWindow) -> List[SlotCandidate]:
        candidates: List[SlotCandidate] = []

        for window in effective.windows:
            for sub_window in window.sub_windows:
                candidates.extend(
                    SlotCandidate(interval=interval, capacity_override=window.capacity_override)
                    for interval in self.generate_for(sub_window)
                )

        # Overlapping rules on one weekday would otherwise emit a start twice
        unique: List[SlotCandidate] = []
        seen: set = set()
        for candidate in sorted(candidates, key=lambda c: c.interval.start):
            if candidate.interval.start in seen:
                continue
            seen.add(candidate.interval.start)
            unique.append(candidate)

        return unique

    def generate_for(self, sub_window: MinuteInterval) -> List[MinuteInterval]:
        """
        Example:
        Sub-window: 09:00 - 10:30, duration 30, step 30
        Result: [09:00-09:30, 09:30-10:00, 10:00-10:30]
        """
        intervals: List[MinuteInterval] = []
        current = sub_window.start

        while current + self.service_duration <= sub_window.end:
            intervals.append(MinuteInterval(start=current, end=current + self.service_duration))
            current += self.step_interval

        return intervals

    def is_on_grid(self, sub_window: MinuteInterval, start: int) -> bool:
        """Whether ``start`` is one of the generated start times of the sub-window."""
        if not sub_window.contains(MinuteInterval(start=start, end=start + self.service_duration)):
            return False
        return (start - sub_window.start) % self.step_interval == 0


def generate_slots(sub_windows: List[MinuteInterval], service_duration: int, step_interval: int) -> List[MinuteInterval]:
    """Functional form over bare sub-windows, concatenated chronologically."""
    generator = SlotGenerator(service_duration=service_duration, step_interval=step_interval)
    effective = EffectiveWindow(windows=[ResolvedWindow(hours=sub_window) for sub_window in sub_windows])
    return [candidate.interval for candidate in generator.generate(effective)]
