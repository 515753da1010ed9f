"""
Resolution of the effective working windows of a scope for one date.

Precedence is expressed as an ordered list of strategies. Each strategy
either resolves the date (open windows or closed) or defers to the next one;
when every strategy defers the scope is closed.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

from pendulum import Date

from .models import ScheduleLayer
from .time_model import MinuteInterval

BUSINESS_CLOSED_REASON = "Business is closed on this date"
EMPLOYEE_UNAVAILABLE_REASON = "Employee is not available on this date"


@dataclass(frozen=True)
class ResolvedWindow:
    """
    One open window of a day with the breaks cut out of it.
    """
    hours: MinuteInterval
    breaks: tuple = ()
    capacity_override: Optional[int] = None

    @property
    def sub_windows(self) -> List[MinuteInterval]:
        return self.hours.subtract(list(self.breaks))


@dataclass(frozen=True)
class EffectiveWindow:
    windows: List[ResolvedWindow] = field(default_factory=list)
    source: str = "weekly"
    scope: str = "business"

    @property
    def hours(self) -> List[MinuteInterval]:
        return [window.hours for window in self.windows]

    @property
    def breaks(self) -> List[MinuteInterval]:
        return sorted(b for window in self.windows for b in window.breaks)

    @property
    def sub_windows(self) -> List[MinuteInterval]:
        return sorted(sub for window in self.windows for sub in window.sub_windows)


@dataclass(frozen=True)
class Closed:
    reason: str
    scope: str = "business"


Resolution = Union[EffectiveWindow, Closed]


class ResolverStrategy(Protocol):
    """A single precedence level: resolve the date or return None to defer."""

    def resolve(self, layer: ScheduleLayer, value: Date) -> Optional[Resolution]:
        ...


class SpecialDateStrategy:
    """Special dates override the weekly schedule for their exact date."""

    def __init__(self, scope: str, closed_reason: str):
        self.scope = scope
        self.closed_reason = closed_reason

    def resolve(self, layer: ScheduleLayer, value: Date) -> Optional[Resolution]:
        special = layer.special_date_for(value)

        if special is None:
            return None

        if not special.is_available:
            return Closed(reason=special.reason or self.closed_reason, scope=self.scope)

        # Open without custom hours keeps the regular weekly hours
        if special.hours is None:
            return None

        return EffectiveWindow(
            windows=[
                ResolvedWindow(hours=special.hours, capacity_override=special.capacity_override)
            ],
            source="special_date",
            scope=self.scope,
        )


class WeeklyRuleStrategy:
    """Every available rule of the weekday is an independent window."""

    def __init__(self, scope: str):
        self.scope = scope

    def resolve(self, layer: ScheduleLayer, value: Date) -> Optional[Resolution]:
        rules = [rule for rule in layer.rules_for(value) if rule.is_available]

        if not rules:
            return None

        return EffectiveWindow(
            windows=[
                ResolvedWindow(
                    hours=rule.hours,
                    breaks=tuple(sorted(rule.breaks)),
                    capacity_override=rule.capacity_override,
                )
                for rule in rules
            ],
            source="weekly",
            scope=self.scope,
        )


class RuleResolver:
    """
    Resolves the effective windows for a business, or for one of its
    employees.

    An employee without any rule or special date of their own inherits the
    business schedule unchanged; otherwise the employee schedule fully
    replaces it.
    """

    def __init__(self, business_layer: ScheduleLayer, employee_layer: Optional[ScheduleLayer] = None):
        self.business_layer = business_layer
        self.employee_layer = employee_layer

    @property
    def uses_employee_layer(self) -> bool:
        return self.employee_layer is not None and self.employee_layer.is_customized

    def resolve(self, value: Date) -> Resolution:
        if self.uses_employee_layer:
            return self.resolve_scope(
                self.employee_layer, value, scope="employee", closed_reason=EMPLOYEE_UNAVAILABLE_REASON
            )

        return self.resolve_scope(
            self.business_layer, value, scope="business", closed_reason=BUSINESS_CLOSED_REASON
        )

    @staticmethod
    def strategies(scope: str, closed_reason: str) -> Sequence[ResolverStrategy]:
        return (
            SpecialDateStrategy(scope=scope, closed_reason=closed_reason),
            WeeklyRuleStrategy(scope=scope),
        )

    @classmethod
    def resolve_scope(
        cls,
        layer: ScheduleLayer,
        value: Date,
        *,
        scope: str = "business",
        closed_reason: str = BUSINESS_CLOSED_REASON,
    ) -> Resolution:
        for strategy in cls.strategies(scope, closed_reason):
            resolution = strategy.resolve(layer, value)
            if resolution is not None:
                return resolution

        return Closed(reason=closed_reason, scope=scope)
