"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityCalculator
from .booking_engine import BookingEngine, ScheduleRepositoryProtocol
from .booking_validator import BookingDecision, BookingOutcome, BookingRequest, BookingValidator

__all__ = [
    "AvailabilityCalculator",
    "BookingDecision",
    "BookingEngine",
    "BookingOutcome",
    "BookingRequest",
    "BookingValidator",
    "ScheduleRepositoryProtocol",
]
