"""
Adapters layer - Schedule data sources.
"""

from .fixture_loader import load_schedule_file, parse_schedule_data
from .in_memory import InMemoryScheduleRepository

__all__ = ["InMemoryScheduleRepository", "load_schedule_file", "parse_schedule_data"]
