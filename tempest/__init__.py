"""Tempest weather alerts: threshold alert evaluation for home weather stations."""

from .alerts import AlertNotFoundError, AlertService, AlertValidationError
from .evaluator import AlertEvaluator, evaluate_reading
from .scheduler import AlertScheduler
from .weather import ReadingFormatError, WeatherService

__all__ = [
    "AlertEvaluator",
    "AlertNotFoundError",
    "AlertScheduler",
    "AlertService",
    "AlertValidationError",
    "ReadingFormatError",
    "WeatherService",
    "evaluate_reading",
]
