"""Value Objects del dominio de reservaciones."""

from app.domain.value_objects.money import Money
from app.domain.value_objects.rate_limit import RateLimitSnapshot
from app.domain.value_objects.stay_dates import StayDates

__all__ = [
    "Money",
    "RateLimitSnapshot",
    "StayDates",
]
