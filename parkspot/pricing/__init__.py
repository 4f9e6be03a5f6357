from parkspot.pricing.calculator import (
    billable_hours,
    compute_duration,
    compute_extension_cost,
    compute_overtime,
    compute_price,
    quote_booking,
    require_aware,
    resolve_services,
    select_hourly_rate,
)
from parkspot.pricing.refund import calculate_refund, can_be_cancelled, hours_until_start

__all__ = [
    "billable_hours", "compute_duration", "compute_extension_cost", "compute_overtime",
    "compute_price", "quote_booking", "require_aware", "resolve_services", "select_hourly_rate",
    "calculate_refund", "can_be_cancelled", "hours_until_start",
]
