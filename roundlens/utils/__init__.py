# Shared utilities — formatters, validators
from roundlens.utils.formatters import (
    format_hour,
    format_minute,
    format_multiplier,
    format_tiers,
    parse_minute,
)
from roundlens.utils.validators import (
    parse_outcomes,
    validate_date,
    validate_time,
    validate_value,
)

__all__ = [
    "format_hour",
    "format_minute",
    "format_multiplier",
    "format_tiers",
    "parse_minute",
    "parse_outcomes",
    "validate_date",
    "validate_time",
    "validate_value",
]
