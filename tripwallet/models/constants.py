"""Domain constants and enumerations for validation."""

from typing import Set

# Codes are compared verbatim; no case folding happens anywhere in the core.
CURRENCY_PATTERN = r"^[A-Z]{3}$"

CATEGORIES: Set[str] = {
    "food",
    "transport",
    "accommodation",
    "activities",
    "shopping",
    "entertainment",
    "health",
    "other",
}

NS_PER_SECOND = 10**9
NS_PER_DAY = 24 * 60 * 60 * NS_PER_SECOND
