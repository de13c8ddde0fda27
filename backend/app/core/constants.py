"""Application-wide constants for the Parla scheduling service."""

from __future__ import annotations

BRAND_NAME = "Parla"

# Wire formats shared by storage and the API
DAY_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
TIME_SLOT_SEPARATOR = "-"

MINUTES_PER_DAY = 24 * 60

# Class duration constraints (minutes)
MIN_CLASS_DURATION = 15
MAX_CLASS_DURATION = 240

# Text constraints
MAX_REASON_LENGTH = 255

# Query limits
MAX_SCHEDULE_RANGE_DAYS = 92
MAX_SLOT_RANGE_DAYS = 31

# API metadata
API_TITLE = f"{BRAND_NAME} Scheduling API"
API_DESCRIPTION = "Teacher availability, bookable slots and class bookings"
API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"
