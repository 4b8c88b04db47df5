"""Application-wide constants for the Parkito host dashboard."""

from __future__ import annotations

from datetime import time

BRAND_NAME = "Parkito"

# Whole-day window: a single record spanning 00:00-23:59 (or up to the next midnight)
WHOLE_DAY_START = time(0, 0)
WHOLE_DAY_END = time(23, 59)

# Slot editing constraints
MIN_SLOT_DURATION_MINUTES = 60
SLOT_GRANULARITY_MINUTES = 15
LAST_SLOT_END = time(23, 45)  # latest end a slot may snap to
DEFAULT_FIRST_SLOT_START = time(9, 0)

# Recurrence caps (1 year from the anchor date)
ONE_YEAR_DAYS = 365
ONE_YEAR_WEEKS = 52
ONE_YEAR_MONTHS = 12

# Session draft storage
DEFAULT_PENDING_KEY_PREFIX = "parkito-availability-pending-"

# Backend edge functions
SAVE_AVAILABILITY_FUNCTION = "save-availability"
DELETE_AVAILABILITY_FUNCTION = "delete-availability"

# Backend tables
PARKING_TABLE = "pkt_parking"
AVAILABILITY_TABLE = "pkt_availability"

# Request headers
DRAFT_SESSION_HEADER = "X-Draft-Session"

# API metadata
API_TITLE = f"{BRAND_NAME} Host Dashboard API"
API_DESCRIPTION = f"Availability and pricing calendar API for {BRAND_NAME} parking hosts"
API_VERSION = "1.0.0"
