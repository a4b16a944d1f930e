"""Shared API constants."""

# Role names stored in the roles table
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

# Paging limits for list endpoints
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Default purpose for membership dues bookings
DEFAULT_BOOKING_PURPOSE = "Mitgliedsbeitrag"
MAX_BOOKING_PURPOSE_LENGTH = 200
