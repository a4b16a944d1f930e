"""Business logic: members, auth, bookings, emails, export and ranked member search."""
