"""Shared value constants for registrations, events and the audit log"""

# Registration statuses stored in users_events.registration_status
REGISTRATION_REGISTERED = "Registered"
REGISTRATION_CANCELLED = "Cancelled"
REGISTRATION_ACCEPTED = "Accepted"
REGISTRATION_REJECTED = "Rejected"
REGISTRATION_STATUSES = (
    REGISTRATION_REGISTERED,
    REGISTRATION_CANCELLED,
    REGISTRATION_ACCEPTED,
    REGISTRATION_REJECTED,
)

SHIRT_FITS = ("Regular", "Girly")
SHIRT_SIZES = ("XS", "S", "M", "L", "XL", "XXL", "3XL", "4XL")

# Options offered to volunteers when applying
SERVICE_HOURS = ("12", "16", "20", "24")
SERVICE_TIMINGS = ("8-20", "10-0", "14-3")

# Whether volunteers may share their availability for an event
EVENT_AVAILABILITY_UNAVAILABLE = "Unavailable"
EVENT_AVAILABILITY_AVAILABLE = "Available"
EVENT_AVAILABILITY_LOCKED = "Locked"
EVENT_AVAILABILITY_STATUSES = (
    EVENT_AVAILABILITY_UNAVAILABLE,
    EVENT_AVAILABILITY_AVAILABLE,
    EVENT_AVAILABILITY_LOCKED,
)

# Window status of a time-limited feature, see environment.determine_availability_status
STATUS_FUTURE = "future"
STATUS_ACTIVE = "active"
STATUS_PAST = "past"
STATUS_OVERRIDE = "override"

# Availability expectations and schedule markers
EXPECTATION_AVAILABLE = "available"
EXPECTATION_AVOID = "avoid"
EXPECTATION_UNAVAILABLE = "unavailable"

MUTATION_CREATED = "Created"
MUTATION_UPDATED = "Updated"
MUTATION_DELETED = "Deleted"
