"""User-visible outcome messages returned by the data service."""

GENERIC_FAILURE = "Something went wrong. Please try again."
LOGIN_REQUIRED = "Please log in to continue"
FORBIDDEN = "You are not allowed to perform this action"

REGISTERED = "Registration confirmed"
ALREADY_REGISTERED = "Already registered for this event"
EVENT_FULL = "Event is fully booked"
EVENT_NOT_FOUND = "Event not found"
NOT_REGISTERED = "You are not registered for this event"
UNREGISTERED = "Registration cancelled"
PAYMENT_FAILED = "Payment failed, try again"

ATTENDANCE_MARKED = "Attendance marked successfully"
DUPLICATE_SCAN = "Duplicate QR scan detected"
WRONG_EVENT_QR = "QR code is for a different event"
INVALID_QR = "Invalid QR code format"
USER_NOT_FOUND = "User not found"
STUDENT_NOT_REGISTERED = "Student is not registered for this event"

EVENT_CREATED = "Event created"
EVENT_CREATED_OFFLINE = "Event saved locally (offline mode)"
EVENT_UPDATED = "Event updated"
EVENT_DELETED = "Event deleted"
SEATS_BELOW_REGISTRATIONS = "Seat limit cannot be lower than current registrations"

STALL_NOT_FOUND = "Food stall not found"
STALL_CREATED = "Food stall created"
STALL_CREATED_OFFLINE = "Food stall saved locally (offline mode)"
STALL_UPDATED = "Food stall updated"
REVIEW_ADDED = "Review submitted"
ALREADY_REVIEWED = "You have already reviewed this stall"

DATA_REFRESHED = "Data refreshed"
