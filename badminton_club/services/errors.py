# services/errors.py
"""
Error codes shared by the booking, payment and player services.

Services report recoverable failures as result dictionaries:
    {'success': False, 'error_code': ClubError.X, 'message': '...'}
Each code has its own message so the UI never has to collapse
"already booked", "full" and "try again" into one.
"""


class ClubError:
    """Club service error codes."""
    PLAYER_NOT_FOUND = 'player_not_found'
    DUPLICATE_BOOKING = 'duplicate_booking'
    UNKNOWN_SESSION = 'unknown_session'
    SESSION_FULL = 'session_full'
    BOOKING_NOT_FOUND = 'booking_not_found'
    BOOKING_CANCELLED = 'booking_cancelled'
    NOT_BOOKING_OWNER = 'not_booking_owner'
    EMAIL_ALREADY_REGISTERED = 'email_already_registered'
    SESSION_NOT_FOUND = 'session_not_found'
    DATE_IN_PAST = 'date_in_past'
    INVALID_REQUEST = 'invalid_request'
    STORE_UNAVAILABLE = 'store_unavailable'


ERROR_MESSAGES = {
    ClubError.PLAYER_NOT_FOUND: 'Player ID not found. Please check and try again.',
    ClubError.DUPLICATE_BOOKING: 'You already have a booking for this session.',
    ClubError.UNKNOWN_SESSION: 'There is no session at that time on the selected date.',
    ClubError.SESSION_FULL: 'Sorry, this session is full.',
    ClubError.BOOKING_NOT_FOUND: 'Booking not found.',
    ClubError.BOOKING_CANCELLED: 'This booking has been cancelled.',
    ClubError.NOT_BOOKING_OWNER: 'This booking belongs to another player.',
    ClubError.EMAIL_ALREADY_REGISTERED: 'This email address is already registered.',
    ClubError.SESSION_NOT_FOUND: 'Session not found.',
    ClubError.DATE_IN_PAST: 'Bookings can only be made for today or a later date.',
    ClubError.INVALID_REQUEST: 'The request is missing information or is badly formatted.',
    ClubError.STORE_UNAVAILABLE: "We couldn't reach the booking system. Please try again shortly.",
}

HTTP_STATUS = {
    ClubError.PLAYER_NOT_FOUND: 404,
    ClubError.BOOKING_NOT_FOUND: 404,
    ClubError.SESSION_NOT_FOUND: 404,
    ClubError.DUPLICATE_BOOKING: 409,
    ClubError.SESSION_FULL: 409,
    ClubError.EMAIL_ALREADY_REGISTERED: 409,
    ClubError.BOOKING_CANCELLED: 409,
    ClubError.NOT_BOOKING_OWNER: 403,
    ClubError.UNKNOWN_SESSION: 400,
    ClubError.DATE_IN_PAST: 400,
    ClubError.INVALID_REQUEST: 400,
    ClubError.STORE_UNAVAILABLE: 503,
}


def failure(error_code, message=None, **extra):
    """Build a failed service result."""
    result = {
        'success': False,
        'error_code': error_code,
        'message': message or ERROR_MESSAGES.get(error_code, 'Request failed')
    }
    result.update(extra)
    return result


def http_status_for(result):
    """HTTP status for a service result dictionary."""
    if result.get('success'):
        return 200
    return HTTP_STATUS.get(result.get('error_code'), 400)
