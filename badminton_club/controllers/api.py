# controllers/api.py
"""
Public JSON API used by the booking pages.

Every response is {'success': bool, ...}; failures carry error_code and a
message, with the HTTP status derived from the error code.
"""

import logging

from flask import Blueprint, jsonify, request

from badminton_club.controllers.forms import BookingForm, FindPlayerIdForm, RegisterForm, form_failure
from badminton_club.services.availability_service import AvailabilityService
from badminton_club.services.booking_service import BookingService
from badminton_club.services.errors import ClubError, failure, http_status_for
from badminton_club.services.next_session_service import NextSessionService
from badminton_club.services.player_service import PlayerService
from badminton_club.services.session_catalog_service import SessionCatalogService

api_bp = Blueprint('api', __name__, url_prefix='/api')

logger = logging.getLogger('api')


def _respond(result):
    return jsonify(result), http_status_for(result)


# ===============================
# SESSIONS & AVAILABILITY
# ===============================

@api_bp.route('/sessions', methods=['GET'])
def list_sessions():
    """The weekly session catalog."""
    return _respond(SessionCatalogService.get_catalog())


@api_bp.route('/sessions/available', methods=['GET'])
def available_sessions():
    """Sessions with spots left on ?date=YYYY-MM-DD."""
    date_value = request.args.get('date', '').strip()
    if not date_value:
        return _respond(failure(ClubError.INVALID_REQUEST, 'date query parameter is required'))

    return _respond(AvailabilityService.get_available_sessions(date_value))


@api_bp.route('/sessions/roster', methods=['GET'])
def session_roster():
    """Confirmed players for each session on ?date=YYYY-MM-DD."""
    date_value = request.args.get('date', '').strip()
    if not date_value:
        return _respond(failure(ClubError.INVALID_REQUEST, 'date query parameter is required'))

    return _respond(NextSessionService.get_session_roster(date_value))


@api_bp.route('/booking/min-date', methods=['GET'])
def min_booking_date():
    return jsonify({
        'success': True,
        'min_date': AvailabilityService.get_min_booking_date().isoformat()
    })


# ===============================
# PLAYERS
# ===============================

@api_bp.route('/players', methods=['POST'])
def register_player():
    form = RegisterForm()
    if not form.validate():
        return _respond(form_failure(form))

    result = PlayerService.register_player(form.data)
    if result['success']:
        return jsonify(result), 201
    return _respond(result)


@api_bp.route('/players/<player_id>', methods=['GET'])
def get_player(player_id):
    return _respond(PlayerService.get_player_profile(player_id))


@api_bp.route('/players/<player_id>', methods=['PATCH'])
def update_player(player_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _respond(failure(ClubError.INVALID_REQUEST, 'A JSON object is required'))

    return _respond(PlayerService.update_player(player_id, data))


@api_bp.route('/players/find-id', methods=['POST'])
def find_player_id():
    """Look up player IDs by email for members who have lost theirs."""
    form = FindPlayerIdForm()
    if not form.validate():
        return _respond(form_failure(form))

    return _respond(PlayerService.find_player_ids(form.email.data))


@api_bp.route('/players/<player_id>/bookings', methods=['GET'])
def player_bookings(player_id):
    return _respond(BookingService.get_player_bookings(player_id))


# ===============================
# BOOKINGS
# ===============================

@api_bp.route('/bookings', methods=['POST'])
def create_booking():
    form = BookingForm()
    if not form.validate():
        return _respond(form_failure(form))

    result = BookingService.create_booking(
        player_id=form.player_id.data,
        session_date=form.session_date.data,
        session_time=form.session_time.data,
        fee=form.fee.data
    )

    if result['success']:
        return jsonify(result), 201

    logger.info(f"Booking request from {request.remote_addr} for {form.player_id.data} "
                f"rejected: {result['error_code']}")
    return _respond(result)


@api_bp.route('/bookings/<booking_id>/cancel', methods=['POST'])
def cancel_booking(booking_id):
    """Player cancels their own booking; player_id in the body proves ownership."""
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        return _respond(failure(ClubError.INVALID_REQUEST, 'player_id is required'))

    return _respond(BookingService.cancel_booking(booking_id, player_id=player_id))


# ===============================
# NEXT SESSION
# ===============================

@api_bp.route('/next-session', methods=['GET'])
def next_session():
    return _respond(NextSessionService.get_next_session_summary())


@api_bp.route('/next-session/roster', methods=['GET'])
def next_session_roster():
    return _respond(NextSessionService.get_next_session_roster())
