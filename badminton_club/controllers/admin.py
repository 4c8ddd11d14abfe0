# controllers/admin.py
"""
Operator API: payment reconciliation, overrides and catalog maintenance.

Operators authenticate with a Flask-Login session (POST /admin/login) or with
HTTP Basic credentials on each request.
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user

from badminton_club.controllers.forms import BookingForm, LoginForm, PaymentReferenceForm, form_failure
from badminton_club.extensions import db
from badminton_club.models import Operator
from badminton_club.services.availability_service import AvailabilityService
from badminton_club.services.booking_service import BookingService
from badminton_club.services.errors import ClubError, failure, http_status_for
from badminton_club.services.payment_service import PaymentService
from badminton_club.services.session_catalog_service import SessionCatalogService
from badminton_club.utils.auth import operator_required
from badminton_club.utils.clock import get_clock

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

logger = logging.getLogger('admin')


def _respond(result):
    return jsonify(result), http_status_for(result)


# ===============================
# AUTHENTICATION
# ===============================

@admin_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate():
        return _respond(form_failure(form))

    username = form.username.data.strip().lower()
    operator = Operator.query.filter_by(username=username).first()

    if not operator or not operator.is_active or not operator.check_password(form.password.data):
        logger.warning(f"Failed operator login for '{username}' from {request.remote_addr}")
        return jsonify({
            'success': False,
            'error_code': 'invalid_credentials',
            'message': 'Invalid username or password'
        }), 401

    login_user(operator)
    operator.last_login = get_clock().now()
    db.session.commit()

    logger.info(f"Operator {operator.username} signed in")
    return jsonify({'success': True, 'operator': operator.username})


@admin_bp.route('/logout', methods=['POST'])
@operator_required
def logout():
    username = current_user.username
    logout_user()
    logger.info(f"Operator {username} signed out")
    return jsonify({'success': True})


# ===============================
# AVAILABILITY & BOOKINGS
# ===============================

@admin_bp.route('/availability', methods=['GET'])
@operator_required
def availability():
    """Availability including full sessions."""
    date_value = request.args.get('date', '').strip()
    if not date_value:
        return _respond(failure(ClubError.INVALID_REQUEST, 'date query parameter is required'))

    return _respond(AvailabilityService.get_available_sessions(date_value, include_full=True))


@admin_bp.route('/bookings/pending', methods=['GET'])
@operator_required
def pending_bookings():
    return _respond(BookingService.list_pending_bookings())


@admin_bp.route('/bookings/<booking_id>/confirm-payment', methods=['POST'])
@operator_required
def confirm_payment(booking_id):
    result = PaymentService.confirm_payment(booking_id=booking_id, confirmed_by=current_user.username)
    return _respond(result)


@admin_bp.route('/payments/confirm-by-reference', methods=['POST'])
@operator_required
def confirm_payment_by_reference():
    """Match a bank transfer reference to a pending booking and confirm it."""
    form = PaymentReferenceForm()
    if not form.validate():
        return _respond(form_failure(form))

    result = PaymentService.confirm_payment(reference=form.reference.data, confirmed_by=current_user.username)
    return _respond(result)


@admin_bp.route('/bookings/<booking_id>/cancel', methods=['POST'])
@operator_required
def cancel_booking(booking_id):
    logger.info(f"Operator {current_user.username} cancelling booking {booking_id}")
    return _respond(BookingService.cancel_booking(booking_id))


@admin_bp.route('/bookings/override', methods=['POST'])
@operator_required
def override_booking():
    """Book a player even when the session is full."""
    form = BookingForm()
    if not form.validate():
        return _respond(form_failure(form))

    result = BookingService.create_operator_booking(
        player_id=form.player_id.data,
        session_date=form.session_date.data,
        session_time=form.session_time.data,
        fee=form.fee.data,
        operator=current_user.username
    )

    if result['success']:
        return jsonify(result), 201
    return _respond(result)


# ===============================
# PAYMENTS & CATALOG
# ===============================

@admin_bp.route('/payments/report', methods=['GET'])
@operator_required
def payments_report():
    return _respond(PaymentService.payments_report())


@admin_bp.route('/sessions/seed', methods=['POST'])
@operator_required
def seed_sessions():
    return _respond(SessionCatalogService.seed_sessions())


@admin_bp.route('/sessions/<session_id>', methods=['PATCH'])
@operator_required
def update_session(session_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _respond(failure(ClubError.INVALID_REQUEST, 'A JSON object is required'))

    logger.info(f"Operator {current_user.username} updating session {session_id}")
    return _respond(SessionCatalogService.update_session(session_id, data))
