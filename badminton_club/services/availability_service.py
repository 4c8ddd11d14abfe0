# services/availability_service.py
"""
Session availability.

calculate_availability() is a pure projection over a catalog and a ledger
snapshot; get_available_sessions() loads that snapshot from the database and
serves it through the injected read-through cache.
"""

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from badminton_club.extensions import db, get_availability_cache
from badminton_club.models import Booking, BookingStatus, Session
from badminton_club.services.errors import ClubError, failure
from badminton_club.utils.clock import get_clock
from badminton_club.utils.time_slots import (
    canonical_range, matching_forms, parse_hhmm, parse_iso_date, weekday_name
)

logger = logging.getLogger('availability_service')


def _session_summary(session):
    fee = session.fee
    return {
        'id': session.id,
        'day_of_week': session.day_of_week,
        'start_time': session.start_time,
        'end_time': session.end_time,
        'time_range': canonical_range(session.start_time, session.end_time),
        'max_players': session.max_players,
        'fee': float(fee) if isinstance(fee, Decimal) else fee,
    }


class AvailabilityService:
    """Remaining capacity per session occurrence."""

    @staticmethod
    def calculate_availability(target_date, now, sessions, bookings, include_full=False):
        """
        Project remaining capacity for every session running on target_date.

        Args:
            target_date: date being booked
            now: club-local datetime; same-day sessions that have ended are dropped
            sessions: catalog sessions (any objects with the Session attributes)
            bookings: ledger snapshot (any objects with the Booking attributes)
            include_full: keep sessions with no spots left (operator view)

        Returns:
            list: session dicts with available_spots, confirmed_count, is_full
        """
        if target_date < now.date():
            return []

        day_name = weekday_name(target_date)
        results = []

        day_sessions = sorted(
            (s for s in sessions if s.is_active and s.day_of_week == day_name),
            key=lambda s: parse_hhmm(s.start_time)
        )

        for session in day_sessions:
            if target_date == now.date() and parse_hhmm(session.end_time) <= now.time():
                continue

            forms = set(matching_forms(session.start_time, session.end_time))
            confirmed_count = sum(
                1 for booking in bookings
                if booking.session_date == target_date
                and booking.session_time in forms
                and booking.status == BookingStatus.CONFIRMED
                and booking.payment_confirmed
            )

            available_spots = session.max_players - confirmed_count
            if available_spots <= 0 and not include_full:
                continue

            entry = _session_summary(session)
            entry.update({
                'session_date': target_date.isoformat(),
                'confirmed_count': confirmed_count,
                'available_spots': max(available_spots, 0),
                'is_full': available_spots <= 0
            })
            results.append(entry)

        return results

    @staticmethod
    def get_available_sessions(date_value, include_full=False, cache=None, clock=None):
        """
        Sessions with remaining capacity on a date.

        Args:
            date_value: 'YYYY-MM-DD' string or date
            include_full: operator view including full sessions
            cache: AvailabilityCache (defaults to the application's)
            clock: clock (defaults to the application's)

        Returns:
            dict: {'success', 'date', 'sessions', 'stale'}
        """
        cache = cache or get_availability_cache()
        clock = clock or get_clock()

        try:
            target_date = parse_iso_date(date_value)
        except ValueError:
            return failure(ClubError.INVALID_REQUEST, f"Invalid date '{date_value}', expected YYYY-MM-DD")

        cache_key = (target_date.isoformat(), include_full)
        cached = cache.get(cache_key)
        if cached is not None:
            return {
                'success': True,
                'date': target_date.isoformat(),
                'sessions': cached,
                'stale': False
            }

        try:
            sessions = (
                db.session.query(Session)
                .filter_by(day_of_week=weekday_name(target_date), is_active=True)
                .all()
            )
            bookings = (
                db.session.query(Booking)
                .filter(
                    Booking.session_date == target_date,
                    Booking.status == BookingStatus.CONFIRMED,
                    Booking.payment_confirmed.is_(True)
                )
                .all()
            )

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Availability lookup failed for {target_date}: {str(e)}", exc_info=True)

            stale = cache.get_stale(cache_key)
            if stale is not None:
                logger.warning(f"Serving stale availability for {target_date}")
                return {
                    'success': True,
                    'date': target_date.isoformat(),
                    'sessions': stale,
                    'stale': True,
                    'message': 'Showing the last known availability; it may be out of date.'
                }

            return failure(ClubError.STORE_UNAVAILABLE)

        result = AvailabilityService.calculate_availability(
            target_date, clock.now(), sessions, bookings, include_full=include_full
        )
        cache.set(cache_key, result)

        return {
            'success': True,
            'date': target_date.isoformat(),
            'sessions': result,
            'stale': False
        }

    @staticmethod
    def count_confirmed_bookings(session, target_date):
        """Occupied count for one session occurrence, matching either stored time form."""
        return (
            db.session.query(func.count(Booking.id))
            .filter(
                Booking.session_date == target_date,
                Booking.session_time.in_(session.time_forms),
                Booking.status == BookingStatus.CONFIRMED,
                Booking.payment_confirmed.is_(True)
            )
            .scalar()
        )

    @staticmethod
    def get_min_booking_date(clock=None):
        """Earliest bookable date: today in club-local time."""
        clock = clock or get_clock()
        return clock.today()
