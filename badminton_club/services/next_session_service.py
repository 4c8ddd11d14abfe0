# services/next_session_service.py
"""
Next upcoming session and session rosters.
"""

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from badminton_club.extensions import db
from badminton_club.models import Booking, BookingStatus, Player, Session
from badminton_club.services.errors import ClubError, failure
from badminton_club.utils.clock import get_clock
from badminton_club.utils.time_slots import parse_hhmm, parse_iso_date, weekday_name

logger = logging.getLogger('next_session_service')


class NextSessionService:
    """Resolves the nearest upcoming session occurrence."""

    @staticmethod
    def resolve_next_session(now, sessions, horizon_days=14):
        """
        Nearest (date, session) pair at or after now.

        A session today qualifies while its end time is still ahead, so a
        session in progress is still "next".

        Args:
            now: club-local datetime
            sessions: catalog sessions (any objects with the Session attributes)
            horizon_days: how many days ahead to look

        Returns:
            tuple: (date, session) or None
        """
        today = now.date()
        candidates = []

        for offset in range(horizon_days):
            day = today + timedelta(days=offset)
            day_name = weekday_name(day)

            for session in sessions:
                if not session.is_active or session.day_of_week != day_name:
                    continue
                if offset == 0 and parse_hhmm(session.end_time) <= now.time():
                    continue
                candidates.append((day, parse_hhmm(session.start_time), session))

        if not candidates:
            return None

        day, _, session = min(candidates, key=lambda c: (c[0], c[1]))
        return day, session

    @staticmethod
    def get_next_session(clock=None):
        """Next (date, session) from the database catalog, or None."""
        clock = clock or get_clock()
        sessions = db.session.query(Session).filter_by(is_active=True).all()
        horizon = current_app.config.get('NEXT_SESSION_HORIZON_DAYS', 14)
        return NextSessionService.resolve_next_session(clock.now(), sessions, horizon)


    @staticmethod
    def get_next_session_date(clock=None):
        """
        Date of the next session, or None when nothing is scheduled.
        Store errors propagate; callers that need a result dict use
        get_next_session_summary().
        """
        upcoming = NextSessionService.get_next_session(clock)
        return upcoming[0] if upcoming else None

    @staticmethod
    def get_next_session_summary(clock=None):
        """Next session and its date as a result dict."""
        try:
            upcoming = NextSessionService.get_next_session(clock)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error resolving next session: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        if not upcoming:
            return {'success': True, 'date': None, 'session': None}

        session_date, session = upcoming
        return {
            'success': True,
            'date': session_date.isoformat(),
            'session': session.to_dict()
        }

    @staticmethod
    def confirmed_player_names(session_date, session):
        """Names of confirmed, paid players in the order their places were secured."""
        rows = (
            db.session.query(Player.first_name, Player.last_name)
            .join(Booking, Booking.player_id == Player.id)
            .filter(
                Booking.session_date == session_date,
                Booking.session_time.in_(session.time_forms),
                Booking.status == BookingStatus.CONFIRMED,
                Booking.payment_confirmed.is_(True)
            )
            .order_by(func.coalesce(Booking.confirmed_at, Booking.created_at), Booking.created_at)
            .all()
        )
        return [f"{first} {last}" for first, last in rows]

    @staticmethod
    def get_next_session_roster(clock=None):
        """
        Players confirmed for the next session.

        Returns:
            dict: {'success', 'date', 'session', 'players', 'available_spots'}
        """
        try:
            upcoming = NextSessionService.get_next_session(clock)
            if not upcoming:
                return {
                    'success': True,
                    'date': None,
                    'session': None,
                    'players': [],
                    'available_spots': 0,
                    'message': 'No upcoming session'
                }

            session_date, session = upcoming
            players = NextSessionService.confirmed_player_names(session_date, session)

            return {
                'success': True,
                'date': session_date.isoformat(),
                'session': session.to_dict(),
                'players': players,
                'available_spots': max(session.max_players - len(players), 0)
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error building roster: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def get_session_roster(date_value):
        """
        Confirmed players for every active session on a date, grouped by session.

        Args:
            date_value: 'YYYY-MM-DD' string or date

        Returns:
            dict: {'success', 'date', 'sessions': [{'session', 'players', 'available_spots'}]}
        """
        try:
            target_date = parse_iso_date(date_value)
        except ValueError:
            return failure(ClubError.INVALID_REQUEST, f"Invalid date '{date_value}', expected YYYY-MM-DD")

        try:
            sessions = (
                db.session.query(Session)
                .filter_by(day_of_week=weekday_name(target_date), is_active=True)
                .order_by(Session.start_time)
                .all()
            )

            groups = []
            for session in sessions:
                players = NextSessionService.confirmed_player_names(target_date, session)
                groups.append({
                    'session': session.to_dict(),
                    'players': players,
                    'available_spots': max(session.max_players - len(players), 0)
                })

            return {
                'success': True,
                'date': target_date.isoformat(),
                'sessions': groups
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error building roster for {target_date}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)
