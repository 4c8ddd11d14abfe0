# services/session_catalog_service.py
"""
Session Catalog Service.
Seeds and maintains the recurring weekly sessions, resolves a submitted
session time to its catalog entry, and canonicalises legacy booking times.
"""

import logging
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from badminton_club.extensions import db, get_availability_cache
from badminton_club.models import Booking, BookingStatus, Session
from badminton_club.services.errors import ClubError, failure
from badminton_club.utils.time_slots import (
    WEEKDAY_NAMES, canonical_range, format_hhmm, normalize_day_name, parse_hhmm,
    parse_session_time, weekday_name
)

logger = logging.getLogger('session_catalog_service')


class SessionCatalogService:
    """Service for the recurring weekly session catalog."""

    # ===============================
    # SEEDING
    # ===============================

    @staticmethod
    def seed_sessions(definitions=None):
        """
        Create catalog sessions from configuration.
        Existing sessions (matched by id) are left untouched.

        Args:
            definitions: Optional list of session dicts; defaults to DEFAULT_SESSIONS

        Returns:
            dict: Results of session seeding
        """
        definitions = definitions if definitions is not None else current_app.config.get('DEFAULT_SESSIONS', [])

        try:
            existing_ids = {row[0] for row in db.session.query(Session.id).all()}

            sessions_to_create = []
            for definition in definitions:
                if definition['id'] in existing_ids:
                    continue

                sessions_to_create.append(Session(
                    id=definition['id'],
                    day_of_week=normalize_day_name(definition['day_of_week']),
                    start_time=format_hhmm(parse_hhmm(definition['start_time'])),
                    end_time=format_hhmm(parse_hhmm(definition['end_time'])),
                    max_players=int(definition['max_players']),
                    fee=Decimal(str(definition['fee'])),
                    is_active=definition.get('is_active', True)
                ))

            db.session.add_all(sessions_to_create)
            db.session.commit()
            get_availability_cache().invalidate()

            created_count = len(sessions_to_create)
            logger.info(f"Seeded {created_count} sessions ({len(existing_ids)} already existed)")

            return {
                'success': True,
                'message': f'Successfully created {created_count} sessions',
                'created_count': created_count,
                'existing_count': len(existing_ids)
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to seed sessions: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    # ===============================
    # LOOKUPS
    # ===============================

    @staticmethod
    def get_sessions(include_inactive=False):
        """All catalog sessions ordered by weekday then start time."""
        query = db.session.query(Session)
        if not include_inactive:
            query = query.filter_by(is_active=True)

        sessions = query.all()
        return sorted(sessions, key=lambda s: (WEEKDAY_NAMES.index(s.day_of_week), s.start_time))

    @staticmethod
    def get_catalog(include_inactive=False):
        """The weekly catalog as a result dict."""
        try:
            sessions = SessionCatalogService.get_sessions(include_inactive=include_inactive)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error loading session catalog: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        return {
            'success': True,
            'sessions': [session.to_dict() for session in sessions]
        }

    @staticmethod
    def get_sessions_for_day(day_name, include_inactive=False):
        """Sessions that run on the given weekday, ordered by start time."""
        query = db.session.query(Session).filter_by(day_of_week=day_name)

        if not include_inactive:
            query = query.filter_by(is_active=True)

        return query.order_by(Session.start_time).all()

    @staticmethod
    def get_session(session_id):
        return db.session.get(Session, session_id)

    @staticmethod
    def find_session_for_time(day_name, session_time):
        """
        Resolve a submitted session time to the catalog session on that weekday.

        Accepts the canonical range ('19:30-21:30') or the bare start ('19:30').

        Returns:
            Session or None
        """
        try:
            start, end = parse_session_time(session_time)
        except ValueError:
            return None

        for session in SessionCatalogService.get_sessions_for_day(day_name):
            if session.start != start:
                continue
            if end is not None and session.end != end:
                continue
            return session

        return None

    # ===============================
    # ADMINISTRATION
    # ===============================

    @staticmethod
    def update_session(session_id, data):
        """
        Operator edit of a catalog session.

        Args:
            session_id: Session slug
            data: Any of day_of_week, start_time, end_time, max_players, fee, is_active

        Returns:
            dict: Result with updated session
        """
        try:
            session = db.session.get(Session, session_id)
            if not session:
                return failure(ClubError.SESSION_NOT_FOUND)

            try:
                if 'day_of_week' in data:
                    session.day_of_week = normalize_day_name(data['day_of_week'])
                if 'start_time' in data:
                    session.start_time = format_hhmm(parse_hhmm(data['start_time']))
                if 'end_time' in data:
                    session.end_time = format_hhmm(parse_hhmm(data['end_time']))
                if 'max_players' in data:
                    max_players = int(data['max_players'])
                    if max_players <= 0:
                        raise ValueError('max_players must be a positive integer')
                    session.max_players = max_players
                if 'fee' in data:
                    fee = Decimal(str(data['fee']))
                    if fee < 0:
                        raise ValueError('fee cannot be negative')
                    session.fee = fee
                if 'is_active' in data:
                    session.is_active = bool(data['is_active'])

                if session.end <= session.start:
                    raise ValueError('Session must end after it starts')

            except (ValueError, TypeError, InvalidOperation) as e:
                db.session.rollback()
                return failure(ClubError.INVALID_REQUEST, str(e))

            db.session.commit()
            get_availability_cache().invalidate()
            logger.info(f"Session {session_id} updated: {sorted(data)}")

            return {
                'success': True,
                'message': 'Session updated',
                'session': session.to_dict()
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to update session {session_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def canonicalise_session_times(dry_run=False):
        """
        Rewrite legacy bookings that stored only the start time so every
        booking carries the canonical 'HH:MM-HH:MM' range.

        A legacy row is resolved against the catalog session that starts at
        that time on the booking's weekday. Rows that cannot be resolved are
        reported and left alone.

        Returns:
            dict: Counts of updated and unresolved bookings
        """
        legacy = (
            db.session.query(Booking)
            .filter(~Booking.session_time.like('%-%'))
            .all()
        )

        updated = []
        unresolved = []
        for booking in legacy:
            session = SessionCatalogService.find_session_for_time(
                weekday_name(booking.session_date), booking.session_time
            )
            if not session:
                unresolved.append(booking.id)
                continue

            # Rewriting would collide with a live canonical booking for the same slot
            if booking.is_active and db.session.query(
                    db.session.query(Booking).filter(
                        Booking.id != booking.id,
                        Booking.player_id == booking.player_id,
                        Booking.session_date == booking.session_date,
                        Booking.session_time == session.time_range,
                        Booking.status.in_(BookingStatus.ACTIVE)
                    ).exists()
            ).scalar():
                unresolved.append(booking.id)
                continue

            updated.append({
                'id': booking.id,
                'from': booking.session_time,
                'to': canonical_range(session.start_time, session.end_time)
            })
            if not dry_run:
                booking.session_time = session.time_range
                booking.session_id = booking.session_id or session.id

        if dry_run:
            db.session.rollback()
        else:
            db.session.commit()
            get_availability_cache().invalidate()

        logger.info(f"Canonicalised {len(updated)} legacy bookings "
                    f"({len(unresolved)} unresolved, dry_run={dry_run})")

        return {
            'success': True,
            'updated_count': len(updated),
            'unresolved_count': len(unresolved),
            'updated': updated,
            'unresolved': unresolved
        }

    @staticmethod
    def count_sessions():
        return db.session.query(func.count(Session.id)).scalar()
