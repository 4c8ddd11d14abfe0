# services/booking_service.py
"""
Booking transaction service.

create_booking() runs the player-facing path: validate, check the player,
reject duplicates, resolve the catalog session, then insert the booking with
one conditional INSERT ... SELECT that only produces a row while the session
still has room. The partial unique index on live bookings closes the
duplicate race; the session row lock plus the conditional insert closes the
capacity race.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, insert, literal, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from badminton_club.extensions import db, get_availability_cache
from badminton_club.models import Booking, BookingStatus, PaymentStatus, Player, Session
from badminton_club.services.errors import ClubError, failure
from badminton_club.services.payment_service import PaymentService
from badminton_club.services.session_catalog_service import SessionCatalogService
from badminton_club.utils.clock import get_clock
from badminton_club.utils.data_processing import clean_player_id
from badminton_club.utils.time_slots import (
    canonical_range, format_hhmm, parse_iso_date, parse_session_time, weekday_name
)

logger = logging.getLogger('booking_service')


class BookingService:
    """Service class for the booking ledger."""

    # ===============================
    # CREATION
    # ===============================

    @staticmethod
    def create_booking(player_id, session_date, session_time, fee=None, clock=None, cache=None):
        """
        Book a player into one dated occurrence of a session.

        Args:
            player_id: Player ID (case-insensitive)
            session_date: 'YYYY-MM-DD' string or date
            session_time: '19:30-21:30' or the bare start '19:30'
            fee: Optional fee override; defaults to the session fee

        Returns:
            dict: {'success': True, 'booking', 'session', 'payment'} or a failure
        """
        return BookingService._create(
            player_id, session_date, session_time, fee,
            clock=clock, cache=cache, enforce_capacity=True
        )

    @staticmethod
    def create_operator_booking(player_id, session_date, session_time, fee=None,
                                operator=None, clock=None, cache=None):
        """
        Operator booking that ignores session capacity.
        Every other check still applies.
        """
        logger.warning(f"Capacity override requested by {operator or 'unknown operator'} "
                       f"for {player_id} on {session_date} {session_time}")

        return BookingService._create(
            player_id, session_date, session_time, fee,
            clock=clock, cache=cache, enforce_capacity=False
        )

    @staticmethod
    def _create(player_id, session_date, session_time, fee, clock=None, cache=None, enforce_capacity=True):
        clock = clock or get_clock()
        cache = cache or get_availability_cache()

        # Input validation
        player_id = clean_player_id(player_id)
        if not player_id:
            return failure(ClubError.INVALID_REQUEST, 'Player ID is required')

        try:
            target_date = parse_iso_date(session_date)
        except ValueError:
            return failure(ClubError.INVALID_REQUEST, f"Invalid date '{session_date}', expected YYYY-MM-DD")

        try:
            start, end = parse_session_time(session_time)
        except ValueError as e:
            return failure(ClubError.INVALID_REQUEST, str(e))

        if fee is not None:
            try:
                fee = Decimal(str(fee))
            except (InvalidOperation, ValueError):
                return failure(ClubError.INVALID_REQUEST, f"Invalid fee '{fee}'")
            if fee < 0:
                return failure(ClubError.INVALID_REQUEST, 'Fee cannot be negative')

        now = clock.now()
        if target_date < now.date():
            return failure(ClubError.DATE_IN_PAST)

        try:
            # 1. Player must exist
            player = db.session.get(Player, player_id)
            if not player:
                logger.info(f"Booking rejected: unknown player {player_id}")
                return failure(ClubError.PLAYER_NOT_FOUND)

            # 2. No live booking for the same occurrence, in either stored form
            if BookingService.has_active_booking(player_id, target_date, start, end):
                logger.info(f"Booking rejected: {player_id} already booked {target_date} {session_time}")
                return failure(ClubError.DUPLICATE_BOOKING)

            # 3. Catalog session for that time on the date's weekday
            session = SessionCatalogService.find_session_for_time(
                weekday_name(target_date), canonical_range(start, end) if end else format_hhmm(start)
            )
            if not session or (target_date == now.date() and session.end <= now.time()):
                return failure(ClubError.UNKNOWN_SESSION)

            # 4. Lock the session row, then insert only while there is room
            db.session.query(Session).filter_by(id=session.id).with_for_update().one()

            booking_id = str(uuid.uuid4())
            booking_fee = fee if fee is not None else session.fee
            reference = PaymentService.generate_payment_reference(player_id, target_date, session.start_time)

            values = {
                'id': booking_id,
                'created_at': datetime.now(),
                'updated_at': datetime.now(),
                'player_id': player_id,
                'session_id': session.id,
                'session_date': target_date,
                'session_time': session.time_range,
                'status': BookingStatus.PENDING,
                'payment_confirmed': False,
                'payment_reference': reference,
                'fee': booking_fee,
            }

            inserted = BookingService._insert_booking(values, session, enforce_capacity)
            if inserted == 0:
                db.session.rollback()
                logger.info(f"Booking rejected: {session.id} on {target_date} is full")
                return failure(ClubError.SESSION_FULL)

            booking = db.session.get(Booking, booking_id)
            PaymentService.create_payment_record(booking)

            db.session.commit()
            cache.invalidate()

            logger.info(f"Booking {booking_id} created for {player_id} on {target_date} "
                        f"{session.time_range} (reference={reference})")
            if not enforce_capacity:
                logger.warning(f"Booking {booking_id} created without capacity check")

            return {
                'success': True,
                'message': 'Booking created. Your place is held once payment is confirmed.',
                'booking': booking.to_dict(),
                'session': session.to_dict(),
                'payment': PaymentService.payment_instructions(booking)
            }

        except IntegrityError as e:
            db.session.rollback()
            logger.info(f"Booking rejected by unique index for {player_id} on {target_date}: {str(e.orig)}")
            return failure(ClubError.DUPLICATE_BOOKING)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error creating booking for {player_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def _insert_booking(values, session, enforce_capacity):
        """
        INSERT INTO booking ... SELECT <values> [WHERE occupied < max_players].

        Returns:
            int: number of rows inserted (0 when the session is full)
        """
        table = Booking.__table__
        columns = list(values)

        selected = select(*[
            literal(values[name], type_=table.c[name].type) for name in columns
        ])

        if enforce_capacity:
            occupied = (
                select(func.count())
                .select_from(table)
                .where(
                    table.c.session_date == values['session_date'],
                    table.c.session_time.in_(session.time_forms),
                    table.c.status == BookingStatus.CONFIRMED,
                    table.c.payment_confirmed.is_(True)
                )
                .correlate(None)
                .scalar_subquery()
            )
            selected = selected.where(occupied < session.max_players)

        result = db.session.execute(insert(table).from_select(columns, selected))
        return result.rowcount

    @staticmethod
    def has_active_booking(player_id, target_date, start, end=None):
        """True when the player holds a pending or confirmed booking for the occurrence."""
        start_str = format_hhmm(start)
        if end is not None:
            time_match = Booking.session_time.in_([canonical_range(start, end), start_str])
        else:
            time_match = or_(Booking.session_time == start_str,
                             Booking.session_time.like(f'{start_str}-%'))

        return db.session.query(
            db.session.query(Booking).filter(
                Booking.player_id == player_id,
                Booking.session_date == target_date,
                time_match,
                Booking.status.in_(BookingStatus.ACTIVE)
            ).exists()
        ).scalar()

    # ===============================
    # CANCELLATION
    # ===============================

    @staticmethod
    def cancel_booking(booking_id, player_id=None, clock=None):
        """
        Cancel a booking.

        Args:
            booking_id: Booking ID
            player_id: When given, must own the booking (player self-service)

        Returns:
            dict: Result with the cancelled booking
        """
        clock = clock or get_clock()

        try:
            booking = db.session.get(Booking, str(booking_id or '').strip())
            if not booking:
                return failure(ClubError.BOOKING_NOT_FOUND)

            if player_id is not None and booking.player_id != clean_player_id(player_id):
                logger.warning(f"Player {player_id} tried to cancel booking {booking.id} "
                               f"owned by {booking.player_id}")
                return failure(ClubError.NOT_BOOKING_OWNER)

            if booking.status == BookingStatus.CANCELLED:
                return {
                    'success': True,
                    'message': 'Booking was already cancelled',
                    'already_cancelled': True,
                    'booking': booking.to_dict()
                }

            booking.cancel(clock.now())

            for payment in booking.payments:
                if payment.status == PaymentStatus.COMPLETED:
                    payment.status = PaymentStatus.REFUNDED
                elif payment.status == PaymentStatus.PENDING:
                    payment.status = PaymentStatus.FAILED

            db.session.commit()
            get_availability_cache().invalidate()

            logger.info(f"Booking {booking.id} cancelled (by={'player' if player_id else 'operator'})")

            return {
                'success': True,
                'message': 'Booking cancelled',
                'booking': booking.to_dict()
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error cancelling booking {booking_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    # ===============================
    # QUERIES
    # ===============================

    @staticmethod
    def get_player_bookings(player_id):
        """A player's bookings, newest session date first."""
        player_id = clean_player_id(player_id)

        try:
            player = db.session.get(Player, player_id) if player_id else None
            if not player:
                return failure(ClubError.PLAYER_NOT_FOUND)

            bookings = (
                player.bookings
                .order_by(Booking.session_date.desc(), Booking.session_time)
                .all()
            )

            return {
                'success': True,
                'player_id': player.id,
                'player_name': player.full_name,
                'bookings': [booking.to_dict() for booking in bookings]
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error loading bookings for {player_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def list_pending_bookings():
        """Unpaid bookings with player names, oldest first, for reconciliation."""
        try:
            rows = (
                db.session.query(Booking, Player)
                .join(Player, Booking.player_id == Player.id)
                .filter(Booking.status == BookingStatus.PENDING)
                .order_by(Booking.created_at)
                .all()
            )

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error listing pending bookings: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        pending = []
        for booking, player in rows:
            data = booking.to_dict()
            data['player_name'] = player.full_name
            data['player_email'] = player.email
            pending.append(data)

        return {
            'success': True,
            'count': len(pending),
            'bookings': pending
        }
