# services/payment_service.py
"""
Payment record and confirmation service.

Players pay by bank transfer quoting a reference generated at booking time.
An operator later matches the transfer to the booking, by booking ID or by
that reference, and confirms it. Confirmation is the only path that turns a
pending booking into one that counts against capacity.
"""

import logging

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from badminton_club.extensions import db, get_availability_cache
from badminton_club.models import Booking, BookingStatus, Payment, PaymentStatus, Player
from badminton_club.services.availability_service import AvailabilityService
from badminton_club.services.errors import ClubError, failure
from badminton_club.utils.clock import get_clock
from badminton_club.utils.data_processing import clean_reference
from badminton_club.utils.time_slots import parse_hhmm

logger = logging.getLogger('payment_service')


class PaymentService:
    """Service for payment references, payment records and confirmation."""

    @staticmethod
    def generate_payment_reference(player_id, session_date, start_time):
        """
        Build the bank-transfer reference for a booking.

        Format: <player id><YYYYMMDD><HHMM>, e.g. 'MB7QX202610231930'.
        """
        start = parse_hhmm(start_time)
        return f"{player_id}{session_date:%Y%m%d}{start:%H%M}".upper()

    @staticmethod
    def create_payment_record(booking):
        """
        Add the companion pending payment for a booking.
        The caller owns the transaction.
        """
        payment = Payment(
            booking_id=booking.id,
            player_id=booking.player_id,
            amount=booking.fee,
            payment_method=current_app.config.get('PAYMENT_METHOD', 'bank_transfer'),
            payment_reference=booking.payment_reference,
            status=PaymentStatus.PENDING
        )
        db.session.add(payment)
        return payment

    @staticmethod
    def payment_instructions(booking):
        """What the player needs to make the bank transfer."""
        return {
            'amount': float(booking.fee),
            'reference': booking.payment_reference,
            'account_name': current_app.config.get('BANK_ACCOUNT_NAME'),
            'bsb': current_app.config.get('BANK_BSB'),
            'account_number': current_app.config.get('BANK_ACCOUNT_NUMBER')
        }

    @staticmethod
    def find_pending_booking_by_reference(reference):
        """
        Match a bank reference against bookings still awaiting payment.

        Returns:
            Booking or None
        """
        cleaned = clean_reference(reference)
        if not cleaned:
            return None

        return (
            db.session.query(Booking)
            .filter(
                func.upper(Booking.payment_reference) == cleaned,
                Booking.status == BookingStatus.PENDING
            )
            .order_by(Booking.created_at)
            .first()
        )

    @staticmethod
    def confirm_payment(booking_id=None, reference=None, confirmed_by=None, clock=None):
        """
        Confirm payment for a booking identified by ID or payment reference.

        Capacity is deliberately not re-checked: operators may confirm past
        capacity, which is logged as a warning.

        Args:
            booking_id: Booking ID
            reference: Payment reference (matched against pending bookings)
            confirmed_by: Operator username for the audit log

        Returns:
            dict: Result with the confirmed booking
        """
        clock = clock or get_clock()

        if not booking_id and not reference:
            return failure(ClubError.INVALID_REQUEST, 'A booking ID or payment reference is required')

        try:
            if booking_id:
                booking = db.session.get(Booking, str(booking_id).strip())
            else:
                booking = PaymentService.find_pending_booking_by_reference(reference)

            if not booking:
                logger.warning(f"Payment confirmation failed: no booking for "
                               f"id={booking_id} reference={reference}")
                return failure(ClubError.BOOKING_NOT_FOUND)

            if booking.status == BookingStatus.CANCELLED:
                return failure(ClubError.BOOKING_CANCELLED, booking=booking.to_dict())

            if booking.counts_toward_capacity:
                return {
                    'success': True,
                    'message': 'Payment was already confirmed',
                    'already_confirmed': True,
                    'booking': booking.to_dict()
                }

            now = clock.now()
            booking.confirm_payment(now)

            payment = booking.payments.order_by(Payment.created_at).first()
            if payment is None:
                payment = PaymentService.create_payment_record(booking)
            payment.complete(now)

            db.session.flush()

            over_capacity = False
            if booking.session is not None:
                occupied = AvailabilityService.count_confirmed_bookings(booking.session, booking.session_date)
                over_capacity = occupied > booking.session.max_players
                if over_capacity:
                    logger.warning(f"Booking {booking.id} confirmed over capacity: "
                                   f"{occupied}/{booking.session.max_players} on {booking.session_date}")

            db.session.commit()
            get_availability_cache().invalidate()

            logger.info(f"Payment confirmed for booking {booking.id} "
                        f"(reference={booking.payment_reference}, by={confirmed_by or 'system'})")

            return {
                'success': True,
                'message': 'Payment confirmed',
                'booking': booking.to_dict(),
                'payment': payment.to_dict(),
                'over_capacity': over_capacity
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error confirming payment: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def payments_report():
        """One row per payment with player and session details."""
        try:
            rows = (
                db.session.query(Payment, Booking, Player)
                .join(Booking, Payment.booking_id == Booking.id)
                .outerjoin(Player, Payment.player_id == Player.id)
                .order_by(Booking.session_date.desc(), Payment.created_at.desc())
                .all()
            )

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error building payments report: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        payments = [
            {
                'payment_id': payment.id,
                'booking_id': booking.id,
                'player_id': payment.player_id,
                'player_name': player.full_name if player else 'Unknown',
                'session_date': booking.session_date.isoformat(),
                'session_time': booking.session_time,
                'amount': float(payment.amount),
                'status': payment.status,
                'payment_reference': payment.payment_reference,
                'payment_date': payment.payment_date.isoformat() if payment.payment_date else None
            }
            for payment, booking, player in rows
        ]

        return {
            'success': True,
            'count': len(payments),
            'payments': payments
        }
