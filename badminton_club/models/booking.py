# models/booking.py
from sqlalchemy import Index

from badminton_club.extensions import db
from .base import BaseModel


class BookingStatus:
    """Booking status constants."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'

    ACTIVE = (PENDING, CONFIRMED)


class BookingPaymentStatus:
    """Payment state as shown to players."""
    PENDING = 'pending'
    PAID = 'paid'


class Booking(BaseModel):
    """A player's claim on one dated occurrence of a Session."""

    __tablename__ = 'booking'

    player_id = db.Column(db.String(16), db.ForeignKey('player.id'), nullable=False, index=True)
    session_id = db.Column(db.String(50), db.ForeignKey('session.id'), nullable=True, index=True)
    session_date = db.Column(db.Date, nullable=False)
    session_time = db.Column(db.String(20), nullable=False)  # 'HH:MM-HH:MM' (legacy rows: 'HH:MM')
    status = db.Column(db.String(10), default=BookingStatus.PENDING, nullable=False)
    payment_confirmed = db.Column(db.Boolean, default=False, nullable=False)
    payment_reference = db.Column(db.String(40), nullable=True)
    fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    player = db.relationship('Player', back_populates='bookings')
    session = db.relationship('Session', back_populates='bookings')
    payments = db.relationship('Payment', back_populates='booking', lazy='dynamic')

    __table_args__ = (
        # Capacity and roster queries
        Index('idx_booking_date_time_status', 'session_date', 'session_time', 'status'),
        Index('idx_booking_reference', 'payment_reference'),

        # Business constraint: one live booking per player per occurrence
        Index('uq_booking_player_slot_active', 'player_id', 'session_date', 'session_time',
              unique=True,
              postgresql_where=db.text("status IN ('pending', 'confirmed')"),
              sqlite_where=db.text("status IN ('pending', 'confirmed')")),
    )

    @property
    def payment_status(self):
        return BookingPaymentStatus.PAID if self.payment_confirmed else BookingPaymentStatus.PENDING

    @property
    def is_active(self):
        return self.status in BookingStatus.ACTIVE

    @property
    def counts_toward_capacity(self):
        return self.status == BookingStatus.CONFIRMED and self.payment_confirmed

    def confirm_payment(self, when):
        self.status = BookingStatus.CONFIRMED
        self.payment_confirmed = True
        self.confirmed_at = when
        return self

    def cancel(self, when):
        self.status = BookingStatus.CANCELLED
        self.cancelled_at = when
        return self

    def to_dict(self):
        data = super().to_dict()
        data['payment_status'] = self.payment_status
        return data

    def __repr__(self):
        return f'<Booking {self.player_id} {self.session_date} {self.session_time} {self.status}>'
