# models/payment.py
from sqlalchemy import Index

from badminton_club.extensions import db
from .base import BaseModel


class PaymentStatus:
    """Payment status constants."""
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'


class Payment(BaseModel):
    """Reconciliation record matching an off-band bank transfer to a Booking."""

    __tablename__ = 'payment'

    booking_id = db.Column(db.String(36), db.ForeignKey('booking.id'), nullable=False, index=True)
    player_id = db.Column(db.String(16), db.ForeignKey('player.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(20), nullable=True)
    payment_reference = db.Column(db.String(40), nullable=True)
    status = db.Column(db.String(10), default=PaymentStatus.PENDING, nullable=False)
    payment_date = db.Column(db.DateTime, nullable=True)

    booking = db.relationship('Booking', back_populates='payments')
    player = db.relationship('Player')

    __table_args__ = (
        Index('idx_payment_status', 'status'),
        Index('idx_payment_reference', 'payment_reference'),
    )

    def complete(self, when):
        self.status = PaymentStatus.COMPLETED
        self.payment_date = when
        return self

    def __repr__(self):
        return f'<Payment {self.booking_id} {self.amount} {self.status}>'
