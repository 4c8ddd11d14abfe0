# models/__init__.py
from .base import BaseModel
from .session import Session
from .player import Player
from .booking import Booking, BookingStatus, BookingPaymentStatus
from .payment import Payment, PaymentStatus
from .operator import Operator

__all__ = [
    'BaseModel',
    'Session',
    'Player',
    'Booking',
    'BookingStatus',
    'BookingPaymentStatus',
    'Payment',
    'PaymentStatus',
    'Operator'
]
