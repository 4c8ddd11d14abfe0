# models/session.py
from badminton_club.extensions import db
from badminton_club.utils.time_slots import canonical_range, matching_forms, parse_hhmm
from sqlalchemy import Index
from .base import BaseModel


class Session(BaseModel):
    """A recurring weekly time slot (e.g. Friday 19:30-21:30)."""

    __tablename__ = 'session'

    id = db.Column(db.String(50), primary_key=True)  # slug, e.g. 'friday-evening'
    day_of_week = db.Column(db.String(10), nullable=False)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM club-local
    end_time = db.Column(db.String(5), nullable=False)
    max_players = db.Column(db.Integer, nullable=False, default=20)
    fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    bookings = db.relationship('Booking', back_populates='session', lazy='dynamic')

    __table_args__ = (
        Index('idx_session_day_active', 'day_of_week', 'is_active'),
        Index('uq_session_day_start', 'day_of_week', 'start_time', unique=True),
        db.CheckConstraint('max_players > 0', name='ck_session_max_players_positive'),
    )

    @property
    def time_range(self):
        """Canonical 'HH:MM-HH:MM' form used on bookings."""
        return canonical_range(self.start_time, self.end_time)

    @property
    def time_forms(self):
        """Both stored booking-time forms that refer to this session."""
        return matching_forms(self.start_time, self.end_time)

    @property
    def start(self):
        return parse_hhmm(self.start_time)

    @property
    def end(self):
        return parse_hhmm(self.end_time)

    def to_dict(self):
        data = super().to_dict()
        data['time_range'] = self.time_range
        return data

    def __repr__(self):
        return f'<Session {self.day_of_week} {self.time_range}>'
