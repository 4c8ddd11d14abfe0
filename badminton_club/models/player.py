# models/player.py
import random
import string
from datetime import datetime

from flask import current_app
from sqlalchemy import Index

from badminton_club.extensions import db
from .base import BaseModel


class Player(BaseModel):
    """A registered club member."""

    __tablename__ = 'player'

    id = db.Column(db.String(16), primary_key=True)  # short code, e.g. 'MB7QX'
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    email = db.Column(db.String(120), nullable=False)  # stored lower-cased
    phone = db.Column(db.String(20), nullable=True)
    emergency_contact_name = db.Column(db.String(120), nullable=True)
    emergency_contact_phone = db.Column(db.String(20), nullable=True)
    registered_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    bookings = db.relationship('Booking', back_populates='player', lazy='dynamic')

    __table_args__ = (
        Index('uq_player_email', 'email', unique=True),
        Index('idx_player_names', 'last_name', 'first_name'),
    )

    @staticmethod
    def generate_player_id():
        """Generate a short unique player ID such as 'MB7QX'."""
        prefix = current_app.config.get('PLAYER_ID_PREFIX', 'MB')
        length = current_app.config.get('PLAYER_ID_LENGTH', 3)
        attempts = current_app.config.get('PLAYER_ID_MAX_ATTEMPTS', 20)

        alphabet = string.ascii_uppercase + string.digits

        # Crowded ID space: widen the code after each round of misses
        while True:
            for _ in range(attempts):
                player_id = prefix + ''.join(random.choices(alphabet, k=length))
                if not db.session.get(Player, player_id):
                    return player_id
            length += 1

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f'<Player {self.id} {self.full_name}>'
