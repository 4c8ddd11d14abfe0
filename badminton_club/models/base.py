# models/base.py
from datetime import date, datetime, time
from decimal import Decimal
import uuid

from badminton_club.extensions import db


def _serialize(value):
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class BaseModel(db.Model):
    """Base model class with common functionality."""

    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def to_dict(self):
        """Convert model instance to dictionary."""
        return {
            column.name: _serialize(getattr(self, column.name))
            for column in self.__table__.columns
        }

    def from_dict(self, data):
        """Update model instance from dictionary."""
        for field, value in data.items():
            if hasattr(self, field) and field not in ['id', 'created_at', 'updated_at']:
                setattr(self, field, value)
