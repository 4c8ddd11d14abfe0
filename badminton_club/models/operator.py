# models/operator.py
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from badminton_club.extensions import db
from .base import BaseModel


class Operator(UserMixin, BaseModel):
    """Club committee member allowed to confirm payments and manage sessions."""

    __tablename__ = 'operator'

    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<Operator {self.username}>'
