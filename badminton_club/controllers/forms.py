# controllers/forms.py
"""
Flask-WTF forms used to validate JSON request bodies.

FlaskForm reads request.get_json() when the request is JSON. CSRF tokens are
disabled on these forms because the JSON blueprints are CSRF-exempt and
operators authenticate per request.
"""

from flask_wtf import FlaskForm
from wtforms import DecimalField, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp

from badminton_club.services.errors import ClubError, failure


class JsonForm(FlaskForm):
    class Meta:
        csrf = False


class NullableDecimalField(DecimalField):
    """DecimalField that reads a JSON null as an omitted value."""

    def process_formdata(self, valuelist):
        if valuelist and valuelist[0] is None:
            self.raw_data = []
            valuelist = []
        super().process_formdata(valuelist)


class RegisterForm(JsonForm):
    """New player registration."""

    first_name = StringField('First name', validators=[
        DataRequired(message='First name is required'),
        Length(min=2, max=80, message='First name must be between 2 and 80 characters')
    ])
    last_name = StringField('Last name', validators=[
        DataRequired(message='Last name is required'),
        Length(min=2, max=80, message='Last name must be between 2 and 80 characters')
    ])
    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Enter a valid email address'),
        Length(max=120)
    ])
    phone = StringField('Phone', validators=[
        DataRequired(message='Phone number is required'),
        Length(min=8, max=20, message='Phone number must be between 8 and 20 characters')
    ])
    emergency_contact_name = StringField('Emergency contact', validators=[Optional(), Length(max=120)])
    emergency_contact_phone = StringField('Emergency contact phone', validators=[Optional(), Length(max=20)])


class BookingForm(JsonForm):
    """Player booking request."""

    player_id = StringField('Player ID', validators=[
        DataRequired(message='Player ID is required'),
        Length(max=16)
    ])
    session_date = StringField('Date', validators=[
        DataRequired(message='Date is required'),
        Regexp(r'^\d{4}-\d{2}-\d{2}$', message='Date must be YYYY-MM-DD')
    ])
    session_time = StringField('Session time', validators=[
        DataRequired(message='Session time is required'),
        Length(max=20)
    ])
    fee = NullableDecimalField('Fee', places=2, validators=[
        Optional(),
        NumberRange(min=0, message='Fee cannot be negative')
    ])


class FindPlayerIdForm(JsonForm):
    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Enter a valid email address')
    ])


class PaymentReferenceForm(JsonForm):
    reference = StringField('Payment reference', validators=[
        DataRequired(message='Payment reference is required'),
        Length(max=40)
    ])


class LoginForm(JsonForm):
    """Operator sign-in."""

    username = StringField('Username', validators=[
        DataRequired(message='Username is required'),
        Length(min=3, max=80)
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
        Length(max=255)
    ])


def form_failure(form):
    """Service-style failure result carrying the form's field errors."""
    messages = [message for errors in form.errors.values() for message in errors]
    return failure(ClubError.INVALID_REQUEST, '; '.join(messages), errors=form.errors)
