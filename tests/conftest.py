import base64
from datetime import date, datetime
from decimal import Decimal

import pytest

from badminton_club import create_app
from badminton_club.extensions import db
from badminton_club.models import Booking, BookingStatus, Operator, Player
from badminton_club.services.session_catalog_service import SessionCatalogService
from badminton_club.utils.cache import AvailabilityCache
from badminton_club.utils.clock import FixedClock

# Wednesday morning, club-local. Friday 23 Oct is the next session.
NOW = datetime(2026, 10, 21, 10, 0)
FRIDAY = date(2026, 10, 23)
SUNDAY = date(2026, 10, 25)
FRIDAY_TIME = '19:30-21:30'


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def cache():
    return AvailabilityCache(ttl=5)


@pytest.fixture
def app(clock, cache):
    app = create_app('testing', clock=clock, availability_cache=cache)

    with app.app_context():
        db.create_all()
        SessionCatalogService.seed_sessions()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def players(app):
    """Three registered players keyed by first name."""
    created = {}
    for player_id, first, last in (('MB001', 'Alice', 'Smith'),
                                   ('MB002', 'Bob', 'Jones'),
                                   ('MB003', 'Cara', 'Lee')):
        player = Player(
            id=player_id,
            first_name=first,
            last_name=last,
            email=f'{first.lower()}@mareeba.net',
            phone='0412345678'
        )
        db.session.add(player)
        created[first.lower()] = player

    db.session.commit()
    return created


@pytest.fixture
def make_booking(app, cache):
    """Write a booking straight into the ledger, bypassing the transaction."""

    def _make(player, session_date=FRIDAY, session_time=FRIDAY_TIME,
              status=BookingStatus.PENDING, paid=False, confirmed_at=None):
        booking = Booking(
            player_id=player.id,
            session_id='friday-evening',
            session_date=session_date,
            session_time=session_time,
            status=status,
            payment_confirmed=paid,
            fee=Decimal('8.00'),
            confirmed_at=confirmed_at
        )
        db.session.add(booking)
        db.session.commit()
        cache.invalidate()
        return booking

    return _make


@pytest.fixture
def operator(app):
    operator = Operator(username='alice')
    operator.set_password('shuttlecock')
    db.session.add(operator)
    db.session.commit()
    return operator


@pytest.fixture
def operator_headers(operator):
    token = base64.b64encode(b'alice:shuttlecock').decode()
    return {'Authorization': f'Basic {token}'}
