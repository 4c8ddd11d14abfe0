from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from badminton_club.extensions import db
from badminton_club.models import BookingStatus
from badminton_club.services.availability_service import AvailabilityService

FRIDAY = date(2026, 10, 23)


def _friday_session(result):
    return next(s for s in result['sessions'] if s['id'] == 'friday-evening')


def test_empty_friday_has_full_capacity(app):
    result = AvailabilityService.get_available_sessions('2026-10-23')

    assert result['success'] is True
    assert result['stale'] is False
    assert [s['id'] for s in result['sessions']] == ['friday-evening']

    friday = _friday_session(result)
    assert friday['available_spots'] == 2
    assert friday['confirmed_count'] == 0
    assert friday['time_range'] == '19:30-21:30'


def test_only_confirmed_and_paid_bookings_take_spots(app, players, make_booking):
    make_booking(players['alice'], status=BookingStatus.CONFIRMED, paid=True)
    make_booking(players['bob'])  # pending, unpaid

    friday = _friday_session(AvailabilityService.get_available_sessions(FRIDAY))
    assert friday['available_spots'] == 1
    assert friday['confirmed_count'] == 1


def test_legacy_start_time_bookings_are_counted(app, players, make_booking):
    make_booking(players['alice'], session_time='19:30', status=BookingStatus.CONFIRMED, paid=True)

    friday = _friday_session(AvailabilityService.get_available_sessions(FRIDAY))
    assert friday['available_spots'] == 1


def test_full_session_hidden_from_players_but_shown_to_operators(app, players, make_booking):
    make_booking(players['alice'], status=BookingStatus.CONFIRMED, paid=True)
    make_booking(players['bob'], status=BookingStatus.CONFIRMED, paid=True)

    assert AvailabilityService.get_available_sessions(FRIDAY)['sessions'] == []

    operator_view = AvailabilityService.get_available_sessions(FRIDAY, include_full=True)
    friday = _friday_session(operator_view)
    assert friday['is_full'] is True
    assert friday['available_spots'] == 0


def test_cancelled_bookings_do_not_count(app, players, make_booking):
    make_booking(players['alice'], status=BookingStatus.CANCELLED, paid=True)

    friday = _friday_session(AvailabilityService.get_available_sessions(FRIDAY))
    assert friday['available_spots'] == 2


def test_past_dates_have_no_sessions(app):
    result = AvailabilityService.get_available_sessions('2026-10-16')
    assert result['success'] is True
    assert result['sessions'] == []


def test_days_without_sessions_are_empty(app):
    assert AvailabilityService.get_available_sessions('2026-10-22')['sessions'] == []


def test_same_day_session_listed_until_it_ends(app, clock, cache):
    clock.set(datetime(2026, 10, 23, 20, 0))
    assert len(AvailabilityService.get_available_sessions(FRIDAY)['sessions']) == 1

    cache.clear()
    clock.set(datetime(2026, 10, 23, 21, 30))
    assert AvailabilityService.get_available_sessions(FRIDAY)['sessions'] == []


def test_invalid_date_is_rejected(app):
    result = AvailabilityService.get_available_sessions('next friday')
    assert result['success'] is False
    assert result['error_code'] == 'invalid_request'


def test_repeated_calls_return_the_same_answer(app, cache):
    first = AvailabilityService.get_available_sessions(FRIDAY)
    second = AvailabilityService.get_available_sessions(FRIDAY)

    assert first['sessions'] == second['sessions']
    assert cache.stats['hits'] == 1


def _break_database(monkeypatch):
    def unavailable(*args, **kwargs):
        raise SQLAlchemyError('database unavailable')

    monkeypatch.setattr(db.session, 'query', unavailable)


def test_store_failure_serves_stale_result(app, cache, monkeypatch):
    fresh = AvailabilityService.get_available_sessions(FRIDAY)
    cache.invalidate()
    _break_database(monkeypatch)

    result = AvailabilityService.get_available_sessions(FRIDAY)
    assert result['success'] is True
    assert result['stale'] is True
    assert result['sessions'] == fresh['sessions']


def test_store_failure_without_cached_value(app, monkeypatch):
    _break_database(monkeypatch)

    result = AvailabilityService.get_available_sessions(FRIDAY)
    assert result['success'] is False
    assert result['error_code'] == 'store_unavailable'


def _session(**overrides):
    values = dict(id='friday-evening', day_of_week='Friday', start_time='19:30', end_time='21:30',
                  max_players=3, fee=8, is_active=True)
    values.update(overrides)
    return SimpleNamespace(**values)


def _booking(session_time='19:30-21:30', status='confirmed', paid=True, session_date=FRIDAY):
    return SimpleNamespace(session_date=session_date, session_time=session_time,
                           status=status, payment_confirmed=paid)


def test_calculate_availability_is_a_pure_projection():
    now = datetime(2026, 10, 21, 10, 0)
    sessions = [_session(), _session(id='friday-late', start_time='21:30', end_time='23:00', max_players=1)]
    bookings = [
        _booking(),
        _booking(session_time='19:30'),
        _booking(status='pending', paid=False),
        _booking(session_time='21:30-23:00'),
        _booking(session_date=date(2026, 10, 30)),
    ]

    result = AvailabilityService.calculate_availability(FRIDAY, now, sessions, bookings)

    assert [s['id'] for s in result] == ['friday-evening']
    assert result[0]['available_spots'] == 1


@pytest.mark.parametrize('count, expected', [(0, True), (2, True), (3, False), (4, False)])
def test_session_listed_iff_below_capacity(count, expected):
    now = datetime(2026, 10, 21, 10, 0)
    bookings = [_booking() for _ in range(count)]

    result = AvailabilityService.calculate_availability(FRIDAY, now, [_session()], bookings)
    assert bool(result) is expected
