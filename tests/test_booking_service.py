from datetime import datetime

from badminton_club.extensions import db
from badminton_club.models import Booking, BookingStatus, Payment, PaymentStatus
from badminton_club.services.booking_service import BookingService
from badminton_club.services.payment_service import PaymentService

FRIDAY_TIME = '19:30-21:30'


def _book(player_id, session_date='2026-10-23', session_time=FRIDAY_TIME, **kwargs):
    return BookingService.create_booking(player_id, session_date, session_time, **kwargs)


def _confirmed_booking(player_id):
    result = _book(player_id)
    assert result['success'], result
    PaymentService.confirm_payment(booking_id=result['booking']['id'])
    return result


def test_booking_is_created_pending_with_payment_record(app, players):
    result = _book('MB001')

    assert result['success'] is True
    booking = result['booking']
    assert booking['status'] == 'pending'
    assert booking['payment_confirmed'] is False
    assert booking['payment_status'] == 'pending'
    assert booking['session_time'] == FRIDAY_TIME
    assert booking['session_id'] == 'friday-evening'
    assert booking['fee'] == 8.0
    assert booking['payment_reference'] == 'MB001202610231930'

    payments = Payment.query.filter_by(booking_id=booking['id']).all()
    assert len(payments) == 1
    assert payments[0].status == PaymentStatus.PENDING
    assert payments[0].payment_reference == booking['payment_reference']

    assert result['payment']['reference'] == 'MB001202610231930'
    assert result['payment']['amount'] == 8.0


def test_bare_start_time_is_stored_canonically(app, players):
    result = _book('mb001', session_time='19:30')

    assert result['success'] is True
    assert result['booking']['session_time'] == FRIDAY_TIME
    assert result['booking']['player_id'] == 'MB001'


def test_fee_override(app, players):
    result = _book('MB001', fee='5.50')
    assert result['booking']['fee'] == 5.5


def test_resubmitting_the_same_booking_is_a_duplicate(app, players):
    assert _book('MB001')['success'] is True

    again = _book('MB001')
    assert again['success'] is False
    assert again['error_code'] == 'duplicate_booking'

    bare = _book('MB001', session_time='19:30')
    assert bare['error_code'] == 'duplicate_booking'
    assert Booking.query.count() == 1


def test_legacy_booking_blocks_a_canonical_duplicate(app, players, make_booking):
    make_booking(players['alice'], session_time='19:30')

    result = _book('MB001')
    assert result['error_code'] == 'duplicate_booking'


def test_unknown_player_leaves_ledger_untouched(app, players):
    result = _book('MB999')

    assert result['success'] is False
    assert result['error_code'] == 'player_not_found'
    assert Booking.query.count() == 0
    assert Payment.query.count() == 0


def test_time_without_session_is_unknown(app, players):
    result = _book('MB001', session_time='10:00-12:00')
    assert result['error_code'] == 'unknown_session'

    wrong_day = _book('MB001', session_date='2026-10-22')
    assert wrong_day['error_code'] == 'unknown_session'


def test_session_that_already_ended_today_is_unknown(app, players, clock):
    clock.set(datetime(2026, 10, 23, 22, 0))

    result = _book('MB001')
    assert result['error_code'] == 'unknown_session'


def test_past_dates_are_rejected(app, players):
    result = _book('MB001', session_date='2026-10-16')
    assert result['error_code'] == 'date_in_past'


def test_malformed_input_is_rejected(app, players):
    assert _book('MB001', session_date='23/10/2026')['error_code'] == 'invalid_request'
    assert _book('MB001', session_time='evening')['error_code'] == 'invalid_request'
    assert _book('', session_time=FRIDAY_TIME)['error_code'] == 'invalid_request'
    assert _book('MB001', fee='-1')['error_code'] == 'invalid_request'


def test_pending_bookings_do_not_consume_capacity(app, players):
    # Friday holds 2 in the test catalog
    for player_id in ('MB001', 'MB002', 'MB003'):
        assert _book(player_id)['success'] is True


def test_third_booking_is_rejected_when_session_is_full(app, players):
    _confirmed_booking('MB001')
    _confirmed_booking('MB002')

    result = _book('MB003')
    assert result['success'] is False
    assert result['error_code'] == 'session_full'
    assert Booking.query.filter_by(player_id='MB003').count() == 0


def test_operator_override_ignores_capacity(app, players):
    _confirmed_booking('MB001')
    _confirmed_booking('MB002')

    result = BookingService.create_operator_booking('MB003', '2026-10-23', FRIDAY_TIME, operator='alice')
    assert result['success'] is True
    assert result['booking']['status'] == 'pending'


def test_unique_index_catches_a_duplicate_race(app, players, monkeypatch):
    assert _book('MB001')['success'] is True

    # Simulate a concurrent request that passed the pre-check
    monkeypatch.setattr(BookingService, 'has_active_booking', staticmethod(lambda *args, **kwargs: False))

    result = _book('MB001')
    assert result['error_code'] == 'duplicate_booking'
    assert Booking.query.count() == 1


def test_booking_invalidates_availability_cache(app, players, cache):
    before = cache.stats['invalidations']
    _book('MB001')
    assert cache.stats['invalidations'] == before + 1


def test_cancel_frees_the_slot_for_rebooking(app, players):
    first = _book('MB001')
    cancelled = BookingService.cancel_booking(first['booking']['id'], player_id='mb001')

    assert cancelled['success'] is True
    assert cancelled['booking']['status'] == 'cancelled'
    assert cancelled['booking']['cancelled_at'] is not None

    payment = Payment.query.filter_by(booking_id=first['booking']['id']).one()
    assert payment.status == PaymentStatus.FAILED

    again = _book('MB001')
    assert again['success'] is True


def test_cancelling_a_paid_booking_refunds_and_frees_capacity(app, players):
    paid = _confirmed_booking('MB001')
    _confirmed_booking('MB002')
    assert _book('MB003')['error_code'] == 'session_full'

    BookingService.cancel_booking(paid['booking']['id'])

    payment = Payment.query.filter_by(booking_id=paid['booking']['id']).one()
    assert payment.status == PaymentStatus.REFUNDED
    assert _book('MB003')['success'] is True


def test_cancel_checks_ownership(app, players):
    booking = _book('MB001')['booking']

    result = BookingService.cancel_booking(booking['id'], player_id='MB002')
    assert result['error_code'] == 'not_booking_owner'
    assert db.session.get(Booking, booking['id']).status == BookingStatus.PENDING


def test_cancel_twice_is_a_no_op(app, players):
    booking = _book('MB001')['booking']
    BookingService.cancel_booking(booking['id'])

    again = BookingService.cancel_booking(booking['id'])
    assert again['success'] is True
    assert again['already_cancelled'] is True


def test_cancel_unknown_booking(app):
    assert BookingService.cancel_booking('nope')['error_code'] == 'booking_not_found'


def test_player_bookings_newest_first(app, players):
    _book('MB001')
    _book('MB001', session_date='2026-10-25', session_time='14:30-16:30')

    result = BookingService.get_player_bookings('MB001')
    assert result['success'] is True
    assert [b['session_date'] for b in result['bookings']] == ['2026-10-25', '2026-10-23']

    assert BookingService.get_player_bookings('MB999')['error_code'] == 'player_not_found'


def test_list_pending_bookings_includes_player_names(app, players):
    _book('MB001')
    _confirmed_booking('MB002')

    pending = BookingService.list_pending_bookings()
    assert pending['count'] == 1
    assert [b['player_name'] for b in pending['bookings']] == ['Alice Smith']
