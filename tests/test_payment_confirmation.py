from datetime import date

from badminton_club.extensions import db
from badminton_club.models import Booking, BookingStatus, Payment, PaymentStatus
from badminton_club.services.availability_service import AvailabilityService
from badminton_club.services.booking_service import BookingService
from badminton_club.services.payment_service import PaymentService

FRIDAY = date(2026, 10, 23)


def _book(player_id):
    result = BookingService.create_booking(player_id, '2026-10-23', '19:30-21:30')
    assert result['success'], result
    return result['booking']


def test_payment_reference_format(app):
    assert PaymentService.generate_payment_reference('MB7QX', FRIDAY, '19:30') == 'MB7QX202610231930'
    assert PaymentService.generate_payment_reference('MB7QX', FRIDAY, '9:05') == 'MB7QX202610230905'


def test_confirm_by_booking_id(app, players, clock):
    booking = _book('MB001')

    result = PaymentService.confirm_payment(booking_id=booking['id'])

    assert result['success'] is True
    assert result['booking']['status'] == 'confirmed'
    assert result['booking']['payment_status'] == 'paid'
    assert result['booking']['confirmed_at'] == clock.now().isoformat()
    assert result['payment']['status'] == PaymentStatus.COMPLETED
    assert result['over_capacity'] is False


def test_confirmation_takes_a_spot(app, players):
    booking = _book('MB001')
    before = AvailabilityService.get_available_sessions(FRIDAY)['sessions'][0]['available_spots']

    PaymentService.confirm_payment(booking_id=booking['id'])

    after = AvailabilityService.get_available_sessions(FRIDAY)['sessions'][0]['available_spots']
    assert after == before - 1


def test_confirm_by_reference_ignores_case_and_spacing(app, players):
    booking = _book('MB001')

    result = PaymentService.confirm_payment(reference=' mb001 20261023 1930 ')
    assert result['success'] is True
    assert result['booking']['id'] == booking['id']


def test_reference_only_matches_pending_bookings(app, players):
    booking = _book('MB001')
    PaymentService.confirm_payment(booking_id=booking['id'])

    result = PaymentService.confirm_payment(reference=booking['payment_reference'])
    assert result['error_code'] == 'booking_not_found'


def test_confirming_twice_is_idempotent(app, players):
    booking = _book('MB001')
    PaymentService.confirm_payment(booking_id=booking['id'])

    again = PaymentService.confirm_payment(booking_id=booking['id'])
    assert again['success'] is True
    assert again['already_confirmed'] is True
    assert Payment.query.filter_by(booking_id=booking['id']).count() == 1


def test_cancelled_booking_cannot_be_confirmed(app, players):
    booking = _book('MB001')
    BookingService.cancel_booking(booking['id'])

    result = PaymentService.confirm_payment(booking_id=booking['id'])
    assert result['error_code'] == 'booking_cancelled'


def test_unknown_booking(app):
    assert PaymentService.confirm_payment(booking_id='missing')['error_code'] == 'booking_not_found'
    assert PaymentService.confirm_payment()['error_code'] == 'invalid_request'


def test_over_confirmation_is_allowed_and_flagged(app, players):
    bookings = [_book(player_id) for player_id in ('MB001', 'MB002', 'MB003')]

    results = [PaymentService.confirm_payment(booking_id=b['id']) for b in bookings]

    assert all(r['success'] for r in results)
    assert [r['over_capacity'] for r in results] == [False, False, True]


def test_missing_payment_row_is_created_on_confirmation(app, players, make_booking):
    legacy = make_booking(players['alice'])
    assert Payment.query.count() == 0

    result = PaymentService.confirm_payment(booking_id=legacy.id)

    assert result['success'] is True
    payment = Payment.query.filter_by(booking_id=legacy.id).one()
    assert payment.status == PaymentStatus.COMPLETED
    assert db.session.get(Booking, legacy.id).status == BookingStatus.CONFIRMED


def test_payments_report(app, players):
    paid = _book('MB001')
    _book('MB002')
    PaymentService.confirm_payment(booking_id=paid['id'])

    report = PaymentService.payments_report()
    assert report['count'] == 2
    by_player = {row['player_name']: row for row in report['payments']}

    assert set(by_player) == {'Alice Smith', 'Bob Jones'}
    assert by_player['Alice Smith']['status'] == 'completed'
    assert by_player['Bob Jones']['status'] == 'pending'
    assert by_player['Bob Jones']['amount'] == 8.0
