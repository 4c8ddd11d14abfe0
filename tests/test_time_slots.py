from datetime import date, time

import pytest

from badminton_club.utils.data_processing import clean_phone_number, clean_player_id, clean_reference
from badminton_club.utils.time_slots import (
    canonical_range, matching_forms, normalize_day_name, normalize_session_time,
    parse_hhmm, parse_iso_date, parse_session_time, weekday_name
)


@pytest.mark.parametrize('raw', ['19:30-21:30', '19:30 - 21:30', '19:30 – 21:30', ' 19:30-21:30 '])
def test_parse_session_time_accepts_range_spellings(raw):
    assert parse_session_time(raw) == (time(19, 30), time(21, 30))


def test_parse_session_time_bare_start_has_no_end():
    assert parse_session_time('19:30') == (time(19, 30), None)


@pytest.mark.parametrize('raw', ['', '7pm', '25:00', '21:30-19:30', '19:30-'])
def test_parse_session_time_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        parse_session_time(raw)


def test_normalize_session_time_collapses_dash_spacing():
    assert normalize_session_time('14:30 — 16:30') == '14:30-16:30'
    assert normalize_session_time(None) == ''


def test_canonical_range_zero_pads():
    assert canonical_range('9:05', '11:00') == '09:05-11:00'
    assert parse_hhmm('9.05') == time(9, 5)


def test_matching_forms_lists_range_then_start():
    assert matching_forms('19:30', '21:30') == ['19:30-21:30', '19:30']


def test_weekday_helpers():
    assert weekday_name(date(2026, 10, 23)) == 'Friday'
    assert normalize_day_name('fri') == 'Friday'
    assert normalize_day_name(' SUNDAY ') == 'Sunday'
    with pytest.raises(ValueError):
        normalize_day_name('Funday')


def test_parse_iso_date():
    assert parse_iso_date('2026-10-23') == date(2026, 10, 23)
    with pytest.raises(ValueError):
        parse_iso_date('23/10/2026')


def test_hand_typed_identifiers_are_cleaned():
    assert clean_player_id(' mb 7qx ') == 'MB7QX'
    assert clean_reference('mb7qx 2026 1023 1930') == 'MB7QX202610231930'
    assert clean_phone_number('+61 412 345 678') == '0412345678'
    assert clean_phone_number('(07) 4092 1234') == '0740921234'
