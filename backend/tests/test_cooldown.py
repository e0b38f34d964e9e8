from datetime import datetime, timedelta, timezone

from edusoft.utils.cooldown import check_availability, ensure_utc, next_available

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_no_previous_attempt_is_available():
    state = check_availability(None, now=NOW)
    assert state == {'available': True, 'next_available_date': None, 'days_remaining': 0}


def test_within_window_is_blocked():
    state = check_availability(NOW - timedelta(days=2), now=NOW)
    assert state['available'] is False
    assert state['next_available_date'] == NOW + timedelta(days=5)
    assert state['days_remaining'] == 5


def test_partial_days_round_up():
    state = check_availability(NOW - timedelta(days=6, hours=23), now=NOW)
    assert state['available'] is False
    assert state['days_remaining'] == 1


def test_exact_boundary_is_available():
    state = check_availability(NOW - timedelta(days=7), now=NOW)
    assert state['available'] is True


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime(2025, 3, 9, 12, 0)
    assert ensure_utc(naive).tzinfo is timezone.utc
    assert next_available(naive) == datetime(2025, 3, 16, 12, 0, tzinfo=timezone.utc)
    assert check_availability(naive, now=NOW)['available'] is False
