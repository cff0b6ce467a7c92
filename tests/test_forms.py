import pytest

import booking
from exceptions import InvalidInput
from models import WEEKDAYS


@pytest.mark.parametrize("seats", ["0", "-5", "abc", "", "3.5", " 30", "30\n", "٣٠"])
def test_rejects_bad_seat_counts(seats):
    assert not booking.validate_bus_form("desc", seats, "Monday", "07:30", "Campus-Town")


@pytest.mark.parametrize("seats", ["30", "1", "+4", "007"])
def test_accepts_positive_seat_counts(seats):
    assert booking.validate_bus_form("desc", seats, "Monday", "07:30", "Campus-Town")


@pytest.mark.parametrize("day", ["Funday", "monday", "MONDAY", "Mon", ""])
def test_rejects_unknown_days(day):
    assert not booking.validate_bus_form("desc", "30", day, "07:30", "Campus-Town")


@pytest.mark.parametrize("day", WEEKDAYS)
def test_accepts_every_weekday(day):
    assert booking.validate_bus_form("desc", "30", day, "07:30", "Campus-Town")


def test_other_fields_are_not_checked():
    assert booking.validate_bus_form("", "30", "Sunday", "", "")


def test_create_bus_rejects_invalid_form(ctx):
    with pytest.raises(InvalidInput) as exc:
        booking.create_bus("desc", "0", "Monday", "07:30", "Campus-Town")
    assert exc.value.message == "Invalid form data"
    assert exc.value.status_code == 400


def test_create_bus_starts_full(ctx):
    bus = booking.create_bus("desc", "42", "Wednesday", "12:15", "Campus-Town")

    assert (bus.seats, bus.seats_remaining) == (42, 42)
