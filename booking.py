"""Seat booking, bus catalog and student identity operations.

All functions run against ``models.db`` and expect an application context.
"""
import re

from flask import current_app
from passlib.hash import bcrypt
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app_logger import get_logger
from exceptions import DuplicateKey, InvalidFormat, InvalidInput, NotFound, SeatsUnavailable, StorageError, Unauthorized
from models import db, Booking, Bus, Student, WEEKDAYS

log = get_logger(__name__)

ADMISSION_NUMBER_RE = re.compile(r"[0-9-]+")
ADMISSION_NUMBER_MAX = 20
SEATS_RE = re.compile(r"[+-]?[0-9]+")
MAX_SEATS = 2**31 - 1
MAX_ID = 2**63 - 1

# verified against for unknown students so both login failures cost a bcrypt round
DUMMY_HASH = bcrypt.hash("")


# -------------------- BOOKING --------------------
def book_seat(bus_id, student=None):
    """Take one seat on a bus.

    The decrement is a single conditional UPDATE, so two concurrent callers
    can never both take the last seat. Returns ``(remaining_seats, seat_number)``
    where ``seat_number`` is the seat index just consumed, counted down from
    the bus capacity.
    """
    try:
        result = db.session.execute(
            update(Bus)
            .where(Bus.id == bus_id, Bus.seats_remaining > 0)
            .values(seats_remaining=Bus.seats_remaining - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            exists = db.session.execute(select(Bus.id).where(Bus.id == bus_id)).first()
            db.session.rollback()
            if exists is None:
                raise NotFound(detail=f"bus {bus_id} does not exist")
            raise SeatsUnavailable(detail=f"bus {bus_id} has no seats left")

        remaining = db.session.execute(select(Bus.seats_remaining).where(Bus.id == bus_id)).scalar_one()
        seat_number = remaining + 1
        if student is not None:
            db.session.add(Booking(admission_number=student.admission_number, bus_id=bus_id, seat_number=seat_number))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"booking bus {bus_id}: {e}") from e

    log.info("Seat %s booked on bus %s (%s left)", seat_number, bus_id, remaining)
    return remaining, seat_number


def list_buses_for_route(route):
    """Yield the buses on ``route`` as JSON-ready dicts, in id order."""
    try:
        buses = db.session.execute(select(Bus).where(Bus.route == route).order_by(Bus.id)).scalars()
        for bus in buses:
            # some collations compare case-insensitively
            if bus.route == route:
                yield bus.to_dict()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"listing buses for route {route!r}: {e}") from e


def list_routes():
    try:
        return db.session.execute(select(Bus.route).distinct().order_by(Bus.route)).scalars().all()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"listing routes: {e}") from e


# -------------------- BUS CATALOG --------------------
def parse_seats(seats_text):
    if not isinstance(seats_text, str) or not SEATS_RE.fullmatch(seats_text):
        return None
    return int(seats_text)


def validate_bus_form(description, seats_text, day, time, route):
    seats = parse_seats(seats_text)
    if seats is None or seats <= 0 or seats > MAX_SEATS:
        return False
    return day in WEEKDAYS


def create_bus(description, seats_text, day, time, route):
    if not validate_bus_form(description, seats_text, day, time, route):
        raise InvalidInput("Invalid form data", detail=f"seats={seats_text!r} day={day!r}")

    seats = parse_seats(seats_text)
    bus = Bus(description=description, seats=seats, seats_remaining=seats, day=day, time=time, route=route)
    db.session.add(bus)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"creating bus: {e}") from e

    log.info("Bus %s created: %s %s on route %r with %s seats", bus.id, day, time, route, seats)
    return bus


# -------------------- IDENTITY --------------------
def _hasher():
    rounds = current_app.config.get("BCRYPT_ROUNDS")
    return bcrypt.using(rounds=rounds) if rounds else bcrypt


def signup(admission_number, password, recovery_word):
    if (
        not isinstance(admission_number, str)
        or len(admission_number) > ADMISSION_NUMBER_MAX
        or not ADMISSION_NUMBER_RE.fullmatch(admission_number)
    ):
        raise InvalidFormat(detail=f"rejected admission number {admission_number!r}")

    try:
        if db.session.get(Student, admission_number) is not None:
            raise DuplicateKey(detail=f"admission number {admission_number} exists")
        student = Student(
            admission_number=admission_number,
            password=_hasher().hash(password or ""),
            favorite_word=recovery_word,
        )
        db.session.add(student)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicateKey(detail=f"admission number {admission_number} exists") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"creating student: {e}") from e

    log.info("Student %s signed up", admission_number)
    return student


def authenticate(admission_number, password):
    """Return the student if the password verifies.

    Unknown admission numbers and wrong passwords raise the same error.
    """
    try:
        student = db.session.get(Student, admission_number) if admission_number else None
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(detail=f"looking up student: {e}") from e

    if student is None:
        bcrypt.verify(password or "", DUMMY_HASH)
        raise Unauthorized(detail=f"unknown admission number {admission_number!r}")

    try:
        verified = bcrypt.verify(password or "", student.password)
    except ValueError:
        verified = False  # malformed stored hash
    if not verified:
        raise Unauthorized(detail=f"bad password for {admission_number}")

    log.info("Student %s logged in", admission_number)
    return student
