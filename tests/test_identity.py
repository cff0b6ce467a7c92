import pytest
from passlib.hash import bcrypt

import booking
from exceptions import DuplicateKey, InvalidFormat, InvalidInput, Unauthorized
from models import db, Student


def test_signup_accepts_digits_and_hyphens(ctx):
    student = booking.signup("12-345", "pw", "blue")

    assert student.admission_number == "12-345"
    assert student.favorite_word == "blue"


@pytest.mark.parametrize("number", ["12A345", "", "12 345", "12-345\n", "1" * 21])
def test_signup_rejects_bad_admission_numbers(ctx, number):
    with pytest.raises(InvalidFormat) as exc:
        booking.signup(number, "pw", "blue")
    assert isinstance(exc.value, InvalidInput)
    assert exc.value.status_code == 400
    assert db.session.get(Student, number) is None


def test_password_is_stored_hashed(ctx):
    booking.signup("12-345", "hunter2", "blue")

    stored = db.session.get(Student, "12-345").password
    assert stored != "hunter2"
    assert bcrypt.identify(stored)
    assert bcrypt.verify("hunter2", stored)


def test_duplicate_signup(ctx):
    booking.signup("12-345", "pw", "blue")

    with pytest.raises(DuplicateKey):
        booking.signup("12-345", "other", "red")
    assert bcrypt.verify("pw", db.session.get(Student, "12-345").password)


def test_authenticate(ctx):
    booking.signup("12-345", "pw", "blue")

    assert booking.authenticate("12-345", "pw").admission_number == "12-345"


def test_wrong_password_looks_like_unknown_student(ctx):
    booking.signup("12-345", "pw", "blue")

    with pytest.raises(Unauthorized) as wrong:
        booking.authenticate("12-345", "nope")
    with pytest.raises(Unauthorized) as unknown:
        booking.authenticate("99-999", "pw")

    assert str(wrong.value) == str(unknown.value) == "Invalid admission number or password"
    assert wrong.value.status_code == unknown.value.status_code == 401


def test_malformed_stored_hash_fails_verification(ctx):
    db.session.add(Student(admission_number="12-345", password="not-a-hash", favorite_word=""))
    db.session.commit()

    with pytest.raises(Unauthorized):
        booking.authenticate("12-345", "not-a-hash")


def test_unknown_student_still_pays_for_a_verify(ctx, monkeypatch):
    booking.signup("12-345", "pw", "blue")
    checked = []
    real_verify = booking.bcrypt.verify
    monkeypatch.setattr(booking.bcrypt, "verify", lambda secret, hash: checked.append(hash) or real_verify(secret, hash))

    with pytest.raises(Unauthorized):
        booking.authenticate("99-999", "pw")
    with pytest.raises(Unauthorized):
        booking.authenticate("12-345", "nope")

    assert checked[0] == booking.DUMMY_HASH
    assert checked[1] == db.session.get(Student, "12-345").password
