# tests/conftest.py
"""
Fixtures shared by the test suite.

Every test gets a fresh app backed by a throwaway SQLite file and a low
bcrypt cost. The `app` fixture does not hold an app context open, so test
client requests each get their own context (and their own Flask-Login user).
Logic-level tests that call `booking` directly request `ctx` instead.
"""
import pytest

import booking
from app import create_app

ADMIN = "00-001"
PASSWORD = "secret-pass"


@pytest.fixture
def app(tmp_path):
    return create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "BCRYPT_ROUNDS": 4,
        "ADMIN_ADMISSION_NUMBERS": [ADMIN],
    })


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_student(app):
    def _make(admission_number="12-345", password=PASSWORD, word="blue"):
        with app.app_context():
            return booking.signup(admission_number, password, word).admission_number
    return _make


@pytest.fixture
def make_bus(app):
    def _make(seats="30", route="Campus-Town", day="Monday", time="07:30", description="Morning shuttle"):
        with app.app_context():
            return booking.create_bus(description, seats, day, time, route).id
    return _make


@pytest.fixture
def login(client):
    def _login(admission_number="12-345", password=PASSWORD):
        return client.post("/login", data={"admissionNumber": admission_number, "password": password})
    return _login


@pytest.fixture
def student_client(client, make_student, login):
    make_student()
    login()
    return client


@pytest.fixture
def admin_client(client, make_student, login):
    make_student(ADMIN)
    login(ADMIN)
    return client
