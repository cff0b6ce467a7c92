# models.py — tables for the campus bus booking app
from datetime import datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class Student(UserMixin, db.Model):
    __tablename__ = "students"
    admission_number = db.Column(db.String(20), primary_key=True)
    password = db.Column(db.String(255), nullable=False)  # bcrypt hash
    favorite_word = db.Column(db.String(255))

    bookings = db.relationship("Booking", back_populates="student", order_by="Booking.created_at.desc()")

    def get_id(self):
        return self.admission_number


class Bus(db.Model):
    __tablename__ = "buses"
    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), default="")
    seats = db.Column(db.Integer, nullable=False)  # capacity, fixed at creation
    seats_remaining = db.Column(db.Integer, nullable=False)
    day = db.Column(db.String(20), nullable=False)
    time = db.Column(db.String(255), default="")
    route = db.Column(db.String(255), default="", index=True)

    bookings = db.relationship("Booking", back_populates="bus")

    __table_args__ = (
        db.CheckConstraint("seats_remaining >= 0", name="ck_bus_seats_remaining_nonnegative"),
        db.CheckConstraint("seats_remaining <= seats", name="ck_bus_seats_remaining_le_capacity"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "seats": self.seats,
            "day": self.day,
            "time": self.time,
            "route": self.route,
            "totalSeats": self.seats,
            "seatsRemaining": self.seats_remaining,
        }


class Booking(db.Model):
    __tablename__ = "bookings"
    id = db.Column(db.Integer, primary_key=True)
    admission_number = db.Column(db.String(20), db.ForeignKey("students.admission_number"), nullable=False)
    bus_id = db.Column(db.Integer, db.ForeignKey("buses.id"), nullable=False)
    seat_number = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship("Student", back_populates="bookings")
    bus = db.relationship("Bus", back_populates="bookings")

    __table_args__ = (
        db.UniqueConstraint("bus_id", "seat_number", name="uq_bus_seat_once"),
    )
