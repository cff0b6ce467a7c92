# app.py — Campus Bus Booking App (students book seats, admins add buses)
# Run:  python app.py        or:  flask --app app run
# Requires: pip install -e .

import os
from functools import wraps

from flask import Flask, render_template, request, redirect, url_for, flash, jsonify, abort, current_app
from flask_login import LoginManager, login_user, logout_user, login_required, current_user
from jinja2 import ChoiceLoader, DictLoader, FileSystemLoader
from werkzeug.exceptions import HTTPException

import booking
from app_logger import setup_logging, get_logger
from exceptions import BookingError, InvalidInput
from models import db, Bus, Student, WEEKDAYS

APP_SECRET = os.getenv("BUS_BOOKING_SECRET", "change-this-secret")
DB_PATH = os.getenv("BUS_BOOKING_DATABASE_URL", "sqlite:///db.db")  # <-- db.db in the instance folder
ADMINS = os.getenv("BUS_BOOKING_ADMINS", "")
BCRYPT_ROUNDS = os.getenv("BUS_BOOKING_BCRYPT_ROUNDS")
PORT = int(os.getenv("BUS_BOOKING_PORT", "7000"))

JSON_PREFIX = "/student/"  # endpoints under here answer in JSON, errors included

log = get_logger("app")


def create_app(config=None):
    setup_logging()
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=APP_SECRET,
        SQLALCHEMY_DATABASE_URI=DB_PATH,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        ADMIN_ADMISSION_NUMBERS=[a.strip() for a in ADMINS.split(",") if a.strip()],
        BCRYPT_ROUNDS=int(BCRYPT_ROUNDS) if BCRYPT_ROUNDS else None,
    )
    if config:
        app.config.update(config)

    # files in templates/ override the built-in pages
    app.jinja_loader = ChoiceLoader([
        FileSystemLoader(os.path.join(app.root_path, "templates")),
        DictLoader(TPLS),
    ])

    db.init_app(app)
    login_manager = LoginManager(app)
    login_manager.login_view = "login"
    login_manager.user_loader(load_student)
    login_manager.unauthorized_handler(unauthorized)

    register_routes(app)
    register_error_handlers(app)

    @app.context_processor
    def inject_roles():
        return {"is_admin": is_admin(current_user)}

    with app.app_context():
        db.create_all()
    log.info("App ready on %s", app.config["SQLALCHEMY_DATABASE_URI"])
    return app


# -------------------- HELPERS --------------------
def load_student(admission_number):
    return db.session.get(Student, admission_number)


def unauthorized():
    if request.path.startswith(JSON_PREFIX):
        return jsonify({"error": "Login required"}), 401
    flash("Please log in first", "warning")
    return redirect(url_for("login"))


def is_admin(user):
    return bool(
        user.is_authenticated
        and user.admission_number in current_app.config["ADMIN_ADMISSION_NUMBERS"]
    )


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not is_admin(current_user):
            abort(403)
        return f(*args, **kwargs)
    return wrapper


def form_value(name):
    """Read a field from a form post or a JSON body."""
    if request.is_json:
        data = request.get_json(silent=True)
        value = data.get(name) if isinstance(data, dict) else None
        return "" if value is None else str(value)
    return request.form.get(name, "")


def error_response(message, status):
    if request.path.startswith(JSON_PREFIX):
        return jsonify({"error": message}), status
    return render_template("error.html", message=message, code=status), status


# -------------------- ROUTES --------------------
def register_routes(app):

    # ---- auth ----
    @app.route("/signup", methods=["GET", "POST"])
    def signup():
        if request.method == "POST":
            booking.signup(
                request.form.get("admissionNumber", ""),
                request.form.get("password", ""),
                request.form.get("favoriteWord", ""),
            )
            flash("Account created. Please login.", "success")
            return redirect(url_for("login"))
        return render_template("signup.html")

    @app.route("/login", methods=["GET", "POST"])
    def login():
        if request.method == "POST":
            student = booking.authenticate(
                request.form.get("admissionNumber", ""),
                request.form.get("password", ""),
            )
            login_user(student)
            return redirect(url_for("student"))
        return render_template("login.html")

    @app.route("/logout")
    @login_required
    def logout():
        logout_user()
        flash("Logged out", "info")
        return redirect(url_for("login"))

    # ---- admin ----
    @app.route("/admin")
    @login_required
    @admin_required
    def admin():
        buses = db.session.execute(db.select(Bus).order_by(Bus.id)).scalars().all()
        return render_template("admin.html", buses=buses, weekdays=WEEKDAYS)

    @app.route("/admin/add-bus", methods=["POST"])
    @login_required
    @admin_required
    def add_bus():
        booking.create_bus(
            request.form.get("busDescription", ""),
            request.form.get("seats", ""),
            request.form.get("day", ""),
            request.form.get("time", ""),
            request.form.get("route", ""),
        )
        flash("Bus created", "success")
        return redirect(url_for("admin"))

    # ---- student pages ----
    @app.route("/student")
    @login_required
    def student():
        return render_template("student.html", routes=booking.list_routes())

    @app.route("/payment")
    @login_required
    def payment():
        return render_template("payment.html", seat=request.args.get("seat", type=int))

    @app.route("/my-bookings")
    @login_required
    def my_bookings():
        return render_template("my_bookings.html", bookings=current_user.bookings)

    # ---- student API (AJAX) ----
    @app.route("/student/book-seat", methods=["POST"])
    @login_required
    def book_seat():
        bus_id_text = form_value("busID")
        if not bus_id_text.isascii() or not bus_id_text.isdigit() or int(bus_id_text) > booking.MAX_ID:
            raise InvalidInput("Invalid bus ID", detail=f"busID={bus_id_text!r}")

        remaining, seat_number = booking.book_seat(int(bus_id_text), current_user._get_current_object())
        return jsonify({
            "message": "Seat booked successfully",
            "remaining_seats": remaining,
            "seat_number": seat_number,
            "enable_payment_btn": True,
        })

    @app.route("/student/get-buses-for-route", methods=["POST"])
    @login_required
    def get_buses_for_route():
        return jsonify(list(booking.list_buses_for_route(form_value("route"))))

    @app.route("/student/complete-payment", methods=["GET", "POST"])
    @login_required
    def complete_payment():
        # no payment gateway behind this; always acknowledges
        log.info("Payment acknowledged for student %s", current_user.admission_number)
        return jsonify({"message": "Payment completed successfully"})

    # ---- landing ----
    @app.route("/")
    @app.route("/home")
    def home():
        return render_template("index.html")


# -------------------- ERRORS --------------------
def register_error_handlers(app):

    @app.errorhandler(BookingError)
    def booking_error(e):
        if e.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.path, e.detail or e, exc_info=e)
        else:
            log.warning("%s %s rejected: %s (%s)", request.method, request.path, e.message, e.detail)
        return error_response(e.message, e.status_code)

    @app.errorhandler(403)
    def forbidden(e):
        log.warning("%s %s forbidden", request.method, request.path)
        return error_response("Forbidden", 403)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("Not Found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        response = error_response("Method Not Allowed", 405)
        return response[0], 405, {"Allow": ", ".join(e.valid_methods or [])}

    @app.errorhandler(Exception)
    def unexpected(e):
        if isinstance(e, HTTPException):
            return e
        log.exception("%s %s crashed", request.method, request.path)
        return error_response("Internal Server Error", 500)


# -------------------- TEMPLATES --------------------
BASE = """<!doctype html><html><head>
<meta name=viewport content="width=device-width, initial-scale=1">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css">
<title>{% block title %}Campus Bus Booking{% endblock %}</title>
</head><body class="bg-light">
<nav class="navbar navbar-expand-lg navbar-dark bg-dark"><div class="container"><a class="navbar-brand" href="/home">Campus Bus</a>
<div class="d-flex">
  {% if current_user.is_authenticated %}
    <a class="btn btn-sm btn-outline-light me-2" href="/student">Book</a>
    <a class="btn btn-sm btn-outline-light me-2" href="/my-bookings">{{ current_user.admission_number }}</a>
    {% if is_admin %}<a class="btn btn-sm btn-warning me-2" href="/admin">Admin</a>{% endif %}
    <a class="btn btn-sm btn-danger" href="/logout">Logout</a>
  {% else %}
    <a class="btn btn-sm btn-outline-light me-2" href="/login">Login</a>
    <a class="btn btn-sm btn-outline-light" href="/signup">Sign up</a>
  {% endif %}
</div></div></nav>
<main class="container py-4">
{% with messages = get_flashed_messages(with_categories=true) %}
  {% for c,m in messages %}<div class="alert alert-{{c}}">{{m}}</div>{% endfor %}
{% endwith %}
{% block content %}{% endblock %}
</main></body></html>"""

TPLS = {
"base.html": BASE,

"index.html": """{% extends 'base.html' %}{% block content %}
<div class='p-5 bg-white rounded shadow-sm'>
<h2>Campus Bus Booking</h2>
<p class='lead'>Find your route, reserve a seat, pay at the door.</p>
<a class='btn btn-primary' href='/student'>Book a seat</a>
<a class='btn btn-outline-secondary' href='/signup'>Create an account</a>
</div>{% endblock %}""",

"signup.html": """{% extends 'base.html' %}{% block title %}Sign up{% endblock %}{% block content %}
<div class='row justify-content-center'><div class='col-md-5'>
<form method=post class='card p-4'>
<h4>Create Account</h4>
<input class='form-control mb-2' name=admissionNumber placeholder='Admission number (e.g. 12-345)' pattern='[0-9-]+' required>
<input class='form-control mb-2' name=password type=password placeholder='Password' required>
<input class='form-control mb-3' name=favoriteWord placeholder='Recovery word'>
<button class='btn btn-success w-100'>Create</button>
</form></div></div>{% endblock %}""",

"login.html": """{% extends 'base.html' %}{% block title %}Login{% endblock %}{% block content %}
<div class='row justify-content-center'><div class='col-md-4'>
<form method=post class='card p-4'>
<h4 class='mb-3'>Login</h4>
<input class='form-control mb-2' name=admissionNumber placeholder='Admission number' required>
<input class='form-control mb-3' name=password type=password placeholder='Password' required>
<button class='btn btn-primary w-100'>Login</button>
<div class='text-center mt-3'><a href='/signup'>Sign up</a></div>
</form></div></div>{% endblock %}""",

"admin.html": """{% extends 'base.html' %}{% block title %}Admin{% endblock %}{% block content %}
<h3>Buses</h3>
<table class='table table-striped'><thead><tr><th>ID</th><th>Description</th><th>Route</th><th>Day</th><th>Time</th><th>Seats</th><th>Left</th></tr></thead><tbody>
{% for b in buses %}
<tr><td>{{ b.id }}</td><td>{{ b.description }}</td><td>{{ b.route }}</td><td>{{ b.day }}</td><td>{{ b.time }}</td><td>{{ b.seats }}</td><td>{{ b.seats_remaining }}</td></tr>
{% else %}<tr><td colspan=7>No buses yet</td></tr>{% endfor %}
</tbody></table>
<h5>Add Bus</h5>
<form method=post action='/admin/add-bus' class='card p-4'>
  <div class='row g-3'>
    <div class='col-md-6'><label>Description</label><input name=busDescription class='form-control'></div>
    <div class='col-md-6'><label>Route</label><input name=route class='form-control' required></div>
    <div class='col-md-3'><label>Seats</label><input type=number name=seats class='form-control' value=30 min=1 required></div>
    <div class='col-md-3'><label>Day</label><select name=day class='form-select'>{% for d in weekdays %}<option>{{ d }}</option>{% endfor %}</select></div>
    <div class='col-md-3'><label>Time</label><input type=time name=time class='form-control' required></div>
  </div>
  <button class='btn btn-primary mt-3'>Add</button>
</form>
{% endblock %}""",

"student.html": """{% extends 'base.html' %}{% block title %}Book a Seat{% endblock %}{% block content %}
<h3>Book a Seat</h3>
<div class='row g-2 mb-3'>
  <div class='col-auto'><select id=route class='form-select'>{% for r in routes %}<option>{{ r }}</option>{% else %}<option value=''>No routes yet</option>{% endfor %}</select></div>
  <div class='col-auto'><button class='btn btn-secondary' onclick='loadBuses()'>Show buses</button></div>
</div>
<table class='table table-hover'><thead><tr><th>Description</th><th>Day</th><th>Time</th><th>Seats</th><th>Left</th><th></th></tr></thead><tbody id=buses></tbody></table>
<div id=result class='alert alert-info d-none'></div>
<a id=pay class='btn btn-success disabled' href='/payment'>Proceed to payment</a>
<script>
async function post(url, body){
  const r = await fetch(url, {method:'POST', body:new URLSearchParams(body)});
  return [r.ok, await r.json()];
}
async function loadBuses(){
  const [ok, buses] = await post('/student/get-buses-for-route', {route: document.getElementById('route').value});
  const tbody = document.getElementById('buses');
  tbody.innerHTML = '';
  if (!ok) return;
  for (const b of buses) {
    const tr = document.createElement('tr');
    for (const v of [b.description, b.day, b.time, b.totalSeats, b.seatsRemaining]) {
      const td = document.createElement('td'); td.innerText = v; tr.appendChild(td);
    }
    const td = document.createElement('td');
    const btn = document.createElement('button');
    btn.className = 'btn btn-sm btn-primary'; btn.innerText = 'Book';
    btn.disabled = b.seatsRemaining <= 0;
    btn.onclick = () => book(b.id);
    td.appendChild(btn); tr.appendChild(td); tbody.appendChild(tr);
  }
}
async function book(busID){
  const [ok, d] = await post('/student/book-seat', {busID});
  const box = document.getElementById('result');
  box.classList.remove('d-none');
  box.innerText = ok ? d.message + ': seat ' + d.seat_number + ', ' + d.remaining_seats + ' left' : d.error;
  if (ok && d.enable_payment_btn) {
    const pay = document.getElementById('pay');
    pay.classList.remove('disabled');
    pay.href = '/payment?seat=' + d.seat_number;
  }
  loadBuses();
}
</script>
{% endblock %}""",

"payment.html": """{% extends 'base.html' %}{% block title %}Payment{% endblock %}{% block content %}
<h3>Payment</h3>
{% if seat %}<p>Seat <b>{{ seat }}</b> is reserved for you.</p>{% endif %}
<button class='btn btn-success' onclick='pay()'>Complete payment</button>
<div id=result class='alert alert-success mt-3 d-none'></div>
<script>
async function pay(){
  const r = await fetch('/student/complete-payment', {method:'POST'});
  const d = await r.json();
  const box = document.getElementById('result');
  box.classList.remove('d-none');
  box.innerText = d.message || d.error;
}
</script>
{% endblock %}""",

"my_bookings.html": """{% extends 'base.html' %}{% block title %}My Bookings{% endblock %}{% block content %}
<h3>My Bookings</h3>
<table class='table table-striped'><thead><tr><th>Booked</th><th>Route</th><th>Day</th><th>Time</th><th>Seat</th></tr></thead><tbody>
{% for b in bookings %}
<tr><td>{{ b.created_at.strftime('%Y-%m-%d %H:%M') }}</td><td>{{ b.bus.route }}</td><td>{{ b.bus.day }}</td><td>{{ b.bus.time }}</td><td>{{ b.seat_number }}</td></tr>
{% else %}<tr><td colspan=5>No bookings yet</td></tr>{% endfor %}
</tbody></table>
{% endblock %}""",

"error.html": """{% extends 'base.html' %}{% block title %}Error{% endblock %}{% block content %}<h3>{{ code }}</h3><p>{{ message }}</p><a href='javascript:history.back()'>Back</a>{% endblock %}""",
}


if __name__ == "__main__":
    create_app().run(debug=True, port=PORT)
