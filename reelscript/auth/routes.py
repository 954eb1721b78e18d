from flask import current_app, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ..extensions import db
from ..models import User
from . import bp
from .forms import LoginForm, RegistrationForm


@bp.route("/register", methods=["POST"])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return jsonify({"error": "Invalid registration data", "details": form.error_details()}), 400

    user = User(email=form.email.data.strip().lower())
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user %s", user.id)
    return jsonify(user.to_dict()), 201


@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({"error": "Invalid login data", "details": form.error_details()}), 400

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if user is None or not user.check_password(form.password.data):
        return jsonify({"error": "Invalid email or password."}), 401

    login_user(user)
    return jsonify(user.to_dict())


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@bp.route("/status", methods=["GET"])
def status():
    if not current_user.is_authenticated:
        return jsonify({"isAuthenticated": False, "isVerified": False, "email": None})
    return jsonify(
        {
            "isAuthenticated": True,
            "isVerified": bool(current_user.is_verified),
            "email": current_user.email,
            "role": current_user.role,
        }
    )


@bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    return jsonify({"csrfToken": generate_csrf()})
