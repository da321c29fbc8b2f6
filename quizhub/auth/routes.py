"""
Session endpoints for the identity gate.

Registration, email verification and password reset are handled by a
separate identity service; this API only establishes and ends sessions
for users that already exist.
"""
from flask import current_app, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user

from quizhub import db
from quizhub.config import config
from quizhub.auth import auth_bp
from quizhub.auth.models import User
from quizhub.auth.utils import is_valid_email, verify_password


@auth_bp.route("/", methods=["GET"])
def auth_root():
    """Simple health/info endpoint for auth API."""
    base_path = config.AUTH_API_PREFIX
    return jsonify(
        {
            "status": "ok",
            "message": "Auth API is running",
            "endpoints": [
                f"{base_path}/login",
                f"{base_path}/logout",
                f"{base_path}/me",
            ],
        }
    ), 200


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    remember = bool(data.get("remember", False))

    if not email or not password:
        return jsonify({"success": False, "error": "Email and password are required"}), 400

    if not is_valid_email(email):
        return jsonify({"success": False, "error": "Please provide a valid email address"}), 400

    user = db.session.query(User).filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        current_app.logger.warning(f"SECURITY: Failed login attempt - Email: {email}, IP: {request.remote_addr}")
        return jsonify({"success": False, "error": "Invalid email or password"}), 401

    if not login_user(user, remember=remember):
        # login_user refuses inactive (unverified) accounts
        return jsonify({"success": False, "error": "User does not exist or is not verified"}), 401

    current_app.logger.info(f"SECURITY: Successful login - User ID: {user.id}, Role: {user.role}")
    return jsonify({"success": True, "user": user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout_route():
    """End the current session."""
    logout_user()
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the identity the quiz API will act as."""
    return jsonify({"success": True, "user": current_user.to_dict()}), 200
