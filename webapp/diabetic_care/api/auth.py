import functools

from flask import (
    Blueprint, flash, g, jsonify, redirect, render_template, request, session, url_for
)

from diabetic_care.services.auth_service import AuthService, LoginError
from diabetic_care.services.activity_logger import log_activity, ActionType, ActionCategory


bp = Blueprint("auth", __name__)


def _start_admin_session():
    session.clear()
    session.permanent = True
    session["admin"] = True


def _attempt_login(password: str):
    """Returns None on success, otherwise the LoginError."""
    try:
        AuthService().validate_admin(password)
    except LoginError as e:
        if e.status == 401:
            log_activity(ActionType.LOGIN_FAILED, ActionCategory.AUTH)
        return e

    _start_admin_session()
    log_activity(ActionType.LOGIN, ActionCategory.AUTH)
    return None


@bp.route("/admin", methods=("GET", "POST"))
def login():
    if g.is_admin:
        return redirect(url_for("admin.patients"))

    if request.method == "POST":
        error = _attempt_login(request.form.get("password", ""))
        if error is None:
            return redirect(url_for("admin.patients"))
        flash(error.message)

    return render_template("admin/login.html")


@bp.route("/admin/logout", methods=("POST",))
def logout():
    if g.is_admin:
        log_activity(ActionType.LOGOUT, ActionCategory.AUTH)
    session.clear()
    return redirect(url_for("auth.login"))


@bp.route("/api/auth/login", methods=("POST",))
def api_login():
    if request.is_json:
        password = (request.get_json(silent=True) or {}).get("password") or ""
    else:
        password = request.form.get("password", "")

    error = _attempt_login(str(password))
    if error is not None:
        return jsonify({"error": error.message}), error.status
    return jsonify({"success": True})


@bp.route("/api/auth/logout", methods=("POST",))
def api_logout():
    if g.is_admin:
        log_activity(ActionType.LOGOUT, ActionCategory.AUTH)
    session.clear()
    return jsonify({"success": True})


def admin_required(view):
    """Pages: send anonymous visitors to the login page."""
    @functools.wraps(view)
    def wrapped_view(**kwargs):
        if not g.is_admin:
            return redirect(url_for("auth.login"))

        return view(**kwargs)

    return wrapped_view


def api_admin_required(view):
    """JSON endpoints: answer anonymous callers with 401."""
    @functools.wraps(view)
    def wrapped_view(**kwargs):
        if not g.is_admin:
            return jsonify({"error": "دسترسی غیرمجاز"}), 401

        return view(**kwargs)

    return wrapped_view
