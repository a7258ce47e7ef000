"""
Authentication Routes

Provides:
- /auth/login
- /auth/logout
- /auth/signup
- /auth/forgot

Rules:
- New accounts are created unapproved and are NOT logged in.
- Only approved users (or super admins) may log in.
- Wrong e-mail and wrong password produce the same message.
"""

from flask import (
    Blueprint,
    render_template,
    redirect,
    url_for,
    flash,
    request,
)
from flask_login import (
    login_user,
    logout_user,
    login_required,
    current_user,
)

from ...access import is_super_admin
from ...errors import AccessDeniedError, ValidationError
from ...services import authenticate, register_user
from ...utils import get_next_from_request


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _home_endpoint(user) -> str:
    return "admin.panel" if is_super_admin(user) else "suppliers.list_suppliers"


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """Authenticate a user (approved users and super admins only)."""

    if current_user.is_authenticated:
        return redirect(url_for(_home_endpoint(current_user)))

    if request.method == "POST":
        email = request.form.get("email", "")
        password = request.form.get("password", "")

        try:
            user = authenticate(email, password)
        except (ValidationError, AccessDeniedError) as exc:
            flash(exc.message, "danger")
            return render_template("auth/login.html", email=email), 401

        login_user(user)
        flash("Welcome!", "success")

        return redirect(get_next_from_request(_home_endpoint(user)))

    return render_template("auth/login.html")


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout", methods=["GET", "POST"])
@login_required
def logout():
    """Log out the current user."""
    logout_user()
    flash("You have been logged out.", "info")
    return redirect(url_for("auth.login"))


# ============================================================
# SIGNUP
# ============================================================

@auth_bp.route("/signup", methods=["GET", "POST"])
def signup():
    """Register a new account pending super-admin approval."""

    if current_user.is_authenticated:
        return redirect(url_for(_home_endpoint(current_user)))

    if request.method == "POST":
        form = request.form
        try:
            register_user(
                form.get("email"),
                form.get("display_name"),
                form.get("password"),
                form.get("confirm_password"),
            )
        except ValidationError as exc:
            flash(exc.message, "danger")
            return render_template(
                "auth/signup.html",
                email=form.get("email", ""),
                display_name=form.get("display_name", ""),
            ), 400

        flash(
            "Registration successful! Your account is pending approval from the super admin.",
            "success",
        )
        return redirect(url_for("auth.login"))

    return render_template("auth/signup.html")


# ============================================================
# FORGOT PASSWORD
# ============================================================

@auth_bp.route("/forgot", methods=["GET", "POST"])
def forgot():
    """No reset mail is sent: users are pointed to the super admin."""
    if request.method == "POST":
        if not (request.form.get("email") or "").strip():
            flash("Please enter email.", "danger")
            return render_template("auth/forgot.html"), 400

        flash("Please contact the super admin to reset your password.", "info")
        return redirect(url_for("auth.login"))

    return render_template("auth/forgot.html")
