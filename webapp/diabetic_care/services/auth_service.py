from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from flask import current_app

from diabetic_care.adapters.sqlite.auth_repo import AuthRepository
from diabetic_care.common.utils import iran_now

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_MINUTES = 15


class LoginError(Exception):
    """Login rejected; `status` is the HTTP status the API answers with."""

    def __init__(self, message: str, status: int = 401):
        super().__init__(message)
        self.message = message
        self.status = status


class AuthService:
    """Password check for the admin panel with lockout after repeated failures."""

    def __init__(self, repo: AuthRepository | None = None):
        self.repo = repo or AuthRepository()

    # ---- Internal helpers (lockout logic) ----
    def _is_locked(self, admin: dict) -> bool:
        locked_until = admin.get("locked_until")
        if not locked_until:
            return False
        try:
            lu = datetime.fromisoformat(str(locked_until))
        except ValueError:
            return False
        return iran_now() < lu

    def _increment_failed(self, admin: dict):
        new_val = (admin.get("failed_attempts") or 0) + 1
        lock_until: Optional[str] = None
        if new_val >= MAX_FAILED_ATTEMPTS:
            lock_until = (iran_now() + timedelta(minutes=LOCKOUT_MINUTES)).isoformat(timespec="seconds")
            new_val = 0
            print(f"[auth] Admin login locked until {lock_until}")
        self.repo.update_failed_attempts(new_val, lock_until)

    @staticmethod
    def hash_password(password: str) -> bytes:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())

    def ensure_admin(self) -> dict:
        """Return the admin row, seeding it from ADMIN_PASSWORD on first use."""
        row = self.repo.get_admin()
        if row is None:
            self.repo.create_admin(self.hash_password(current_app.config["ADMIN_PASSWORD"]))
            row = self.repo.get_admin()
        return dict(row)

    # ---- Public API ----
    def validate_admin(self, password: str) -> dict:
        if not password or not password.strip():
            raise LoginError("رمز عبور الزامی است", status=400)

        admin = self.ensure_admin()
        if self._is_locked(admin):
            raise LoginError("حساب مدیریت به دلیل تلاش‌های ناموفق موقتا قفل شده است.")

        stored_hash = admin.get("password_hash")
        if isinstance(stored_hash, str):
            stored_hash = stored_hash.encode("utf-8")

        try:
            password_ok = bcrypt.checkpw(password.encode("utf-8"), stored_hash)
        except ValueError:
            # Corrupt or non-bcrypt hash in the DB
            password_ok = False

        if not password_ok:
            self._increment_failed(admin)
            raise LoginError("رمز عبور نادرست است")

        self.repo.reset_failed_attempts()
        self.repo.set_last_login()
        return admin

    def set_password(self, password: str):
        """Replace the admin password (CLI)."""
        self.ensure_admin()
        self.repo.update_password(self.hash_password(password))
