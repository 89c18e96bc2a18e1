import sqlite3
from typing import Optional

from diabetic_care.adapters.sqlite.core import get_db

ADMIN_ROW_ID = 1


class AuthRepository:
    """Low-level DB operations for the single admin account."""

    def get_admin(self) -> Optional[sqlite3.Row]:
        db = get_db()
        return db.execute(
            "SELECT * FROM admin_account WHERE id = ?", (ADMIN_ROW_ID,)
        ).fetchone()

    def create_admin(self, password_hash: bytes) -> bool:
        db = get_db()
        try:
            db.execute(
                "INSERT INTO admin_account (id, password_hash) VALUES (?, ?)",
                (ADMIN_ROW_ID, password_hash),
            )
            db.commit()
            return True
        except sqlite3.IntegrityError:
            # Another request seeded the row first
            db.rollback()
            return False

    def update_failed_attempts(self, failed_attempts: int, locked_until: Optional[str]):
        db = get_db()
        db.execute(
            "UPDATE admin_account SET failed_attempts=?, locked_until=? WHERE id=?",
            (failed_attempts, locked_until, ADMIN_ROW_ID),
        )
        db.commit()

    def reset_failed_attempts(self):
        db = get_db()
        db.execute(
            "UPDATE admin_account SET failed_attempts=0, locked_until=NULL WHERE id=?",
            (ADMIN_ROW_ID,),
        )
        db.commit()

    def set_last_login(self):
        db = get_db()
        try:
            db.execute(
                "UPDATE admin_account SET last_login=datetime('now', '+3 hours', '+30 minutes') WHERE id=?",
                (ADMIN_ROW_ID,),
            )
            db.commit()
        except sqlite3.OperationalError:
            db.rollback()

    def update_password(self, password_hash: bytes):
        db = get_db()
        db.execute(
            "UPDATE admin_account SET password_hash=?, failed_attempts=0, locked_until=NULL WHERE id=?",
            (password_hash, ADMIN_ROW_ID),
        )
        db.commit()
