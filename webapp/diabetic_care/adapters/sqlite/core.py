import os
import pkgutil
import sqlite3

from flask import current_app, g


def _ensure_indexes(db) -> None:
    """Create lookup indexes if they don't exist."""
    try:
        db.execute("CREATE INDEX IF NOT EXISTS idx_patients_created_at ON patients (created_at DESC)")
        db.execute("CREATE INDEX IF NOT EXISTS idx_patients_city ON patients (city)")
        db.execute("CREATE INDEX IF NOT EXISTS idx_activity_logs_created_at ON activity_logs (created_at DESC)")
        db.execute("CREATE INDEX IF NOT EXISTS idx_activity_logs_patient_id ON activity_logs (patient_id)")
        db.commit()
    except sqlite3.Error as e:
        # Keep app usable even if index creation fails.
        print(f"[db] Could not create indexes: {e}")

    # Databases created before national_id was UNIQUE only had a plain index
    try:
        db.execute("CREATE UNIQUE INDEX IF NOT EXISTS ux_patients_national_id ON patients (national_id)")
        db.execute("DROP INDEX IF EXISTS idx_patients_national_id")
        db.commit()
    except sqlite3.Error as e:
        print(f"[db] Could not enforce unique national_id (duplicate rows?): {e}")


def _read_schema() -> str:
    """Load bundled schema.sql (package data first, then the file next to this module)."""
    schema_bytes = None
    try:
        schema_bytes = pkgutil.get_data('diabetic_care.adapters.sqlite', 'schema.sql')
    except OSError:
        schema_bytes = None

    if schema_bytes:
        return schema_bytes.decode('utf-8')

    schema_path = os.path.join(os.path.dirname(__file__), 'schema.sql')
    if not os.path.exists(schema_path):
        raise FileNotFoundError('schema.sql not found in package data or next to core.py')
    with open(schema_path, 'r', encoding='utf-8') as f:
        return f.read()


def _load_schema_and_initialize(db):
    db.executescript(_read_schema())


# Database files already migrated in this process
_migrated_paths = set()


def get_db():
    db = getattr(g, '_database', None)
    if db is None:
        db_path = current_app.config['DATABASE_PATH']
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

        # Connect (this will create the file if missing)
        db = g._database = sqlite3.connect(db_path)
        db.row_factory = sqlite3.Row
        db.execute("PRAGMA foreign_keys = ON")

        # Simple check: if patients table missing, initialize schema
        cur = db.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='patients'")
        if not cur.fetchone():
            _load_schema_and_initialize(db)
            _migrated_paths.discard(db_path)

        # Run migrations only ONCE per database file per process (not per request)
        if db_path not in _migrated_paths:
            _ensure_indexes(db)
            _migrated_paths.add(db_path)

    return db


def close_connection(exception):
    db = g.pop('_database', None)
    if db is not None:
        db.close()


def init_db_command():
    """Create missing tables (existing rows are kept)."""
    db = get_db()
    _load_schema_and_initialize(db)
    db.commit()
    print('Initialized the database.')
