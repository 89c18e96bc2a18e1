import sqlite3
from typing import List, Optional

from diabetic_care.adapters.sqlite.core import get_db
from diabetic_care.domain.patients import Patient

_COLUMNS = (
    'qr_code_id', 'first_name', 'last_name', 'national_id', 'birth_certificate_id',
    'city', 'place_of_living', 'birth_date', 'address', 'national_id_photo',
    'birth_certificate_photo', 'blood_type', 'diabetes_type', 'examination_link',
    'emergency_contact', 'notes',
)

_UPDATABLE = set(Patient.EDITABLE_FIELDS) | set(Patient.PHOTO_FIELDS)


def _like_pattern(value: str) -> str:
    """Substring pattern for `LIKE ... ESCAPE '\\'`; `%` and `_` in `value` match literally."""
    escaped = value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


class PatientRepository:
    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        db = get_db()
        row = db.execute(
            'SELECT * FROM patients WHERE id = ?', (patient_id,)
        ).fetchone()
        return self._map_row(row) if row else None

    def get_by_qr_code_id(self, qr_code_id: str) -> Optional[Patient]:
        db = get_db()
        row = db.execute(
            'SELECT * FROM patients WHERE qr_code_id = ?', (qr_code_id,)
        ).fetchone()
        return self._map_row(row) if row else None

    def get_by_national_id(self, national_id: str) -> Optional[Patient]:
        db = get_db()
        row = db.execute(
            'SELECT * FROM patients WHERE national_id = ?', (national_id,)
        ).fetchone()
        return self._map_row(row) if row else None

    def qr_code_id_exists(self, qr_code_id: str) -> bool:
        db = get_db()
        row = db.execute(
            'SELECT 1 FROM patients WHERE qr_code_id = ?', (qr_code_id,)
        ).fetchone()
        return row is not None

    def _search_clause(self, query: str, national_id_query: str):
        """WHERE clause matching name, certificate id, city and QR id by the raw
        query, and national id by its digit-normalized form."""
        if not query:
            return '', ()

        like = _like_pattern(query)
        conditions = [
            f"{col} LIKE ? ESCAPE '\\'"
            for col in ('first_name', 'last_name', 'birth_certificate_id', 'city', 'qr_code_id')
        ]
        params = [like] * len(conditions)
        if national_id_query:
            conditions.append("national_id LIKE ? ESCAPE '\\'")
            params.append(_like_pattern(national_id_query))
        return 'WHERE ' + ' OR '.join(conditions), tuple(params)

    def search(self, query: str = '', national_id_query: str = '',
               limit: Optional[int] = None, offset: int = 0) -> List[Patient]:
        db = get_db()
        where, params = self._search_clause(query, national_id_query)
        sql = f'SELECT * FROM patients {where} ORDER BY created_at DESC, id DESC'
        if limit is not None:
            sql += ' LIMIT ? OFFSET ?'
            params = params + (limit, offset)
        rows = db.execute(sql, params).fetchall()
        return [self._map_row(row) for row in rows]

    def count(self, query: str = '', national_id_query: str = '') -> int:
        db = get_db()
        where, params = self._search_clause(query, national_id_query)
        row = db.execute(f'SELECT COUNT(*) AS cnt FROM patients {where}', params).fetchone()
        return row['cnt'] if row else 0

    def create(self, patient: Patient) -> int:
        db = get_db()
        placeholders = ', '.join('?' for _ in _COLUMNS)
        try:
            cursor = db.execute(
                f'INSERT INTO patients ({", ".join(_COLUMNS)}) VALUES ({placeholders})',
                tuple(getattr(patient, col) for col in _COLUMNS)
            )
            db.commit()
        except sqlite3.IntegrityError:
            db.rollback()
            raise
        return cursor.lastrowid

    def update(self, patient_id: int, fields: dict):
        """Update only the given columns; unknown keys are ignored."""
        fields = {k: v for k, v in fields.items() if k in _UPDATABLE}
        if not fields:
            return
        assignments = ', '.join(f'{col}=?' for col in fields)
        db = get_db()
        try:
            db.execute(
                f'''UPDATE patients SET {assignments},
                    updated_at=datetime('now', '+3 hours', '+30 minutes')
                   WHERE id=?''',
                tuple(fields.values()) + (patient_id,)
            )
            db.commit()
        except sqlite3.IntegrityError:
            db.rollback()
            raise

    def delete(self, patient_id: int) -> bool:
        db = get_db()
        cursor = db.execute('DELETE FROM patients WHERE id = ?', (patient_id,))
        db.commit()
        return cursor.rowcount > 0

    def _map_row(self, row) -> Patient:
        return Patient(
            id=row['id'],
            qr_code_id=row['qr_code_id'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            national_id=row['national_id'],
            city=row['city'],
            birth_certificate_id=row['birth_certificate_id'],
            place_of_living=row['place_of_living'],
            birth_date=row['birth_date'],
            address=row['address'],
            national_id_photo=row['national_id_photo'],
            birth_certificate_photo=row['birth_certificate_photo'],
            blood_type=row['blood_type'],
            diabetes_type=row['diabetes_type'],
            examination_link=row['examination_link'],
            emergency_contact=row['emergency_contact'],
            notes=row['notes'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )
