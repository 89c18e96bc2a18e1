import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional

from diabetic_care.adapters.sqlite.patients_repo import PatientRepository
from diabetic_care.common.digits import to_ascii_digits_only
from diabetic_care.common.utils import page_count
from diabetic_care.common.validators import (
    national_id_error, normalize_iranian_national_id,
    validate_blood_type, validate_diabetes_type, validate_link,
)
from diabetic_care.domain.patients import Patient
from diabetic_care.services.activity_logger import log_activity, ActionType, ActionCategory
from diabetic_care.services.qr_service import generate_qr_code_id
from diabetic_care.services.uploads import PHOTO_PREFIXES, save_upload, delete_upload

REQUIRED_FIELDS = ('first_name', 'last_name', 'national_id', 'city')
QR_CODE_ID_ATTEMPTS = 5
DUPLICATE_NATIONAL_ID = 'بیماری با این کد ملی قبلا ثبت شده است'


class ValidationError(Exception):
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNationalId(ValidationError):
    """Wrong digit count, repeated digits or checksum mismatch (see `reason`)."""

    def __init__(self, reason: str):
        super().__init__('کد ملی نامعتبر است. لطفاً ۱۰ رقم صحیح را وارد کنید.')
        self.reason = reason


class PatientConflict(ValidationError):
    status = 409


class PatientNotFound(Exception):
    status = 404
    message = 'بیمار یافت نشد'


@dataclass
class PatientPage:
    items: List[Patient]
    total: int
    page: int
    per_page: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = page_count(self.total, self.per_page)

    @property
    def has_prev(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.pages


def _clean(value) -> Optional[str]:
    """Strip form input; empty strings are stored as NULL."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _is_photo_url(value) -> bool:
    return isinstance(value, str) and (value.startswith('/') or value.startswith('http'))


def _discard_uploads(stored: dict):
    for url in stored.values():
        delete_upload(url)


def _is_national_id_conflict(error: Exception) -> bool:
    """UNIQUE violation on national_id from a registration that raced the lookup."""
    return isinstance(error, sqlite3.IntegrityError) and 'national_id' in str(error)


class PatientService:
    def __init__(self, patient_repo=None):
        self.patient_repo = patient_repo or PatientRepository()

    # ---- Validation helpers ----
    def _normalize_national_id(self, raw: str, patient_id: Optional[int] = None) -> str:
        national_id = normalize_iranian_national_id(raw)
        if national_id is None:
            raise InvalidNationalId(national_id_error(raw))

        existing = self.patient_repo.get_by_national_id(national_id)
        if existing and existing.id != patient_id:
            raise PatientConflict(DUPLICATE_NATIONAL_ID)
        return national_id

    def _validate_choices(self, fields: dict):
        if not validate_blood_type(fields.get('blood_type')):
            raise ValidationError('گروه خونی نامعتبر است')
        if not validate_diabetes_type(fields.get('diabetes_type')):
            raise ValidationError('نوع دیابت نامعتبر است')
        if not validate_link(fields.get('examination_link')):
            raise ValidationError('لینک معاینه باید با http:// یا https:// شروع شود')

    def _store_photos(self, files) -> dict:
        """Save uploaded photos; on a bad image the ones already written are removed."""
        stored = {}
        if not files:
            return stored
        try:
            for field_name, prefix in PHOTO_PREFIXES.items():
                url = save_upload(files.get(field_name), prefix)
                if url:
                    stored[field_name] = url
        except Exception:
            _discard_uploads(stored)
            raise
        return stored

    def _new_qr_code_id(self) -> str:
        for _ in range(QR_CODE_ID_ATTEMPTS):
            qr_code_id = generate_qr_code_id()
            if not self.patient_repo.qr_code_id_exists(qr_code_id):
                return qr_code_id
        raise RuntimeError('Could not generate a unique QR code id')

    # ---- Queries ----
    def get_patient(self, patient_id: int) -> Patient:
        patient = self.patient_repo.get_by_id(patient_id)
        if patient is None:
            raise PatientNotFound()
        return patient

    def get_public_patient(self, qr_code_id: str) -> Patient:
        patient = self.patient_repo.get_by_qr_code_id(qr_code_id)
        if patient is None:
            raise PatientNotFound()
        return patient

    def list_patients(self, search: str = '', page: int = 1, per_page: Optional[int] = None) -> PatientPage:
        """Search newest-first; Persian/Arabic digits in `search` still match stored national IDs."""
        search = (search or '').strip()
        national_id_query = to_ascii_digits_only(search)

        total = self.patient_repo.count(search, national_id_query)
        if per_page is None:
            items = self.patient_repo.search(search, national_id_query)
            return PatientPage(items=items, total=total, page=1, per_page=max(total, 1))

        per_page = max(per_page, 1)
        page = min(max(page, 1), page_count(total, per_page))
        items = self.patient_repo.search(
            search, national_id_query, limit=per_page, offset=(page - 1) * per_page
        )
        return PatientPage(items=items, total=total, page=page, per_page=per_page)

    # ---- Commands ----
    def register_patient(self, data, files=None) -> Patient:
        fields = {name: _clean(data.get(name)) for name in Patient.EDITABLE_FIELDS}

        if any(not fields[name] for name in REQUIRED_FIELDS):
            raise ValidationError('نام، نام خانوادگی، کد ملی و شهر الزامی هستند')

        fields['national_id'] = self._normalize_national_id(fields['national_id'])
        self._validate_choices(fields)

        for photo_field in Patient.PHOTO_FIELDS:
            value = data.get(photo_field)
            fields[photo_field] = value if _is_photo_url(value) else None
        stored = self._store_photos(files)
        fields.update(stored)

        try:
            patient = Patient(id=None, qr_code_id=self._new_qr_code_id(), **fields)
            patient.id = self.patient_repo.create(patient)
        except Exception as e:
            _discard_uploads(stored)
            if _is_national_id_conflict(e):
                raise PatientConflict(DUPLICATE_NATIONAL_ID) from e
            raise

        log_activity(
            action_type=ActionType.PATIENT_CREATE,
            action_category=ActionCategory.PATIENT,
            description=f'ثبت بیمار {patient.full_name}',
            patient_id=patient.id,
        )
        return self.patient_repo.get_by_id(patient.id)

    def update_patient(self, patient_id: int, data, files=None) -> Patient:
        """Partial update: only submitted fields change, an empty value clears a field."""
        patient = self.get_patient(patient_id)

        fields = {name: _clean(data[name]) for name in Patient.EDITABLE_FIELDS if name in data}
        if any(name in fields and not fields[name] for name in REQUIRED_FIELDS):
            raise ValidationError('نام، نام خانوادگی، کد ملی و شهر الزامی هستند')

        if 'national_id' in fields:
            fields['national_id'] = self._normalize_national_id(fields['national_id'], patient.id)
        self._validate_choices(fields)

        for photo_field in Patient.PHOTO_FIELDS:
            if photo_field not in data:
                continue
            value = data.get(photo_field)
            if value == '':
                fields[photo_field] = None
            elif _is_photo_url(value):
                fields[photo_field] = value
        stored = self._store_photos(files)
        fields.update(stored)

        try:
            self.patient_repo.update(patient.id, fields)
        except Exception as e:
            _discard_uploads(stored)
            if _is_national_id_conflict(e):
                raise PatientConflict(DUPLICATE_NATIONAL_ID) from e
            raise

        # Remove replaced or cleared local photos once the row points elsewhere
        for photo_field in Patient.PHOTO_FIELDS:
            old_url = getattr(patient, photo_field)
            if photo_field in fields and fields[photo_field] != old_url:
                delete_upload(old_url)

        log_activity(
            action_type=ActionType.PATIENT_UPDATE,
            action_category=ActionCategory.PATIENT,
            description=f'ویرایش بیمار {patient.full_name}',
            patient_id=patient.id,
            details={'fields': sorted(fields)},
        )
        return self.patient_repo.get_by_id(patient.id)

    def delete_patient(self, patient_id: int):
        patient = self.get_patient(patient_id)
        self.patient_repo.delete(patient.id)
        for photo_field in Patient.PHOTO_FIELDS:
            delete_upload(getattr(patient, photo_field))

        log_activity(
            action_type=ActionType.PATIENT_DELETE,
            action_category=ActionCategory.PATIENT,
            description=f'حذف بیمار {patient.full_name} ({patient.national_id})',
            patient_id=patient.id,
        )
