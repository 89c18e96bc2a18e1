from dataclasses import dataclass, asdict
from typing import Optional
from datetime import datetime

from diabetic_care.common.validators import DIABETES_TYPES


@dataclass
class Patient:
    id: Optional[int]
    qr_code_id: str
    first_name: str
    last_name: str
    national_id: str
    city: str
    birth_certificate_id: Optional[str] = None
    place_of_living: Optional[str] = None
    birth_date: Optional[str] = None
    address: Optional[str] = None
    national_id_photo: Optional[str] = None
    birth_certificate_photo: Optional[str] = None
    blood_type: Optional[str] = None
    diabetes_type: Optional[str] = None
    examination_link: Optional[str] = None
    emergency_contact: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Fields staff may edit after registration
    EDITABLE_FIELDS = (
        'first_name', 'last_name', 'national_id', 'birth_certificate_id', 'city',
        'place_of_living', 'birth_date', 'address', 'blood_type', 'diabetes_type',
        'examination_link', 'emergency_contact', 'notes',
    )
    PHOTO_FIELDS = ('national_id_photo', 'birth_certificate_photo')

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def diabetes_label(self):
        return DIABETES_TYPES.get(self.diabetes_type or 'none', DIABETES_TYPES['none'])

    @property
    def has_photos(self):
        return bool(self.national_id_photo or self.birth_certificate_photo)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_public_dict(self) -> dict:
        """Data shown to anyone holding the QR code (no internal id or timestamps)."""
        data = self.to_dict()
        for key in ('id', 'qr_code_id', 'created_at', 'updated_at'):
            data.pop(key, None)
        return data
