import sys
from pathlib import Path

# Add webapp to path
current_dir = Path(__file__).parent.parent
sys.path.append(str(current_dir))

from diabetic_care.app import create_app
from diabetic_care.services.auth_service import AuthService
from diabetic_care.services.patient_service import PatientService, ValidationError

DEMO_PATIENTS = [
    {
        'first_name': 'علی', 'last_name': 'رضایی', 'national_id': '0499370899',
        'city': 'تهران', 'blood_type': 'O+', 'diabetes_type': 'type1',
        'emergency_contact': '09121234567', 'birth_date': '1370-05-12',
    },
    {
        'first_name': 'مریم', 'last_name': 'محمدی', 'national_id': '۲۱۷۰۴۱۵۹۸۱',
        'city': 'اصفهان', 'blood_type': 'A-', 'diabetes_type': 'type2',
        'notes': 'انسولین شبانه',
    },
    {
        'first_name': 'حسین', 'last_name': 'کریمی', 'national_id': '123456789',
        'city': 'شیراز', 'diabetes_type': 'none',
    },
]


def seed():
    app = create_app()
    with app.app_context():
        print("Ensuring admin account...")
        AuthService().ensure_admin()

        print("Adding demo patients...")
        service = PatientService()
        for data in DEMO_PATIENTS:
            try:
                patient = service.register_patient(data)
            except ValidationError as e:
                print(f"  skipped {data['first_name']} {data['last_name']}: {e.message}")
                continue
            print(f"  {patient.full_name} -> /patient/{patient.qr_code_id}")

        print("Seeding completed successfully.")


if __name__ == "__main__":
    seed()
