import io

from flask import Blueprint, jsonify, request, send_file

from diabetic_care.api.auth import api_admin_required
from diabetic_care.services.activity_logger import log_activity, ActionType, ActionCategory
from diabetic_care.services.patient_service import PatientService, PatientNotFound, ValidationError
from diabetic_care.services.qr_service import patient_page_url, qr_data_url, render_qr_png
from diabetic_care.services.uploads import UploadError

bp = Blueprint('patients_api', __name__, url_prefix='/api/patients')


def _submitted_data():
    """Form fields and files for multipart submissions, the JSON body otherwise."""
    if request.mimetype == 'multipart/form-data' or request.form:
        return request.form, request.files
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('بدنه درخواست باید یک شیء JSON باشد')
    return data, None


def _error(message, status):
    return jsonify({'error': message}), status


@bp.errorhandler(PatientNotFound)
def _not_found(e):
    return _error(e.message, e.status)


@bp.errorhandler(ValidationError)
def _invalid(e):
    return _error(e.message, e.status)


@bp.errorhandler(UploadError)
def _bad_upload(e):
    return _error(str(e), 400)


@bp.route('', methods=('GET',))
@api_admin_required
def list_patients():
    search = request.args.get('search', '')
    page = request.args.get('page', type=int)
    per_page = request.args.get('per_page', type=int)

    service = PatientService()
    if page is None and per_page is None:
        result = service.list_patients(search)
    else:
        per_page = max(per_page or 20, 1)
        result = service.list_patients(search, page=page or 1, per_page=per_page)
    return jsonify([p.to_dict() for p in result.items])


@bp.route('', methods=('POST',))
@api_admin_required
def create_patient():
    data, files = _submitted_data()
    try:
        patient = PatientService().register_patient(data, files)
    except (ValidationError, UploadError):
        raise
    except Exception as e:
        print(f"[patients] Create patient error: {e}")
        return _error('خطا در ثبت بیمار', 500)
    return jsonify(patient.to_dict()), 201


@bp.route('/<int:patient_id>', methods=('GET',))
@api_admin_required
def get_patient(patient_id):
    return jsonify(PatientService().get_patient(patient_id).to_dict())


@bp.route('/<int:patient_id>', methods=('PUT', 'PATCH'))
@api_admin_required
def update_patient(patient_id):
    data, files = _submitted_data()
    try:
        patient = PatientService().update_patient(patient_id, data, files)
    except (ValidationError, UploadError, PatientNotFound):
        raise
    except Exception as e:
        print(f"[patients] Update patient error: {e}")
        return _error('خطا در بروزرسانی بیمار', 500)
    return jsonify(patient.to_dict())


@bp.route('/<int:patient_id>', methods=('DELETE',))
@api_admin_required
def delete_patient(patient_id):
    PatientService().delete_patient(patient_id)
    return jsonify({'success': True})


@bp.route('/<int:patient_id>/qr', methods=('GET',))
@api_admin_required
def patient_qr(patient_id):
    patient = PatientService().get_patient(patient_id)
    qr_url = patient_page_url(patient.qr_code_id)
    return jsonify({'qr_code': qr_data_url(qr_url), 'qr_url': qr_url})


@bp.route('/<int:patient_id>/qr.png', methods=('GET',))
@api_admin_required
def patient_qr_png(patient_id):
    patient = PatientService().get_patient(patient_id)
    png = render_qr_png(patient_page_url(patient.qr_code_id))

    log_activity(
        action_type=ActionType.QR_DOWNLOAD,
        action_category=ActionCategory.QR,
        patient_id=patient.id,
    )
    return send_file(
        io.BytesIO(png),
        mimetype="image/png",
        as_attachment=True,
        download_name=f"qr-{patient.first_name}-{patient.last_name}.png",
    )


@bp.route('/qr/<qr_code_id>', methods=('GET',))
def public_patient(qr_code_id):
    """Public API - no auth required. Returns patient data for QR code scanners."""
    try:
        patient = PatientService().get_public_patient(qr_code_id)
    except PatientNotFound:
        return _error('اطلاعات یافت نشد', 404)
    return jsonify(patient.to_public_dict())
