from flask import Blueprint, current_app, redirect, render_template, send_from_directory, url_for

from diabetic_care.services.patient_service import PatientService, PatientNotFound
from diabetic_care.services.qr_service import patient_page_url, qr_data_url

bp = Blueprint('public', __name__)


@bp.route('/')
def index():
    return render_template('index.html')


@bp.route('/patient/<qr_code_id>')
def patient_page(qr_code_id):
    """صفحه عمومی اطلاعات پزشکی بیمار (فقط خواندنی، بدون نیاز به ورود)."""
    try:
        patient = PatientService().get_public_patient(qr_code_id)
    except PatientNotFound:
        return render_template('patient/not_found.html'), 404

    page_url = patient_page_url(patient.qr_code_id)
    return render_template(
        'patient/public.html',
        patient=patient,
        qr_image=qr_data_url(page_url),
    )


@bp.route('/p/<qr_code_id>')
def short_link(qr_code_id):
    return redirect(url_for('public.patient_page', qr_code_id=qr_code_id), code=301)


@bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
