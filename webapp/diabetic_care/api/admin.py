from flask import (
    Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
)

from diabetic_care.api.auth import admin_required
from diabetic_care.common.validators import BLOOD_TYPES, DIABETES_TYPES
from diabetic_care.services.activity_logger import get_activity_logs
from diabetic_care.services.cities import CitiesUnavailable, get_cities
from diabetic_care.services.patient_service import PatientService, PatientNotFound, ValidationError
from diabetic_care.services.qr_service import patient_page_url, qr_data_url
from diabetic_care.services.uploads import UploadError

bp = Blueprint('admin', __name__, url_prefix='/admin/patients')


def _form_context(**extra):
    """Choices shared by the registration and edit forms."""
    try:
        cities = get_cities()
    except CitiesUnavailable:
        # The city field falls back to free text
        cities = []
    return dict(cities=cities, blood_types=BLOOD_TYPES, diabetes_types=DIABETES_TYPES, **extra)


@bp.route('')
@admin_required
def patients():
    """لیست بیماران با جستجو و صفحه‌بندی."""
    search = request.args.get('search', '').strip()
    page = request.args.get('page', 1, type=int)
    result = PatientService().list_patients(
        search, page=page, per_page=current_app.config['PATIENTS_PER_PAGE']
    )
    return render_template('admin/patients.html', result=result, search=search)


@bp.route('/new', methods=('GET', 'POST'))
@admin_required
def new_patient():
    """ثبت بیمار جدید و نمایش QR کد."""
    if request.method == 'POST':
        try:
            patient = PatientService().register_patient(request.form, request.files)
        except (ValidationError, UploadError) as e:
            flash(getattr(e, 'message', str(e)))
            return render_template('admin/patient_form.html', form=request.form, patient=None,
                                   **_form_context()), 400

        flash('بیمار با موفقیت ثبت شد')
        return redirect(url_for('admin.edit_patient', patient_id=patient.id))

    return render_template('admin/patient_form.html', form={}, patient=None, **_form_context())


@bp.route('/<int:patient_id>', methods=('GET', 'POST'))
@admin_required
def edit_patient(patient_id):
    service = PatientService()
    try:
        patient = service.get_patient(patient_id)
    except PatientNotFound:
        abort(404)

    form = patient.to_dict()
    status = 200
    if request.method == 'POST':
        try:
            patient = service.update_patient(patient_id, request.form, request.files)
        except (ValidationError, UploadError) as e:
            flash(getattr(e, 'message', str(e)))
            form, status = request.form, 400
        else:
            flash('اطلاعات بیمار بروزرسانی شد')
            return redirect(url_for('admin.edit_patient', patient_id=patient.id))

    page_url = patient_page_url(patient.qr_code_id)
    return render_template(
        'admin/patient_form.html',
        form=form,
        patient=patient,
        qr_url=page_url,
        qr_image=qr_data_url(page_url),
        activities=get_activity_logs(patient_id=patient.id, limit=20),
        **_form_context(),
    ), status


@bp.route('/<int:patient_id>/delete', methods=('POST',))
@admin_required
def delete_patient(patient_id):
    try:
        PatientService().delete_patient(patient_id)
    except PatientNotFound:
        abort(404)
    flash('بیمار با موفقیت حذف شد')
    return redirect(url_for('admin.patients'))
