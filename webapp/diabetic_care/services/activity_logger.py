"""
Activity Logger Service
Logs admin-panel activities (patient registration, edits, QR downloads, logins)
"""

import json
import sqlite3

from flask import has_request_context, request

from diabetic_care.adapters.sqlite.core import get_db
from diabetic_care.common.utils import iran_now


# انواع عملیات (action_type)
class ActionType:
    # ورود/خروج
    LOGIN = 'login'
    LOGIN_FAILED = 'login_failed'
    LOGOUT = 'logout'

    # بیمار
    PATIENT_CREATE = 'patient_create'
    PATIENT_UPDATE = 'patient_update'
    PATIENT_DELETE = 'patient_delete'

    # QR
    QR_DOWNLOAD = 'qr_download'


# دسته‌بندی عملیات (action_category)
class ActionCategory:
    AUTH = 'auth'           # ورود/خروج
    PATIENT = 'patient'     # بیمار
    QR = 'qr'               # QR کد


# توضیحات فارسی برای هر نوع عملیات
ACTION_DESCRIPTIONS = {
    ActionType.LOGIN: 'ورود به پنل مدیریت',
    ActionType.LOGIN_FAILED: 'تلاش ناموفق برای ورود',
    ActionType.LOGOUT: 'خروج از پنل مدیریت',

    ActionType.PATIENT_CREATE: 'ثبت بیمار جدید',
    ActionType.PATIENT_UPDATE: 'ویرایش اطلاعات بیمار',
    ActionType.PATIENT_DELETE: 'حذف بیمار',

    ActionType.QR_DOWNLOAD: 'دریافت QR کد بیمار',
}


def log_activity(
    action_type: str,
    action_category: str,
    description: str = None,
    patient_id: int = None,
    details: dict = None,
):
    """
    ثبت فعالیت در جدول لاگ

    Args:
        action_type: نوع عملیات (از ActionType)
        action_category: دسته‌بندی (از ActionCategory)
        description: توضیح سفارشی (اگر نباشد از ACTION_DESCRIPTIONS استفاده می‌شود)
        patient_id: شناسه بیمار مرتبط
        details: اطلاعات تکمیلی (مثلا نام فیلدهای ویرایش‌شده)؛ به صورت JSON ذخیره می‌شود
    """
    if description is None:
        description = ACTION_DESCRIPTIONS.get(action_type, action_type)

    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get('User-Agent', '')[:200]  # محدود به 200 کاراکتر

    created_at = iran_now().strftime('%Y-%m-%d %H:%M:%S')
    details_json = json.dumps(details, ensure_ascii=False) if details else None

    try:
        db = get_db()
        db.execute("""
            INSERT INTO activity_logs (
                action_type, action_category, description, patient_id,
                details, ip_address, user_agent, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            action_type, action_category, description, patient_id,
            details_json, ip_address, user_agent, created_at
        ))
        db.commit()
    except sqlite3.Error as e:
        # لاگ نباید خطا ایجاد کند - فقط چاپ می‌کنیم
        print(f"[ActivityLogger] Error logging activity: {e}")


def get_activity_logs(
    action_type: str = None,
    action_category: str = None,
    patient_id: int = None,
    limit: int = 100,
    offset: int = 0
) -> list:
    """دریافت لیست لاگ‌ها با فیلتر (جدیدترین اول)"""
    db = get_db()

    query = "SELECT * FROM activity_logs WHERE 1=1"
    params = []

    if action_type:
        query += " AND action_type = ?"
        params.append(action_type)

    if action_category:
        query += " AND action_category = ?"
        params.append(action_category)

    if patient_id:
        query += " AND patient_id = ?"
        params.append(patient_id)

    query += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
    params.extend([limit, offset])

    rows = db.execute(query, params).fetchall()
    return [dict(row) for row in rows]
