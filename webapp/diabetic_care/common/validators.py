"""توابع validation برای کدملی ایرانی و فیلدهای فرم بیمار."""

from typing import Optional

from diabetic_care.common.digits import to_ascii_digits_only

NATIONAL_ID_LENGTH = 10
NATIONAL_ID_MIN_DIGITS = 8


class NationalIdReason:
    LENGTH = 'length'
    REPEATED_DIGITS = 'repeated_digits'
    CHECKSUM = 'checksum'


def _padded_digits(national_id: str) -> Optional[str]:
    digits = to_ascii_digits_only(national_id or '')
    if len(digits) < NATIONAL_ID_MIN_DIGITS or len(digits) > NATIONAL_ID_LENGTH:
        return None
    # NOTE: 8-9 digit input is zero-padded before the checksum, which can
    # accept a mistyped ID whose missing digits happened to be leading zeros.
    return digits.rjust(NATIONAL_ID_LENGTH, '0')


def national_id_error(national_id: str) -> Optional[str]:
    """
    دلیل نامعتبر بودن کدملی را برمی‌گرداند؛ برای کدملی معتبر None.

    Examples:
        >>> national_id_error('0499370899') is None
        True
        >>> national_id_error('12345')
        'length'
        >>> national_id_error('1111111111')
        'repeated_digits'
        >>> national_id_error('0499370898')
        'checksum'
    """
    padded = _padded_digits(national_id)
    if padded is None:
        return NationalIdReason.LENGTH

    # کدهای تکراری معتبر نیستند (مثل 0000000000 یا 1111111111)
    if len(set(padded)) == 1:
        return NationalIdReason.REPEATED_DIGITS

    # محاسبه رقم کنترل
    check = int(padded[9])
    s = sum(int(padded[i]) * (10 - i) for i in range(9))
    remainder = s % 11

    if remainder < 2:
        valid = check == remainder
    else:
        valid = check == 11 - remainder
    return None if valid else NationalIdReason.CHECKSUM


def validate_iranian_national_id(national_id: str) -> bool:
    """
    اعتبارسنجی کدملی ایرانی با الگوریتم استاندارد.

    ارقام فارسی و عربی پذیرفته می‌شوند و کاراکترهای غیر رقمی نادیده گرفته می‌شوند.

    Examples:
        >>> validate_iranian_national_id('2170415981')
        True
        >>> validate_iranian_national_id('۰۴۹۹۳۷۰۸۹۹')
        True
        >>> validate_iranian_national_id('1234567890')
        False
    """
    return national_id_error(national_id) is None


def normalize_iranian_national_id(national_id: str) -> Optional[str]:
    """
    کدملی را به شکل استاندارد ۱۰ رقمی لاتین برمی‌گرداند؛ اگر نامعتبر باشد None.

    Examples:
        >>> normalize_iranian_national_id('۱۲۳۴۵۶۷۸۹')
        '0123456789'
        >>> normalize_iranian_national_id('1234567890') is None
        True
    """
    if national_id_error(national_id) is not None:
        return None
    return _padded_digits(national_id)


BLOOD_TYPES = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

DIABETES_TYPES = {
    'none': 'بدون دیابت',
    'type1': 'دیابت نوع ۱',
    'type2': 'دیابت نوع ۲',
}


def validate_blood_type(blood_type: Optional[str]) -> bool:
    """خالی یا یکی از هشت گروه خونی."""
    return not blood_type or blood_type in BLOOD_TYPES


def validate_diabetes_type(diabetes_type: Optional[str]) -> bool:
    return not diabetes_type or diabetes_type in DIABETES_TYPES


def validate_link(link: Optional[str]) -> bool:
    """
    لینک معاینه باید با http:// یا https:// شروع شود.

    Examples:
        >>> validate_link('https://lab.example.ir/r/12')
        True
        >>> validate_link('javascript:alert(1)')
        False
    """
    if not link:
        return True
    return link.startswith('http://') or link.startswith('https://')
