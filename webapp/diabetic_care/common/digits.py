"""تبدیل ارقام فارسی، عربی و لاتین به یکدیگر."""

ASCII_DIGITS = '0123456789'
PERSIAN_DIGITS = '۰۱۲۳۴۵۶۷۸۹'
ARABIC_DIGITS = '٠١٢٣٤٥٦٧٨٩'

_TO_PERSIAN = str.maketrans(ASCII_DIGITS, PERSIAN_DIGITS)

# Persian/Arabic-Indic -> ASCII, ASCII kept as-is
_DIGIT_MAP = {ch: str(i) for i, ch in enumerate(PERSIAN_DIGITS)}
_DIGIT_MAP.update({ch: str(i) for i, ch in enumerate(ARABIC_DIGITS)})
_DIGIT_MAP.update({ch: ch for ch in ASCII_DIGITS})


def to_display_digits(value: str) -> str:
    """
    ارقام لاتین را به ارقام فارسی تبدیل می‌کند؛ بقیه کاراکترها دست نمی‌خورند.

    Examples:
        >>> to_display_digits('0499370899')
        '۰۴۹۹۳۷۰۸۹۹'
        >>> to_display_digits('A-12')
        'A-۱۲'
    """
    return value.translate(_TO_PERSIAN)


def to_ascii_digits(value: str) -> str:
    """
    ارقام فارسی/عربی/لاتین را به لاتین تبدیل و هر کاراکتر دیگری را حذف می‌کند.

    Examples:
        >>> to_ascii_digits('۱۲3٤')
        '1234'
        >>> to_ascii_digits('کد: ۰۹۱۲-۳۴۵')
        '0912345'
    """
    return ''.join(_DIGIT_MAP.get(ch, '') for ch in value)


def to_ascii_digits_only(value: str) -> str:
    """Digit-only extraction for search queries and identifier fields."""
    digits = to_ascii_digits(value)
    return ''.join(ch for ch in digits if ch in ASCII_DIGITS)
