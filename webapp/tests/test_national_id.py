import random

import pytest

from diabetic_care.common.validators import (
    NationalIdReason, national_id_error, normalize_iranian_national_id,
    validate_blood_type, validate_diabetes_type, validate_iranian_national_id, validate_link,
)


def check_digit(prefix):
    """Reference check digit for a 9-digit prefix."""
    remainder = sum(int(d) * (10 - i) for i, d in enumerate(prefix)) % 11
    return remainder if remainder < 2 else 11 - remainder


VALID_IDS = [
    '0499370899',
    '2170415981',   # remainder 1
    '0012345679',
    '0000000140',   # remainder 0
    '1100000003',
    '0123456789',
]


class TestValidate:
    @pytest.mark.parametrize('national_id', VALID_IDS)
    def test_valid(self, national_id):
        assert validate_iranian_national_id(national_id)
        assert national_id_error(national_id) is None

    @pytest.mark.parametrize('national_id', ['1234567890', '0499370898', '2170415980'])
    def test_checksum_mismatch(self, national_id):
        assert not validate_iranian_national_id(national_id)
        assert national_id_error(national_id) == NationalIdReason.CHECKSUM

    @pytest.mark.parametrize('digit', '0123456789')
    def test_repeated_digits_rejected(self, digit):
        national_id = digit * 10
        assert not validate_iranian_national_id(national_id)
        assert national_id_error(national_id) == NationalIdReason.REPEATED_DIGITS

    @pytest.mark.parametrize('national_id', ['', '1234567', '04993708990', 'abcdefghij', None])
    def test_wrong_length(self, national_id):
        assert not validate_iranian_national_id(national_id)
        assert national_id_error(national_id) == NationalIdReason.LENGTH

    def test_persian_digits(self):
        assert validate_iranian_national_id('۰۴۹۹۳۷۰۸۹۹')

    def test_arabic_digits(self):
        assert validate_iranian_national_id('٠٤٩٩٣٧٠٨٩٩')

    def test_mixed_digits_same_as_ascii(self):
        assert validate_iranian_national_id('۱۲3٤۵۶۷۸۹۰') == validate_iranian_national_id('1234567890')

    def test_separators_ignored(self):
        assert validate_iranian_national_id('049-937089-9')
        assert validate_iranian_national_id(' 0499370899 ')

    def test_short_input_is_left_padded(self):
        assert validate_iranian_national_id('12345679')
        assert validate_iranian_national_id('499370899')

    def test_generated_prefixes(self):
        rng = random.Random(1370)
        checked = 0
        while checked < 500:
            prefix = ''.join(rng.choice('0123456789') for _ in range(9))
            good = check_digit(prefix)
            national_id = prefix + str(good)
            if len(set(national_id)) == 1:
                continue
            assert validate_iranian_national_id(national_id), national_id
            for wrong in set('0123456789') - {str(good)}:
                assert not validate_iranian_national_id(prefix + wrong), prefix + wrong
            checked += 1


class TestNormalize:
    @pytest.mark.parametrize('raw, expected', [
        ('0499370899', '0499370899'),
        ('۰۴۹۹۳۷۰۸۹۹', '0499370899'),
        ('٠٤٩٩٣٧٠٨٩٩', '0499370899'),
        ('۱۲۳۴۵۶۷۸۹', '0123456789'),
        ('12345679', '0012345679'),
        ('049 937 0899', '0499370899'),
    ])
    def test_canonical_form(self, raw, expected):
        assert normalize_iranian_national_id(raw) == expected

    @pytest.mark.parametrize('raw', ['1234567890', '1111111111', '123', '04993708990', ''])
    def test_invalid_returns_none(self, raw):
        assert normalize_iranian_national_id(raw) is None

    @pytest.mark.parametrize('raw', VALID_IDS)
    def test_idempotent(self, raw):
        once = normalize_iranian_national_id(raw)
        assert normalize_iranian_national_id(once) == once

    @pytest.mark.parametrize('raw', VALID_IDS)
    def test_result_is_ten_ascii_digits(self, raw):
        result = normalize_iranian_national_id(raw)
        assert len(result) == 10
        assert result.isascii() and result.isdigit()

    def test_agrees_with_validate(self):
        rng = random.Random(7)
        for _ in range(300):
            raw = ''.join(rng.choice('0123456789') for _ in range(rng.randint(7, 11)))
            assert (normalize_iranian_national_id(raw) is not None) == validate_iranian_national_id(raw)


class TestFieldValidators:
    def test_blood_types(self):
        for blood_type in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-', '', None):
            assert validate_blood_type(blood_type)
        assert not validate_blood_type('C+')

    def test_diabetes_types(self):
        for diabetes_type in ('none', 'type1', 'type2', None):
            assert validate_diabetes_type(diabetes_type)
        assert not validate_diabetes_type('type3')

    def test_links(self):
        assert validate_link('https://lab.example.ir/r/12')
        assert validate_link('http://lab.example.ir')
        assert validate_link(None)
        assert not validate_link('javascript:alert(1)')
        assert not validate_link('ftp://example.ir')
