"""Tests for input validators and mobile normalisation."""

import pytest

from gms.services.validation import (
    is_valid_mobile,
    normalize_mobile,
    validate_email,
    validate_mobile,
    validate_name,
    validate_positive_number,
    validate_required,
    validate_username,
)


class TestEmail:
    def test_valid(self):
        assert validate_email('coach.one+gym@example.co').valid

    @pytest.mark.parametrize('value', ['plainaddress', 'a@b', 'a@b.c', '@example.com', 'a b@example.com'])
    def test_invalid(self, value):
        result = validate_email(value)
        assert not result
        assert result.message == 'Invalid email format'

    def test_required(self):
        assert validate_email('  ').message == 'Email is required'
        assert validate_email(None).message == 'Email is required'


class TestMobile:
    """Mobile numbers are normalised to the local 01XXXXXXXXX form."""

    @pytest.mark.parametrize('raw', [
        '01012345678',
        '+201012345678',
        '00201012345678',
        '201012345678',
        '010 1234 5678',
        '(010) 1234-5678',
        '010.1234.5678',
    ])
    def test_normalises_to_local_form(self, raw):
        assert normalize_mobile(raw) == '01012345678'

    def test_normalisation_is_idempotent(self):
        once = normalize_mobile('+20 115 555 1234')
        assert normalize_mobile(once) == once == '01155551234'

    @pytest.mark.parametrize('raw', ['01012345678', '01112345678', '01212345678', '01512345678'])
    def test_valid_prefixes(self, raw):
        assert is_valid_mobile(raw)

    @pytest.mark.parametrize('raw', ['01312345678', '0101234567', '010123456789', '11012345678', 'abcdefghijk'])
    def test_invalid_numbers(self, raw):
        assert not is_valid_mobile(raw)

    def test_validate_mobile_messages(self):
        assert validate_mobile('').message == 'Mobile number is required'
        assert validate_mobile('123').message.startswith('Invalid mobile number')
        assert validate_mobile('+201012345678').valid

    def test_none_normalises_to_empty(self):
        assert normalize_mobile(None) == ''

    @pytest.mark.parametrize('raw', [
        '+200201012345678',
        '+20201012345678',
        '0020201012345678',
        '00200201012345678',
        '+20 +20 1012345678',
        '2020201012345',
        '+2000201012345678',
        '002020',
        '+20',
        '20',
        '',
    ])
    def test_normalisation_reaches_a_fixed_point(self, raw):
        once = normalize_mobile(raw)
        assert normalize_mobile(once) == once

    def test_exposed_prefixes_are_rewritten(self):
        assert normalize_mobile('+200201012345678') == '01012345678'
        assert normalize_mobile('00200201012345678') == '01012345678'

    @pytest.mark.parametrize('value', [123, 1.5, ['01012345678'], {'n': 1}, True])
    def test_non_text_mobile_is_invalid(self, value):
        assert normalize_mobile(value) == ''
        assert not is_valid_mobile(value)
        assert validate_mobile(value).message.startswith('Invalid mobile number')


class TestOtherValidators:
    def test_username(self):
        assert validate_username('coach_01').valid
        assert not validate_username('ab')
        assert not validate_username('has space')
        assert not validate_username('x' * 51)
        assert validate_username('').message == 'Username is required'

    def test_name_length(self):
        assert validate_name('Al', 'First name').valid
        assert validate_name('A', 'First name').message == 'First name must be between 2 and 100 characters'
        assert validate_name('A' * 101, 'First name').message == 'First name must be between 2 and 100 characters'
        assert validate_name(' ', 'First name').message == 'First name is required'

    def test_required(self):
        assert validate_required('x', 'Notes').valid
        assert not validate_required(None, 'Count')
        assert validate_required(0, 'Count').message == 'Count must be text'
        assert validate_required('', 'Notes').message == 'Notes is required'

    def test_positive_number(self):
        assert validate_positive_number('150.50', 'Payment').valid
        assert validate_positive_number(3, 'Payment').valid
        assert validate_positive_number('0', 'Payment').message == 'Payment must be greater than zero'
        assert validate_positive_number('-5', 'Payment').message == 'Payment must be greater than zero'
        assert validate_positive_number('abc', 'Payment').message == 'Payment must be a valid number'
        assert validate_positive_number('NaN', 'Payment').message == 'Payment must be greater than zero'
        assert validate_positive_number(None, 'Payment').message == 'Payment is required'


@pytest.mark.parametrize('value', [42, 3.14, ['a'], {'k': 'v'}, False])
class TestNonTextInput:
    """JSON bodies can carry any type; validators answer instead of raising."""

    def test_email(self, value):
        assert not validate_email(value)

    def test_username(self, value):
        assert not validate_username(value)

    def test_name(self, value):
        assert validate_name(value, 'First name').message == 'First name must be text'

    def test_required(self, value):
        assert validate_required(value, 'Notes').message == 'Notes must be text'
