import jwt
import pytest

import auth_utils
from config import SUPABASE_JWT_SECRET

VALID = {
    'email': 'new@brototype.com',
    'password': 'secret1',
    'confirm_password': 'secret1',
    'full_name': 'New Student',
}


def test_valid_signup_passes():
    assert auth_utils.validate_signup(VALID) == (True, None)
    assert auth_utils.validate_signup(dict(VALID, role='admin')) == (True, None)


@pytest.mark.parametrize('overrides, message', [
    ({'email': ''}, 'Please fill in all fields'),
    ({'full_name': '   '}, 'Please fill in all fields'),
    ({'email': 'not-an-email'}, 'Invalid email format'),
    ({'password': '12345', 'confirm_password': '12345'}, 'Password must be at least 6 characters'),
    ({'confirm_password': 'secret2'}, 'Passwords do not match'),
    ({'role': 'superuser'}, 'Role must be one of: student, admin'),
    ({'password': 123456}, 'Invalid form data'),
    ({'email': ['a@b.co']}, 'Invalid form data'),
])
def test_invalid_signup(overrides, message):
    assert auth_utils.validate_signup(dict(VALID, **overrides)) == (False, message)


def test_password_hash_round_trip():
    hashed = auth_utils.hash_password('brototype123')

    assert hashed != 'brototype123'
    assert auth_utils.verify_password(hashed, 'brototype123')
    assert not auth_utils.verify_password(hashed, 'wrong')


def test_access_token_round_trip():
    token = auth_utils.generate_access_token('student-1', 'arjun@brototype.com')

    payload = auth_utils.decode_access_token(token)

    assert payload['sub'] == 'student-1'
    assert payload['email'] == 'arjun@brototype.com'
    assert payload['aud'] == 'authenticated'


def test_expired_token_is_rejected():
    token = auth_utils.generate_access_token('student-1', 'arjun@brototype.com', expires_hours=-1)

    assert auth_utils.decode_access_token(token) is None


def test_foreign_tokens_are_rejected():
    wrong_secret = jwt.encode({'sub': 'x', 'aud': 'authenticated'}, 'other-secret', algorithm='HS256')
    wrong_audience = jwt.encode({'sub': 'x', 'aud': 'anon'}, SUPABASE_JWT_SECRET, algorithm='HS256')

    assert auth_utils.decode_access_token('garbage') is None
    assert auth_utils.decode_access_token(wrong_secret) is None
    assert auth_utils.decode_access_token(wrong_audience) is None
