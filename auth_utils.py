"""
Authentication utilities for the student complaint portal
Handles access-token verification, password hashing, sign-up validation and
the route guard. Tokens are HS256 JWTs in the hosted auth service's format
(sub = user id, aud = 'authenticated').
"""
import jwt
import logging
from datetime import datetime, timedelta
from functools import wraps
from flask import request, jsonify, current_app
from werkzeug.security import generate_password_hash, check_password_hash

from config import SUPABASE_JWT_SECRET, JWT_ALGORITHM, JWT_AUDIENCE

logger = logging.getLogger('auth_utils')

ACCESS_TOKEN_EXPIRY_HOURS = 24
MIN_PASSWORD_LENGTH = 6
USER_ROLES = ('student', 'admin')


def hash_password(password):
    """Hash a password using werkzeug's security features"""
    return generate_password_hash(password, method='pbkdf2:sha256')


def verify_password(password_hash, password):
    """Verify a password against its hash"""
    return check_password_hash(password_hash, password)


def generate_access_token(user_id, email, expires_hours=ACCESS_TOKEN_EXPIRY_HOURS):
    """Issue an access token shaped like the hosted auth service's tokens"""
    now = datetime.utcnow()
    payload = {
        'sub': user_id,
        'email': email,
        'aud': JWT_AUDIENCE,
        'role': 'authenticated',
        'exp': now + timedelta(hours=expires_hours),
        'iat': now
    }
    return jwt.encode(payload, SUPABASE_JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token):
    """Decode and validate an access token; None when invalid or expired"""
    try:
        return jwt.decode(
            token, SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE
        )
    except jwt.ExpiredSignatureError:
        logger.info("TOKEN_EXPIRED")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"TOKEN_INVALID | {e}")
        return None


def validate_signup(data):
    """
    Validate a sign-up form.

    Returns:
        (is_valid, error_message)
    """
    for field in ('email', 'password', 'confirm_password', 'full_name', 'role'):
        if data.get(field) is not None and not isinstance(data[field], str):
            return False, 'Invalid form data'

    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    confirm_password = data.get('confirm_password')
    full_name = (data.get('full_name') or '').strip()
    role = data.get('role') or 'student'

    if not email or not password or not full_name:
        return False, 'Please fill in all fields'

    if '@' not in email or '.' not in email:
        return False, 'Invalid email format'

    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f'Password must be at least {MIN_PASSWORD_LENGTH} characters'

    if confirm_password is not None and password != confirm_password:
        return False, 'Passwords do not match'

    if role not in USER_ROLES:
        return False, f"Role must be one of: {', '.join(USER_ROLES)}"

    return True, None


def bearer_token():
    """The bearer token from the Authorization header, or None"""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header.split(' ', 1)[1].strip() or None


def require_auth(allowed_roles=None):
    """Decorator to protect routes; loads the caller's profile and checks its role"""
    if allowed_roles is None:
        allowed_roles = list(USER_ROLES)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            token = bearer_token()
            if not token:
                return jsonify({'error': 'Missing or invalid authorization header'}), 401

            payload = decode_access_token(token)
            if not payload or not payload.get('sub'):
                return jsonify({'error': 'Invalid or expired token'}), 401

            profile_service = current_app.extensions['portal']['profiles']
            profile = profile_service.load_profile(payload['sub'], access_token=token)
            if not profile:
                return jsonify({'error': 'Profile not found'}), 404

            if profile.get('role') not in allowed_roles:
                return jsonify({'error': 'Insufficient permissions'}), 403

            request.current_user = payload
            request.current_profile = profile
            request.access_token = token
            return f(*args, **kwargs)

        return decorated_function
    return decorator
