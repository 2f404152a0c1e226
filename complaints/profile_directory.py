"""
Local Profile Directory
In-memory stand-in for the hosted auth/database service: demo accounts,
password sign-in issuing the same kind of access token the hosted service
issues, and the profiles table.

Used when Supabase is not configured, and as the fallback for names the hosted
service does not know. Profile updates are merged in memory only and are lost
on restart.
"""
import copy
import logging
import uuid
from typing import Dict, List, Optional

from auth_utils import hash_password, verify_password, generate_access_token
from .entities import Profile

logger = logging.getLogger('profile_directory')

DEMO_PASSWORD = 'brototype123'

DEMO_PROFILES: List[Profile] = [
    {
        'id': 'student-1',
        'email': 'arjun@brototype.com',
        'full_name': 'Arjun Kumar',
        'role': 'student',
        'batch_id': 'Brototype-KK-12',
        'avatar_url': None,
        'admission_number': 'KK-2025-101',
        'phone': '+91 98765 43210',
        'domain': 'MERN Stack',
        'joining_date': '2025-01-15',
    },
    {
        'id': 'student-2',
        'email': 'priya@brototype.com',
        'full_name': 'Priya Sharma',
        'role': 'student',
        'batch_id': 'Brototype-KK-12',
        'avatar_url': None,
        'admission_number': 'KK-2025-102',
        'phone': '+91 98765 12345',
        'domain': 'Python Django',
        'joining_date': '2025-02-01',
    },
    {
        'id': 'admin-1',
        'email': 'staff@brototype.com',
        'full_name': 'Staff Admin',
        'role': 'admin',
    },
]


class AuthError(Exception):
    """Sign-up / sign-in rejected by the auth backend"""


class ProfileDirectory:
    """Profiles keyed by id, seeded with the demo accounts"""

    def __init__(self, profiles: Optional[List[Profile]] = None, demo_password: str = DEMO_PASSWORD):
        seed = DEMO_PROFILES if profiles is None else profiles
        self._profiles: Dict[str, Profile] = {p['id']: copy.deepcopy(p) for p in seed}
        self._demo_password = demo_password
        # Demo accounts are hashed on first sign-in
        self._password_hashes: Dict[str, Optional[str]] = {p['email'].lower(): None for p in seed}

    # ----------------------------------------
    # Auth
    # ----------------------------------------

    def sign_up(self, email: str, password: str, full_name: str, role: str) -> Dict:
        """Register an account and create its profile row, as the sign-up trigger would"""
        email = email.strip().lower()
        if email in self._password_hashes:
            raise AuthError('User already registered')

        user_id = str(uuid.uuid4())
        self._profiles[user_id] = {
            'id': user_id,
            'email': email,
            'full_name': full_name,
            'role': role,
        }
        self._password_hashes[email] = hash_password(password)
        logger.info(f"SIGN_UP | {email} | role={role}")
        return {'user': {'id': user_id, 'email': email}}

    def sign_in(self, email: str, password: str) -> Dict:
        email = email.strip().lower()
        if email in self._password_hashes and self._password_hashes[email] is None:
            self._password_hashes[email] = hash_password(self._demo_password)

        password_hash = self._password_hashes.get(email)
        if not password_hash or not verify_password(password_hash, password):
            raise AuthError('Invalid login credentials')

        profile = next(p for p in self._profiles.values() if p['email'].lower() == email)
        token = generate_access_token(profile['id'], email)
        logger.info(f"SIGN_IN | {email}")
        return {'access_token': token, 'user': {'id': profile['id'], 'email': email}}

    def sign_out(self, access_token: str):
        # Tokens are stateless here; they simply expire
        logger.info("SIGN_OUT")

    # ----------------------------------------
    # Profiles table
    # ----------------------------------------

    def get_profile(self, user_id: str, access_token: Optional[str] = None) -> Optional[Profile]:
        profile = self._profiles.get(user_id)
        return dict(profile) if profile else None

    def list_profiles(self, access_token: Optional[str] = None) -> List[Profile]:
        return [dict(p) for p in self._profiles.values()]

    def update_profile(self, user_id: str, updates: Dict, access_token: Optional[str] = None) -> Optional[Profile]:
        """Merge the given fields into the stored profile; None if the id is unknown"""
        profile = self._profiles.get(user_id)
        if profile is None:
            return None
        profile.update(updates)
        logger.info(f"PROFILE_UPDATE | {user_id} | fields={sorted(updates.keys())}")
        return dict(profile)
