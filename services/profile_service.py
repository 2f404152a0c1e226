"""
Profile Service
Profile lookup (with one delayed retry while the sign-up trigger catches up),
validated profile updates and the id -> profile map used to label tickets.
"""

import logging
import time

from complaints.supabase_client import SupabaseError
from complaints.ticket_config import EDITABLE_PROFILE_FIELDS

logger = logging.getLogger('profile_service')


class ProfileService:
    """Handles profile reads and updates against a profile source.

    The source is either the hosted service client or the local demo
    directory; both expose get_profile / list_profiles / update_profile.
    """

    def __init__(self, source, fallback=None, retry_delay: float = 1.0, sleep=time.sleep):
        self.source = source
        self.fallback = fallback
        self.retry_delay = retry_delay
        self._sleep = sleep

    def load_profile(self, user_id: str, access_token: str = None) -> dict:
        """
        Fetch a profile. A missing row is retried exactly once after
        retry_delay; a service error is logged and not retried.

        Returns:
            profile dict, or None
        """
        try:
            profile = self.source.get_profile(user_id, access_token=access_token)
            if profile:
                return profile

            logger.info(f"PROFILE_NOT_FOUND | {user_id} | retrying in {self.retry_delay}s")
            self._sleep(self.retry_delay)

            profile = self.source.get_profile(user_id, access_token=access_token)
            if not profile:
                logger.warning(f"PROFILE_STILL_MISSING | {user_id}")
            return profile or None

        except SupabaseError as e:
            logger.error(f"PROFILE_FETCH_FAIL | {user_id} | {e}")
            return None

    def update_profile(self, user_id: str, data: dict, access_token: str = None) -> dict:
        """
        Update editable profile fields (name, batch, admission number, phone,
        domain, avatar URL).

        Returns:
            Updated profile dict, or error dict
        """
        updates = {k: v for k, v in data.items() if k in EDITABLE_PROFILE_FIELDS and v is not None}

        if not updates:
            return {'error': 'No valid fields to update'}

        for key, value in list(updates.items()):
            if not isinstance(value, str):
                return {'error': f"{key} must be text"}
            updates[key] = value.strip()

        if 'full_name' in updates:
            name = updates['full_name']
            if len(name) < 2 or len(name) > 100:
                return {'error': 'Name must be between 2 and 100 characters'}

        try:
            profile = self.source.update_profile(user_id, updates, access_token=access_token)
        except SupabaseError as e:
            logger.error(f"PROFILE_UPDATE_FAIL | {user_id} | {e}")
            return {'error': 'Failed to update profile'}

        if profile is None:
            return {'error': 'Profile not found'}

        logger.info(f"PROFILE_UPDATE | {user_id} | fields={sorted(updates.keys())}")
        return profile

    def profile_map(self, access_token: str = None) -> dict:
        """
        id -> profile for every known user. Profiles from the source win over
        the fallback directory.
        """
        profiles = {}
        if self.fallback is not None:
            for profile in self.fallback.list_profiles():
                profiles[profile['id']] = profile
        try:
            for profile in self.source.list_profiles(access_token=access_token):
                profiles[profile['id']] = profile
        except SupabaseError as e:
            logger.error(f"PROFILE_LIST_FAIL | {e}")
        return profiles
