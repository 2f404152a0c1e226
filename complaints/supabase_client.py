"""
Supabase Client
Thin wrapper over the hosted auth + database service: GoTrue auth endpoints,
the PostgREST `profiles` table and the storage bucket used for attachments.

The service owns the schema; this module only reads and patches rows.
"""
import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger('supabase_client')


class SupabaseError(Exception):
    """Non-success response (or transport failure) from the hosted service"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SupabaseClient:
    """Handles all calls to the hosted auth/database service"""

    def __init__(self, url: str, anon_key: str, timeout: float = 10, storage_bucket: str = ''):
        self.url = url.rstrip('/')
        self.anon_key = anon_key
        self.timeout = timeout
        self.storage_bucket = storage_bucket

    def _headers(self, access_token: Optional[str] = None, extra: Optional[Dict] = None) -> Dict:
        headers = {
            'apikey': self.anon_key,
            'Authorization': f"Bearer {access_token or self.anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, access_token: Optional[str] = None,
                 headers: Optional[Dict] = None, **kwargs):
        endpoint = f"{self.url}{path}"
        try:
            response = requests.request(
                method, endpoint,
                headers=self._headers(access_token, headers),
                timeout=self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"SUPABASE_UNREACHABLE | {method} {path} | {e}")
            raise SupabaseError(f"Auth service unreachable: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"SUPABASE_ERROR | {method} {path} | {response.status_code} | {message}")
            raise SupabaseError(message, response.status_code)

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        for key in ('error_description', 'msg', 'message', 'error'):
            if isinstance(body, dict) and body.get(key):
                return str(body[key])
        return f"HTTP {response.status_code}"

    # ----------------------------------------
    # Auth
    # ----------------------------------------

    def sign_up(self, email: str, password: str, full_name: str, role: str) -> Dict:
        """
        Register a user. The profile row is created by the service's sign-up
        trigger from the metadata sent here.
        """
        return self._request('POST', '/auth/v1/signup', json={
            'email': email,
            'password': password,
            'data': {'full_name': full_name, 'role': role},
        })

    def sign_in(self, email: str, password: str) -> Dict:
        """Password sign-in; returns the session (access_token, user, ...)"""
        return self._request('POST', '/auth/v1/token', params={'grant_type': 'password'}, json={
            'email': email,
            'password': password,
        })

    def sign_out(self, access_token: str):
        self._request('POST', '/auth/v1/logout', access_token=access_token)

    # ----------------------------------------
    # Profiles table
    # ----------------------------------------

    def get_profile(self, user_id: str, access_token: Optional[str] = None) -> Optional[Dict]:
        """Fetch one profile row; None when the row does not exist (yet)"""
        rows = self._request(
            'GET', '/rest/v1/profiles', access_token=access_token,
            params={'id': f"eq.{user_id}", 'select': '*'}
        )
        return rows[0] if rows else None

    def list_profiles(self, access_token: Optional[str] = None) -> List[Dict]:
        return self._request(
            'GET', '/rest/v1/profiles', access_token=access_token,
            params={'select': '*'}
        ) or []

    def update_profile(self, user_id: str, updates: Dict, access_token: Optional[str] = None) -> Optional[Dict]:
        rows = self._request(
            'PATCH', '/rest/v1/profiles', access_token=access_token,
            params={'id': f"eq.{user_id}"},
            headers={'Prefer': 'return=representation'},
            json=updates
        )
        return rows[0] if rows else None

    # ----------------------------------------
    # Storage
    # ----------------------------------------

    def upload_object(self, storage_path: str, content: bytes, content_type: str) -> str:
        """Upload bytes to the configured bucket and return the public URL"""
        self._request(
            'POST', f"/storage/v1/object/{self.storage_bucket}/{storage_path}",
            headers={'x-upsert': 'true', 'Content-Type': content_type},
            data=content
        )
        return f"{self.url}/storage/v1/object/public/{self.storage_bucket}/{storage_path}"
