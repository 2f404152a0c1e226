"""
Attachment Storage
Durable upload step for ticket images. The ticket record only ever references
a stored file: either a public URL in the hosted storage bucket or a file
under the local upload folder served at /uploads/<name>.
"""
import logging
import os
import uuid
from typing import Dict, Optional

from .supabase_client import SupabaseClient, SupabaseError
from .ticket_config import ALLOWED_FILE_TYPES

logger = logging.getLogger('attachments')


class AttachmentStorage:
    """Validates and stores uploaded ticket attachments"""

    def __init__(self, upload_folder: str, max_size_mb: int = 5, remote: Optional[SupabaseClient] = None):
        self.upload_folder = upload_folder
        self.max_size = max_size_mb * 1024 * 1024
        self.max_size_mb = max_size_mb
        self.remote = remote

    @staticmethod
    def _extension(filename: str) -> str:
        return filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''

    def save(self, file) -> Dict:
        """
        Store an uploaded file.

        Args:
            file: Werkzeug FileStorage object

        Returns:
            dict with 'url', or 'error'
        """
        if not file or not file.filename:
            return {'error': 'No file provided'}

        ext = self._extension(file.filename)
        if ext not in ALLOWED_FILE_TYPES:
            return {'error': f"Invalid file type: {ext or 'none'}. Allowed: {', '.join(ALLOWED_FILE_TYPES)}"}

        content = file.read()
        if len(content) > self.max_size:
            return {'error': f"File exceeds max size of {self.max_size_mb}MB"}

        filename = f"{uuid.uuid4().hex}.{ext}"

        if self.remote is not None and self.remote.storage_bucket:
            try:
                url = self.remote.upload_object(
                    f"tickets/{filename}", content, file.mimetype or f"image/{ext}"
                )
                logger.info(f"ATTACHMENT_UPLOAD | remote | {filename}")
                return {'url': url}
            except SupabaseError as e:
                logger.error(f"ATTACHMENT_UPLOAD_FAIL | remote | {filename} | {e}")
                return {'error': 'Failed to upload attachment'}

        os.makedirs(self.upload_folder, exist_ok=True)
        full_path = os.path.join(self.upload_folder, filename)
        temp_path = full_path + '.tmp'
        try:
            # Atomic: write to temp, rename
            with open(temp_path, 'wb') as f:
                f.write(content)
            os.replace(temp_path, full_path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            logger.error(f"ATTACHMENT_UPLOAD_FAIL | local | {filename} | {e}")
            return {'error': 'Failed to store attachment'}

        logger.info(f"ATTACHMENT_UPLOAD | local | {filename}")
        return {'url': f"/uploads/{filename}"}
