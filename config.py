# Configuration for Student Complaint Portal
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger('config')

# Flask session secret
SECRET_KEY = os.getenv('SECRET_KEY', 'complaint-portal-secret-key-change-in-production')

# Frontend Configuration (for CORS)
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000')

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Ticket Store Configuration
# 'json' mirrors the collections to two JSON files, 'sqlite' uses data/complaints.db
STORE_BACKEND = os.getenv('STORE_BACKEND', 'json').lower()
DATA_DIR = os.getenv('DATA_DIR', 'data')
TICKETS_FILE = os.getenv('TICKETS_FILE', os.path.join(DATA_DIR, 'tickets.json'))
COMMENTS_FILE = os.getenv('COMMENTS_FILE', os.path.join(DATA_DIR, 'comments.json'))
SQLITE_PATH = os.getenv('SQLITE_PATH', os.path.join(DATA_DIR, 'complaints.db'))

# Attachment Configuration
UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join('static', 'uploads', 'tickets'))
MAX_ATTACHMENT_MB = int(os.getenv('MAX_ATTACHMENT_MB', 5))

# Hosted auth/database service (Supabase)
SUPABASE_URL = os.getenv('SUPABASE_URL', '').rstrip('/')
SUPABASE_ANON_KEY = os.getenv('SUPABASE_ANON_KEY', '')
SUPABASE_JWT_SECRET = os.getenv('SUPABASE_JWT_SECRET') or 'complaint-portal-jwt-secret-change-in-production'
SUPABASE_STORAGE_BUCKET = os.getenv('SUPABASE_STORAGE_BUCKET', '')
SUPABASE_TIMEOUT = float(os.getenv('SUPABASE_TIMEOUT', 10))

# JWT verification of access tokens issued by the hosted auth service
JWT_ALGORITHM = 'HS256'
JWT_AUDIENCE = 'authenticated'

# Profile rows are created by a trigger after sign-up; wait this long before the single retry
PROFILE_RETRY_DELAY = float(os.getenv('PROFILE_RETRY_DELAY', 1.0))

# CSV export renders created_at in this timezone
EXPORT_TIMEZONE = os.getenv('EXPORT_TIMEZONE', 'Asia/Kolkata')

# Reject resolved -> open and other non-lifecycle moves when enabled
STRICT_STATUS_TRANSITIONS = os.getenv('STRICT_STATUS_TRANSITIONS', 'false').lower() == 'true'

SUPABASE_ENABLED = bool(SUPABASE_URL and SUPABASE_ANON_KEY)
if not SUPABASE_ENABLED:
    logger.warning(
        "SUPABASE credentials not found (SUPABASE_URL / SUPABASE_ANON_KEY). "
        "Falling back to the local demo profile directory."
    )
