import pytest

from app import create_app
from auth_utils import generate_access_token
from complaints import AttachmentStorage, JsonTicketStore, ProfileDirectory


@pytest.fixture
def store(tmp_path):
    return JsonTicketStore(str(tmp_path / 'tickets.json'), str(tmp_path / 'comments.json'))


@pytest.fixture
def directory():
    return ProfileDirectory()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / 'uploads'


@pytest.fixture
def app(store, directory, upload_dir):
    return create_app(
        repository=store,
        profile_source=directory,
        attachments=AttachmentStorage(str(upload_dir), max_size_mb=1),
        settings={
            'TESTING': True,
            'UPLOAD_FOLDER': str(upload_dir),
            'PROFILE_RETRY_DELAY': 0,
            'EXPORT_TIMEZONE': 'UTC',
        }
    )


@pytest.fixture
def client(app):
    return app.test_client()


def auth_headers(user_id, email='someone@brototype.com'):
    return {'Authorization': f"Bearer {generate_access_token(user_id, email)}"}


@pytest.fixture
def student_headers():
    return auth_headers('student-1', 'arjun@brototype.com')


@pytest.fixture
def other_student_headers():
    return auth_headers('student-2', 'priya@brototype.com')


@pytest.fixture
def admin_headers():
    return auth_headers('admin-1', 'staff@brototype.com')
