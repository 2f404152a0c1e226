import io

from conftest import auth_headers

FORM = {'title': 'Wifi down', 'description': 'no wifi in block B', 'category': 'facility', 'priority': 'high'}


def _create(client, headers, **overrides):
    response = client.post('/api/tickets', json=dict(FORM, **overrides), headers=headers)
    assert response.status_code == 201
    return response.get_json()['ticket']


# ============================================
# Authentication
# ============================================

def test_demo_login_returns_token_and_profile(client):
    response = client.post('/api/auth/login', json={'email': 'arjun@brototype.com', 'password': 'brototype123'})

    data = response.get_json()
    assert response.status_code == 200
    assert data['profile']['full_name'] == 'Arjun Kumar'

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['token']}"})
    assert me.get_json()['profile']['id'] == 'student-1'


def test_login_failures(client):
    missing = client.post('/api/auth/login', json={'email': 'arjun@brototype.com'})
    wrong = client.post('/api/auth/login', json={'email': 'arjun@brototype.com', 'password': 'nope'})

    assert missing.status_code == 400
    assert wrong.status_code == 401
    assert wrong.get_json()['error'] == 'Invalid login credentials'


def test_signup_then_login(client):
    response = client.post('/api/auth/signup', json={
        'email': 'New@Brototype.com', 'password': 'secret1', 'confirm_password': 'secret1',
        'full_name': 'New Student',
    })
    assert response.status_code == 201
    user_id = response.get_json()['user_id']

    login = client.post('/api/auth/login', json={'email': 'new@brototype.com', 'password': 'secret1'})

    assert login.status_code == 200
    assert login.get_json()['profile'] == {
        'id': user_id, 'email': 'new@brototype.com', 'full_name': 'New Student', 'role': 'student'
    }


def test_signup_validation_and_duplicates(client):
    short = client.post('/api/auth/signup', json={
        'email': 'a@b.co', 'password': '123', 'full_name': 'A B'
    })
    duplicate = client.post('/api/auth/signup', json={
        'email': 'arjun@brototype.com', 'password': 'secret1', 'full_name': 'Arjun'
    })

    assert short.status_code == 400
    assert short.get_json()['error'] == 'Password must be at least 6 characters'
    assert duplicate.status_code == 400
    assert duplicate.get_json()['error'] == 'User already registered'


def test_protected_routes_need_a_valid_token(client):
    assert client.get('/api/tickets').status_code == 401
    bad = client.get('/api/tickets', headers={'Authorization': 'Bearer not-a-token'})
    assert bad.status_code == 401
    assert bad.get_json()['error'] == 'Invalid or expired token'


def test_token_without_profile_is_404(client):
    response = client.get('/api/auth/me', headers=auth_headers('ghost-user'))

    assert response.status_code == 404


def test_logout(client, student_headers):
    assert client.post('/api/auth/logout', headers=student_headers).get_json() == {'success': True}


# ============================================
# Profile
# ============================================

def test_profile_update(client, student_headers):
    response = client.put('/api/profile', json={'phone': '+91 1', 'role': 'admin'}, headers=student_headers)

    assert response.status_code == 200
    profile = response.get_json()['profile']
    assert profile['phone'] == '+91 1'
    assert profile['role'] == 'student'

    rejected = client.put('/api/profile', json={'role': 'admin'}, headers=student_headers)
    assert rejected.status_code == 400


# ============================================
# Tickets
# ============================================

def test_meta_lists_choices(client):
    data = client.get('/api/meta').get_json()

    assert [c['value'] for c in data['categories']] == ['curriculum', 'facility', 'placement', 'other']
    assert [p['label'] for p in data['priority_levels']] == ['High', 'Medium', 'Low']
    assert data['statuses'] == [
        {'value': 'open', 'label': 'Open'},
        {'value': 'in_progress', 'label': 'In Progress'},
        {'value': 'resolved', 'label': 'Resolved'},
    ]


def test_student_creates_open_ticket(client, student_headers):
    ticket = _create(client, student_headers)

    assert ticket['status'] == 'open'
    assert ticket['user_id'] == 'student-1'
    assert ticket['id'].startswith('TKT-')


def test_admin_cannot_file_tickets(client, admin_headers):
    response = client.post('/api/tickets', json=FORM, headers=admin_headers)

    assert response.status_code == 403


def test_invalid_ticket_is_rejected(client, student_headers):
    response = client.post('/api/tickets', json={'title': 'x'}, headers=student_headers)

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Please fill in all fields'


def test_listing_is_scoped_to_caller(client, student_headers, other_student_headers, admin_headers):
    mine = _create(client, student_headers)
    _create(client, other_student_headers, title='Projector')

    student_view = client.get('/api/tickets', headers=student_headers).get_json()
    admin_view = client.get('/api/tickets', headers=admin_headers).get_json()

    assert [t['id'] for t in student_view['tickets']] == [mine['id']]
    assert admin_view['count'] == 2


def test_listing_filters_and_search(client, student_headers, admin_headers):
    _create(client, student_headers)
    _create(client, student_headers, title='Chair', description='broken', priority='low')

    response = client.get('/api/tickets?priority=low&status=all', headers=admin_headers)
    search = client.get('/api/tickets?q=WIFI', headers=admin_headers)

    assert [t['title'] for t in response.get_json()['tickets']] == ['Chair']
    assert [t['title'] for t in search.get_json()['tickets']] == ['Wifi down']


def test_ticket_detail_access(client, student_headers, other_student_headers, admin_headers):
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}"

    assert client.get(url, headers=student_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=other_student_headers).status_code == 403
    assert client.get('/api/tickets/TKT-NONE00', headers=admin_headers).status_code == 404


def test_admin_changes_status(client, student_headers, admin_headers):
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}/status"

    response = client.patch(url, json={'status': 'in_progress'}, headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Ticket status changed to in progress'
    assert client.get('/api/tickets/stats', headers=student_headers).get_json()['stats'] == {
        'total': 1, 'open': 0, 'inProgress': 1, 'resolved': 0
    }


def test_status_change_errors(client, student_headers, admin_headers):
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}/status"

    assert client.patch(url, json={'status': 'resolved'}, headers=student_headers).status_code == 403
    assert client.patch(url, json={'status': 'closed'}, headers=admin_headers).status_code == 400
    missing = client.patch('/api/tickets/TKT-NONE00/status', json={'status': 'resolved'}, headers=admin_headers)
    assert missing.status_code == 404


def test_strict_lifecycle_returns_conflict(store, directory, student_headers, admin_headers):
    from app import create_app

    app = create_app(repository=store, profile_source=directory, settings={
        'TESTING': True, 'STRICT_STATUS_TRANSITIONS': True, 'PROFILE_RETRY_DELAY': 0
    })
    client = app.test_client()
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}/status"
    client.patch(url, json={'status': 'resolved'}, headers=admin_headers)

    response = client.patch(url, json={'status': 'open'}, headers=admin_headers)

    assert response.status_code == 409


def test_multipart_ticket_with_attachment(client, student_headers, upload_dir):
    data = dict(FORM, attachment=(io.BytesIO(b'\x89PNG'), 'screen.png'))

    response = client.post('/api/tickets', data=data, headers=student_headers,
                           content_type='multipart/form-data')

    assert response.status_code == 201
    url = response.get_json()['ticket']['attachment_url']
    served = client.get(url)
    assert served.status_code == 200
    assert served.data == b'\x89PNG'
    served.close()


def test_multipart_with_bad_attachment(client, student_headers):
    data = dict(FORM, attachment=(io.BytesIO(b'data'), 'notes.txt'))

    response = client.post('/api/tickets', data=data, headers=student_headers,
                           content_type='multipart/form-data')

    assert response.status_code == 400
    assert 'Invalid file type' in response.get_json()['error']


# ============================================
# Comments
# ============================================

def test_comment_thread(client, student_headers, other_student_headers, admin_headers):
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}/comments"

    reply = client.post(url, json={'content': 'Checking the router'}, headers=admin_headers)
    note = client.post(url, json={'content': 'Vendor ticket #42', 'is_internal': True}, headers=admin_headers)
    follow_up = client.post(url, json={'content': 'Thanks'}, headers=student_headers)

    assert reply.status_code == note.status_code == follow_up.status_code == 201
    assert reply.get_json()['comment']['user_name'] == 'Staff Admin'

    admin_thread = client.get(url, headers=admin_headers).get_json()['comments']
    student_thread = client.get(url, headers=student_headers).get_json()['comments']
    assert [c['content'] for c in admin_thread] == ['Checking the router', 'Vendor ticket #42', 'Thanks']
    assert [c['content'] for c in student_thread] == ['Checking the router', 'Thanks']

    assert client.get(url, headers=other_student_headers).status_code == 403
    assert client.post(url, json={'content': 'hi'}, headers=other_student_headers).status_code == 403
    assert client.post(url, json={'content': ' '}, headers=student_headers).status_code == 400
    assert client.get('/api/tickets/TKT-NONE00/comments', headers=admin_headers).status_code == 404


# ============================================
# Analytics & export
# ============================================

def test_analytics_for_admin_only(client, student_headers, admin_headers):
    _create(client, student_headers)
    _create(client, student_headers, category='other', priority='low')

    assert client.get('/api/analytics', headers=student_headers).status_code == 403
    data = client.get('/api/analytics', headers=admin_headers).get_json()

    assert data['stats']['total'] == 2
    assert {b['name']: b['value'] for b in data['by_category']} == {
        'Curriculum': 0, 'Facility': 1, 'Placement': 0, 'Other': 1
    }
    assert [b['value'] for b in data['by_priority']] == [1, 0, 1]


def test_csv_export(client, student_headers, admin_headers):
    _create(client, student_headers, title='Say "hi"')

    assert client.get('/api/tickets/export', headers=student_headers).status_code == 403
    response = client.get('/api/tickets/export', headers=admin_headers)

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'attachment; filename=tickets_export_' in response.headers['Content-Disposition']
    lines = response.get_data(as_text=True).split('\n')
    assert lines[0] == 'ID,Title,Description,Status,Priority,Category,Created At,Student Name'
    assert len(lines) == 2
    assert '"Say ""hi"""' in lines[1]
    assert lines[1].endswith(',"Arjun Kumar"')


# ============================================
# Malformed input
# ============================================

def test_wrongly_typed_fields_are_bad_requests(client, student_headers, admin_headers):
    number_title = client.post('/api/tickets', json={'title': 5, 'description': 'x'}, headers=student_headers)
    list_category = client.post('/api/tickets', json=dict(FORM, category=['facility']), headers=student_headers)
    login = client.post('/api/auth/login', json={'email': 7, 'password': 'brototype123'})

    assert number_title.status_code == 400
    assert number_title.get_json()['error'] == 'Title must be text'
    assert list_category.status_code == 400
    assert login.status_code == 400

    ticket = _create(client, student_headers)
    comment = client.post(f"/api/tickets/{ticket['id']}/comments", json={'content': 42}, headers=student_headers)
    status = client.patch(f"/api/tickets/{ticket['id']}/status", json={'status': ['open']}, headers=admin_headers)

    assert comment.status_code == 400
    assert status.status_code == 400


def test_is_internal_is_parsed_strictly(client, student_headers, admin_headers):
    ticket = _create(client, student_headers)
    url = f"/api/tickets/{ticket['id']}/comments"

    public = client.post(url, json={'content': 'Visible', 'is_internal': 'false'}, headers=admin_headers)
    internal = client.post(url, json={'content': 'Hidden', 'is_internal': 'true'}, headers=admin_headers)

    assert public.get_json()['comment']['is_internal'] is False
    assert internal.get_json()['comment']['is_internal'] is True
    student_thread = client.get(url, headers=student_headers).get_json()['comments']
    assert [c['content'] for c in student_thread] == ['Visible']
