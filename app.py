"""
Flask Web Application for the Student Complaint Portal
Provides API endpoints for the student and admin dashboards: tickets, comment
threads, status triage, statistics, analytics and CSV export.
Supports JSON-file and SQLite ticket stores via STORE_BACKEND
"""
import logging
import os

from flask import Flask, Blueprint, Response, request, jsonify, current_app, send_from_directory
from flask_cors import CORS

import config
from auth_utils import require_auth, validate_signup
from complaints import (
    JsonTicketStore, SqliteTicketStore, ProfileDirectory, AuthError,
    SupabaseClient, SupabaseError, AttachmentStorage
)
from complaints.csv_export import tickets_to_csv, export_filename
from complaints.ticket_config import CATEGORIES, PRIORITY_LEVELS, TICKET_STATUS
from services.profile_service import ProfileService
from services.stats_service import StatsService
from services.ticket_service import TicketService, InvalidStatusTransition

logger = logging.getLogger('app')

api = Blueprint('api', __name__)


def _portal():
    return current_app.extensions['portal']


def _choices(options):
    """value -> label mapping as an ordered list of {value, label}"""
    return [{'value': value, 'label': label} for value, label in options.items()]


def _flag(value):
    """Strict boolean from a JSON body: true, or the string 'true'"""
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return value is True


def build_repository():
    """Ticket repository selected by STORE_BACKEND"""
    if config.STORE_BACKEND == 'sqlite':
        return SqliteTicketStore(config.SQLITE_PATH)
    return JsonTicketStore(config.TICKETS_FILE, config.COMMENTS_FILE)


def create_app(repository=None, profile_source=None, attachments=None, settings=None):
    """
    Build the Flask app.

    Args:
        repository: Ticket repository (default: from STORE_BACKEND)
        profile_source: Auth + profiles backend (default: Supabase when
            configured, otherwise the local demo directory)
        attachments: AttachmentStorage (default: local upload folder, or the
            Supabase bucket when configured)
        settings: Extra Flask config values
    """
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = (config.MAX_ATTACHMENT_MB + 1) * 1024 * 1024
    app.config['UPLOAD_FOLDER'] = config.UPLOAD_FOLDER
    app.config['STRICT_STATUS_TRANSITIONS'] = config.STRICT_STATUS_TRANSITIONS
    app.config['EXPORT_TIMEZONE'] = config.EXPORT_TIMEZONE
    app.config['PROFILE_RETRY_DELAY'] = config.PROFILE_RETRY_DELAY
    if settings:
        app.config.update(settings)

    # Configure CORS for the dashboard frontend
    CORS(app,
         resources={r"/api/*": {"origins": [config.FRONTEND_URL, "http://localhost:3000"]}},
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"])

    remote = None
    if profile_source is None:
        if config.SUPABASE_ENABLED:
            remote = SupabaseClient(
                config.SUPABASE_URL, config.SUPABASE_ANON_KEY,
                timeout=config.SUPABASE_TIMEOUT,
                storage_bucket=config.SUPABASE_STORAGE_BUCKET
            )
            profile_source = remote
        else:
            profile_source = ProfileDirectory()

    fallback = ProfileDirectory() if isinstance(profile_source, SupabaseClient) else None

    if repository is None:
        repository = build_repository()

    if attachments is None:
        attachments = AttachmentStorage(
            app.config['UPLOAD_FOLDER'], config.MAX_ATTACHMENT_MB, remote=remote
        )

    app.extensions['portal'] = {
        'auth': profile_source,
        'profiles': ProfileService(
            profile_source, fallback=fallback, retry_delay=app.config['PROFILE_RETRY_DELAY']
        ),
        'tickets': TicketService(
            repository, attachments=attachments,
            strict_transitions=app.config['STRICT_STATUS_TRANSITIONS']
        ),
    }

    app.register_blueprint(api)
    logger.info(
        f"APP_READY | store={type(repository).__name__} | profiles={type(profile_source).__name__}"
    )
    return app


# ============================================
# Authentication Endpoints
# ============================================

@api.route('/api/auth/signup', methods=['POST'])
def signup():
    """Register a new account with the auth backend"""
    try:
        data = request.get_json(silent=True) or {}

        is_valid, error_message = validate_signup(data)
        if not is_valid:
            return jsonify({'success': False, 'error': error_message}), 400

        email = data['email'].strip().lower()
        role = data.get('role') or 'student'
        result = _portal()['auth'].sign_up(email, data['password'], data['full_name'].strip(), role)

        user = (result or {}).get('user') or {}
        return jsonify({
            'success': True,
            'message': 'Account created successfully.',
            'user_id': user.get('id')
        }), 201

    except (AuthError, SupabaseError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("SIGNUP_FAIL")
        return jsonify({'success': False, 'error': str(e)}), 500


@api.route('/api/auth/login', methods=['POST'])
def login():
    """Sign in and return the access token with the caller's profile"""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get('email') or ''
        password = data.get('password') or ''

        if not isinstance(email, str) or not isinstance(password, str):
            return jsonify({'success': False, 'error': 'Email and password must be text'}), 400

        email = email.strip().lower()
        if not email or not password:
            return jsonify({'success': False, 'error': 'Email and password are required'}), 400

        session = _portal()['auth'].sign_in(email, password)
        token = session['access_token']
        user_id = session['user']['id']

        profile = _portal()['profiles'].load_profile(user_id, access_token=token)

        return jsonify({
            'success': True,
            'token': token,
            'profile': profile
        })

    except (AuthError, SupabaseError) as e:
        return jsonify({'success': False, 'error': str(e)}), 401
    except Exception as e:
        logger.exception("LOGIN_FAIL")
        return jsonify({'success': False, 'error': str(e)}), 500


@api.route('/api/auth/logout', methods=['POST'])
@require_auth()
def logout():
    """Sign out at the auth backend; the client drops its token either way"""
    try:
        _portal()['auth'].sign_out(request.access_token)
    except (AuthError, SupabaseError) as e:
        logger.error(f"SIGN_OUT_FAIL | {e}")
    return jsonify({'success': True})


@api.route('/api/auth/me', methods=['GET'])
@require_auth()
def get_current_user():
    """Get current authenticated user's profile"""
    return jsonify({'success': True, 'profile': request.current_profile})


# ============================================
# Profile Endpoints
# ============================================

@api.route('/api/profile', methods=['GET'])
@require_auth()
def get_profile():
    return jsonify({'success': True, 'profile': request.current_profile})


@api.route('/api/profile', methods=['PUT'])
@require_auth()
def update_profile():
    """Update editable profile fields"""
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'error': 'No data provided'}), 400

        result = _portal()['profiles'].update_profile(
            request.current_profile['id'], data, access_token=request.access_token
        )
        if 'error' in result:
            return jsonify(result), 400

        return jsonify({'success': True, 'profile': result})

    except Exception as e:
        logger.exception("PROFILE_UPDATE_ROUTE_FAIL")
        return jsonify({'error': str(e)}), 500


# ============================================
# Ticket Endpoints
# ============================================

@api.route('/api/meta', methods=['GET'])
def get_ticket_meta():
    """Categories, priorities and statuses for the dashboard forms"""
    return jsonify({
        'categories': _choices(CATEGORIES),
        'priority_levels': _choices(PRIORITY_LEVELS),
        'statuses': _choices(TICKET_STATUS)
    })


@api.route('/api/tickets', methods=['GET'])
@require_auth()
def list_tickets():
    """
    Students get their own tickets, admins every ticket.
    Query params: q, status, priority, category, sort (date|priority), order (asc|desc)
    """
    try:
        tickets = _portal()['tickets'].list_tickets(request.current_profile, request.args)
        return jsonify({'success': True, 'count': len(tickets), 'tickets': tickets})
    except Exception as e:
        logger.exception("TICKET_LIST_FAIL")
        return jsonify({'error': str(e)}), 500


@api.route('/api/tickets', methods=['POST'])
@require_auth(['student'])
def create_ticket():
    """File a complaint (JSON body, or multipart form with an 'attachment' image)"""
    try:
        if request.mimetype == 'multipart/form-data':
            data = request.form.to_dict()
            attachment = request.files.get('attachment')
        else:
            data = request.get_json(silent=True) or {}
            attachment = None

        result = _portal()['tickets'].create_ticket(
            request.current_profile['id'], data, attachment=attachment
        )
        if 'error' in result:
            return jsonify({'success': False, 'error': result['error']}), 400

        return jsonify({
            'success': True,
            'message': 'Your complaint has been submitted successfully.',
            'ticket': result
        }), 201

    except Exception as e:
        logger.exception("TICKET_CREATE_FAIL")
        return jsonify({'success': False, 'error': str(e)}), 500


@api.route('/api/tickets/stats', methods=['GET'])
@require_auth()
def get_ticket_stats():
    """Status counts over the tickets the caller can see"""
    try:
        stats = _portal()['tickets'].stats_for(request.current_profile)
        return jsonify({'success': True, 'stats': stats})
    except Exception as e:
        logger.exception("TICKET_STATS_FAIL")
        return jsonify({'error': str(e)}), 500


@api.route('/api/tickets/export', methods=['GET'])
@require_auth(['admin'])
def export_tickets():
    """Download the filtered, sorted ticket list as CSV"""
    try:
        tickets = _portal()['tickets'].list_tickets(request.current_profile, request.args)
        profiles = _portal()['profiles'].profile_map(access_token=request.access_token)

        def student_name(user_id):
            profile = profiles.get(user_id)
            return profile.get('full_name') if profile else None

        content = tickets_to_csv(tickets, student_name, current_app.config['EXPORT_TIMEZONE'])
        logger.info(f"TICKETS_EXPORTED | {len(tickets)} | by={request.current_profile['id']}")

        return Response(
            content,
            mimetype='text/csv',
            headers={'Content-Disposition': f"attachment; filename={export_filename()}"}
        )
    except Exception as e:
        logger.exception("TICKET_EXPORT_FAIL")
        return jsonify({'error': 'Failed to export tickets. Please try again.', 'detail': str(e)}), 500


@api.route('/api/tickets/<ticket_id>', methods=['GET'])
@require_auth()
def get_ticket(ticket_id):
    """Ticket detail for its owner or an admin"""
    ticket = _portal()['tickets'].get_ticket(ticket_id)
    if not ticket:
        return jsonify({'error': f"Ticket {ticket_id} not found"}), 404
    if not _portal()['tickets'].can_view(request.current_profile, ticket):
        return jsonify({'error': 'Insufficient permissions'}), 403
    return jsonify({'success': True, 'ticket': ticket})


@api.route('/api/tickets/<ticket_id>/status', methods=['PATCH'])
@require_auth(['admin'])
def update_ticket_status(ticket_id):
    """Change a ticket's status"""
    try:
        data = request.get_json(silent=True) or {}
        status = data.get('status', '')

        ticket = _portal()['tickets'].update_status(ticket_id, status)
        if ticket is None:
            return jsonify({'success': False, 'error': f"Ticket {ticket_id} not found"}), 404

        return jsonify({
            'success': True,
            'message': f"Ticket status changed to {status.replace('_', ' ')}",
            'ticket': ticket
        })

    except InvalidStatusTransition as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("TICKET_STATUS_FAIL")
        return jsonify({'success': False, 'error': str(e)}), 500


@api.route('/api/tickets/<ticket_id>/comments', methods=['GET'])
@require_auth()
def list_comments(ticket_id):
    """Reply thread of a ticket, oldest first"""
    tickets = _portal()['tickets']
    ticket = tickets.get_ticket(ticket_id)
    if not ticket:
        return jsonify({'error': f"Ticket {ticket_id} not found"}), 404
    if not tickets.can_view(request.current_profile, ticket):
        return jsonify({'error': 'Insufficient permissions'}), 403

    comments = tickets.comments_for(request.current_profile, ticket_id)
    return jsonify({'success': True, 'comments': comments})


@api.route('/api/tickets/<ticket_id>/comments', methods=['POST'])
@require_auth()
def add_comment(ticket_id):
    """Reply inside a ticket's thread"""
    try:
        tickets = _portal()['tickets']
        ticket = tickets.get_ticket(ticket_id)
        if not ticket:
            return jsonify({'success': False, 'error': f"Ticket {ticket_id} not found"}), 404
        if not tickets.can_view(request.current_profile, ticket):
            return jsonify({'success': False, 'error': 'Insufficient permissions'}), 403

        data = request.get_json(silent=True) or {}
        result = tickets.add_comment(
            request.current_profile, ticket_id,
            data.get('content', ''),
            is_internal=_flag(data.get('is_internal'))
        )
        if 'error' in result:
            return jsonify({'success': False, 'error': result['error']}), 400

        return jsonify({'success': True, 'comment': result}), 201

    except Exception as e:
        logger.exception("COMMENT_ADD_FAIL")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================
# Analytics & Attachments
# ============================================

@api.route('/api/analytics', methods=['GET'])
@require_auth(['admin'])
def get_analytics():
    """Category and priority tallies plus status counts for the admin charts"""
    try:
        tickets = _portal()['tickets'].visible_tickets(request.current_profile)
        return jsonify({
            'success': True,
            'stats': StatsService.get_ticket_stats(tickets),
            **StatsService.get_analytics(tickets)
        })
    except Exception as e:
        logger.exception("ANALYTICS_FAIL")
        return jsonify({'error': str(e)}), 500


@api.route('/uploads/<path:filename>', methods=['GET'])
def uploaded_attachment(filename):
    """Serve attachments stored in the local upload folder"""
    return send_from_directory(os.path.abspath(current_app.config['UPLOAD_FOLDER']), filename)


if __name__ == '__main__':
    print("=" * 60)
    print("  Student Complaint Portal")
    print("=" * 60)
    print("\n🌐 Starting server at: http://localhost:5000")
    print("📝 Press Ctrl+C to stop the server\n")
    print("=" * 60)

    create_app().run(debug=False, use_reloader=False, host='0.0.0.0', port=5000)
