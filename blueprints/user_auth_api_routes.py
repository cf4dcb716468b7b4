from flask import Blueprint, jsonify

from storage import get_services
from storage.user_store import serialize_user
from utils.errors import AuthenticationError, ConflictError
from utils.logging_utils import security_logger, log_info, log_warning
from utils.rate_limiter import rate_limit
from utils.security_utils import AuthUser, hash_password, require_auth, verify_password
from utils.validators import get_json_body, validate_login, validate_signup

user_auth_api_bp = Blueprint('user_auth_api_bp', __name__, url_prefix='/api/auth')


def _auth_response(user_row):
    services = get_services()
    return {
        'user': AuthUser.from_row(user_row).to_dict(),
        'token': services.token_service.issue(user_row['id']),
    }


@user_auth_api_bp.route('/signup', methods=['POST'])
@rate_limit('auth')
def signup():
    data = validate_signup(get_json_body())
    users = get_services().users

    if users.get_user_by_email(data['email']):
        log_info(security_logger, "Signup rejected - user already exists", email=data['email'])
        raise ConflictError('User already exists')

    user = users.create_user(
        email=data['email'],
        password_hash=hash_password(data['password']),
        first_name=data['first_name'],
        last_name=data['last_name'],
    )
    log_info(security_logger, "User signed up", user_id=user['id'])
    return jsonify(_auth_response(user)), 201


@user_auth_api_bp.route('/login', methods=['POST'])
@rate_limit('auth')
def login():
    data = validate_login(get_json_body())
    user = get_services().users.get_user_by_email(data['email'])

    if not user or not verify_password(data['password'], user['password_hash']):
        log_warning(security_logger, "Login failed - invalid credentials", email=data['email'])
        raise AuthenticationError('Invalid credentials')

    log_info(security_logger, "User logged in", user_id=user['id'])
    return jsonify(_auth_response(user))


@user_auth_api_bp.route('/user', methods=['GET'])
@require_auth
def get_current_user(current_user):
    user = get_services().users.get_user(current_user.id)
    return jsonify(serialize_user(user))
