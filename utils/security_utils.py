import os
import re
from dataclasses import dataclass
from functools import wraps

from flask import request
from werkzeug.security import generate_password_hash, check_password_hash

from storage import get_services
from utils.errors import AuthenticationError, AuthorizationError
from utils.logging_utils import security_logger, log_warning

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def hash_password(password):
    """Salted, adaptive one-way hash of a password."""
    return generate_password_hash(password)


def verify_password(password, password_hash):
    """Check a plaintext candidate against a stored hash."""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def validate_email(email):
    """Validate email format."""
    return isinstance(email, str) and EMAIL_PATTERN.match(email) is not None


def get_env_variable(var_name, default_value=None, required=False):
    """Safely get environment variable with optional default."""
    value = os.environ.get(var_name, default_value)
    if required and value is None:
        raise ValueError(f"Required environment variable {var_name} is not set")
    return value


@dataclass(frozen=True)
class AuthUser:
    """The authenticated caller, handed to protected views as `current_user`."""
    id: int
    email: str
    first_name: str = None
    last_name: str = None
    is_admin: bool = False

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            email=row['email'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            is_admin=bool(row['is_admin']),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'isAdmin': self.is_admin,
        }


def extract_bearer_token(auth_header):
    """Return the token from an "Authorization: Bearer <token>" header value."""
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]


def authenticate_request():
    """
    Resolve the caller of the current request from its bearer token.

    Raises AuthenticationError when the token is missing or invalid, or when
    it names a user that no longer exists.
    """
    services = get_services()
    token = extract_bearer_token(request.headers.get('Authorization'))
    if not token:
        raise AuthenticationError('Access token required')

    user_id = services.token_service.verify(token)
    if user_id is None:
        raise AuthenticationError('Invalid or expired token')

    user = services.users.get_user(user_id)
    if user is None:
        log_warning(security_logger, "Valid token for missing user", user_id=user_id, path=request.path)
        raise AuthenticationError('User not found')
    return AuthUser.from_row(user)


def optional_user():
    """The authenticated caller, or None when the request carries no usable token."""
    try:
        return authenticate_request()
    except AuthenticationError:
        return None


def require_auth(f):
    """Decorator to require a valid bearer token; passes `current_user` to the view."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        kwargs['current_user'] = authenticate_request()
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator to require an authenticated user whose is_admin flag is set."""
    @wraps(f)
    def admin_only(*args, **kwargs):
        current_user = kwargs['current_user']
        if not current_user.is_admin:
            log_warning(security_logger, "Admin access denied", user_id=current_user.id, path=request.path)
            raise AuthorizationError('Admin access required')
        return f(*args, **kwargs)
    return require_auth(admin_only)
