import hashlib
import time
from functools import wraps
from threading import Lock

from flask import current_app, request

from storage import get_services
from utils.errors import RateLimitError
from utils.logging_utils import security_logger, log_warning


# In-memory sliding window limiter, one per app (per process)
class RateLimiter:
    def __init__(self):
        self.requests = {}
        self.limits = {}
        self.lock = Lock()

    def set_limit(self, key, max_requests, window_seconds):
        """Set rate limit for a key."""
        self.limits[key] = {
            'max_requests': max_requests,
            'window_seconds': window_seconds
        }

    def is_allowed(self, limit_key, client_key, now=None):
        """Record a request from `client_key` against `limit_key` and report whether it is allowed."""
        if limit_key not in self.limits:
            return True

        limit = self.limits[limit_key]
        now = time.time() if now is None else now
        bucket_key = f"{client_key}:{limit_key}"

        with self.lock:
            # Drop requests outside the window
            recent = [
                req_time for req_time in self.requests.get(bucket_key, [])
                if now - req_time < limit['window_seconds']
            ]
            if len(recent) < limit['max_requests']:
                recent.append(now)
                self.requests[bucket_key] = recent
                return True
            self.requests[bucket_key] = recent
            return False

    @staticmethod
    def get_client_key(request_obj):
        """Generate a key based on IP address and endpoint."""
        ip = request_obj.remote_addr or 'unknown'
        endpoint = request_obj.endpoint or 'unknown'
        return hashlib.sha256(f"{ip}:{endpoint}".encode()).hexdigest()


def rate_limit(limit_key='api'):
    """Decorator to apply rate limiting to a route."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if current_app.config.get('RATE_LIMIT_ENABLED', True):
                limiter = get_services().rate_limiter
                client_key = limiter.get_client_key(request)
                if not limiter.is_allowed(limit_key, client_key):
                    log_warning(security_logger, "Rate limit exceeded",
                                limit=limit_key, path=request.path, ip=request.remote_addr)
                    raise RateLimitError()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
