from urllib.parse import unquote

from flask import request

from utils.errors import AuthorizationError
from utils.logging_utils import security_logger, log_warning

SUSPICIOUS_AGENTS = ('sqlmap', 'nikto', 'nessus', 'burp')
SUSPICIOUS_PATTERNS = ('../', 'union select', 'drop table', '<script')


class SecurityMiddleware:
    """Rejects obviously hostile requests and adds security headers to every response."""

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.before_request(self.before_request)
        app.after_request(self.after_request)
        app.extensions['security_middleware'] = self

    def before_request(self):
        if self.is_suspicious_request():
            log_warning(security_logger, "Suspicious request blocked",
                        path=request.path, ip=request.remote_addr)
            raise AuthorizationError('Forbidden')

    def after_request(self, response):
        return self.ensure_security_headers(response)

    def ensure_security_headers(self, response):
        """Ensure security headers are present in the response."""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        # JSON only: nothing to load, nothing to frame
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        if self.app is not None and self.app.config.get('APP_ENV') != 'development':
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    def is_suspicious_request(self):
        """Check the user agent and the URL path (not the query string) for scanner traffic."""
        user_agent = request.headers.get('User-Agent', '').lower()
        if any(agent in user_agent for agent in SUSPICIOUS_AGENTS):
            return True

        path = unquote(request.path).lower()
        return any(pattern in path for pattern in SUSPICIOUS_PATTERNS)
