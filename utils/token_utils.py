"""Signed session tokens.

Tokens are HS256 JWTs carrying the user id as the subject. They are verified
without touching the database. There is no revocation: a token stays valid
until it expires, even if the user is demoted or deleted afterwards.
"""

from datetime import datetime, timedelta, timezone

import jwt

from utils.logging_utils import security_logger, log_info


class TokenService:
    """Issues and verifies expiring bearer tokens with a process-wide signing key."""

    def __init__(self, secret, expires_in=timedelta(days=7), algorithm='HS256'):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self.secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def issue(self, user_id, now=None):
        """Return a signed token for `user_id` that expires after `expires_in`."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            'sub': str(user_id),
            'userId': user_id,
            'iat': issued_at,
            'exp': issued_at + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token):
        """
        Return the user id embedded in `token`, or None when the token is
        malformed, carries a bad signature, has expired or lacks a usable subject.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={'require': ['exp', 'sub']},
            )
        except jwt.ExpiredSignatureError:
            log_info(security_logger, "Rejected expired token")
            return None
        except jwt.InvalidTokenError as e:
            log_info(security_logger, "Rejected invalid token", reason=type(e).__name__)
            return None

        try:
            return int(payload['sub'])
        except (TypeError, ValueError):
            return None
