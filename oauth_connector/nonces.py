"""
Anti-forgery tokens for form submissions rendered by the host.

Tokens are signed with the application secret and salted with the action
they protect, so a token issued for one integration's authorize action is
rejected for any other action. Tokens expire after a configurable lifetime.
"""

from typing import Optional
import logging

from authlib.common.security import generate_token
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired


DEFAULT_NONCE_LIFETIME = 3600


class NonceManager:
    """Issues and verifies short-lived, action-scoped anti-forgery tokens."""

    def __init__(self, secret_key: str, lifetime: int = DEFAULT_NONCE_LIFETIME):
        if not secret_key:
            raise ValueError("A secret key is required to sign anti-forgery tokens")

        self.lifetime = lifetime
        self._serializer = URLSafeTimedSerializer(secret_key)
        self.logger = logging.getLogger(__name__)

    def create(self, action: str) -> str:
        """
        Issue a fresh token for an action.

        Args:
            action: Action name the token is scoped to

        Returns:
            Signed, URL-safe token string
        """
        return self._serializer.dumps(
            {'action': action, 'nonce': generate_token(16)},
            salt=action
        )

    def verify(self, token: Optional[str], action: str) -> bool:
        """
        Verify a token against the action it must have been issued for.

        Args:
            token: Token received with the form submission
            action: Expected action name

        Returns:
            True if the token is authentic, unexpired and scoped to ``action``
        """
        if not token:
            self.logger.warning(f"Missing anti-forgery token for action {action}")
            return False

        try:
            payload = self._serializer.loads(token, salt=action, max_age=self.lifetime)
        except SignatureExpired:
            self.logger.warning(f"Expired anti-forgery token for action {action}")
            return False
        except BadSignature:
            self.logger.warning(f"Invalid anti-forgery token for action {action}")
            return False

        return isinstance(payload, dict) and payload.get('action') == action
