"""
Unit tests for anti-forgery tokens.
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from oauth_connector.nonces import NonceManager


class TestNonceManager(unittest.TestCase):
    """Test cases for NonceManager."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.nonces = NonceManager('test-secret-key')

    def test_valid_token(self):
        """Test a freshly issued token verifies for its action."""
        token = self.nonces.create('acme_authorize')
        self.assertTrue(self.nonces.verify(token, 'acme_authorize'))

    def test_tokens_are_unique(self):
        """Test every issued token is different."""
        tokens = {self.nonces.create('acme_authorize') for _ in range(50)}
        self.assertEqual(len(tokens), 50)

    def test_token_scoped_to_action(self):
        """Test a token for one integration is rejected for another."""
        token = self.nonces.create('acme_authorize')
        self.assertFalse(self.nonces.verify(token, 'other_authorize'))

    def test_missing_token(self):
        """Test missing tokens are rejected."""
        self.assertFalse(self.nonces.verify(None, 'acme_authorize'))
        self.assertFalse(self.nonces.verify('', 'acme_authorize'))

    def test_tampered_token(self):
        """Test a modified token is rejected."""
        token = self.nonces.create('acme_authorize')
        self.assertFalse(self.nonces.verify(token + 'x', 'acme_authorize'))
        self.assertFalse(self.nonces.verify('garbage', 'acme_authorize'))

    def test_token_from_other_secret(self):
        """Test tokens signed with another key are rejected."""
        token = NonceManager('another-secret').create('acme_authorize')
        self.assertFalse(self.nonces.verify(token, 'acme_authorize'))

    def test_expired_token(self):
        """Test tokens older than the lifetime are rejected."""
        nonces = NonceManager('test-secret-key', lifetime=-1)
        token = nonces.create('acme_authorize')
        self.assertFalse(nonces.verify(token, 'acme_authorize'))

    def test_secret_required(self):
        """Test a secret key is mandatory."""
        with self.assertRaises(ValueError):
            NonceManager('')


if __name__ == '__main__':
    unittest.main()
