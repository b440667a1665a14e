"""
Unit tests for the authorization dialog phase.

This module tests rendering of the authorize form and the handling of its
submission: anti-forgery validation, parameter resolution and dialog URL
construction for GET and POST dialogs.
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from oauth_connector.nonces import NonceManager
from oauth_connector.request_context import RequestContext
from oauth_connector.providers.authorization import AuthorizationLinkBuilder, AuthorizeRequestHandler
from oauth_connector.providers.provider_config import (
    ProviderConfig, PhaseSpec, PhaseData, ProviderConfigurationError
)
from tests.fakes import ACTION_ENDPOINT, make_integration_args


def dialog_args(method='GET', referenced=None, manual=None, url=None):
    phase = {
        'method': method,
        'service_name': 'dialog',
        'data': {'referenced': referenced if referenced is not None else ['scope'], 'manual': manual or {}}
    }
    if url:
        phase['url'] = url
    return phase


class TestAuthorizationLinkBuilder(unittest.TestCase):
    """Test cases for AuthorizationLinkBuilder."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.nonces = NonceManager('test-secret-key')
        self.config = ProviderConfig(make_integration_args(), ACTION_ENDPOINT)
        self.builder = AuthorizationLinkBuilder(self.config, self.nonces)

    def test_absent_without_client_id(self):
        """Test no link is rendered without a client id."""
        config = ProviderConfig(make_integration_args(client_id=''), ACTION_ENDPOINT)
        self.assertIsNone(AuthorizationLinkBuilder(config, self.nonces).build_link())

    def test_absent_without_client_secret(self):
        """Test no link is rendered without a client secret."""
        config = ProviderConfig(make_integration_args(client_secret=''), ACTION_ENDPOINT)
        self.assertIsNone(AuthorizationLinkBuilder(config, self.nonces).build_link())

    def test_form_markup(self):
        """Test the form posts the authorize action to the action endpoint."""
        link = str(self.builder.build_link())

        self.assertIn('<form method="post" action="https://example.com/admin-post.php">', link)
        self.assertIn('name="action" value="acme_authorize"', link)
        self.assertIn('name="acme_authorize_nonce"', link)
        self.assertIn('type="submit" value="Authorize"', link)

    def test_form_carries_valid_nonce(self):
        """Test the embedded token verifies for the authorize action only."""
        link = str(self.builder.build_link())
        token = link.split('name="acme_authorize_nonce" value="')[1].split('"')[0]

        self.assertTrue(self.nonces.verify(token, 'acme_authorize'))
        self.assertFalse(self.nonces.verify(token, 'other_authorize'))

    def test_fresh_nonce_per_link(self):
        """Test every rendered link carries a new token."""
        self.assertNotEqual(str(self.builder.build_link()), str(self.builder.build_link()))

    def test_markup_is_escaped(self):
        """Test configured values cannot break out of attributes."""
        config = ProviderConfig(make_integration_args(settings_name='a"b'), ACTION_ENDPOINT)
        link = str(AuthorizationLinkBuilder(config, self.nonces).build_link())

        self.assertNotIn('value="a"b_authorize"', link)
        self.assertIn('a&#34;b_authorize', link)


class TestAuthorizeRequestHandler(unittest.TestCase):
    """Test cases for AuthorizeRequestHandler."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.nonces = NonceManager('test-secret-key')

    def make_handler(self, **overrides):
        config = ProviderConfig(make_integration_args(**overrides), ACTION_ENDPOINT)
        return AuthorizeRequestHandler(config, self.nonces)

    def valid_context(self, query=None):
        return RequestContext(
            query=query or {},
            form={
                'action': 'acme_authorize',
                'acme_authorize_nonce': self.nonces.create('acme_authorize')
            }
        )

    def test_get_dialog_url(self):
        """Test GET dialogs carry the resolved parameters in the query."""
        handler = self.make_handler()
        self.assertEqual(handler.handle(self.valid_context()), 'https://provider.example/oauth/dialog?scope=read')

    def test_post_dialog_url_has_no_query(self):
        """Test POST dialogs are addressed without query parameters."""
        handler = self.make_handler(request_args=dialog_args(method='POST'))
        self.assertEqual(handler.handle(self.valid_context()), 'https://provider.example/oauth/dialog')

    def test_manual_args_override_referenced(self):
        """Test manual values win over resolved values of the same name."""
        handler = self.make_handler(request_args=dialog_args(
            referenced=['scope', 'response_type'],
            manual={'scope': 'admin', 'display': 'popup'}
        ))
        self.assertEqual(
            handler.handle(self.valid_context()),
            'https://provider.example/oauth/dialog?scope=admin&response_type=code&display=popup'
        )

    def test_redirect_uri_passed_encoded_once(self):
        """Test the derived redirect_uri appears single-encoded in the dialog URL."""
        handler = self.make_handler(request_args=dialog_args(referenced=['client_id', 'redirect_uri']))
        url = handler.handle(self.valid_context())

        self.assertEqual(
            url,
            'https://provider.example/oauth/dialog?client_id=test_client_id_123'
            '&redirect_uri=https%3A%2F%2Fexample.com%2Fadmin-post.php%3Faction%3Dacme_authorize_callback'
        )

    def test_url_override(self):
        """Test request_args.url replaces the base URL for this call only."""
        handler = self.make_handler(request_args=dialog_args(url='https://www.provider.example/v2'))

        self.assertEqual(handler.handle(self.valid_context()), 'https://www.provider.example/v2/dialog?scope=read')
        self.assertEqual(handler.config.oauth_url, 'https://provider.example/oauth')

    def test_unresolvable_args_omitted(self):
        """Test names that cannot be resolved are left out of the URL."""
        handler = self.make_handler(request_args=dialog_args(referenced=['scope', 'missing_key']))
        self.assertEqual(handler.handle(self.valid_context()), 'https://provider.example/oauth/dialog?scope=read')

    def test_invalid_nonce_dropped(self):
        """Test a forged token produces no redirect."""
        handler = self.make_handler()
        context = RequestContext(form={'action': 'acme_authorize', 'acme_authorize_nonce': 'forged'})
        self.assertIsNone(handler.handle(context))

    def test_missing_nonce_dropped(self):
        """Test a submission without a token produces no redirect."""
        handler = self.make_handler()
        self.assertIsNone(handler.handle(RequestContext(form={'action': 'acme_authorize'})))

    def test_empty_form_dropped(self):
        """Test a request without posted fields produces no redirect."""
        handler = self.make_handler()
        token = self.nonces.create('acme_authorize')
        context = RequestContext(query={'acme_authorize_nonce': token})
        self.assertIsNone(handler.handle(context))

    def test_nonce_for_other_integration_dropped(self):
        """Test a token issued for another integration is rejected."""
        handler = self.make_handler()
        context = RequestContext(form={
            'action': 'acme_authorize',
            'acme_authorize_nonce': self.nonces.create('other_authorize')
        })
        self.assertIsNone(handler.handle(context))

    def test_malformed_referenced_raises(self):
        """Test a non-list referenced value is a configuration fault."""
        handler = self.make_handler()
        handler.config.request_args = PhaseSpec(
            method='GET', service_name='dialog', data=PhaseData(referenced='scope')
        )

        with self.assertRaises(ProviderConfigurationError):
            handler.handle(self.valid_context())


if __name__ == '__main__':
    unittest.main()
