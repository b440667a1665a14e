"""
Authorization dialog phase of the OAuth flow.

The link builder renders the form that starts the flow; the request handler
receives that form, checks its anti-forgery token and sends the user on to
the provider's authorization dialog.
"""

from typing import Optional
import logging

from markupsafe import Markup

from ..http_client import build_api_url
from ..nonces import NonceManager
from ..request_context import RequestContext
from .arg_resolver import ArgResolver
from .provider_config import ProviderConfig, ProviderConfigurationError


AUTHORIZE_FORM = Markup(
    '<form method="post" action="{endpoint}">'
    '<input type="hidden" name="action" value="{action}"/>'
    '<input type="hidden" name="{nonce_field}" value="{nonce}"/>'
    '<input type="submit" value="Authorize" name="{action}"/>'
    '</form>'
)


class AuthorizationLinkBuilder:
    """Renders the self-submitting "Authorize" form for one integration."""

    def __init__(self, config: ProviderConfig, nonces: NonceManager):
        self.config = config
        self.nonces = nonces

    def build_link(self) -> Optional[Markup]:
        """
        Render the authorize form with a fresh anti-forgery token.

        Returns:
            Form markup, or None when client credentials are not configured
        """
        if not self.config.client_id or not self.config.client_secret:
            return None

        action = self.config.authorize_action
        return AUTHORIZE_FORM.format(
            endpoint=self.config.action_endpoint,
            action=action,
            nonce_field=self.config.nonce_field_name,
            nonce=self.nonces.create(action)
        )


class AuthorizeRequestHandler:
    """
    Handles the ``<settings_name>_authorize`` action.

    A request without a valid anti-forgery token is dropped: no redirect is
    produced and nothing changes.
    """

    def __init__(self, config: ProviderConfig, nonces: NonceManager):
        self.config = config
        self.nonces = nonces
        self.resolver = ArgResolver(config.all_args)
        self.logger = logging.getLogger(f"oauth_connector.providers.{config.settings_name}")

    def handle(self, context: RequestContext) -> Optional[str]:
        """
        Build the provider dialog URL for a submitted authorize form.

        Args:
            context: Incoming request data

        Returns:
            Dialog URL to redirect to, or None if the request was dropped

        Raises:
            ProviderConfigurationError: If the referenced parameter list is malformed
        """
        action = self.config.authorize_action
        token = context.form.get(self.config.nonce_field_name)

        if not context.form or not self.nonces.verify(token, action):
            self.logger.warning(f"Dropped {action} request with invalid anti-forgery token")
            return None

        phase = self.config.request_args
        base_url = phase.url or self.config.oauth_url

        args = self.resolver.resolve(phase.data.referenced, context.query)
        if args is None:
            raise ProviderConfigurationError(
                f"request_args.data.referenced is malformed for {self.config.settings_name}"
            )
        args.update(phase.data.manual)

        # POST dialogs are addressed without any query parameters.
        query_args = args if phase.method == 'GET' else {}

        dialog_url = build_api_url(base_url, phase.service_name, query_args)
        self.logger.debug(f"Redirecting {self.config.settings_name} authorization to {base_url}")
        return dialog_url
