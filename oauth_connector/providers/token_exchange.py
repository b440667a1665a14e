"""
Token exchange phase of the OAuth flow.

Handles the provider calling back with an authorization code: the code is
exchanged at the token endpoint, the resulting access token is stored, and
the user is always sent on to the configured return URL with a ``debug``
query parameter describing any provider error.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote
import logging

from ..http_client import RemoteApiClient
from ..request_context import RequestContext
from ..token_store import TokenStore
from .arg_resolver import ArgResolver
from .provider_config import ProviderConfig, ProviderConfigurationError


@dataclass
class ExchangeResult:
    """Outcome of one token exchange."""
    redirect_url: str
    token_stored: bool = False
    debug: str = ''


def extract_error_message(response: Any) -> Optional[str]:
    """
    Pull a human-readable error message out of a decoded token response.

    Supports ``{"error": {"message": ...}}`` bodies as well as the
    ``{"error": "...", "error_description": "..."}`` form.

    Returns:
        The message, or None if the response carries no error
    """
    if not isinstance(response, dict):
        return None

    error = response.get('error')
    if error is None:
        return None

    if isinstance(error, dict):
        return str(error.get('message', ''))
    return str(response.get('error_description') or error)


class TokenExchanger:
    """Handles the ``<settings_name>_authorize_callback`` action."""

    def __init__(self, config: ProviderConfig, token_store: TokenStore, api_client: RemoteApiClient):
        self.config = config
        self.token_store = token_store
        self.api_client = api_client
        self.resolver = ArgResolver(config.all_args)
        self.logger = logging.getLogger(f"oauth_connector.providers.{config.settings_name}")

    def handle(self, context: RequestContext) -> ExchangeResult:
        """
        Exchange the callback's authorization code for an access token.

        Provider errors, transport failures and malformed bodies never raise;
        they only show up in the ``debug`` parameter of the final redirect
        (which is empty unless the provider reported an error).

        Args:
            context: Incoming callback request data

        Returns:
            ExchangeResult with the final redirect URL

        Raises:
            ProviderConfigurationError: If the referenced parameter list is malformed
        """
        phase = self.config.token_args
        base_url = phase.url or self.config.oauth_url

        args = self.resolver.resolve(phase.data.referenced, context.query)
        if args is None:
            raise ProviderConfigurationError(
                f"token_args.data.referenced is malformed for {self.config.settings_name}"
            )
        args.update(phase.data.manual)

        if phase.is_post and 'redirect_uri' in args and args['redirect_uri'] == self.config.redirect_uri:
            # Form bodies are encoded by the transport.
            args['redirect_uri'] = self.config.callback_url

        response = self.api_client.get_remote_api_data(
            base_url, phase.service_name, args, post=phase.is_post
        )

        debug = ''
        token_stored = False

        error_message = extract_error_message(response)
        if error_message is not None:
            debug = f"Error Message : {error_message} URL : {self.config.redirect_uri}"
            self.logger.warning(f"Token exchange for {self.config.settings_name} rejected: {error_message}")
        elif isinstance(response, dict) and response.get('access_token'):
            self.token_store.set_token(response['access_token'])
            token_stored = True
            self.logger.info(f"Token exchange for {self.config.settings_name} succeeded")
        else:
            self.logger.warning(f"Token exchange for {self.config.settings_name} returned no access token")

        redirect_url = f"{self.config.return_url}&debug={quote(debug, safe='')}"
        return ExchangeResult(redirect_url=redirect_url, token_stored=token_stored, debug=debug)
