"""
OAuth engine for one configured integration.

OAuthProvider wires a ProviderConfig to its token store, anti-forgery tokens
and HTTP client, and exposes the operations the host application needs:
rendering the authorize link, handling both flow actions, reading the stored
token and calling the provider API afterwards.
"""

from typing import Dict, Any, Optional, Mapping
import logging

from markupsafe import Markup

from ..http_client import RemoteApiClient
from ..nonces import NonceManager
from ..request_context import RequestContext
from ..token_store import TokenStore, KeyValueStore
from .authorization import AuthorizationLinkBuilder, AuthorizeRequestHandler
from .provider_config import ProviderConfig
from .token_exchange import TokenExchanger, ExchangeResult


class OAuthProvider:
    """
    Config-driven authorization-code flow for a single integration.

    All provider differences are expressed in the configuration's phase
    specifications; this class is never subclassed per provider.
    """

    def __init__(self, config: ProviderConfig, kv_store: KeyValueStore,
                 nonces: NonceManager, api_client: RemoteApiClient):
        """
        Initialize the integration engine.

        Args:
            config: Validated integration configuration
            kv_store: Persistence backend for the access token
            nonces: Anti-forgery token manager
            api_client: Client used for calls to the provider
        """
        self.config = config
        self.api_client = api_client
        self.token_store = TokenStore(config.settings_name, kv_store)
        self.link_builder = AuthorizationLinkBuilder(config, nonces)
        self.authorize_handler = AuthorizeRequestHandler(config, nonces)
        self.token_exchanger = TokenExchanger(config, self.token_store, api_client)
        self.logger = logging.getLogger(f"{__name__}.{config.settings_name}")

        self.logger.info(f"Initialized OAuth integration {config.settings_name}")

    @property
    def settings_name(self) -> str:
        return self.config.settings_name

    def set_id(self, client_id: str) -> None:
        """Rotate the client id. Empty values are ignored."""
        if client_id:
            self.config.client_id = client_id

    def set_secret(self, client_secret: str) -> None:
        """Rotate the client secret. Empty values are ignored."""
        if client_secret:
            self.config.client_secret = client_secret

    def oauth_callback_url(self) -> str:
        return self.config.callback_url

    def authorize_link(self) -> Optional[Markup]:
        return self.link_builder.build_link()

    def authorize_request(self, context: RequestContext) -> Optional[str]:
        return self.authorize_handler.handle(context)

    def authorize_request_callback(self, context: RequestContext) -> ExchangeResult:
        return self.token_exchanger.handle(context)

    def get_token(self) -> Optional[str]:
        return self.token_store.get_token()

    def set_token(self, access_token: str) -> None:
        self.token_store.set_token(access_token)

    def check_token(self) -> bool:
        return self.token_store.has_token()

    def authorize_control(self) -> bool:
        """Check whether the authorization flow has completed for this integration."""
        return self.get_token() is not None

    def get_remote_api_data(self, service: str, args: Optional[Mapping[str, Any]] = None,
                            post: bool = False) -> Optional[Any]:
        """
        Call a service on the provider's base URL.

        Args:
            service: Service path below ``oauth_url``
            args: Query parameters (GET) or form body (POST)
            post: Whether to send a POST request

        Returns:
            Decoded JSON response, or None on any failure
        """
        return self.api_client.get_remote_api_data(self.config.oauth_url, service, args, post=post)

    def get_status(self) -> Dict[str, Any]:
        """Integration status for API responses."""
        return {
            'settings_name': self.settings_name,
            'authorized': self.authorize_control(),
            'configured': bool(self.config.client_id and self.config.client_secret),
            'authorize_action': self.config.authorize_action,
            'callback_url': self.config.callback_url
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(settings_name='{self.settings_name}')"
