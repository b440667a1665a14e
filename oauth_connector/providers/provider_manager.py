"""
Integration registry and action routing.

This module implements the manager that builds one OAuthProvider per
configured integration, keeps the explicit table mapping action names to flow
handlers, and exposes that table to the Flask host application.
"""

from typing import Dict, Any, List, Optional, Callable
import logging

from flask import Flask, redirect, request, render_template_string

from ..api_responses import APIResponse, ErrorCodes, create_flask_response
from ..audit_logger import get_audit_logger, AuditEventType
from ..http_client import RemoteApiClient
from ..nonces import NonceManager
from ..request_context import RequestContext
from ..token_store import KeyValueStore
from .oauth_provider import OAuthProvider
from .provider_config import ProviderConfig, ProviderConfigurationError


INDEX_TEMPLATE = """<!doctype html>
<html>
<head><title>OAuth integrations</title></head>
<body>
<h1>OAuth integrations</h1>
{% for item in integrations %}
<section>
  <h2>{{ item.settings_name }}</h2>
  <p>Status: {{ 'authorized' if item.authorized else 'not authorized' }}</p>
  {% if item.link %}{{ item.link }}{% else %}<p>Client credentials are not configured.</p>{% endif %}
</section>
{% else %}
<p>No integrations configured.</p>
{% endfor %}
</body>
</html>"""


class ProviderManagerError(Exception):
    """Raised when provider manager encounters an error."""
    pass


class ProviderManager:
    """
    Registry of OAuth integrations and their action route table.

    Every integration contributes two actions, ``<settings_name>_authorize``
    and ``<settings_name>_authorize_callback``. Settings names must be unique
    because they scope the stored token, the anti-forgery tokens and both
    actions.
    """

    def __init__(self, kv_store: KeyValueStore, nonces: NonceManager,
                 api_client: RemoteApiClient, action_endpoint: str):
        """
        Initialize the provider manager.

        Args:
            kv_store: Persistence backend shared by all integrations
            nonces: Anti-forgery token manager
            api_client: Client used for provider calls
            action_endpoint: Absolute URL of the host's generic action endpoint
        """
        self.kv_store = kv_store
        self.nonces = nonces
        self.api_client = api_client
        self.action_endpoint = action_endpoint
        self.providers: Dict[str, OAuthProvider] = {}
        self.actions: Dict[str, Callable[[RequestContext], Any]] = {}
        self.logger = logging.getLogger(__name__)

    def register_provider(self, args: Dict[str, Any]) -> OAuthProvider:
        """
        Build and register an integration from its configuration.

        Args:
            args: Integration configuration dictionary

        Returns:
            The registered provider

        Raises:
            ProviderManagerError: If the configuration is invalid or the
                settings name is already registered
        """
        try:
            config = ProviderConfig(args, self.action_endpoint)
        except ProviderConfigurationError as e:
            self.logger.error(f"Integration configuration error: {e}")
            raise ProviderManagerError(f"Failed to register integration: {e}")

        name = config.settings_name
        if name in self.providers:
            raise ProviderManagerError(f"Integration {name} is already registered")

        provider = OAuthProvider(config, self.kv_store, self.nonces, self.api_client)
        self.providers[name] = provider

        def create_authorize_handler(p_instance: OAuthProvider):
            def authorize_handler(context: RequestContext):
                return self._handle_authorization(p_instance, context)
            return authorize_handler

        def create_callback_handler(p_instance: OAuthProvider):
            def callback_handler(context: RequestContext):
                return self._handle_callback(p_instance, context)
            return callback_handler

        self.actions[config.authorize_action] = create_authorize_handler(provider)
        self.actions[config.callback_action] = create_callback_handler(provider)

        self.logger.info(f"Registered integration: {name}")
        return provider

    def register_providers_from_config(self, config) -> None:
        """
        Register every enabled integration of a Config instance.

        Args:
            config: Application Config
        """
        for name in config.get_enabled_integrations():
            self.register_provider(config.get_integration_config(name))

    def get_provider(self, name: str) -> Optional[OAuthProvider]:
        return self.providers.get(name)

    def get_all_providers(self) -> Dict[str, OAuthProvider]:
        return self.providers.copy()

    def get_action_handler(self, action: Optional[str]) -> Optional[Callable[[RequestContext], Any]]:
        if not action:
            return None
        return self.actions.get(action)

    def register_routes(self, app: Flask, action_path: str) -> None:
        """
        Register the action endpoint and the integration status routes.

        Args:
            app: Flask application instance
            action_path: URL path of the generic action endpoint
        """
        app.add_url_rule(action_path, 'oauth_action', self._handle_action, methods=['GET', 'POST'])
        app.add_url_rule('/', 'index', self._handle_index, methods=['GET'])
        app.add_url_rule('/api/integrations', 'list_integrations',
                         self._handle_list_integrations, methods=['GET'])
        app.add_url_rule('/api/integrations/<name>/audit', 'integration_audit',
                         self._handle_integration_audit, methods=['GET'])
        app.add_url_rule('/api/audit/statistics', 'audit_statistics',
                         self._handle_audit_statistics, methods=['GET'])

        self.logger.info(f"Registered action endpoint {action_path} for {len(self.providers)} integrations")

    def _handle_action(self):
        context = RequestContext.from_flask_request(request)
        handler = self.get_action_handler(context.action)

        if handler is None:
            self.logger.warning(f"Unknown action requested: {context.action}")
            return create_flask_response(
                APIResponse.error(ErrorCodes.UNKNOWN_ACTION, f"Unknown action: {context.action}"),
                400
            )

        return handler(context)

    def _handle_authorization(self, provider: OAuthProvider, context: RequestContext):
        """
        Handle a submitted authorize form.

        Returns:
            Redirect to the provider dialog, or an empty response if the
            request was dropped
        """
        audit_logger = get_audit_logger()

        try:
            dialog_url = provider.authorize_request(context)
        except ProviderConfigurationError as e:
            self.logger.error(f"Configuration error during {provider.settings_name} authorization: {e}")
            audit_logger.log_event(
                event_type=AuditEventType.OAUTH_FAILED,
                integration=provider.settings_name,
                user_ip=context.remote_addr,
                user_agent=context.user_agent,
                success=False,
                details={'stage': 'authorize', 'error_message': str(e)}
            )
            return create_flask_response(
                APIResponse.error(ErrorCodes.CONFIGURATION_ERROR, str(e), status_code=500),
                500
            )

        if dialog_url is None:
            audit_logger.log_event(
                event_type=AuditEventType.OAUTH_REJECTED,
                integration=provider.settings_name,
                user_ip=context.remote_addr,
                user_agent=context.user_agent,
                success=False,
                details={'reason': 'invalid_nonce'}
            )
            return '', 200

        audit_logger.log_event(
            event_type=AuditEventType.OAUTH_INITIATED,
            integration=provider.settings_name,
            user_ip=context.remote_addr,
            user_agent=context.user_agent,
            success=True
        )
        return redirect(dialog_url, code=302)

    def _handle_callback(self, provider: OAuthProvider, context: RequestContext):
        """
        Handle the provider's callback with an authorization code.

        Returns:
            Redirect to the integration's return URL
        """
        audit_logger = get_audit_logger()

        try:
            result = provider.authorize_request_callback(context)
        except ProviderConfigurationError as e:
            self.logger.error(f"Configuration error during {provider.settings_name} callback: {e}")
            audit_logger.log_event(
                event_type=AuditEventType.OAUTH_FAILED,
                integration=provider.settings_name,
                user_ip=context.remote_addr,
                user_agent=context.user_agent,
                success=False,
                details={'stage': 'callback', 'error_message': str(e)}
            )
            return create_flask_response(
                APIResponse.error(ErrorCodes.CONFIGURATION_ERROR, str(e), status_code=500),
                500
            )

        audit_logger.log_event(
            event_type=AuditEventType.OAUTH_COMPLETED if result.token_stored else AuditEventType.OAUTH_FAILED,
            integration=provider.settings_name,
            user_ip=context.remote_addr,
            user_agent=context.user_agent,
            success=result.token_stored,
            details={'debug': result.debug} if result.debug else None
        )
        return redirect(result.redirect_url, code=302)

    def _handle_index(self):
        integrations = [
            {
                'settings_name': provider.settings_name,
                'authorized': provider.authorize_control(),
                'link': provider.authorize_link()
            }
            for provider in self.providers.values()
        ]
        return render_template_string(INDEX_TEMPLATE, integrations=integrations)

    def _handle_list_integrations(self):
        statuses: List[Dict[str, Any]] = [provider.get_status() for provider in self.providers.values()]
        return create_flask_response(APIResponse.success(statuses))

    def _handle_integration_audit(self, name: str):
        if name not in self.providers:
            return create_flask_response(
                APIResponse.error(ErrorCodes.INTEGRATION_NOT_FOUND, f"Unknown integration: {name}",
                                  status_code=404),
                404
            )

        events = get_audit_logger().get_integration_audit_log(name)
        return create_flask_response(APIResponse.success(events))

    def _handle_audit_statistics(self):
        return create_flask_response(APIResponse.success(get_audit_logger().get_audit_statistics()))
