"""
Flask application hosting the OAuth connector.

This module builds the host application: logging, the persistence backend,
anti-forgery tokens, the provider manager with its action endpoint, and the
error handlers.
"""

from flask import Flask, request
import logging
import sys
from typing import Tuple, Optional

import redis

from .config import get_config, Config, ConfigurationError
from .api_responses import APIResponse, ErrorCodes, create_flask_response
from .http_client import HTTPTransport, RequestsTransport, RemoteApiClient
from .nonces import NonceManager
from .token_store import KeyValueStore, InMemoryKeyValueStore, RedisKeyValueStore
from .providers.provider_manager import ProviderManager, ProviderManagerError


def configure_logging(debug: bool) -> None:
    """Set up application logging."""
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logging.getLogger('requests').setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def create_kv_store(redis_url: Optional[str], logger: logging.Logger) -> KeyValueStore:
    """
    Create the persistence backend, preferring Redis when it is reachable.

    Args:
        redis_url: Optional Redis connection URL
        logger: Logger for connection diagnostics

    Returns:
        KeyValueStore instance
    """
    if redis_url:
        try:
            store = RedisKeyValueStore.from_url(redis_url)
            store.client.ping()
            logger.info("Redis connection established")
            return store
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed, using local storage: {e}")

    return InMemoryKeyValueStore()


def create_app(config: Optional[Config] = None, kv_store: Optional[KeyValueStore] = None,
               transport: Optional[HTTPTransport] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Configuration to use instead of the global one
        kv_store: Persistence backend to use instead of the configured one
        transport: HTTP transport to use instead of requests

    Returns:
        Flask application instance

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    app = Flask(__name__)

    config = config or get_config()
    flask_config = config.get_flask_config()
    connector_config = config.get_connector_config()

    app.config.update(flask_config)

    configure_logging(flask_config.get('DEBUG', False))

    if kv_store is None:
        kv_store = create_kv_store(flask_config.get('REDIS_URL'), app.logger)

    nonces = NonceManager(flask_config['SECRET_KEY'], lifetime=connector_config['NONCE_LIFETIME'])
    api_client = RemoteApiClient(transport or RequestsTransport())

    provider_manager = ProviderManager(
        kv_store=kv_store,
        nonces=nonces,
        api_client=api_client,
        action_endpoint=config.get_action_endpoint()
    )

    try:
        provider_manager.register_providers_from_config(config)
    except ProviderManagerError as e:
        raise ConfigurationError(str(e))

    register_error_handlers(app)
    provider_manager.register_routes(app, '/' + connector_config['ACTION_PATH'].lstrip('/'))

    app.provider_manager = provider_manager
    app.kv_store = kv_store

    app.logger.info(f"OAuth connector initialized with {len(provider_manager.providers)} integrations")
    return app


def register_error_handlers(app: Flask) -> None:
    """
    Register error handling for the Flask application.

    API paths receive the JSON envelope, everything else plain text.

    Args:
        app: Flask application instance
    """

    def _error_response(code: str, message: str, status_code: int):
        if request.path.startswith('/api/'):
            return create_flask_response(APIResponse.error(code, message, status_code=status_code), status_code)
        return message, status_code

    @app.errorhandler(400)
    def bad_request_error(error) -> Tuple[str, int]:
        app.logger.warning(f"400 error: {error} - URL: {request.url}")
        return _error_response(ErrorCodes.INVALID_REQUEST, "The request was invalid.", 400)

    @app.errorhandler(404)
    def not_found_error(error) -> Tuple[str, int]:
        app.logger.warning(f"404 error: {request.url} - User Agent: {request.headers.get('User-Agent', 'Unknown')}")
        return _error_response(ErrorCodes.NOT_FOUND, "The requested page was not found.", 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error) -> Tuple[str, int]:
        app.logger.warning(f"405 error: {request.method} {request.url}")
        return _error_response(ErrorCodes.METHOD_NOT_ALLOWED, "Method not allowed.", 405)

    @app.errorhandler(500)
    def internal_error(error) -> Tuple[str, int]:
        app.logger.error(f"500 error: {error} - URL: {request.url}", exc_info=True)
        return _error_response(ErrorCodes.INTERNAL_ERROR,
                               "An internal server error occurred. Please try again later.", 500)
