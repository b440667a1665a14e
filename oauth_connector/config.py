"""
Configuration module for the OAuth connector.

This module handles environment variable loading, Flask application settings,
and loading of integration configurations with environment variable reference
support.
"""

import os
import json
from typing import Dict, Any, Optional, List
from dotenv import load_dotenv

from .nonces import DEFAULT_NONCE_LIFETIME


DEFAULT_INTEGRATIONS_PATH = "integrations.json"
DEFAULT_ACTION_PATH = "/admin-post.php"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class Config:
    """Configuration class for the OAuth connector application."""

    def __init__(self, integrations_config_path: Optional[str] = None):
        """
        Initialize configuration by loading environment variables and integration configurations.

        Args:
            integrations_config_path: Path to the integrations configuration file
        """
        load_dotenv()

        self.integrations_config_path = (
            integrations_config_path
            or os.getenv('OAUTH_CONNECTOR_INTEGRATIONS', DEFAULT_INTEGRATIONS_PATH)
        )

        self._load_flask_config()
        self._load_integration_configurations()
        self._validate_required_env_vars()

    def _validate_required_env_vars(self) -> None:
        """Validate that all required environment variables are present for enabled integrations."""
        required_vars = ['FLASK_SECRET_KEY']

        for name, integration in self.INTEGRATION_CONFIGS.items():
            if integration.get('enabled', True):
                for key in ('client_id', 'client_secret'):
                    value = integration.get(key)
                    if isinstance(value, str) and value.startswith('env:'):
                        required_vars.append(value[4:])

        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing_vars)}\n"
                f"Please ensure these variables are set in your .env file or environment."
            )

    def _load_flask_config(self) -> None:
        """Load Flask application and connector settings."""
        self.FLASK_CONFIG = {
            'SECRET_KEY': os.getenv('FLASK_SECRET_KEY'),
            'DEBUG': os.getenv('FLASK_DEBUG', 'False').lower() == 'true',
            'HOST': os.getenv('FLASK_HOST', '127.0.0.1'),
            'PORT': int(os.getenv('FLASK_PORT', '5000')),
            'REDIS_URL': os.getenv('REDIS_URL'),
            'SESSION_COOKIE_HTTPONLY': True,
            'SESSION_COOKIE_SAMESITE': 'Lax'
        }

        try:
            nonce_lifetime = int(os.getenv('OAUTH_CONNECTOR_NONCE_LIFETIME', str(DEFAULT_NONCE_LIFETIME)))
        except ValueError:
            raise ConfigurationError("OAUTH_CONNECTOR_NONCE_LIFETIME must be an integer number of seconds")

        self.CONNECTOR_CONFIG = {
            'BASE_URL': os.getenv(
                'OAUTH_CONNECTOR_BASE_URL',
                f"https://{self.FLASK_CONFIG['HOST']}:{self.FLASK_CONFIG['PORT']}"
            ),
            'ACTION_PATH': os.getenv('OAUTH_CONNECTOR_ACTION_PATH', DEFAULT_ACTION_PATH),
            'NONCE_LIFETIME': nonce_lifetime
        }

    def _load_integration_configurations(self) -> None:
        """Load integration configurations from JSON file with environment variable resolution."""
        try:
            with open(self.integrations_config_path, 'r') as f:
                config_data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Integration configuration file not found: {self.integrations_config_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in integration configuration file: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError("Integration configuration file must contain a JSON object")

        self.INTEGRATION_CONFIGS = config_data.get('integrations', {})

        self.OAUTH_CONFIG = {}
        for name, integration in self.INTEGRATION_CONFIGS.items():
            if not isinstance(integration, dict):
                raise ConfigurationError(f"Configuration for integration {name} must be an object")
            processed = self._process_integration_config(name, integration.copy())
            processed.setdefault('settings_name', name)
            self.OAUTH_CONFIG[name] = processed

    def _process_integration_config(self, name: str, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve ``env:`` references in an integration's top-level values.

        Args:
            name: Integration name
            config: Raw integration configuration dictionary

        Returns:
            Processed configuration with environment variables resolved
        """
        processed_config = {}

        for key, value in config.items():
            if isinstance(value, str) and value.startswith('env:'):
                env_var_name = value[4:]
                env_value = os.getenv(env_var_name)
                if env_value is None and config.get('enabled', True):
                    raise ConfigurationError(f"Environment variable {env_var_name} not found for integration {name}")
                processed_config[key] = env_value
            else:
                processed_config[key] = value

        return processed_config

    def get_integration_config(self, name: str) -> Dict[str, Any]:
        """
        Get the resolved configuration of one integration.

        Raises:
            ConfigurationError: If the integration is unknown or disabled
        """
        if name not in self.OAUTH_CONFIG:
            raise ConfigurationError(f"Unknown integration: {name}")

        if not self.is_integration_enabled(name):
            raise ConfigurationError(f"Integration is disabled: {name}")

        return self.OAUTH_CONFIG[name]

    def get_enabled_integrations(self) -> List[str]:
        return [
            name for name, integration in self.INTEGRATION_CONFIGS.items()
            if integration.get('enabled', True)
        ]

    def is_integration_enabled(self, name: str) -> bool:
        if name not in self.INTEGRATION_CONFIGS:
            return False
        return self.INTEGRATION_CONFIGS[name].get('enabled', True)

    def get_flask_config(self) -> Dict[str, Any]:
        return self.FLASK_CONFIG.copy()

    def get_connector_config(self) -> Dict[str, Any]:
        return self.CONNECTOR_CONFIG.copy()

    def get_action_endpoint(self) -> str:
        """
        Absolute URL of the generic action endpoint providers call back to.

        Returns:
            ``<BASE_URL><ACTION_PATH>``
        """
        base_url = self.CONNECTOR_CONFIG['BASE_URL'].rstrip('/')
        action_path = '/' + self.CONNECTOR_CONFIG['ACTION_PATH'].lstrip('/')
        return f"{base_url}{action_path}"


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, creating it on first use.

    Raises:
        ConfigurationError: If the configuration cannot be loaded
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
