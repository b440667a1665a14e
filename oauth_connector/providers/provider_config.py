"""
Declarative configuration for a single OAuth integration.

This module defines the validated configuration object every integration is
built from. Per-provider differences (dialog endpoint, token endpoint, which
parameters are sent and how) live entirely in the two phase specifications,
so no provider subclasses are needed.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Optional, Tuple, Mapping
from urllib.parse import quote_plus, urlparse


class ProviderConfigurationError(Exception):
    """Raised when integration configuration is invalid."""
    pass


SUPPORTED_METHODS = ('GET', 'POST')

REQUIRED_FIELDS = [
    'client_id',
    'client_secret',
    'settings_name',
    'oauth_url',
    'locate_domain',
    'request_args',
    'token_args',
]


@dataclass(frozen=True)
class PhaseData:
    """Parameter sources for one phase: names to resolve plus literal values."""
    referenced: Tuple[str, ...] = ()
    manual: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PhaseSpec:
    """
    Description of one HTTP call phase (authorization dialog or token exchange).

    Attributes:
        method: 'GET' or 'POST'
        service_name: Path segment appended to the base URL
        data: Referenced and manual parameters
        url: Optional replacement for the integration's base URL
    """
    method: str
    service_name: str
    data: PhaseData = field(default_factory=PhaseData)
    url: Optional[str] = None

    @property
    def is_post(self) -> bool:
        return self.method == 'POST'

    @classmethod
    def from_dict(cls, phase: str, raw: Any) -> 'PhaseSpec':
        """
        Build a phase specification from its dictionary form.

        Args:
            phase: Phase name used in error messages ('request_args' or 'token_args')
            raw: Dictionary with method, service_name, data and optional url

        Raises:
            ProviderConfigurationError: If the dictionary is malformed
        """
        if not isinstance(raw, dict):
            raise ProviderConfigurationError(f"{phase} must be a mapping")

        method = str(raw.get('method') or '').upper()
        if method not in SUPPORTED_METHODS:
            raise ProviderConfigurationError(
                f"{phase}.method must be one of {', '.join(SUPPORTED_METHODS)}, got {raw.get('method')!r}"
            )

        service_name = raw.get('service_name')
        if not service_name or not isinstance(service_name, str):
            raise ProviderConfigurationError(f"{phase}.service_name is required")

        data = raw.get('data') or {}
        if not isinstance(data, dict):
            raise ProviderConfigurationError(f"{phase}.data must be a mapping")

        referenced = data.get('referenced', [])
        if not isinstance(referenced, (list, tuple)):
            raise ProviderConfigurationError(f"{phase}.data.referenced must be a list of parameter names")
        for name in referenced:
            if not isinstance(name, str):
                raise ProviderConfigurationError(
                    f"{phase}.data.referenced entries must be strings, got {name!r}"
                )

        manual = data.get('manual') or {}
        if not isinstance(manual, dict):
            raise ProviderConfigurationError(f"{phase}.data.manual must be a mapping")

        return cls(
            method=method,
            service_name=service_name,
            data=PhaseData(
                referenced=tuple(referenced),
                manual=MappingProxyType(dict(manual))
            ),
            url=raw.get('url') or None
        )


class ProviderConfig:
    """
    Validated configuration for one OAuth integration.

    Everything except the client credentials is fixed at construction. The
    derived ``redirect_uri`` points at the host's action endpoint with the
    action ``<settings_name>_authorize_callback`` and is stored URL-encoded.
    ``all_args`` holds every configured value plus ``redirect_uri`` and is the
    source referenced parameters are resolved from.
    """

    def __init__(self, args: Dict[str, Any], action_endpoint: str):
        """
        Initialize the integration configuration.

        Args:
            args: Raw integration configuration dictionary
            action_endpoint: Absolute URL of the host's generic action endpoint

        Raises:
            ProviderConfigurationError: If a required field is missing or invalid
        """
        self._validate(args, action_endpoint)

        self._client_id = args['client_id'] or ''
        self._client_secret = args['client_secret'] or ''
        self.settings_name = args['settings_name']
        self.oauth_url = args['oauth_url'].rstrip('/')
        self.locate_domain = args['locate_domain']
        self.return_url = args.get('return_url') or ''
        self.action_endpoint = action_endpoint
        self.request_args = PhaseSpec.from_dict('request_args', args['request_args'])
        self.token_args = PhaseSpec.from_dict('token_args', args['token_args'])
        self.redirect_uri = quote_plus(self.callback_url)

        all_args = dict(args)
        all_args['redirect_uri'] = self.redirect_uri
        self._all_args = MappingProxyType(all_args)

    @staticmethod
    def _validate(args: Any, action_endpoint: str) -> None:
        if not isinstance(args, dict):
            raise ProviderConfigurationError("Integration configuration must be a mapping")

        missing_fields = [name for name in REQUIRED_FIELDS if name not in args]
        if missing_fields:
            name = args.get('settings_name', 'unknown')
            raise ProviderConfigurationError(
                f"Missing required configuration for integration {name}: {', '.join(missing_fields)}"
            )

        for name in ('client_id', 'client_secret'):
            if args[name] is not None and not isinstance(args[name], str):
                raise ProviderConfigurationError(f"{name} must be a string")

        settings_name = args['settings_name']
        if not settings_name or not isinstance(settings_name, str):
            raise ProviderConfigurationError("settings_name must be a non-empty string")

        if not ProviderConfig._is_valid_url(args['oauth_url']):
            raise ProviderConfigurationError(f"Invalid oauth_url for integration {settings_name}: {args['oauth_url']}")

        if not ProviderConfig._is_valid_url(action_endpoint):
            raise ProviderConfigurationError(f"Invalid action endpoint for integration {settings_name}: {action_endpoint}")

    @staticmethod
    def _is_valid_url(url: Any) -> bool:
        if not url or not isinstance(url, str):
            return False
        result = urlparse(url)
        return bool(result.scheme and result.netloc)

    @property
    def client_id(self) -> str:
        return self._client_id

    @client_id.setter
    def client_id(self, value: str) -> None:
        self._client_id = value or ''

    @property
    def client_secret(self) -> str:
        return self._client_secret

    @client_secret.setter
    def client_secret(self, value: str) -> None:
        self._client_secret = value or ''

    @property
    def all_args(self) -> Mapping[str, Any]:
        return self._all_args

    @property
    def authorize_action(self) -> str:
        return f"{self.settings_name}_authorize"

    @property
    def callback_action(self) -> str:
        return f"{self.settings_name}_authorize_callback"

    @property
    def nonce_field_name(self) -> str:
        return f"{self.settings_name}_authorize_nonce"

    @property
    def callback_url(self) -> str:
        """Un-encoded URL the provider is told to send the user back to."""
        separator = '&' if '?' in self.action_endpoint else '?'
        return f"{self.action_endpoint}{separator}action={self.callback_action}"

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(settings_name='{self.settings_name}', "
                f"oauth_url='{self.oauth_url}')")
