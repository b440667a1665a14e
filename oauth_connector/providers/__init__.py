"""
OAuth integration engine for the connector.

Each integration is one OAuthProvider driven entirely by its ProviderConfig;
per-provider differences are expressed as configuration data rather than
subclasses.
"""

from .provider_config import ProviderConfig, PhaseSpec, PhaseData, ProviderConfigurationError
from .arg_resolver import ArgResolver
from .authorization import AuthorizationLinkBuilder, AuthorizeRequestHandler
from .token_exchange import TokenExchanger, ExchangeResult
from .oauth_provider import OAuthProvider
from .provider_manager import ProviderManager, ProviderManagerError

__all__ = [
    'ProviderConfig',
    'PhaseSpec',
    'PhaseData',
    'ArgResolver',
    'AuthorizationLinkBuilder',
    'AuthorizeRequestHandler',
    'TokenExchanger',
    'ExchangeResult',
    'OAuthProvider',
    'ProviderManager',
    'ProviderConfigurationError',
    'ProviderManagerError'
]
