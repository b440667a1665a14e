"""
Access token persistence for OAuth integrations.

This module provides the key-value persistence interface the host application
supplies, an in-memory and a Redis implementation of it, and the TokenStore
that keeps one access token per integration with a lazily loaded cache.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging
import threading

import redis


class KeyValueStore(ABC):
    """Persistence backend for integration options."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used when no Redis server is configured."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class RedisKeyValueStore(KeyValueStore):
    """
    Store backed by a Redis server.

    Values are kept as plain strings under ``<prefix><key>``.
    """

    def __init__(self, client: redis.Redis, prefix: str = 'oauth_connector:'):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> 'RedisKeyValueStore':
        return cls(redis.from_url(url), **kwargs)

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self.prefix + key)
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return value

    def set(self, key: str, value: str) -> None:
        self.client.set(self.prefix + key, value)


class TokenStore:
    """
    Single access token storage for one integration.

    The token is persisted under ``<settings_name>_access_token`` and cached
    in memory after the first successful read or write. There is no locking
    across processes: concurrent exchanges for the same integration resolve
    as last writer wins.
    """

    TOKEN_OPTION = 'access_token'

    def __init__(self, settings_name: str, kv_store: KeyValueStore):
        self.settings_name = settings_name
        self.kv_store = kv_store
        self._access_token: Optional[str] = None
        self.logger = logging.getLogger(f"{__name__}.{settings_name}")

    def option_key(self, name: str) -> str:
        return f"{self.settings_name}_{name}"

    def get_option(self, name: str, default: Any = None) -> Any:
        """
        Read a namespaced option from the backing store.

        Args:
            name: Option name without the integration prefix
            default: Value returned when the option is absent

        Returns:
            Stored value or ``default``
        """
        value = self.kv_store.get(self.option_key(name))
        return default if value is None else value

    def set_option(self, name: str, value: Any) -> None:
        """Write a namespaced option to the backing store."""
        self.kv_store.set(self.option_key(name), value)

    def set_token(self, access_token: Optional[str]) -> None:
        """
        Replace the stored access token.

        Empty values are ignored so a failed exchange never clears a working
        token.
        """
        if not access_token:
            return

        self._access_token = access_token
        self.set_option(self.TOKEN_OPTION, access_token)
        self.logger.info(f"Stored access token for {self.settings_name}")

    def has_token(self) -> bool:
        """
        Check whether a token is available, loading it from the store if needed.

        Returns:
            True if a non-empty token is cached or could be loaded
        """
        if self._access_token:
            return True

        stored = self.get_option(self.TOKEN_OPTION)
        if not stored:
            return False

        self._access_token = stored
        return True

    def get_token(self) -> Optional[str]:
        """Return the access token, or None if none has been obtained."""
        if self.has_token():
            return self._access_token
        return None
