"""
Resolution of referenced parameter names into concrete values.
"""

from typing import Dict, Any, Optional, Mapping
import logging


logger = logging.getLogger(__name__)

# The only parameter that may be taken from the incoming callback query.
CALLBACK_QUERY_PARAMS = ('code',)


class ArgResolver:
    """
    Resolves parameter names against an integration's configured values.

    Each name is looked up in ``all_args`` first. The authorization ``code`` is
    the exception: when it is not configured it is read from the query string
    of the request being handled. Names found in neither place are left out.
    """

    def __init__(self, all_args: Mapping[str, Any]):
        self.all_args = all_args

    def resolve(self, names: Any, query: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Resolve an ordered list of parameter names.

        Args:
            names: List or tuple of parameter names
            query: Query parameters of the current request

        Returns:
            Mapping of resolvable names to values, or None if ``names`` is not
            a list or tuple
        """
        if not isinstance(names, (list, tuple)):
            logger.error(f"Referenced parameters must be a list, got {type(names).__name__}")
            return None

        query = query or {}
        resolved = {}

        for name in names:
            if self.all_args.get(name) is not None:
                resolved[name] = self.all_args[name]
            elif name in CALLBACK_QUERY_PARAMS and query.get(name) is not None:
                resolved[name] = query[name]

        return resolved
