"""
Explicit request data passed to the flow handlers.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass
class RequestContext:
    """Query parameters and posted form fields of one incoming request."""
    query: Dict[str, Any] = field(default_factory=dict)
    form: Dict[str, Any] = field(default_factory=dict)
    remote_addr: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def action(self) -> Optional[str]:
        """Action name, taken from the posted form before the query string."""
        return self.form.get('action') or self.query.get('action')

    @classmethod
    def from_flask_request(cls, request) -> 'RequestContext':
        """
        Build a context from a Flask request.

        Args:
            request: Flask request object

        Returns:
            RequestContext holding plain dictionaries
        """
        return cls(
            query=request.args.to_dict(),
            form=request.form.to_dict(),
            remote_addr=request.remote_addr,
            user_agent=request.headers.get('User-Agent')
        )
