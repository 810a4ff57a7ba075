"""Request-scoped context for log lines.

The request middleware stores the request id and the identity dependency
stores the authenticated agent; the logging filter reads both.
"""

from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
_current_agent_id: ContextVar[Optional[str]] = ContextVar('agent_id', default=None)


def set_current_agent_id(agent_id: Optional[str]) -> None:
    """Set the authenticated agent for the current request."""
    _current_agent_id.set(agent_id)


def get_current_agent_id() -> Optional[str]:
    """Get the authenticated agent for the current request, if any."""
    return _current_agent_id.get()
