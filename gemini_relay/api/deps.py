"""
Request dependencies shared by the relay routers.
"""

from typing import Optional
from fastapi import Header, Request

from ..core import RelayService
from ..core.errors import ConfigurationError


def get_relay(request: Request) -> RelayService:
    """
    Relay service built at startup.

    Raises:
        ConfigurationError: the provider credential is missing or the client
            failed to initialize; raised before any registry or broker access
    """
    relay: Optional[RelayService] = getattr(request.app.state, "relay", None)
    if relay is None:
        raise ConfigurationError()
    return relay


def get_session_header(
    x_session_id: Optional[str] = Header(None, description="Conversation to continue")
) -> Optional[str]:
    return x_session_id
