"""REST and WebSocket transports"""

from .http import SymbolRestClient
from .ws import Listener, Subscription, ws_url_from_http

__all__ = [
    "Listener",
    "Subscription",
    "SymbolRestClient",
    "ws_url_from_http",
]
