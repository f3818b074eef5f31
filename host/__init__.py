"""WebSocket host: exposes the table session to remote clients."""

from .server import HostServer, identity_from_hello

__all__ = ["HostServer", "identity_from_hello"]
