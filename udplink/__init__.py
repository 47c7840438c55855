"""Public package surface for udplink."""

from .configs import UdpSessionConfig
from .errors import BindError, ResolutionError, SendError, UdpLinkError
from .events import EventHook
from .transport import DisconnectReason, ReceiveThrottle, SessionState, UdpSession

__all__ = [
    "BindError",
    "DisconnectReason",
    "EventHook",
    "ReceiveThrottle",
    "ResolutionError",
    "SendError",
    "SessionState",
    "UdpLinkError",
    "UdpSession",
    "UdpSessionConfig",
]
