"""UDP session transport and its receive throttle."""

from .udp_client import DisconnectReason, ReceiveThrottle, SessionState, UdpSession

__all__ = ["DisconnectReason", "ReceiveThrottle", "SessionState", "UdpSession"]
