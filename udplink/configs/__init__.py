"""Configuration models for UDP sessions."""

from .session import DEFAULT_RECEIVE_RATE_MS, DEFAULT_TIMEOUT_MS, MAX_UDP_PAYLOAD, UdpSessionConfig

__all__ = ["DEFAULT_RECEIVE_RATE_MS", "DEFAULT_TIMEOUT_MS", "MAX_UDP_PAYLOAD", "UdpSessionConfig"]
