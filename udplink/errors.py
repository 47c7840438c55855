"""Exceptions raised by :class:`udplink.transport.UdpSession`."""

from __future__ import annotations


class UdpLinkError(Exception):
    """Base class for errors surfaced to callers of a session."""


class ResolutionError(UdpLinkError, ValueError):
    """The remote address or port could not be parsed."""


class BindError(UdpLinkError):
    """The local socket could not be opened, bound or filtered to the peer."""


class SendError(UdpLinkError):
    """The transport rejected an outgoing datagram."""
