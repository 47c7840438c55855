"""Pydantic configuration object describing a UDP session."""

from __future__ import annotations

import ipaddress

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_TIMEOUT_MS = 500
DEFAULT_RECEIVE_RATE_MS = 0
MAX_UDP_PAYLOAD = 65535


class UdpSessionConfig(BaseModel):
    """Runtime knobs for :class:`udplink.transport.UdpSession`.

    ``local_port`` of 0 binds an ephemeral port; ``None`` binds the same port
    number as the remote endpoint. ``local_host`` of ``None`` binds the
    wildcard address of the remote endpoint's family.
    """

    model_config = ConfigDict(extra="forbid")

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    receive_rate_ms: int = DEFAULT_RECEIVE_RATE_MS
    local_host: str | None = None
    local_port: int | None = 0
    reuse_address: bool = True
    max_datagram_size: int = MAX_UDP_PAYLOAD
    join_timeout_ms: int | None = None

    @field_validator("timeout_ms")
    @classmethod
    def _ensure_positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout_ms must be greater than zero")
        return value

    @field_validator("receive_rate_ms")
    @classmethod
    def _ensure_rate_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("receive_rate_ms cannot be negative")
        return value

    @field_validator("local_host")
    @classmethod
    def _ensure_valid_ip(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ipaddress.ip_address(value)
        except ValueError as exc:
            raise ValueError("local_host must be a valid IPv4/IPv6 address") from exc
        return value

    @field_validator("local_port")
    @classmethod
    def _ensure_port(cls, value: int | None) -> int | None:
        if value is not None and not (0 <= value < 65536):
            raise ValueError("local_port must be within 0-65535")
        return value

    @field_validator("max_datagram_size")
    @classmethod
    def _ensure_datagram_size(cls, value: int) -> int:
        if not (0 < value <= MAX_UDP_PAYLOAD):
            raise ValueError(f"max_datagram_size must be within 1-{MAX_UDP_PAYLOAD}")
        return value

    @field_validator("join_timeout_ms")
    @classmethod
    def _ensure_join_timeout(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError("join_timeout_ms cannot be negative")
        return value

    @property
    def join_timeout_sec(self) -> float:
        """Upper bound for waiting on a receive loop that is shutting down."""

        if self.join_timeout_ms is not None:
            return self.join_timeout_ms / 1000.0
        return self.timeout_ms / 1000.0 + 1.0

    def with_overrides(self, **options) -> "UdpSessionConfig":
        """Return a validated copy with ``options`` applied."""

        if not options:
            return self
        return type(self)(**{**self.model_dump(), **options})
