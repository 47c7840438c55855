from __future__ import annotations

import socket
import time
from typing import Callable, Iterator

import pytest

from udplink import UdpSession, UdpSessionConfig


@pytest.fixture()
def peer() -> Iterator[socket.socket]:
    """Remote end of a session, bound on loopback."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    try:
        yield sock
    finally:
        sock.close()


@pytest.fixture()
def session_config() -> UdpSessionConfig:
    return UdpSessionConfig(timeout_ms=2000, local_host="127.0.0.1")


@pytest.fixture()
def make_session(session_config: UdpSessionConfig) -> Iterator[Callable[..., UdpSession]]:
    sessions: list[UdpSession] = []

    def factory(**options) -> UdpSession:
        session = UdpSession(session_config, **options)
        sessions.append(session)
        return session

    yield factory
    for session in sessions:
        session.disconnect()


@pytest.fixture()
def wait_until() -> Callable[..., bool]:
    def _wait(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
