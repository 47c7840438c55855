"""UDP transport utilities."""

from __future__ import annotations

import enum
import ipaddress
import logging
from logging import Formatter, BASIC_FORMAT
import socket
import threading
from typing import Any

from ..configs import UdpSessionConfig
from ..errors import BindError, ResolutionError, SendError
from ..events import EventHook
from ..utils import elapsed_ms, monotonic_ms

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setLevel(logging.INFO)
handler.setFormatter(Formatter(BASIC_FORMAT))
logger.addHandler(handler)

Endpoint = tuple[str, int]


class ReceiveThrottle:
    """Time based gate that spaces out notifications without blocking.

    Unlike a sleeping rate limiter it never delays the caller: a datagram
    that arrives inside the period is simply not announced.
    """

    def __init__(self, *, period_ms: float):
        self.period_ms = period_ms
        self._last: float | None = None

    def ready(self, now_ms: float) -> bool:
        if self.period_ms <= 0 or self._last is None:
            return True
        return now_ms - self._last > self.period_ms

    def mark(self, now_ms: float) -> None:
        self._last = now_ms

    def reset(self) -> None:
        self._last = None

    @property
    def last_ms(self) -> float | None:
        return self._last


class SessionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class DisconnectReason(enum.Enum):
    REQUESTED = "requested"
    LIVENESS_TIMEOUT = "liveness_timeout"
    TRANSPORT_ERROR = "transport_error"


class UdpSession:
    """One UDP socket filtered to a single peer, with liveness tracking.

    ``connect`` binds a local socket, restricts it to datagrams from the
    remote endpoint and starts a background receive loop. The loop drops the
    connection when nothing arrives for ``timeout_ms`` or the socket fails.
    Subscribers are notified through four hooks, always on the thread that
    observed the event:

    * ``on_connected()`` and ``on_data_sent(payload)`` on the caller's thread,
    * ``on_data_received(payload)`` on the receive loop's thread,
    * ``on_disconnected()`` on whichever thread tore the connection down.

    ``receive_rate_ms`` throttles ``on_data_received``: datagrams that arrive
    sooner than that after the previous notification are consumed and
    dropped. A session can be connected again after it was disconnected.
    """

    def __init__(self, config: UdpSessionConfig | None = None, **options: Any):
        self.config = (config or UdpSessionConfig()).with_overrides(**options)
        self.on_connected = EventHook("connected")
        self.on_disconnected = EventHook("disconnected")
        self.on_data_received = EventHook("data_received")
        self.on_data_sent = EventHook("data_sent")
        self.last_disconnect_reason: DisconnectReason | None = None
        self._throttle = ReceiveThrottle(period_ms=self.config.receive_rate_ms)
        self._state_lock = threading.Lock()
        self._state = SessionState.DISCONNECTED
        self._sock: socket.socket | None = None
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._remote_endpoint: Endpoint | None = None
        self._local_endpoint: Endpoint | None = None
        self._last_received_at = monotonic_ms()

    # ------------------------------------------------------------------ #
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    @property
    def remote_endpoint(self) -> Endpoint | None:
        return self._remote_endpoint

    @property
    def local_endpoint(self) -> Endpoint | None:
        """Bound ``(host, port)`` of the socket, ``None`` while disconnected."""

        return self._local_endpoint if self.is_connected else None

    @property
    def timeout_ms(self) -> int:
        return self.config.timeout_ms

    @property
    def receive_rate_ms(self) -> float:
        return self._throttle.period_ms

    @property
    def last_received_at(self) -> float:
        """Monotonic time (ms) of the last datagram, or of the last connect."""

        return self._last_received_at

    @property
    def last_notified_at(self) -> float | None:
        return self._throttle.last_ms

    def set_receive_rate(self, rate_ms: float) -> None:
        if rate_ms < 0:
            raise ValueError("receive rate cannot be negative")
        self._throttle.period_ms = rate_ms

    # ------------------------------------------------------------------ #
    def connect(self, address: str, port: int) -> None:
        with self._state_lock:
            if self._state is not SessionState.DISCONNECTED:
                return
            self._state = SessionState.CONNECTING

        try:
            remote, family = self._resolve(address, port)
            sock = self._open_socket(remote, family)
        except BaseException:
            with self._state_lock:
                self._state = SessionState.DISCONNECTED
            raise

        stop = threading.Event()
        with self._state_lock:
            self._sock = sock
            self._stop = stop
            self._remote_endpoint = remote
            self._local_endpoint = sock.getsockname()[:2]
            self._last_received_at = monotonic_ms()
            self._throttle.reset()
            self._state = SessionState.CONNECTED
        logger.info(
            "UDP session connected to %s:%s (local %s:%s, timeout %d ms).",
            remote[0],
            remote[1],
            self._local_endpoint[0],
            self._local_endpoint[1],
            self.config.timeout_ms,
        )

        try:
            self.on_connected.fire()
        except Exception:
            self._teardown(stop, DisconnectReason.REQUESTED)
            raise
        if stop.is_set():
            # A subscriber disconnected from inside on_connected.
            return

        thread = threading.Thread(
            target=self._receive_loop,
            args=(sock, stop),
            name=f"udplink-rx-{remote[0]}:{remote[1]}",
            daemon=True,
        )
        self._thread = thread
        thread.start()

    def disconnect(self) -> None:
        self._teardown(None, DisconnectReason.REQUESTED)

    def close(self) -> None:
        self.disconnect()

    def send(self, data: bytes) -> None:
        sock = self._sock
        if not self.is_connected or sock is None:
            return

        payload = bytes(memoryview(data))
        try:
            sock.send(payload)
        except OSError as exc:
            host, port = self._remote_endpoint or ("?", 0)
            raise SendError(
                f"Could not send {len(payload)} byte datagram to {host}:{port}: {exc}"
            ) from exc
        logger.debug("Sent UDP datagram (%d bytes)", len(payload))
        self.on_data_sent.fire(payload)

    def __enter__(self) -> "UdpSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        remote = self._remote_endpoint
        target = f"{remote[0]}:{remote[1]}" if remote else "-"
        return f"UdpSession(remote={target}, state={self._state.value})"

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _resolve(address: str, port: int) -> tuple[Endpoint, int]:
        if not isinstance(address, str):
            raise ResolutionError(f"Remote address must be a string, got {address!r}")
        try:
            ip = ipaddress.ip_address(address.strip())
        except ValueError as exc:
            raise ResolutionError(f"Cannot parse remote address '{address}'") from exc
        if isinstance(port, bool) or not isinstance(port, int) or not (0 < port < 65536):
            raise ResolutionError(f"Remote port must be within 1-65535, got {port!r}")
        family = socket.AF_INET6 if ip.version == 6 else socket.AF_INET
        return (str(ip), port), family

    def _open_socket(self, remote: Endpoint, family: int) -> socket.socket:
        local_host = self.config.local_host
        if local_host is None:
            local_host = "::" if family == socket.AF_INET6 else "0.0.0.0"
        local_port = remote[1] if self.config.local_port is None else self.config.local_port

        try:
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError as exc:
            raise BindError(f"Could not open UDP socket: {exc}") from exc
        try:
            if self.config.reuse_address:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((local_host, local_port))
            sock.connect(remote)
            sock.settimeout(self.config.timeout_ms / 1000.0)
        except OSError as exc:
            sock.close()
            raise BindError(
                f"Could not bind {local_host}:{local_port} for peer {remote[0]}:{remote[1]}: {exc}"
            ) from exc
        return sock

    def _teardown(self, stop: threading.Event | None, reason: DisconnectReason) -> bool:
        """Leave the connected state once; ``stop`` pins the connection lifetime."""

        with self._state_lock:
            if self._state is not SessionState.CONNECTED:
                return False
            if stop is not None and stop is not self._stop:
                return False
            self._state = SessionState.DISCONNECTED
            current_stop = self._stop
            sock, self._sock = self._sock, None
            thread, self._thread = self._thread, None
            self.last_disconnect_reason = reason

        if current_stop is not None:
            current_stop.set()
        if sock is not None:
            self._release(sock)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.config.join_timeout_sec)
            if thread.is_alive():
                logger.warning("Receive loop did not stop within %.2fs.", self.config.join_timeout_sec)

        remote = self._remote_endpoint or ("?", 0)
        logger.info("UDP session to %s:%s disconnected (%s).", remote[0], remote[1], reason.value)
        self.on_disconnected.fire()
        return True

    @staticmethod
    def _release(sock: socket.socket) -> None:
        # shutdown wakes a reader blocked in recv on the loop thread
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            sock.close()
        except OSError:
            pass

    def _liveness_expired(self) -> bool:
        return elapsed_ms(self._last_received_at) > self.config.timeout_ms

    def _receive_loop(self, sock: socket.socket, stop: threading.Event) -> None:
        remote = self._remote_endpoint
        while not stop.is_set():
            try:
                data = sock.recv(self.config.max_datagram_size)
            except socket.timeout:
                if stop.is_set():
                    break
                if self._liveness_expired():
                    logger.warning(
                        "No datagram from %s:%s for %d ms; disconnecting.",
                        remote[0],
                        remote[1],
                        self.config.timeout_ms,
                    )
                    self._teardown(stop, DisconnectReason.LIVENESS_TIMEOUT)
                    break
                continue
            except OSError as exc:
                if stop.is_set():
                    break
                logger.warning("UDP receive from %s:%s failed: %s", remote[0], remote[1], exc)
                self._teardown(stop, DisconnectReason.TRANSPORT_ERROR)
                break

            if stop.is_set():
                break

            now = monotonic_ms()
            self._last_received_at = now
            if not self._throttle.ready(now):
                logger.debug(
                    "Dropped UDP datagram (%d bytes) inside %s ms receive window",
                    len(data),
                    self._throttle.period_ms,
                )
                continue

            logger.debug("Received UDP datagram (%d bytes)", len(data))
            try:
                self.on_data_received.fire(data)
            except Exception:
                logger.exception("data_received subscriber failed; disconnecting.")
                self._teardown(stop, DisconnectReason.TRANSPORT_ERROR)
                break
            self._throttle.mark(monotonic_ms())
