from __future__ import annotations

import pytest

from udplink import EventHook


def test_fire_calls_subscribers_in_order() -> None:
    hook = EventHook("data_received")
    calls: list[tuple[str, bytes]] = []
    hook.subscribe(lambda payload: calls.append(("first", payload)))
    hook.subscribe(lambda payload: calls.append(("second", payload)))

    hook.fire(b"hi")

    assert calls == [("first", b"hi"), ("second", b"hi")]
    assert len(hook) == 2


def test_unsubscribe_by_token() -> None:
    hook = EventHook("connected")
    calls: list[str] = []
    token = hook.subscribe(lambda: calls.append("x"))

    assert hook.unsubscribe(token)
    assert not hook.unsubscribe(token)
    hook.fire()
    assert calls == []


def test_subscriber_may_unsubscribe_while_firing() -> None:
    hook = EventHook("disconnected")
    calls: list[str] = []
    tokens: dict[str, int] = {}

    def once() -> None:
        calls.append("once")
        hook.unsubscribe(tokens["once"])

    tokens["once"] = hook.subscribe(once)
    hook.subscribe(lambda: calls.append("always"))

    hook.fire()
    hook.fire()
    assert calls == ["once", "always", "always"]


def test_subscriber_errors_propagate() -> None:
    hook = EventHook("data_sent")

    def broken(_payload: bytes) -> None:
        raise RuntimeError("boom")

    hook.subscribe(broken)
    with pytest.raises(RuntimeError):
        hook.fire(b"ping")


def test_rejects_non_callable() -> None:
    hook = EventHook("connected")
    with pytest.raises(TypeError):
        hook.subscribe("not callable")  # type: ignore[arg-type]
