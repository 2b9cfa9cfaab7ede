# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from observability import logger
from session.observers import ObserverList


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


def test_callbacks_run_in_registration_order() -> None:
    observers: ObserverList[int] = ObserverList("test")
    calls: list[str] = []

    observers.add(lambda v: calls.append(f"a{v}"))
    observers.add(lambda v: calls.append(f"b{v}"))

    observers.notify(1)

    assert calls == ["a1", "b1"]


def test_raising_callback_is_isolated(quiet_logs: list[str]) -> None:
    observers: ObserverList[int] = ObserverList("test")
    calls: list[int] = []

    def explode(_: int) -> None:
        raise ValueError("bad observer")

    observers.add(explode)
    observers.add(calls.append)

    observers.notify(7)

    assert calls == [7]
    assert len(quiet_logs) == 1
    assert "bad observer" in quiet_logs[0]


def test_subscription_cancel() -> None:
    observers: ObserverList[int] = ObserverList("test")
    calls: list[int] = []

    sub = observers.add(calls.append)
    assert sub.active

    sub.cancel()
    sub.cancel()
    observers.notify(1)

    assert not sub.active
    assert calls == []
    assert len(observers) == 0


def test_callback_may_cancel_itself_during_notify() -> None:
    observers: ObserverList[int] = ObserverList("test")
    calls: list[str] = []
    subs = {}

    def once(_: int) -> None:
        calls.append("once")
        subs["once"].cancel()

    subs["once"] = observers.add(once)
    observers.add(lambda _: calls.append("always"))

    observers.notify(1)
    observers.notify(2)

    assert calls == ["once", "always", "always"]
