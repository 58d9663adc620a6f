"""
Tests for the signal system.
"""

import pytest

from stratmap.signals import Signal, SignalError, signal


class Emitter:
    @signal
    def changed(self, value, reason):
        """Emitted with a value and a reason."""


def test_emit_calls_callbacks_in_order():
    emitter = Emitter()
    calls = []
    emitter.changed.connect(lambda value, reason: calls.append(("first", value)))
    emitter.changed.connect(lambda value, reason: calls.append(("second", value)))

    emitter.changed(1, "test")

    assert calls == [("first", 1), ("second", 1)]


def test_signals_are_per_instance():
    a, b = Emitter(), Emitter()
    calls = []
    a.changed.connect(lambda value, reason: calls.append(value))

    b.changed.emit(2, "other")

    assert calls == []
    assert a.changed is a.changed
    assert a.changed is not b.changed


def test_wrong_arity_rejected():
    with pytest.raises(SignalError, match="expects 2"):
        Emitter().changed.connect(lambda value: None)


def test_connect_is_idempotent_and_disconnect():
    emitter = Emitter()
    calls = []

    def callback(value, reason):
        calls.append(value)

    emitter.changed.connect(callback)
    emitter.changed.connect(callback)
    emitter.changed(1, "x")
    assert calls == [1]
    assert emitter.changed.is_connected(callback)

    emitter.changed.disconnect(callback)
    emitter.changed(2, "x")
    assert calls == [1]
    assert emitter.changed.get_connections() == []


def test_callback_exception_propagates():
    emitter = Emitter()

    def fail(value, reason):
        raise ValueError(reason)

    emitter.changed.connect(fail)

    with pytest.raises(ValueError, match="bad"):
        emitter.changed(1, "bad")


def test_signal_cannot_be_reassigned():
    with pytest.raises(SignalError):
        Emitter().changed = Signal()


def test_disconnect_all():
    emitter = Emitter()
    emitter.changed.connect(lambda value, reason: None)

    emitter.changed.disconnect_all()

    assert emitter.changed.get_connections() == []
