"""
Signal system for the stratmap item store.

Signals are declared with a decorator on the emitting class; the decorated
method's signature documents the payload and is used to check connected
callbacks. Emission is synchronous and exceptions raised by a callback
propagate to the emitter, so a failing listener aborts the mutation that
emitted the signal.

Usage:
    class ItemStore:
        @signal
        def item_created(self, item: Item) -> None:
            '''Emitted after an item is persisted.'''

    store = ItemStore()
    store.item_created.connect(engine.on_item_created)
    store.item_created(item)  # or store.item_created.emit(item)
"""
import inspect
from typing import Any, Callable, List


class SignalError(Exception):
    """Exception raised for signal-related errors."""
    pass


class Signal:
    """
    A signal that can have callbacks connected to it.

    Signals are callable - calling the signal emits it.
    """

    def __init__(self, name: str = "", signature: Any = None) -> None:
        self.name = name
        self._callbacks: List[Callable] = []
        self._param_count = None

        if signature:
            params = inspect.signature(signature).parameters
            self._param_count = len([p for p in params if p != 'self'])

    def connect(self, callback: Callable) -> None:
        """
        Connect a callback to this signal.

        Args:
            callback: Function to call when signal is emitted.

        Raises:
            SignalError: If callback takes a different number of parameters.
        """
        if callback in self._callbacks:
            return

        if self._param_count is not None:
            try:
                callback_params = inspect.signature(callback).parameters
            except (ValueError, TypeError):
                # Built-ins can't be inspected
                callback_params = None
            if callback_params is not None and len(callback_params) != self._param_count:
                raise SignalError(
                    f"Callback for signal '{self.name}' has {len(callback_params)} "
                    f"parameters, but signal expects {self._param_count}."
                )

        self._callbacks.append(callback)

    def disconnect(self, callback: Callable) -> None:
        """Disconnect a callback from this signal."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def disconnect_all(self) -> None:
        """Disconnect all callbacks from this signal."""
        self._callbacks.clear()

    def emit(self, *args, **kwargs) -> None:
        """Emit the signal, calling all connected callbacks in connection order."""
        for callback in list(self._callbacks):
            callback(*args, **kwargs)

    def __call__(self, *args, **kwargs) -> None:
        self.emit(*args, **kwargs)

    def is_connected(self, callback: Callable) -> bool:
        """Check if a callback is connected to this signal."""
        return callback in self._callbacks

    def get_connections(self) -> List[Callable]:
        """Get list of connected callbacks."""
        return list(self._callbacks)


class SignalDescriptor:
    """
    Descriptor that provides per-instance Signal objects.

    Each store instance gets its own Signal, so connecting an engine to one
    store never wires it to another.
    """

    def __init__(self, name: str, signature: Any = None) -> None:
        self.name = name
        self.signature = signature
        self.attr_name = f"_signal_{name}"

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        signal_obj = obj.__dict__.get(self.attr_name)
        if signal_obj is None:
            signal_obj = Signal(name=self.name, signature=self.signature)
            obj.__dict__[self.attr_name] = signal_obj
        return signal_obj

    def __set__(self, obj, value) -> None:
        raise SignalError(f"Cannot reassign signal '{self.name}'")


def signal(func=None):
    """
    Decorator to declare a method as a signal.

    Args:
        func: The method being decorated.

    Returns:
        SignalDescriptor that creates per-instance Signal objects.
    """
    if func is None:
        # Called as @signal() with parentheses
        def decorator(f):
            return signal(f)
        return decorator

    return SignalDescriptor(name=func.__name__, signature=func)
