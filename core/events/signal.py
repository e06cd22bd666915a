from __future__ import annotations

import inspect
import weakref
from threading import RLock
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

Callback = Callable[[T], None]


class _Slot(Generic[T]):
    __slots__ = ("_ref", "_strong")

    def __init__(self, callback: Callback, weak: bool) -> None:
        if weak and inspect.ismethod(callback):
            self._ref: Optional[weakref.WeakMethod] = weakref.WeakMethod(callback)
            self._strong: Optional[Callback] = None
        else:
            self._ref = None
            self._strong = callback

    def resolve(self) -> Optional[Callback]:
        if self._ref is not None:
            return self._ref()
        return self._strong

    def matches(self, callback: Callback) -> bool:
        resolved = self.resolve()
        if resolved is callback:
            return True
        try:
            return resolved == callback
        except ReferenceError:
            return False


class Signal(Generic[T]):
    """
    Minimal framework-agnostic signal/slot primitive.

    Bound methods connected with ``weak=True`` drop out once their owner is
    garbage collected; everything else stays until ``disconnect``.
    """

    def __init__(self) -> None:
        self._slots: list[_Slot[T]] = []
        self._lock: RLock = RLock()

    def connect(self, callback: Callback, *, weak: bool = False) -> None:
        with self._lock:
            if not any(slot.matches(callback) for slot in self._slots):
                self._slots.append(_Slot(callback, weak))

    def disconnect(self, callback: Callback) -> None:
        with self._lock:
            self._slots = [slot for slot in self._slots if not slot.matches(callback)]

    def receivers(self) -> int:
        with self._lock:
            self._slots = [slot for slot in self._slots if slot.resolve() is not None]
            return len(self._slots)

    def emit(self, payload: T) -> None:
        with self._lock:
            slots = list(self._slots)
        dead: list[_Slot[T]] = []
        for slot in slots:
            callback = slot.resolve()
            if callback is None:
                dead.append(slot)
                continue
            try:
                callback(payload)
            except ReferenceError:
                # weakref.proxy subscribers whose referent is gone
                dead.append(slot)
        if dead:
            with self._lock:
                self._slots = [slot for slot in self._slots if slot not in dead]


__all__ = ["Signal"]
