# scheduler.py
"""
Cooperative, single-threaded frame scheduling and event dispatch.

Everything here runs on one thread: a frame callback or an event handler
always runs to completion before the next one starts, so nothing in this
module takes a lock.
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, NamedTuple, Optional

FrameCallback = Callable[[], None]
EventHandler = Callable[[Any], None]

POINTER_MOVE = "pointermove"
POINTER_LEAVE = "pointerleave"
RESIZE = "resize"

# --- Data Contracts ---
#
# class FrameScheduler:
#   - request_frame(callback) -> int: handle of a one-shot request.
#   - cancel_frame(handle) -> None: idempotent; unknown handles ignored.
#   - tick() -> int: runs every request pending when the tick started.
#     Requests made during a tick run on the next tick.
#
# class FrameLoop:
#   - start(): requests the first frame.
#   - stop(): cancels the token synchronously and the pending request.
#   - Invariants: after stop() the body never runs again. A body that
#     raises is logged, stops the loop and is reported to on_error; the
#     exception does not reach tick().
#
# class EventSource:
#   - add_listener / remove_listener / dispatch(event_type, event) -> int.


class FrameScheduler:
    """
    Holds one-shot frame requests and runs them once per tick.
    """
    def __init__(self):
        self._pending: Dict[int, FrameCallback] = {}
        self._next_handle = 1
        self.ticks = 0

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def tick(self) -> int:
        """Runs the callbacks that were pending when this tick began."""
        self.ticks += 1
        batch = list(self._pending)
        ran = 0
        for handle in batch:
            # An earlier callback in this batch may have cancelled this one.
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback()
            ran += 1
        return ran


class CancellationToken:
    """A flag that can only go from live to cancelled."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FrameLoop:
    """
    Runs a body once per frame until stopped.

    The token is checked before every frame and the next frame is only
    requested while it is live, so stopping takes effect immediately even
    if a request is already queued.
    """
    def __init__(
        self, scheduler: FrameScheduler, body: FrameCallback, name: str = "frame-loop",
        on_error: Optional[Callable[[Exception], None]] = None
    ):
        self.scheduler = scheduler
        self.body = body
        self.name = name
        self.on_error = on_error
        self.token = CancellationToken()
        self.frames = 0
        self._handle: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and not self.token.cancelled

    def start(self) -> None:
        if self.token.cancelled:
            raise RuntimeError(f"{self.name} was stopped and cannot be restarted.")
        if self._handle is None:
            self._handle = self.scheduler.request_frame(self._frame)
            logging.debug(f"{self.name} started.")

    def stop(self) -> None:
        if self.token.cancelled:
            return
        self.token.cancel()
        self.scheduler.cancel_frame(self._handle)
        self._handle = None
        logging.debug(f"{self.name} stopped after {self.frames} frames.")

    def _frame(self) -> None:
        self._handle = None
        if self.token.cancelled:
            return
        self.frames += 1
        try:
            self.body()
        except Exception as e:
            # A failing body ends the loop; the rest of the tick carries on.
            logging.exception(f"{self.name} failed on frame {self.frames}: {e}")
            self.stop()
            if self.on_error is not None:
                self.on_error(e)
            return
        if not self.token.cancelled:
            self._handle = self.scheduler.request_frame(self._frame)


class EventSource:
    """
    A registry of listeners keyed by event type.
    """
    def __init__(self):
        self._listeners: Dict[str, List[EventHandler]] = defaultdict(list)

    def add_listener(self, event_type: str, handler: EventHandler) -> None:
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def remove_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event_type: str, event: Any = None) -> int:
        """Calls every listener for the event type; returns how many ran."""
        handlers = list(self._listeners.get(event_type, ()))
        for handler in handlers:
            handler(event)
        return len(handlers)


class PointerEvent(NamedTuple):
    """Pointer position in window coordinates."""
    x: float
    y: float


class ResizeEvent(NamedTuple):
    """New window size; listeners re-read their own container size."""
    width: int
    height: int
