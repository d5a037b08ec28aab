"""
Binding Gate

🔒 Deferred work until the native handle exists:
A BindingGate belongs to one wrapper entity. Work that needs the native
handle is handed to ``run_when_bound``; until the handle exists the work is
queued, and once the platform is ready the gate constructs the handle
exactly once and replays the queue in FIFO order.

    UNBOUND -> PLATFORM_PENDING -> CONSTRUCTING -> BOUND

The NativeEventBridge plugs a gate into an EventCoordinator so that
listeners registered on the wrapper are mirrored on the native handle.
"""

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, TYPE_CHECKING

from .events import EventCoordinator, ListenerBridge
from .exceptions import ConstructionError, UnresolvedNativeAccess

if TYPE_CHECKING:
    from ..app.loader import PlatformLoader
    from ..platform.base import NativeListener, NativeObject

logger = logging.getLogger(__name__)

Thunk = Callable[[], Any]


class GateState(Enum):
    UNBOUND = "unbound"
    PLATFORM_PENDING = "platform_pending"
    CONSTRUCTING = "constructing"
    BOUND = "bound"


class BindingGate:
    """
    Queues work until the native handle is constructed.

    Args:
        loader: The platform loader whose ``"ready"`` event starts binding
        construct: Zero-argument function that creates the native handle.
            Called at most once.
        name: Label used in log messages
        auto_load: Ask the loader to start loading when work is queued
        on_bound: Called with the handle once the gate is BOUND
    """

    def __init__(self, loader: "PlatformLoader", construct: Callable[[], "NativeObject"],
                 name: str = "", auto_load: bool = True,
                 on_bound: Optional[Callable[["NativeObject"], Any]] = None):
        self._loader = loader
        self._construct = construct
        self._name = name or "BindingGate"
        self._auto_load = auto_load
        self._on_bound = on_bound
        self._state = GateState.UNBOUND
        self._handle: Optional["NativeObject"] = None
        self._pending: Deque[Thunk] = deque()
        self._waiters: List[asyncio.Future] = []
        self._error: Optional[ConstructionError] = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_bound(self) -> bool:
        return self._state is GateState.BOUND

    @property
    def name(self) -> str:
        return self._name

    @property
    def loader(self) -> "PlatformLoader":
        return self._loader

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def error(self) -> Optional[ConstructionError]:
        return self._error

    @property
    def handle(self) -> "NativeObject":
        """
        The native handle.

        Raises:
            UnresolvedNativeAccess: If the gate is not BOUND yet
        """
        if self._state is not GateState.BOUND:
            raise UnresolvedNativeAccess(
                f"{self._name} has no native handle yet ({self._state.value}). "
                f"Await init() or use run_when_bound()."
            )
        return self._handle

    def run_when_bound(self, thunk: Thunk) -> None:
        """
        Run ``thunk`` once the native handle exists.

        Runs it right away if the gate is BOUND. Otherwise the thunk is
        queued behind earlier work and the gate moves towards binding.
        """
        if self._state is GateState.BOUND:
            thunk()
            return
        self._pending.append(thunk)
        self._advance()

    async def wait_bound(self) -> "NativeObject":
        """
        Wait until the gate is BOUND, loading the platform if needed.

        Returns:
            The native handle

        Raises:
            MissingCredential, BootstrapFailure: If the platform fails to load
            ConstructionError: If the native handle could not be created
        """
        if self._state is GateState.BOUND:
            return self._handle
        if self._error is not None:
            raise self._error

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            self._advance()
            await self._loader.load()
            return await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
            # A failure raised synchronously never reaches ``await waiter``
            if waiter.done() and not waiter.cancelled():
                waiter.exception()

    def _advance(self) -> None:
        if self._state is GateState.UNBOUND:
            if self._loader.is_loaded:
                self._bind()
                return
            self._state = GateState.PLATFORM_PENDING
            logger.debug(f"{self._name}: waiting for the platform")
            self._loader.once("ready", self._on_platform_ready)
        if self._state is GateState.PLATFORM_PENDING and self._auto_load:
            self._loader.ensure_loading()

    def _on_platform_ready(self, event: Any) -> None:
        if self._state is GateState.PLATFORM_PENDING:
            self._bind()

    def _bind(self) -> None:
        self._state = GateState.CONSTRUCTING
        logger.debug(f"{self._name}: constructing native handle")
        try:
            handle = self._construct()
        except Exception as e:
            self._error = ConstructionError(f"Native construction of {self._name} failed: {e}")
            self._error.__cause__ = e
            logger.error(f"{self._name}: {self._error}")
            self._settle_waiters(error=self._error)
            raise self._error from e
        self._handle = handle

        first_error: Optional[BaseException] = None
        while self._pending:
            thunk = self._pending.popleft()
            try:
                thunk()
            except Exception as e:
                logger.exception(f"{self._name}: queued work failed")
                if first_error is None:
                    first_error = e

        self._state = GateState.BOUND
        logger.debug(f"{self._name}: bound")
        try:
            if self._on_bound is not None:
                self._on_bound(handle)
        finally:
            # The gate is BOUND even if on_bound raised
            self._settle_waiters()

        if first_error is not None:
            raise first_error

    def _settle_waiters(self, error: Optional[BaseException] = None) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(self._handle)

    def __repr__(self) -> str:
        return f"BindingGate({self._name!r}, state={self._state.value}, pending={len(self._pending)})"


class NativeEventBridge(ListenerBridge):
    """
    Mirrors an entity's wrapper listeners onto its native handle.

    One native forwarding listener is attached per event type, no matter
    how many wrapper listeners share it. The attach goes through the gate,
    so it keeps its place among other queued native calls.

    Args:
        gate: The entity's binding gate
        events: The entity's event coordinator
        forward: Called as ``forward(event_type, native_event)`` when the
            native handle fires
        local_events: Event types that only exist on the wrapper
    """

    def __init__(self, gate: BindingGate, events: EventCoordinator,
                 forward: Callable[[str, Any], Any], local_events: Iterable[str] = ()):
        self._gate = gate
        self._events = events
        self._forward = forward
        self._local = frozenset(local_events)
        self._native: Dict[str, "NativeListener"] = {}

    @property
    def native_types(self) -> List[str]:
        return list(self._native)

    def listener_added(self, event_type: str) -> None:
        if event_type in self._local:
            return
        self._gate.run_when_bound(lambda: self._attach(event_type))

    def listeners_cleared(self, event_type: str) -> None:
        if self._native.pop(event_type, None) is None:
            return
        self._gate.handle.clear_listeners(event_type)
        logger.debug(f"{self._gate.name}: native '{event_type}' listeners cleared")

    def all_listeners_cleared(self) -> None:
        self._native.clear()
        if self._gate.is_bound:
            self._gate.handle.clear_instance_listeners()

    def _attach(self, event_type: str) -> None:
        if event_type in self._native:
            return
        # Removed again before the handle existed
        if not self._events.has_listener(event_type):
            return
        self._native[event_type] = self._gate.handle.add_listener(
            event_type, lambda native_event: self._forward(event_type, native_event)
        )
        logger.debug(f"{self._gate.name}: native '{event_type}' listener attached")


__all__ = ["GateState", "BindingGate", "NativeEventBridge", "Thunk"]
