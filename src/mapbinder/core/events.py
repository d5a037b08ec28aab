"""
Event Coordination

🎯 Per-object event handling:
This module provides the EventCoordinator, which owns a ListenerRegistry
for one object and adds dispatch, removal and "has fired" bookkeeping, and
the Listenable capability that entities get by composing a coordinator.

Key rules:
- Listeners run in registration order
- ``dispatch`` works on a snapshot, so callbacks may call ``on``/``off``
  on the same object (including for the type being dispatched)
- ``once`` listeners are removed after their first invocation
- ``only`` makes a type exclusive while its listener is registered
- ``call_immediate`` replays the last dispatch for late listeners
"""

import asyncio
import inspect
import logging
import weakref
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from .exceptions import InvalidListener
from .registry import ListenerRecord, ListenerRegistry
from .values import lat_lng, point

logger = logging.getLogger(__name__)

EventCallback = Callable[..., Any]


@dataclass(frozen=True)
class EventConfig:
    """Options for a listener registration."""
    once: bool = False
    only: bool = False
    call_immediate: bool = False
    context: Optional[Any] = None

    @classmethod
    def build(cls, config: Union["EventConfig", Mapping[str, Any], None] = None, **flags) -> "EventConfig":
        """
        Build a config from an EventConfig, a mapping and/or keyword flags.

        Keyword flags take precedence over values from ``config``.

        Raises:
            TypeError: If ``config`` has an unsupported type or unknown keys
        """
        if config is None:
            base = cls()
        elif isinstance(config, EventConfig):
            base = config
        elif isinstance(config, Mapping):
            base = cls._from_mapping(config)
        else:
            raise TypeError(f"Listener config must be an EventConfig or a mapping, got {type(config).__name__}")
        if flags:
            cls._check_keys(flags)
            base = replace(base, **flags)
        return base

    @classmethod
    def _from_mapping(cls, values: Mapping[str, Any]) -> "EventConfig":
        cls._check_keys(values)
        return cls(**values)

    @classmethod
    def _check_keys(cls, values: Mapping[str, Any]) -> None:
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"Unknown listener option(s): {', '.join(sorted(unknown))}")


class Event:
    """
    Event envelope passed to listener callbacks.

    Behaves like a read-only mapping with attribute access. Missing
    attributes read as None, the same way payload fields are optional.
    """

    def __init__(self, event_type: str, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {"type": event_type}
        if data:
            self._data.update(data)

    @property
    def type(self) -> str:
        return self._data["type"]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._data.get(name)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Event):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Event({self._data})"


def build_event(event_type: str, data: Any = None) -> Event:
    """
    Build the envelope for a dispatch.

    Mappings are merged over ``{"type": event_type}``. Native platform
    events (anything with a ``dom_event`` attribute) are translated so that
    coordinates and pixels arrive as value objects.
    """
    if data is None:
        return Event(event_type)
    if isinstance(data, Event):
        return Event(event_type, {k: v for k, v in data.to_dict().items() if k != "type"})
    if isinstance(data, Mapping):
        return Event(event_type, dict(data))
    if hasattr(data, "dom_event"):
        return Event(event_type, _translate_native_event(data))
    return Event(event_type, {"data": data})


def _translate_native_event(native: Any) -> Dict[str, Any]:
    translated: Dict[str, Any] = {"dom_event": native.dom_event}
    stop = getattr(native, "stop", None)
    if callable(stop):
        translated["stop"] = stop
    if getattr(native, "lat_lng", None) is not None:
        translated["lat_lng"] = lat_lng(native.lat_lng)
    if getattr(native, "place_id", None) is not None:
        translated["place_id"] = native.place_id
    if getattr(native, "pixel", None) is not None:
        translated["pixel"] = point(native.pixel)
    return translated


class ListenerBridge:
    """
    Hooks called by a coordinator when the set of listened types changes.

    The default implementation does nothing. Entities install a bridge that
    mirrors wrapper-level listeners onto their native handle.
    """

    def listener_added(self, event_type: str) -> None:
        """The first listener for ``event_type`` was registered."""

    def listeners_cleared(self, event_type: str) -> None:
        """``event_type`` no longer has any listener."""

    def all_listeners_cleared(self) -> None:
        """Every listener was removed."""


class EventCoordinator:
    """
    Listener registry plus dispatch for one owning object.

    Args:
        owner: The object the events belong to. Returned from ``dispatch``
            for chaining.
        bridge: Optional ListenerBridge notified of listened-type changes
        isolate_errors: If True, listener exceptions are logged and the
            dispatch continues. Otherwise they propagate to the caller of
            ``dispatch`` (once-listeners that already ran are still removed).
    """

    def __init__(self, owner: Any = None, *, bridge: Optional[ListenerBridge] = None,
                 isolate_errors: bool = False):
        self._owner = owner
        self._registry = ListenerRegistry()
        self._dispatched: Dict[str, Any] = {}
        self._bridge = bridge
        self._isolate_errors = isolate_errors
        self._spent: "weakref.WeakSet[ListenerRecord]" = weakref.WeakSet()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    @property
    def bridge(self) -> Optional[ListenerBridge]:
        return self._bridge

    @bridge.setter
    def bridge(self, bridge: Optional[ListenerBridge]) -> None:
        self._bridge = bridge

    @property
    def _label(self) -> str:
        return type(self._owner).__name__ if self._owner is not None else "EventCoordinator"

    # Registration

    def on(self, event_type: str, callback: EventCallback,
           config: Union[EventConfig, Mapping[str, Any], None] = None, **flags) -> None:
        """
        Add an event listener.

        Args:
            event_type: The event type
            callback: Called with the Event envelope (or ``(context, event)``
                when a context is configured)
            config: EventConfig or mapping with once/only/call_immediate/context
            **flags: The same options as keywords

        Raises:
            InvalidListener: If ``callback`` is not callable. Nothing is
                registered in that case.
        """
        if not callable(callback):
            raise InvalidListener(event_type)
        options = EventConfig.build(config, **flags)
        registry = self._registry

        if registry.is_exclusive(event_type):
            logger.debug(f"{self._label}: '{event_type}' already has its only listener, ignoring registration")
            return
        if options.only:
            if registry.has(event_type):
                logger.debug(f"{self._label}: '{event_type}' already has a listener, ignoring only() registration")
                return
            registry.mark_exclusive(event_type)

        record = ListenerRecord(callback=callback, context=options.context,
                                once=options.once, only=options.only)

        store = True
        if options.call_immediate and event_type in self._dispatched:
            if options.once:
                # Fired now, so it is never stored
                store = False
            try:
                self._invoke(record, build_event(event_type, self._dispatched[event_type]))
            except Exception:
                # The listener was never stored
                if options.only:
                    registry.release_exclusive(event_type)
                raise

        if not store:
            if options.only:
                registry.release_exclusive(event_type)
            return

        first = not registry.has(event_type)
        registry.add(event_type, record)
        if first and self._bridge is not None:
            self._bridge.listener_added(event_type)

    def once(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        """Add a listener that is removed after it is called once."""
        self.on(event_type, callback, config, **{**flags, "once": True})

    def on_immediate(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        """Add a listener that is also called right away if the event already fired."""
        self.on(event_type, callback, config, **{**flags, "call_immediate": True})

    def once_immediate(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.on(event_type, callback, config, **{**flags, "once": True, "call_immediate": True})

    def only(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        """
        Add the only listener for this type.

        Later registrations for the type are ignored while it is registered.
        It is called right away if the event already fired.
        """
        self.on(event_type, callback, config, **{**flags, "only": True, "call_immediate": True})

    def only_once(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.on(event_type, callback, config,
                **{**flags, "once": True, "only": True, "call_immediate": True})

    # Removal

    def off(self, event_type: Optional[str] = None, callback: Optional[EventCallback] = None,
            options: Union[EventConfig, Mapping[str, Any], None] = None) -> None:
        """
        Remove listeners.

        - ``off(type, callback[, options])`` removes matching listeners
        - ``off(type)`` removes all listeners for the type
        - ``off()`` removes everything (same as ``off_all()``)
        """
        if event_type is None:
            self.off_all()
            return

        if callback is not None:
            once = _once_option(options)
            self._registry.remove_matching(event_type, callback, once)
        else:
            self._registry.clear_type(event_type)
        self._registry.release_exclusive(event_type)

        if not self._registry.has(event_type) and self._bridge is not None:
            self._bridge.listeners_cleared(event_type)

    def off_all(self) -> None:
        self._registry.clear()
        if self._bridge is not None:
            self._bridge.all_listeners_cleared()

    # Queries

    def has_listener(self, event_type: str, callback: Optional[EventCallback] = None) -> bool:
        return self._registry.has(event_type, callback)

    def listener_count(self, event_type: str) -> int:
        return self._registry.count(event_type)

    def event_types(self) -> List[str]:
        return self._registry.types()

    def has_dispatched(self, event_type: str) -> bool:
        return event_type in self._dispatched

    def last_payload(self, event_type: str) -> Any:
        return self._dispatched.get(event_type)

    # Dispatch

    def dispatch(self, event_type: str, data: Any = None) -> Any:
        """
        Dispatch an event to the listeners registered for its type.

        Args:
            event_type: The event to dispatch
            data: Payload merged into the envelope, or a native event

        Returns:
            The owner (or the coordinator when it has none), for chaining
        """
        self._dispatched[event_type] = data
        listeners = self._registry.snapshot(event_type)
        result = self._owner if self._owner is not None else self
        if not listeners:
            return result

        event = build_event(event_type, data)
        fired: List[ListenerRecord] = []
        try:
            for record in listeners:
                if record.once:
                    if record in self._spent:
                        continue
                    self._spent.add(record)
                    fired.append(record)
                self._invoke(record, event)
        finally:
            if fired:
                self._remove_fired(event_type, fired)
        return result

    trigger = dispatch

    def _invoke(self, record: ListenerRecord, event: Event) -> None:
        try:
            if record.context is not None:
                outcome = record.callback(record.context, event)
            else:
                outcome = record.callback(event)
            if inspect.isawaitable(outcome):
                self._schedule(event.type, outcome)
        except Exception:
            if not self._isolate_errors:
                raise
            logger.exception(f"{self._label}: listener for '{event.type}' raised")

    def _schedule(self, event_type: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"{self._label}: async listener for '{event_type}' dropped, no running event loop")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = loop.create_task(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"{self._label}: async listener raised: {exc!r}")

    def _remove_fired(self, event_type: str, records: List[ListenerRecord]) -> None:
        removed = self._registry.remove_records(event_type, records)
        if not removed:
            return
        if any(record.only for record in records):
            self._registry.release_exclusive(event_type)
        if not self._registry.has(event_type) and self._bridge is not None:
            self._bridge.listeners_cleared(event_type)


def _once_option(options: Union[EventConfig, Mapping[str, Any], None]) -> Optional[bool]:
    if options is None:
        return None
    if isinstance(options, EventConfig):
        return options.once
    if isinstance(options, Mapping):
        return options.get("once")
    raise TypeError(f"Listener options must be an EventConfig or a mapping, got {type(options).__name__}")


class Listenable:
    """
    Listener capability for objects that own an EventCoordinator.

    Subclasses set ``self.events`` to their coordinator; every public
    listener method delegates to it.
    """

    events: EventCoordinator

    def on(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.on(event_type, callback, config, **flags)

    def once(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.once(event_type, callback, config, **flags)

    def only(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.only(event_type, callback, config, **flags)

    def only_once(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.only_once(event_type, callback, config, **flags)

    def on_immediate(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.on_immediate(event_type, callback, config, **flags)

    def once_immediate(self, event_type: str, callback: EventCallback, config=None, **flags) -> None:
        self.events.once_immediate(event_type, callback, config, **flags)

    def off(self, event_type: Optional[str] = None, callback: Optional[EventCallback] = None,
            options=None) -> None:
        self.events.off(event_type, callback, options)

    def off_all(self) -> None:
        self.events.off_all()

    def has_listener(self, event_type: str, callback: Optional[EventCallback] = None) -> bool:
        return self.events.has_listener(event_type, callback)

    def dispatch(self, event_type: str, data: Any = None):
        self.events.dispatch(event_type, data)
        return self

    def trigger(self, event_type: str, data: Any = None):
        """Alias of dispatch()"""
        return self.dispatch(event_type, data)
