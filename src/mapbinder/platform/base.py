"""
MapBinder Platform - Base Classes

This module defines the boundary with the external platform library: the
bootstrap operation that makes the platform available, the platform object
that creates native handles, and the native handle listener plumbing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ..app.loader import LoaderOptions

NativeCallback = Callable[[Any], Any]


@dataclass
class NativeEvent:
    """An event as delivered by the platform to native listeners."""
    dom_event: Any = None
    lat_lng: Optional[Tuple[float, float]] = None
    pixel: Optional[Tuple[float, float]] = None
    place_id: Optional[str] = None
    stop: Optional[Callable[[], None]] = None


class NativeListener:
    """Handle returned by ``NativeObject.add_listener``."""

    def __init__(self, target: "NativeObject", event_type: str, callback: NativeCallback):
        self.target = target
        self.event_type = event_type
        self.callback = callback

    def remove(self) -> None:
        self.target._remove_listener(self)


class NativeObject:
    """
    Opaque native handle created by a platform.

    Holds arbitrary properties and per-type native listeners. Platform
    adapters subclass it to forward property changes to the real library.
    """

    def __init__(self, kind: str, **options: Any):
        self.kind = kind
        self._values: Dict[str, Any] = dict(options)
        self._listeners: Dict[str, List[NativeListener]] = {}
        self.invocations: List[Tuple[str, Dict[str, Any]]] = []

    # Properties

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def invoke(self, method: str, **arguments: Any) -> Any:
        """
        Call a native method such as ``open``, ``close`` or ``fit_bounds``.

        The base handle only remembers the call in ``invocations``.
        """
        self.invocations.append((method, dict(arguments)))

    # Listeners

    def add_listener(self, event_type: str, callback: NativeCallback) -> NativeListener:
        listener = NativeListener(self, event_type, callback)
        self._listeners.setdefault(event_type, []).append(listener)
        return listener

    def has_listeners(self, event_type: str) -> bool:
        return bool(self._listeners.get(event_type))

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def clear_listeners(self, event_type: str) -> None:
        self._listeners.pop(event_type, None)

    def clear_instance_listeners(self) -> None:
        self._listeners.clear()

    def emit(self, event_type: str, event: Any = None) -> None:
        """Deliver a native event to the native listeners of ``event_type``."""
        for listener in list(self._listeners.get(event_type, ())):
            listener.callback(event)

    def _remove_listener(self, listener: NativeListener) -> None:
        listeners = self._listeners.get(listener.event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind!r})"


class Platform(ABC):
    """
    A loaded platform library.

    Implementations create the native handles wrapper entities are bound to.
    """

    kinds: FrozenSet[str] = frozenset()

    def __init__(self, api_key: Optional[str] = None, libraries: Optional[List[str]] = None,
                 version: str = "weekly"):
        self.api_key = api_key
        self.libraries = list(libraries or [])
        self.version = version

    def supports(self, kind: str) -> bool:
        """Check if this platform can create native objects of ``kind``."""
        return kind in self.kinds

    @abstractmethod
    def create(self, kind: str, **options: Any) -> NativeObject:
        """
        Create a native object.

        Args:
            kind: Native object kind (``"map"``, ``"marker"``, ...)
            **options: Initial native properties

        Returns:
            The new native handle

        Raises:
            ValueError: If the kind is not supported
        """
        pass


class PlatformBootstrap(ABC):
    """
    The one real bootstrap operation of the platform.

    The loader guarantees ``bootstrap`` runs at most once at a time and not
    again after it succeeded.
    """

    @abstractmethod
    async def bootstrap(self, options: "LoaderOptions") -> Platform:
        """
        Fetch and initialize the platform.

        Args:
            options: Validated loader options (api key, libraries, version)

        Returns:
            The ready platform
        """
        pass
