"""
Layer Entity

Base class for everything that wraps a native platform object. A layer can
be used as soon as it is created: listeners and property changes issued
before the platform is ready are queued in its binding gate and replayed,
in order, once the native object exists.
"""

import logging
from numbers import Real
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, Optional

from ..app.loader import PlatformLoader, get_loader
from ..core.events import EventCoordinator, Listenable
from ..core.gate import BindingGate, GateState, NativeEventBridge
from ..platform.base import NativeObject, Platform

if TYPE_CHECKING:
    from .map import Map

logger = logging.getLogger(__name__)


class Layer(Listenable):
    """
    Base class for wrapper entities.

    Subclasses set ``native_kind`` and return their initial native
    properties from ``_native_options``.

    Args:
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "layer"
    native_kind: Optional[str] = None

    # Event types that only exist on the wrapper
    LOCAL_EVENTS: FrozenSet[str] = frozenset({"ready"})

    def __init__(self, loader: Optional[PlatformLoader] = None):
        self._loader = loader or get_loader()
        self._map: Optional["Map"] = None
        self._is_visible = False
        self.events = EventCoordinator(self)
        self._gate = BindingGate(
            self._loader,
            self._construct_native,
            name=type(self).__name__,
            on_bound=self._handle_bound,
        )
        self.events.bridge = NativeEventBridge(
            self._gate, self.events, self._forward_native_event, self.LOCAL_EVENTS
        )

    @property
    def loader(self) -> PlatformLoader:
        return self._loader

    @property
    def gate(self) -> BindingGate:
        return self._gate

    @property
    def is_bound(self) -> bool:
        return self._gate.state is GateState.BOUND

    def to_native(self) -> NativeObject:
        """
        Get the native object.

        Raises:
            UnresolvedNativeAccess: If the layer is not bound yet
        """
        return self._gate.handle

    async def init(self) -> "Layer":
        """Wait until the native object exists, loading the platform if needed."""
        await self._gate.wait_bound()
        return self

    def run_when_bound(self, thunk: Callable[[], Any]) -> None:
        self._gate.run_when_bound(thunk)

    # Map membership

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @is_visible.setter
    def is_visible(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise TypeError("is_visible must be a boolean")
        self._is_visible = value

    def get_map(self) -> Optional["Map"]:
        return self._map

    def has_map(self) -> bool:
        return self._map is not None

    def set_map(self, target_map: Optional["Map"]) -> None:
        self._map = target_map
        self.is_visible = target_map is not None

    def remove_map(self) -> None:
        self.set_map(None)

    # Native plumbing

    def _native_options(self) -> Dict[str, Any]:
        return {}

    def _create_native(self, platform: Platform) -> NativeObject:
        if self.native_kind is None:
            raise NotImplementedError(f"{type(self).__name__} does not define a native_kind")
        return platform.create(self.native_kind, **self._native_options())

    def _construct_native(self) -> NativeObject:
        return self._create_native(self._loader.platform)

    def _handle_bound(self, handle: NativeObject) -> None:
        logger.debug(f"{type(self).__name__} bound to {handle!r}")
        self.dispatch("ready")

    def _forward_native_event(self, event_type: str, native_event: Any) -> None:
        self.dispatch(event_type, native_event)

    def _set_native(self, key: str, value: Any) -> None:
        """Set a native property now, or once bound."""
        self.run_when_bound(lambda: self.to_native().set(key, value))

    def _attach_to_map(self, target_map: "Map") -> None:
        Layer.set_map(self, target_map)

        def attach():
            target_map.run_when_bound(lambda: self._bind_native_map(target_map))

        self.run_when_bound(attach)

    def _bind_native_map(self, target_map: "Map") -> None:
        # Removed or moved while waiting for the map
        if self._map is not target_map:
            return
        self.to_native().set("map", target_map.to_native())

    def _detach_from_map(self) -> None:
        Layer.set_map(self, None)
        if self.is_bound:
            self.to_native().set("map", None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self._gate.state.value})"


def check_number(value: Any, name: str) -> float:
    """Reject non-numeric option values, including booleans."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    return value
