"""
MapBinder Core Module

Platform-independent building blocks: listener bookkeeping, event dispatch,
binding gates, value objects and the exception hierarchy.
"""

from .exceptions import (
    MapBinderError,
    InvalidListener,
    MissingCredential,
    BootstrapFailure,
    UnresolvedNativeAccess,
    ConstructionError,
    ConfigurationError,
)
from .registry import ListenerRecord, ListenerRegistry
from .events import Event, EventConfig, EventCoordinator, Listenable, ListenerBridge, build_event
from .gate import BindingGate, GateState, NativeEventBridge
from .values import LatLng, LatLngBounds, Point, Size, lat_lng, lat_lng_bounds, point, size

__all__ = [
    "MapBinderError",
    "InvalidListener",
    "MissingCredential",
    "BootstrapFailure",
    "UnresolvedNativeAccess",
    "ConstructionError",
    "ConfigurationError",
    "ListenerRecord",
    "ListenerRegistry",
    "Event",
    "EventConfig",
    "EventCoordinator",
    "Listenable",
    "ListenerBridge",
    "build_event",
    "BindingGate",
    "GateState",
    "NativeEventBridge",
    "LatLng",
    "LatLngBounds",
    "Point",
    "Size",
    "lat_lng",
    "lat_lng_bounds",
    "point",
    "size",
]
