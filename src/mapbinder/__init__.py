"""
MapBinder - Deferred Binding for Map Platform Objects

Create maps, markers and overlays, attach listeners and change properties
before the map platform has loaded. The platform is bootstrapped once, and
every piece of queued work is replayed in order once each native object
exists.
"""

from .core import (
    MapBinderError,
    InvalidListener,
    MissingCredential,
    BootstrapFailure,
    UnresolvedNativeAccess,
    ConstructionError,
    ConfigurationError,
    Event,
    EventConfig,
    EventCoordinator,
    Listenable,
    BindingGate,
    GateState,
    LatLng,
    LatLngBounds,
    Point,
    Size,
    lat_lng,
    lat_lng_bounds,
    point,
    size,
)
from .platform import (
    Platform,
    PlatformBootstrap,
    NativeObject,
    NativeEvent,
    MemoryBootstrap,
    MemoryPlatform,
    ImportBootstrap,
)
from .app.loader import LoadState, LoaderEvents, LoaderOptions, PlatformLoader, get_loader, set_loader, reset_loader, loader
from .app.config import ApplicationConfig, Environment, LoaderConfig, LoggingConfig, get_config, set_config
from .app.configurator import configure_logging, configure_platform
from .entities import InfoWindow, Layer, Map, Marker, Overlay, Polyline

__version__ = "0.1.0"

__all__ = [
    # Errors
    'MapBinderError',
    'InvalidListener',
    'MissingCredential',
    'BootstrapFailure',
    'UnresolvedNativeAccess',
    'ConstructionError',
    'ConfigurationError',

    # Events and binding
    'Event',
    'EventConfig',
    'EventCoordinator',
    'Listenable',
    'BindingGate',
    'GateState',

    # Values
    'LatLng',
    'LatLngBounds',
    'Point',
    'Size',
    'lat_lng',
    'lat_lng_bounds',
    'point',
    'size',

    # Platform
    'Platform',
    'PlatformBootstrap',
    'NativeObject',
    'NativeEvent',
    'MemoryBootstrap',
    'MemoryPlatform',
    'ImportBootstrap',

    # Loader
    'LoadState',
    'LoaderEvents',
    'LoaderOptions',
    'PlatformLoader',
    'get_loader',
    'set_loader',
    'reset_loader',
    'loader',

    # Configuration
    'ApplicationConfig',
    'Environment',
    'LoaderConfig',
    'LoggingConfig',
    'get_config',
    'set_config',
    'configure_logging',
    'configure_platform',

    # Entities
    'Layer',
    'Map',
    'Marker',
    'Overlay',
    'InfoWindow',
    'Polyline',
]
