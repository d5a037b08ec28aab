"""
MapBinder Errors

Exception hierarchy shared by the loader, the event coordinator and the
binding gates. Argument errors are raised synchronously; bootstrap errors
reach only the code awaiting the bootstrap.
"""


class MapBinderError(Exception):
    """Base exception for all mapbinder errors"""
    pass


class InvalidListener(MapBinderError, TypeError):
    """Raised when a listener is registered with a non-callable callback"""

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f'The "{event_type}" event handler needs a callback function')


class MissingCredential(MapBinderError):
    """Raised when the platform bootstrap is requested without an API key"""
    pass


class BootstrapFailure(MapBinderError):
    """Raised when the platform's own load operation fails"""
    pass


class UnresolvedNativeAccess(MapBinderError, RuntimeError):
    """Raised on synchronous access to a native handle that does not exist yet"""
    pass


class ConstructionError(MapBinderError):
    """Raised when an entity's construction callback fails"""
    pass


class ConfigurationError(MapBinderError, ValueError):
    """Raised when configuration values are invalid"""
    pass


__all__ = [
    "MapBinderError",
    "InvalidListener",
    "MissingCredential",
    "BootstrapFailure",
    "UnresolvedNativeAccess",
    "ConstructionError",
    "ConfigurationError",
]
