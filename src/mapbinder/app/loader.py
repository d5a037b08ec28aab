"""
Platform Loader

🚀 Single-flight platform bootstrap:
The PlatformLoader makes the external platform available exactly once per
loader. Any number of concurrent ``load()`` calls share one in-flight
bootstrap and observe the same outcome. When the platform becomes ready the
loader dispatches ``"ready"`` once; binding gates listen for it to create
their native handles.

A failed bootstrap resets the loader to UNSTARTED, so a later ``load()``
retries. Nothing is retried automatically.

The process-wide loader lives in a small registry (``get_loader``,
``set_loader``, ``reset_loader``). Entities use it unless a loader is
passed to them explicitly.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.events import Event, EventCallback, EventCoordinator
from ..core.exceptions import (
    BootstrapFailure,
    ConfigurationError,
    InvalidListener,
    MapBinderError,
    MissingCredential,
    UnresolvedNativeAccess,
)
from ..platform.base import Platform, PlatformBootstrap
from ..platform.memory import MemoryBootstrap

logger = logging.getLogger(__name__)


class LoadState(Enum):
    """Lifecycle of the platform bootstrap"""
    UNSTARTED = "unstarted"
    LOADING = "loading"
    LOADED = "loaded"


class LoaderEvents:
    """Events dispatched by the loader"""
    # The platform library is loaded
    READY = "ready"
    # The platform is loaded and the first map is bound
    MAP_LOAD = "map_load"


class LoaderOptions(BaseModel):
    """Options passed to the platform bootstrap."""
    model_config = ConfigDict(validate_assignment=True)

    api_key: Optional[str] = None
    libraries: List[str] = Field(default_factory=list)
    version: str = "weekly"

    @field_validator("libraries", mode="before")
    @classmethod
    def _wrap_single_library(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class PlatformLoader:
    """
    Loads the platform once and tells everyone when it is ready.

    Args:
        options: LoaderOptions or mapping with api_key/libraries/version
        bootstrap: The bootstrap operation (defaults to the in-memory platform)
        **option_kwargs: Options as keywords
    """

    def __init__(self, options: Union[LoaderOptions, Mapping[str, Any], None] = None,
                 bootstrap: Optional[PlatformBootstrap] = None, **option_kwargs):
        self._options = LoaderOptions()
        self._bootstrap: PlatformBootstrap = bootstrap or MemoryBootstrap()
        self._state = LoadState.UNSTARTED
        self._platform: Optional[Platform] = None
        self._inflight: Optional[asyncio.Future] = None
        self._last_error: Optional[BaseException] = None
        self._background: Set[asyncio.Task] = set()
        self._map_loaded = False
        self._events = EventCoordinator(self, isolate_errors=True)
        if options is not None or option_kwargs:
            self.set_options(options, **option_kwargs)

    # State

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is LoadState.LOADED

    @property
    def is_loading(self) -> bool:
        return self._state is LoadState.LOADING

    @property
    def last_error(self) -> Optional[BaseException]:
        """The error of the last failed bootstrap, until ``load()`` is called again"""
        return self._last_error

    @property
    def platform(self) -> Platform:
        """
        The loaded platform.

        Raises:
            UnresolvedNativeAccess: If the platform is not loaded yet
        """
        if self._platform is None:
            raise UnresolvedNativeAccess("The platform is not loaded yet. Await loader.load() first.")
        return self._platform

    @property
    def bootstrap(self) -> PlatformBootstrap:
        return self._bootstrap

    @bootstrap.setter
    def bootstrap(self, bootstrap: PlatformBootstrap) -> None:
        if self._state is not LoadState.UNSTARTED:
            raise ConfigurationError(f"Cannot replace the bootstrap of a loader that is {self._state.value}")
        self._bootstrap = bootstrap

    # Options

    @property
    def options(self) -> LoaderOptions:
        return self._options.model_copy(deep=True)

    @property
    def api_key(self) -> Optional[str]:
        return self._options.api_key

    @property
    def libraries(self) -> List[str]:
        return list(self._options.libraries)

    @property
    def version(self) -> str:
        return self._options.version

    def set_options(self, options: Union[LoaderOptions, Mapping[str, Any], None] = None,
                    **option_kwargs) -> "PlatformLoader":
        """
        Set loader options. Values of the wrong type are ignored.

        Raises:
            ConfigurationError: On unknown option names
        """
        values = {}
        if isinstance(options, LoaderOptions):
            values.update(options.model_dump())
        elif isinstance(options, Mapping):
            values.update(options)
        elif options is not None:
            raise ConfigurationError(f"Loader options must be a mapping, got {type(options).__name__}")
        values.update(option_kwargs)

        setters = {
            "api_key": self.set_api_key,
            "libraries": self.set_libraries,
            "version": self.set_version,
        }
        unknown = set(values) - set(setters)
        if unknown:
            raise ConfigurationError(f"Unknown loader option(s): {', '.join(sorted(unknown))}")
        for key, value in values.items():
            setters[key](value)
        return self

    def set_api_key(self, api_key: Optional[str]) -> "PlatformLoader":
        if isinstance(api_key, str):
            self._warn_if_loaded("api_key")
            self._options.api_key = api_key
        return self

    def set_libraries(self, libraries: Union[List[str], str, None]) -> "PlatformLoader":
        if isinstance(libraries, (list, tuple)) or (isinstance(libraries, str) and libraries.strip()):
            self._warn_if_loaded("libraries")
            self._options.libraries = list(libraries) if not isinstance(libraries, str) else libraries
        return self

    def set_version(self, version: Optional[str]) -> "PlatformLoader":
        if isinstance(version, str):
            self._warn_if_loaded("version")
            self._options.version = version
        return self

    def _warn_if_loaded(self, name: str) -> None:
        if self._state is LoadState.LOADED:
            logger.warning(f"Changing loader option '{name}' after the platform loaded has no effect")

    # Loading

    async def load(self, callback: Optional[Callable[[], Any]] = None) -> Platform:
        """
        Make the platform ready.

        Concurrent calls share one bootstrap. Cancelling one caller does not
        abort the shared bootstrap.

        Args:
            callback: Optional zero-argument function called once loaded

        Returns:
            The loaded platform

        Raises:
            MissingCredential: If no API key is set
            BootstrapFailure: If the platform failed to load
        """
        self._last_error = None
        return await self._load(callback)

    async def _load(self, callback: Optional[Callable[[], Any]] = None) -> Platform:
        if self._state is LoadState.LOADED:
            _call_callback(callback)
            return self._platform

        if self._inflight is None:
            self._state = LoadState.LOADING
            self._inflight = asyncio.ensure_future(self._run_bootstrap())
            logger.debug("Platform bootstrap scheduled")
        else:
            logger.debug("Joining the in-flight platform bootstrap")

        platform = await asyncio.shield(self._inflight)
        _call_callback(callback)
        return platform

    async def _run_bootstrap(self) -> Platform:
        options = self.options
        try:
            if not options.has_credentials:
                raise MissingCredential("The platform API key is not set")
            logger.info(f"Loading platform (version={options.version}, libraries={options.libraries})")
            try:
                platform = await self._bootstrap.bootstrap(options)
            except MapBinderError:
                raise
            except Exception as e:
                raise BootstrapFailure(f"Platform bootstrap failed: {e}") from e
        except BaseException as e:
            self._state = LoadState.UNSTARTED
            self._inflight = None
            if isinstance(e, Exception):
                self._last_error = e
            logger.warning(f"Platform bootstrap failed, loader reset: {e!r}")
            raise

        self._platform = platform
        self._state = LoadState.LOADED
        self._inflight = None
        logger.info("Platform loaded")
        self._events.dispatch(LoaderEvents.READY, {"platform": platform})
        return platform

    def ensure_loading(self) -> Optional[asyncio.Task]:
        """
        Request loading without awaiting it.

        Used by binding gates. Requires a running event loop; without one
        the request is skipped and an explicit ``load()`` is needed. A
        failure of the background load is logged, not raised. After a
        failed bootstrap nothing is scheduled until ``load()`` is called.

        Returns:
            The background task, or None if nothing was scheduled
        """
        if self._state is not LoadState.UNSTARTED:
            return None
        if self._last_error is not None:
            logger.debug(f"Not reloading after a failed bootstrap ({self._last_error!r}), call load() to retry")
            return None
        for task in self._background:
            if not task.done():
                return task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, platform load must be requested explicitly")
            return None
        task = loop.create_task(self._load())
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Background platform load failed: {exc}")

    # Events

    def on(self, event_type: str, callback: EventCallback) -> None:
        """
        Add a listener for a loader event.

        Loader events happen once, so every listener is a once listener. If
        the event already happened the callback runs on the next loop turn.
        """
        if not callable(callback):
            raise InvalidListener(event_type)
        if self._has_happened(event_type):
            self._call_soon(callback, Event(event_type))
            return
        self._events.once(event_type, callback)

    once = on

    def on_load(self, callback: EventCallback) -> None:
        self.on(LoaderEvents.READY, callback)

    once_load = on_load

    def on_map_load(self, callback: EventCallback) -> None:
        self.on(LoaderEvents.MAP_LOAD, callback)

    once_map_load = on_map_load

    def off(self, event_type: Optional[str] = None, callback: Optional[EventCallback] = None) -> None:
        self._events.off(event_type, callback)

    def has_listener(self, event_type: str, callback: Optional[EventCallback] = None) -> bool:
        return self._events.has_listener(event_type, callback)

    def dispatch(self, event_type: str, data: Any = None) -> "PlatformLoader":
        self._events.dispatch(event_type, data)
        return self

    def notify_map_loaded(self) -> None:
        """Dispatch ``map_load`` the first time a map is bound."""
        if self._map_loaded:
            return
        self._map_loaded = True
        self.dispatch(LoaderEvents.MAP_LOAD)

    def _has_happened(self, event_type: str) -> bool:
        if event_type == LoaderEvents.READY:
            return self.is_loaded
        if event_type == LoaderEvents.MAP_LOAD:
            return self._map_loaded
        return self._events.has_dispatched(event_type)

    def _call_soon(self, callback: EventCallback, event: Event) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._safe_call(callback, event)
            return
        loop.call_soon(self._safe_call, callback, event)

    @staticmethod
    def _safe_call(callback: EventCallback, event: Event) -> None:
        try:
            callback(event)
        except Exception:
            logger.exception(f"Loader listener for '{event.type}' raised")

    def __repr__(self) -> str:
        return f"PlatformLoader(state={self._state.value}, version={self._options.version!r})"


def _call_callback(callback: Optional[Callable[[], Any]]) -> None:
    if callable(callback):
        callback()


# Process-wide loader registry
_current_loader: Optional[PlatformLoader] = None


def get_loader() -> PlatformLoader:
    """Get the process loader, creating a default one on first use"""
    global _current_loader

    if _current_loader is None:
        _current_loader = PlatformLoader()

    return _current_loader


def set_loader(platform_loader: PlatformLoader) -> PlatformLoader:
    """Register the process loader"""
    global _current_loader
    _current_loader = platform_loader
    return platform_loader


def reset_loader() -> None:
    """Forget the process loader. The next get_loader() creates a fresh one."""
    global _current_loader
    _current_loader = None


def loader(options: Union[LoaderOptions, Mapping[str, Any], None] = None, **option_kwargs) -> PlatformLoader:
    """Return the process loader after applying any given options"""
    current = get_loader()
    if options is not None or option_kwargs:
        current.set_options(options, **option_kwargs)
    return current


__all__ = [
    "LoadState",
    "LoaderEvents",
    "LoaderOptions",
    "PlatformLoader",
    "get_loader",
    "set_loader",
    "reset_loader",
    "loader",
]
