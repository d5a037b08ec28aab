"""
MapBinder Platform - Memory Backend

In-process platform implementation for development and testing.
Native objects only hold their properties and listeners; every native call
is recorded in the platform's call log so ordering can be inspected.
"""

import asyncio
import logging
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

from .base import NativeCallback, NativeListener, NativeObject, Platform, PlatformBootstrap

if TYPE_CHECKING:
    from ..app.loader import LoaderOptions

logger = logging.getLogger(__name__)


class MemoryNativeObject(NativeObject):
    """Native object that reports every call to its platform's call log."""

    def __init__(self, platform: "MemoryPlatform", kind: str, **options: Any):
        super().__init__(kind, **options)
        self.platform = platform

    def set(self, key: str, value: Any) -> None:
        self.platform.record("set", self.kind, key, value)
        super().set(key, value)

    def invoke(self, method: str, **arguments: Any) -> Any:
        self.platform.record("invoke", self.kind, method)
        return super().invoke(method, **arguments)

    def add_listener(self, event_type: str, callback: NativeCallback) -> NativeListener:
        self.platform.record("add_listener", self.kind, event_type)
        return super().add_listener(event_type, callback)

    def clear_listeners(self, event_type: str) -> None:
        self.platform.record("clear_listeners", self.kind, event_type)
        super().clear_listeners(event_type)

    def clear_instance_listeners(self) -> None:
        self.platform.record("clear_instance_listeners", self.kind)
        super().clear_instance_listeners()

    def simulate(self, event_type: str, event: Any = None) -> None:
        """Fire a native event, as a user interaction on the real platform would."""
        self.emit(event_type, event)


class MemoryPlatform(Platform):
    """In-memory platform that supports every kind the entities create."""

    kinds = frozenset({"map", "marker", "overlay", "info_window", "polyline"})

    def __init__(self, api_key: Optional[str] = None, libraries: Optional[List[str]] = None,
                 version: str = "weekly"):
        super().__init__(api_key=api_key, libraries=libraries, version=version)
        self.calls: List[Tuple[Any, ...]] = []
        self.objects: List[MemoryNativeObject] = []

    def record(self, *call: Any) -> None:
        self.calls.append(call)

    def create(self, kind: str, **options: Any) -> MemoryNativeObject:
        if not self.supports(kind):
            raise ValueError(f"Unsupported native object kind: {kind}")
        self.record("create", kind)
        native = MemoryNativeObject(self, kind, **options)
        self.objects.append(native)
        return native

    def objects_of(self, kind: str) -> List[MemoryNativeObject]:
        return [native for native in self.objects if native.kind == kind]


class MemoryBootstrap(PlatformBootstrap):
    """
    Bootstrap for the in-memory platform.

    Args:
        latency: Seconds to wait before the platform is ready
        fail_with: Exception to raise instead of returning a platform
        release: Optional asyncio.Event the bootstrap waits on before
            completing, so tests can hold it in flight
    """

    def __init__(self, latency: float = 0.0, fail_with: Optional[BaseException] = None,
                 release: Optional[asyncio.Event] = None):
        self.latency = latency
        self.fail_with = fail_with
        self.release = release
        self.bootstrap_count = 0
        self.platform: Optional[MemoryPlatform] = None

    async def bootstrap(self, options: "LoaderOptions") -> MemoryPlatform:
        self.bootstrap_count += 1
        logger.debug(f"Memory platform bootstrap #{self.bootstrap_count} started")

        if self.release is not None:
            await self.release.wait()
        # Always yield at least once so loading is genuinely asynchronous
        await asyncio.sleep(self.latency)

        if self.fail_with is not None:
            raise self.fail_with

        self.platform = MemoryPlatform(
            api_key=options.api_key,
            libraries=options.libraries,
            version=options.version,
        )
        return self.platform
