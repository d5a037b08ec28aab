"""
MapBinder Platform - Import Bootstrap

Loads a platform that ships as a Python module. Importing a heavyweight
library blocks, so the import runs in a worker thread; the module's entry
point is then called with the loader options and must return a Platform.
"""

import asyncio
import importlib
import logging
from typing import TYPE_CHECKING

from ..core.exceptions import BootstrapFailure
from .base import Platform, PlatformBootstrap

if TYPE_CHECKING:
    from ..app.loader import LoaderOptions

logger = logging.getLogger(__name__)


class ImportBootstrap(PlatformBootstrap):
    """
    Bootstrap that imports ``module`` and calls its ``factory`` entry point.

    The entry point is called as ``factory(api_key=..., libraries=...,
    version=...)``. It may be a plain function or a coroutine function.

    Args:
        module: Dotted module name of the platform library
        factory: Name of the entry point inside the module
    """

    def __init__(self, module: str, factory: str = "create_platform"):
        if not module:
            raise ValueError("ImportBootstrap requires a module name")
        self.module = module
        self.factory = factory

    async def bootstrap(self, options: "LoaderOptions") -> Platform:
        logger.info(f"Importing platform module {self.module}")
        try:
            module = await asyncio.to_thread(importlib.import_module, self.module)
        except ImportError as e:
            raise BootstrapFailure(f"Platform module {self.module!r} could not be imported: {e}") from e

        entry_point = getattr(module, self.factory, None)
        if not callable(entry_point):
            raise BootstrapFailure(f"Platform module {self.module!r} has no entry point {self.factory!r}")

        platform = entry_point(
            api_key=options.api_key,
            libraries=list(options.libraries),
            version=options.version,
        )
        if asyncio.iscoroutine(platform):
            platform = await platform

        if not isinstance(platform, Platform):
            raise BootstrapFailure(
                f"{self.module}.{self.factory}() returned {type(platform).__name__}, expected a Platform"
            )
        logger.info(f"Platform module {self.module} initialized")
        return platform
