"""
MapBinder Platform Module

Boundary with the external platform library: the bootstrap operations and
the native handle plumbing.
"""

from .base import NativeEvent, NativeListener, NativeObject, Platform, PlatformBootstrap
from .memory import MemoryBootstrap, MemoryNativeObject, MemoryPlatform
from .importer import ImportBootstrap

__all__ = [
    "NativeEvent",
    "NativeListener",
    "NativeObject",
    "Platform",
    "PlatformBootstrap",
    "MemoryBootstrap",
    "MemoryNativeObject",
    "MemoryPlatform",
    "ImportBootstrap",
]
