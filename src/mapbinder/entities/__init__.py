"""
MapBinder Entities

Wrapper objects that are usable before the platform is loaded.
"""

from .layer import Layer
from .map import Map
from .marker import Marker
from .overlay import Overlay
from .info_window import InfoWindow
from .polyline import Polyline

__all__ = ["Layer", "Map", "Marker", "Overlay", "InfoWindow", "Polyline"]
