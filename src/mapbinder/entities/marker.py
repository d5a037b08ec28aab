"""
Marker Entity
"""

from typing import Any, Dict, Optional

from ..app.loader import PlatformLoader
from ..core.values import LatLng, LatLngValue, lat_lng
from .layer import Layer
from .map import Map


class Marker(Layer):
    """
    A marker at a position on a map.

    Args:
        position: Marker position (LatLng, pair, mapping or object)
        title: Tooltip title
        map: Map to add the marker to
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "marker"
    native_kind = "marker"

    def __init__(self, position: Optional[LatLngValue] = None, title: Optional[str] = None,
                 map: Optional[Map] = None, loader: Optional[PlatformLoader] = None):
        super().__init__(loader)
        self._position: Optional[LatLng] = lat_lng(position) if position is not None else None
        self._title = title
        if map is not None:
            self.add_to(map)

    @property
    def position(self) -> Optional[LatLng]:
        return self._position

    @property
    def title(self) -> Optional[str]:
        return self._title

    def get_position(self) -> Optional[LatLng]:
        return self._position

    def set_position(self, position: LatLngValue) -> "Marker":
        self._position = lat_lng(position)
        self._set_native("position", self._position)
        return self

    def set_title(self, title: str) -> "Marker":
        if not isinstance(title, str):
            raise TypeError("Marker title must be a string")
        self._title = title
        self._set_native("title", title)
        return self

    def add_to(self, target_map: Map) -> "Marker":
        """Add the marker to a map. Takes effect once both are bound."""
        self._attach_to_map(target_map)
        return self

    def set_map(self, target_map: Optional[Map]) -> None:
        if target_map is None:
            self.remove()
        else:
            self.add_to(target_map)

    def remove(self) -> "Marker":
        """Remove the marker from its map."""
        self._detach_from_map()
        return self

    def _native_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self._position is not None:
            options["position"] = self._position
        if self._title is not None:
            options["title"] = self._title
        return options
