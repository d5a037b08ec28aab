"""
Overlay Entity

Custom content anchored to a position on the map, shifted by a pixel
offset.
"""

from typing import Any, Dict, Optional

from ..app.loader import PlatformLoader
from ..core.values import LatLng, LatLngValue, Point, PointValue, lat_lng, point
from .layer import Layer
from .map import Map


class Overlay(Layer):
    """
    Content placed on a map.

    Args:
        position: Anchor position
        content: Content shown by the overlay
        offset: Pixel offset from the anchor
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "overlay"
    native_kind = "overlay"

    def __init__(self, position: Optional[LatLngValue] = None, content: Optional[str] = None,
                 offset: PointValue = (0, 0), loader: Optional[PlatformLoader] = None):
        super().__init__(loader)
        self._position: Optional[LatLng] = lat_lng(position) if position is not None else None
        self._content = content
        self._offset: Point = point(offset)

    @property
    def position(self) -> Optional[LatLng]:
        return self._position

    @property
    def content(self) -> Optional[str]:
        return self._content

    @property
    def offset(self) -> Point:
        return self._offset

    def set_content(self, content: str) -> "Overlay":
        self._content = content
        self._set_native("content", content)
        return self

    def set_position(self, position: LatLngValue) -> "Overlay":
        self._position = lat_lng(position)
        self._set_native("position", self._position)
        return self

    def set_offset(self, offset: PointValue) -> "Overlay":
        self._offset = point(offset)
        self._set_native("offset", self._offset)
        return self

    def add_to(self, target_map: Map) -> "Overlay":
        self._attach_to_map(target_map)
        return self

    def set_map(self, target_map: Optional[Map]) -> None:
        if target_map is None:
            self.remove()
        else:
            self.add_to(target_map)

    def remove(self) -> "Overlay":
        self._detach_from_map()
        return self

    def _native_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"offset": self._offset}
        if self._position is not None:
            options["position"] = self._position
        if self._content is not None:
            options["content"] = self._content
        return options
