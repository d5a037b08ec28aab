"""
Polyline Entity

A line through a sequence of positions, drawn on a map.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..app.loader import PlatformLoader
from ..core.values import LatLng, LatLngBounds, LatLngValue, lat_lng, lat_lng_bounds
from .layer import Layer, check_number
from .map import Map


class Polyline(Layer):
    """
    A line on a map.

    Args:
        path: Positions the line goes through
        stroke_color: CSS color of the line
        stroke_opacity: Opacity between 0.0 and 1.0
        stroke_weight: Width in pixels
        z_index: Stacking order among polylines
        clickable: Whether the line receives mouse events
        map: Map to add the polyline to
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "polyline"
    native_kind = "polyline"

    def __init__(self, path: Optional[Iterable[LatLngValue]] = None, stroke_color: Optional[str] = None,
                 stroke_opacity: Optional[float] = None, stroke_weight: Optional[float] = None,
                 z_index: Optional[int] = None, clickable: bool = True,
                 map: Optional[Map] = None, loader: Optional[PlatformLoader] = None):
        super().__init__(loader)
        self._path: List[LatLng] = [lat_lng(position) for position in path or ()]
        self._stroke_color = _check_color(stroke_color) if stroke_color is not None else None
        self._stroke_opacity = _check_opacity(stroke_opacity) if stroke_opacity is not None else None
        self._stroke_weight = check_number(stroke_weight, "Stroke weight") if stroke_weight is not None else None
        self._z_index = check_number(z_index, "zIndex") if z_index is not None else None
        self._clickable = _check_bool(clickable, "clickable")
        if map is not None:
            self.add_to(map)

    @property
    def path(self) -> List[LatLng]:
        return list(self._path)

    @property
    def stroke_color(self) -> Optional[str]:
        return self._stroke_color

    @property
    def stroke_opacity(self) -> Optional[float]:
        return self._stroke_opacity

    @property
    def stroke_weight(self) -> Optional[float]:
        return self._stroke_weight

    @property
    def z_index(self) -> Optional[int]:
        return self._z_index

    @property
    def clickable(self) -> bool:
        return self._clickable

    def get_path(self) -> List[LatLng]:
        return list(self._path)

    def get_bounds(self) -> LatLngBounds:
        """Smallest bounds containing the whole path (empty without a path)"""
        return lat_lng_bounds(self._path or None)

    def set_path(self, path: Iterable[LatLngValue]) -> "Polyline":
        self._path = [lat_lng(position) for position in path]
        self._set_native("path", list(self._path))
        return self

    def add_point(self, position: LatLngValue) -> "Polyline":
        """Append a position to the end of the path."""
        self._path.append(lat_lng(position))
        self._set_native("path", list(self._path))
        return self

    def set_stroke_color(self, stroke_color: str) -> "Polyline":
        self._stroke_color = _check_color(stroke_color)
        self._set_native("stroke_color", self._stroke_color)
        return self

    def set_stroke_opacity(self, stroke_opacity: float) -> "Polyline":
        self._stroke_opacity = _check_opacity(stroke_opacity)
        self._set_native("stroke_opacity", self._stroke_opacity)
        return self

    def set_stroke_weight(self, stroke_weight: float) -> "Polyline":
        self._stroke_weight = check_number(stroke_weight, "Stroke weight")
        self._set_native("stroke_weight", self._stroke_weight)
        return self

    def set_z_index(self, z_index: int) -> "Polyline":
        self._z_index = check_number(z_index, "zIndex")
        self._set_native("z_index", self._z_index)
        return self

    def set_clickable(self, clickable: bool) -> "Polyline":
        self._clickable = _check_bool(clickable, "clickable")
        self._set_native("clickable", self._clickable)
        return self

    def add_to(self, target_map: Map) -> "Polyline":
        """Draw the polyline on a map. Takes effect once both are bound."""
        self._attach_to_map(target_map)
        return self

    def set_map(self, target_map: Optional[Map]) -> None:
        if target_map is None:
            self.remove()
        else:
            self.add_to(target_map)

    def remove(self) -> "Polyline":
        self._detach_from_map()
        return self

    def _native_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"path": list(self._path), "clickable": self._clickable}
        for key, value in (("stroke_color", self._stroke_color),
                           ("stroke_opacity", self._stroke_opacity),
                           ("stroke_weight", self._stroke_weight),
                           ("z_index", self._z_index)):
            if value is not None:
                options[key] = value
        return options


def _check_opacity(value: Any) -> float:
    value = check_number(value, "Stroke opacity")
    if not 0 <= value <= 1:
        raise ValueError(f"Stroke opacity must be between 0 and 1, got {value}")
    return value


def _check_color(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TypeError("Stroke color must be a non-empty string")
    return value


def _check_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be a boolean")
    return value
