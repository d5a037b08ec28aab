"""
Map Entity

The map every other layer is attached to. The first map that binds tells
the loader, which then dispatches ``"map_load"``.
"""

from numbers import Real
from typing import Any, Dict, Optional

from ..app.loader import PlatformLoader
from ..core.values import LatLng, LatLngBoundsValue, LatLngValue, lat_lng, lat_lng_bounds
from ..platform.base import NativeObject
from .layer import Layer


class Map(Layer):
    """
    A map shown in a page element.

    Args:
        element_id: Id of the element that holds the map
        center: Initial center (LatLng, pair, mapping or object)
        zoom: Initial zoom level
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "map"
    native_kind = "map"

    def __init__(self, element_id: Optional[str] = None, center: Optional[LatLngValue] = None,
                 zoom: Optional[float] = None, loader: Optional[PlatformLoader] = None):
        super().__init__(loader)
        self.element_id = element_id
        self._center: Optional[LatLng] = lat_lng(center) if center is not None else None
        self._zoom: Optional[float] = None
        if zoom is not None:
            self._zoom = _check_zoom(zoom)

    @property
    def center(self) -> Optional[LatLng]:
        return self._center

    @property
    def zoom(self) -> Optional[float]:
        return self._zoom

    def get_center(self) -> Optional[LatLng]:
        return self._center

    def get_zoom(self) -> Optional[float]:
        return self._zoom

    def set_center(self, center: LatLngValue) -> "Map":
        self._center = lat_lng(center)
        self._set_native("center", self._center)
        return self

    def set_zoom(self, zoom: float) -> "Map":
        self._zoom = _check_zoom(zoom)
        self._set_native("zoom", self._zoom)
        return self

    def fit_bounds(self, bounds: LatLngBoundsValue) -> "Map":
        """
        Pan and zoom so that ``bounds`` is visible.

        Args:
            bounds: LatLngBounds, a position or a sequence of positions

        Raises:
            ValueError: If the bounds are empty
        """
        bounds = lat_lng_bounds(bounds)
        if bounds.is_empty:
            raise ValueError("Cannot fit the map to empty bounds")
        self.run_when_bound(lambda: self.to_native().invoke("fit_bounds", bounds=bounds))
        return self

    async def show(self) -> "Map":
        """Load the platform if needed and display the map."""
        await self.init()
        return self

    def _native_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self.element_id is not None:
            options["element_id"] = self.element_id
        if self._center is not None:
            options["center"] = self._center
        if self._zoom is not None:
            options["zoom"] = self._zoom
        return options

    def _handle_bound(self, handle: NativeObject) -> None:
        try:
            super()._handle_bound(handle)
        finally:
            self.loader.notify_map_loaded()


def _check_zoom(zoom: Any) -> float:
    if isinstance(zoom, bool) or not isinstance(zoom, Real):
        raise TypeError(f"Zoom must be a number, got {type(zoom).__name__}")
    return zoom
