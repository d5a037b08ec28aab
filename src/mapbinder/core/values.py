"""
Value Objects

Small validated data holders used by entities and event envelopes.
They are immutable; operations such as
``LatLngBounds.extend`` return new values.
"""

from numbers import Real
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    """A latitude/longitude pair in degrees."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    def to_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class Point(BaseModel):
    """A pixel offset."""
    model_config = ConfigDict(frozen=True)

    x: float = 0
    y: float = 0

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


class Size(BaseModel):
    """A width/height pair in pixels."""
    model_config = ConfigDict(frozen=True)

    width: float = Field(default=0, ge=0)
    height: float = Field(default=0, ge=0)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.width, self.height)


LatLngValue = Union[LatLng, Tuple[float, float], Dict[str, Any]]
PointValue = Union[Point, Tuple[float, float], Dict[str, Any]]
SizeValue = Union[Size, Tuple[float, float], Dict[str, Any]]


def lat_lng(value: LatLngValue) -> LatLng:
    """
    Coerce a value into a LatLng.

    Accepts a LatLng, a ``(lat, lng)`` pair, a mapping with ``lat``/``lng``
    keys, or any object exposing ``lat`` and ``lng`` attributes.

    Raises:
        pydantic.ValidationError: If the coordinates are out of range
        TypeError: If the value has an unsupported shape
    """
    if isinstance(value, LatLng):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return LatLng(lat=value[0], lng=value[1])
    if isinstance(value, dict):
        return LatLng.model_validate(value)
    if hasattr(value, "lat") and hasattr(value, "lng"):
        lat, lng = value.lat, value.lng
        # Some platforms expose lat()/lng() methods instead of attributes
        if callable(lat):
            lat, lng = lat(), lng()
        return LatLng(lat=lat, lng=lng)
    raise TypeError(f"Cannot convert {value!r} to LatLng")


def point(value: PointValue) -> Point:
    if isinstance(value, Point):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Point(x=value[0], y=value[1])
    if isinstance(value, dict):
        return Point.model_validate(value)
    if hasattr(value, "x") and hasattr(value, "y"):
        return Point(x=value.x, y=value.y)
    raise TypeError(f"Cannot convert {value!r} to Point")


def size(value: SizeValue) -> Size:
    if isinstance(value, Size):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Size(width=value[0], height=value[1])
    if isinstance(value, dict):
        return Size.model_validate(value)
    raise TypeError(f"Cannot convert {value!r} to Size")


class LatLngBounds(BaseModel):
    """
    A rectangle in geographical coordinates.

    Empty until a position is added. ``extend`` returns new bounds that
    also contain the given position(s).
    """
    model_config = ConfigDict(frozen=True)

    south_west: Optional[LatLng] = None
    north_east: Optional[LatLng] = None

    @property
    def is_empty(self) -> bool:
        return self.south_west is None

    def extend(self, value: "LatLngBoundsValue") -> "LatLngBounds":
        """
        Return bounds that also contain ``value``.

        Args:
            value: A position, a sequence of positions or other bounds

        Raises:
            pydantic.ValidationError: If a coordinate is out of range
            TypeError: If a position has an unsupported shape
        """
        if isinstance(value, LatLngBounds):
            positions = [] if value.is_empty else [value.south_west, value.north_east]
        else:
            positions = _positions(value)

        bounds = self
        for position in positions:
            bounds = bounds._including(position)
        return bounds

    def contains(self, value: LatLngValue) -> bool:
        if self.is_empty:
            return False
        position = lat_lng(value)
        return (self.south_west.lat <= position.lat <= self.north_east.lat
                and self.south_west.lng <= position.lng <= self.north_east.lng)

    def get_center(self) -> Optional[LatLng]:
        if self.is_empty:
            return None
        return LatLng(lat=(self.south_west.lat + self.north_east.lat) / 2,
                      lng=(self.south_west.lng + self.north_east.lng) / 2)

    def to_dict(self) -> Dict[str, float]:
        """The bounds as ``south``/``west``/``north``/``east`` degrees"""
        if self.is_empty:
            return {}
        return {
            "south": self.south_west.lat,
            "west": self.south_west.lng,
            "north": self.north_east.lat,
            "east": self.north_east.lng,
        }

    def _including(self, position: LatLng) -> "LatLngBounds":
        if self.is_empty:
            return LatLngBounds(south_west=position, north_east=position)
        return LatLngBounds(
            south_west=LatLng(lat=min(self.south_west.lat, position.lat),
                              lng=min(self.south_west.lng, position.lng)),
            north_east=LatLng(lat=max(self.north_east.lat, position.lat),
                              lng=max(self.north_east.lng, position.lng)),
        )


LatLngBoundsValue = Union[LatLngBounds, LatLngValue, Iterable[LatLngValue]]


def _positions(value: Any) -> list:
    # A (lat, lng) pair is a single position, any other sequence holds positions
    if isinstance(value, (tuple, list)):
        if len(value) == 2 and all(isinstance(item, Real) for item in value):
            return [lat_lng(value)]
        return [lat_lng(item) for item in value]
    return [lat_lng(value)]


def lat_lng_bounds(value: Optional[LatLngBoundsValue] = None) -> LatLngBounds:
    """
    Coerce a value into LatLngBounds.

    ``None`` gives empty bounds; a position or a sequence of positions gives
    the smallest bounds containing them.
    """
    if isinstance(value, LatLngBounds):
        return value
    bounds = LatLngBounds()
    if value is None:
        return bounds
    return bounds.extend(value)
