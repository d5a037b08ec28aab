"""
Value object coercion tests.
"""

from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from mapbinder.core.values import LatLng, LatLngBounds, Point, Size, lat_lng, lat_lng_bounds, point, size


class TestLatLng:

    @pytest.mark.parametrize("value", [
        (52.37, 4.9),
        [52.37, 4.9],
        {"lat": 52.37, "lng": 4.9},
        SimpleNamespace(lat=52.37, lng=4.9),
        SimpleNamespace(lat=lambda: 52.37, lng=lambda: 4.9),
    ])
    def test_coercion(self, value):
        assert lat_lng(value) == LatLng(lat=52.37, lng=4.9)

    def test_out_of_range(self):
        with pytest.raises(ValidationError):
            lat_lng((91, 0))

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            lat_lng("52.37,4.9")

    def test_is_immutable(self):
        position = LatLng(lat=1, lng=2)

        with pytest.raises(ValidationError):
            position.lat = 3

        assert position.to_tuple() == (1, 2)
        assert position.to_dict() == {"lat": 1, "lng": 2}


class TestPointAndSize:

    def test_point(self):
        assert point((3, 4)) == Point(x=3, y=4)
        assert point({"x": 3, "y": 4}) == Point(x=3, y=4)

    def test_size(self):
        assert size((10, 20)) == Size(width=10, height=20)

        with pytest.raises(ValidationError):
            size((-1, 20))


class TestLatLngBounds:

    def test_from_positions(self):
        bounds = lat_lng_bounds([(0, 0), {"lat": 2, "lng": 4}, LatLng(lat=-1, lng=1)])

        assert bounds.south_west == LatLng(lat=-1, lng=0)
        assert bounds.north_east == LatLng(lat=2, lng=4)
        assert bounds.to_dict() == {"south": -1, "west": 0, "north": 2, "east": 4}

    def test_single_pair_is_one_position(self):
        bounds = lat_lng_bounds((52.37, 4.9))

        assert bounds.south_west == bounds.north_east == LatLng(lat=52.37, lng=4.9)

    def test_extend_returns_new_bounds(self):
        bounds = lat_lng_bounds((0, 0))
        extended = bounds.extend((5, -3)).extend(lat_lng_bounds([(1, 10)]))

        assert bounds.to_dict() == {"south": 0, "west": 0, "north": 0, "east": 0}
        assert extended.to_dict() == {"south": 0, "west": -3, "north": 5, "east": 10}
        assert lat_lng_bounds(extended) is extended

    def test_contains_and_center(self):
        bounds = lat_lng_bounds([(0, 0), (2, 4)])

        assert bounds.contains((1, 1))
        assert not bounds.contains((3, 1))
        assert bounds.get_center() == LatLng(lat=1, lng=2)

    def test_empty_bounds(self):
        bounds = lat_lng_bounds()

        assert bounds.is_empty
        assert bounds.to_dict() == {}
        assert bounds.get_center() is None
        assert not bounds.contains((0, 0))
        assert bounds.extend(LatLngBounds()).is_empty

    def test_invalid_position(self):
        with pytest.raises(ValidationError):
            lat_lng_bounds([(95, 0)])
