"""
InfoWindow Entity

A popup with content, opened over a map position or anchored to a marker.
Opening one info window closes the others that share its loader, unless
``auto_close`` is turned off.
"""

import asyncio
import weakref
from typing import Any, Dict, Optional

from ..app.loader import PlatformLoader
from ..core.values import LatLng, LatLngValue, Size, SizeValue, lat_lng, size
from .layer import Layer, check_number
from .map import Map

TRIGGER_EVENTS = ("click", "clickon", "hover")

# Info windows that are currently open
_open_windows: "weakref.WeakSet[InfoWindow]" = weakref.WeakSet()


class InfoWindow(Layer):
    """
    A popup window on a map.

    Args:
        content: Content shown in the window
        position: Where the window points when opened on a map
        pixel_offset: Offset of the window tip from its anchor
        max_width: Maximum width in pixels
        z_index: Stacking order among info windows
        auto_close: Close other open info windows when this one opens
        toggle_display: Opening an open window closes it
        loader: Loader to bind with (defaults to the process loader)
    """

    object_type = "info_window"
    native_kind = "info_window"

    def __init__(self, content: Optional[str] = None, position: Optional[LatLngValue] = None,
                 pixel_offset: SizeValue = (0, 0), max_width: Optional[float] = None,
                 z_index: Optional[int] = None, auto_close: bool = True, toggle_display: bool = True,
                 loader: Optional[PlatformLoader] = None):
        super().__init__(loader)
        self._content = content
        self._position: Optional[LatLng] = lat_lng(position) if position is not None else None
        self._pixel_offset: Size = size(pixel_offset)
        self._max_width = check_number(max_width, "max_width") if max_width is not None else None
        self._z_index = check_number(z_index, "zIndex") if z_index is not None else None
        self.auto_close = auto_close
        self.toggle_display = toggle_display
        self._is_open = False
        self._anchor: Optional[Layer] = None
        self._attached_to: Optional[Layer] = None

    @property
    def content(self) -> Optional[str]:
        return self._content

    @property
    def position(self) -> Optional[LatLng]:
        return self._position

    @property
    def pixel_offset(self) -> Size:
        return self._pixel_offset

    @property
    def max_width(self) -> Optional[float]:
        return self._max_width

    @property
    def z_index(self) -> Optional[int]:
        return self._z_index

    @property
    def anchor(self) -> Optional[Layer]:
        """The map or layer the window is open on"""
        return self._anchor

    def has_content(self) -> bool:
        return bool(self._content and self._content.strip())

    def is_open(self) -> bool:
        return self._is_open

    def set_content(self, content: str) -> "InfoWindow":
        self._content = content
        self._set_native("content", content)
        return self

    def set_position(self, position: LatLngValue) -> "InfoWindow":
        self._position = lat_lng(position)
        self._set_native("position", self._position)
        return self

    def set_pixel_offset(self, pixel_offset: SizeValue) -> "InfoWindow":
        self._pixel_offset = size(pixel_offset)
        self._set_native("pixel_offset", self._pixel_offset)
        return self

    def set_max_width(self, max_width: float) -> "InfoWindow":
        self._max_width = check_number(max_width, "max_width")
        self._set_native("max_width", self._max_width)
        return self

    def set_z_index(self, z_index: int) -> "InfoWindow":
        self._z_index = check_number(z_index, "zIndex")
        self._set_native("z_index", self._z_index)
        return self

    # Opening and closing

    def open(self, anchor: Layer) -> "InfoWindow":
        """
        Open the window on a map, or anchored to a layer such as a marker.

        The native window opens once both this window and the anchor are
        bound. Opening an open window closes it when ``toggle_display`` is
        set, and does nothing otherwise.
        """
        if self._is_open:
            if self.toggle_display:
                self.hide()
            return self

        if self.auto_close:
            for window in list(_open_windows):
                if window is not self and window.loader is self.loader:
                    window.hide()

        self._is_open = True
        self._anchor = anchor
        _open_windows.add(self)
        Layer.set_map(self, anchor if isinstance(anchor, Map) else anchor.get_map())

        def open_on_anchor():
            anchor.run_when_bound(lambda: self._open_native(anchor))

        self.run_when_bound(open_on_anchor)
        return self

    async def show(self, anchor: Layer) -> "InfoWindow":
        """Open the window and wait until it is open natively."""
        self.open(anchor)
        await asyncio.gather(self.init(), anchor.init())
        return self

    def hide(self) -> "InfoWindow":
        was_open = self._is_open
        self._is_open = False
        self._anchor = None
        _open_windows.discard(self)
        Layer.set_map(self, None)
        if was_open and self.is_bound:
            self.to_native().invoke("close")
        return self

    close = hide

    def toggle(self, anchor: Layer) -> "InfoWindow":
        if self._is_open:
            return self.hide()
        return self.open(anchor)

    def attach_to(self, element: Layer, event: str = "click") -> "InfoWindow":
        """
        Open the window when something happens on ``element``.

        Args:
            element: The map or layer to listen on
            event: ``"click"`` toggles the window on every click,
                ``"clickon"`` only opens it and ``"hover"`` opens it while
                the pointer is over the element

        Raises:
            ValueError: On an unknown trigger event
        """
        if event not in TRIGGER_EVENTS:
            raise ValueError(f"Unknown info window trigger {event!r}, expected one of {', '.join(TRIGGER_EVENTS)}")
        if self._attached_to is not None:
            return self
        self._attached_to = element

        if event == "hover":
            self.toggle_display = False
            element.on("mouseover", lambda e: self._open_at(element, e, follow=True))
            if isinstance(element, Map):
                element.on("mousemove", lambda e: self._open_at(element, e, follow=True))
            element.on("mouseout", lambda e: self.hide())
        else:
            if event == "clickon":
                self.toggle_display = False
            element.on("click", lambda e: self._open_at(element, e, follow=isinstance(element, Map)))
        return self

    def _open_at(self, element: Layer, event: Any, follow: bool) -> None:
        position = getattr(event, "lat_lng", None)
        if follow and position is not None:
            self.set_position(position)
        self.open(element)

    def _open_native(self, anchor: Layer) -> None:
        # Closed or reopened elsewhere while waiting for the anchor
        if not self._is_open or self._anchor is not anchor:
            return
        if isinstance(anchor, Map):
            self.to_native().invoke("open", map=anchor.to_native())
        else:
            self.to_native().invoke("open", anchor=anchor.to_native())

    def _native_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"pixel_offset": self._pixel_offset}
        for key, value in (("content", self._content),
                           ("position", self._position),
                           ("max_width", self._max_width),
                           ("z_index", self._z_index)):
            if value is not None:
                options[key] = value
        return options
