"""
EventCoordinator Tests

🧪 Listener semantics:
- registration order and snapshots during dispatch
- once / only / call_immediate options
- removal modes and bridge notifications
- error propagation and isolation
"""

import asyncio
import logging

import pytest

from mapbinder.core.events import Event, EventConfig, EventCoordinator, ListenerBridge, build_event
from mapbinder.core.exceptions import InvalidListener
from mapbinder.core.values import LatLng, Point
from mapbinder.platform.base import NativeEvent


class Recorder:
    """Callable that remembers every event it receives"""

    def __init__(self, name="listener", log=None):
        self.name = name
        self.events = []
        self.log = log

    def __call__(self, event):
        self.events.append(event)
        if self.log is not None:
            self.log.append(self.name)

    @property
    def calls(self):
        return len(self.events)


class RecordingBridge(ListenerBridge):

    def __init__(self):
        self.calls = []

    def listener_added(self, event_type):
        self.calls.append(("added", event_type))

    def listeners_cleared(self, event_type):
        self.calls.append(("cleared", event_type))

    def all_listeners_cleared(self):
        self.calls.append(("all_cleared",))


class TestRegistration:

    def test_listeners_run_in_registration_order(self):
        events = EventCoordinator()
        log = []
        events.on("click", Recorder("a", log))
        events.on("click", Recorder("b", log))
        events.on("click", Recorder("c", log))

        events.dispatch("click")

        assert log == ["a", "b", "c"]

    def test_non_callable_listener_is_rejected(self):
        events = EventCoordinator()

        with pytest.raises(InvalidListener) as exc_info:
            events.on("click", "not a function")

        assert isinstance(exc_info.value, TypeError)
        assert 'The "click" event handler needs a callback function' in str(exc_info.value)
        assert not events.has_listener("click")

    def test_unknown_option_is_rejected(self):
        events = EventCoordinator()

        with pytest.raises(TypeError):
            events.on("click", Recorder(), {"twice": True})

        assert not events.has_listener("click")

    def test_config_object_and_flags(self):
        config = EventConfig.build({"once": True}, only=True)
        assert config.once and config.only and not config.call_immediate

    def test_context_is_passed_first(self):
        events = EventCoordinator()
        received = []
        context = object()

        events.on("click", lambda ctx, event: received.append((ctx, event.type)), context=context)
        events.dispatch("click")

        assert received == [(context, "click")]


class TestOnce:

    def test_once_listener_runs_once(self):
        events = EventCoordinator()
        listener = Recorder()
        events.once("click", listener)

        events.dispatch("click")
        events.dispatch("click")

        assert listener.calls == 1
        assert not events.has_listener("click")

    def test_mixed_on_and_once(self):
        events = EventCoordinator()
        f1, f2 = Recorder("f1"), Recorder("f2")
        events.on("x", f1)
        events.once("x", f2)

        events.dispatch("x")
        events.dispatch("x")

        assert f1.calls == 2
        assert f2.calls == 1
        assert events.has_listener("x", f1)
        assert not events.has_listener("x", f2)

    def test_once_listener_survives_nested_dispatch(self):
        events = EventCoordinator()
        calls = []

        def listener(event):
            calls.append(event.type)
            events.dispatch("x")

        events.once("x", listener)
        events.dispatch("x")

        assert calls == ["x"]
        assert not events.has_listener("x")

    def test_once_listener_removed_even_if_it_raises(self):
        events = EventCoordinator()

        def broken(event):
            raise RuntimeError("boom")

        events.once("x", broken)

        with pytest.raises(RuntimeError):
            events.dispatch("x")

        assert not events.has_listener("x")


class TestOnly:

    def test_only_once_keeps_first_listener(self):
        events = EventCoordinator()
        first, second = Recorder("a"), Recorder("b")

        events.only_once("x", first)
        events.only_once("x", second)
        events.dispatch("x")

        assert first.calls == 1
        assert second.calls == 0

    def test_only_blocks_every_later_registration(self):
        events = EventCoordinator()
        exclusive, other = Recorder(), Recorder()

        events.only("x", exclusive)
        events.on("x", other)
        events.dispatch("x")

        assert exclusive.calls == 1
        assert other.calls == 0

    def test_only_ignored_when_type_already_has_listeners(self):
        events = EventCoordinator()
        existing, exclusive = Recorder(), Recorder()

        events.on("x", existing)
        events.only("x", exclusive)
        events.dispatch("x")

        assert existing.calls == 1
        assert exclusive.calls == 0

    def test_off_releases_exclusivity(self):
        events = EventCoordinator()
        exclusive, later = Recorder(), Recorder()

        events.only("x", exclusive)
        events.off("x")
        events.on("x", later)
        events.dispatch("x")

        assert exclusive.calls == 0
        assert later.calls == 1

    def test_fired_only_once_releases_exclusivity(self):
        events = EventCoordinator()
        first, later = Recorder(), Recorder()

        events.only_once("x", first)
        events.dispatch("x")
        events.on("x", later)
        events.dispatch("x")

        assert first.calls == 1
        assert later.calls == 1

    def test_immediate_only_once_is_not_stored(self):
        events = EventCoordinator()
        events.dispatch("x", {"value": 1})
        first, later = Recorder(), Recorder()

        events.only_once("x", first)
        events.on("x", later)

        assert first.calls == 1
        assert first.events[0].value == 1
        assert events.has_listener("x", later)
        assert not events.has_listener("x", first)

    def test_raising_immediate_only_listener_releases_exclusivity(self):
        events = EventCoordinator()
        events.dispatch("x")
        later = Recorder()

        def broken(event):
            raise RuntimeError("listener bug")

        with pytest.raises(RuntimeError):
            events.only_once("x", broken)
        with pytest.raises(RuntimeError):
            events.only("x", broken)

        events.on("x", later)
        events.dispatch("x")

        assert not events.has_listener("x", broken)
        assert later.calls == 1


class TestCallImmediate:

    def test_on_immediate_after_dispatch(self):
        events = EventCoordinator()
        events.dispatch("ready")
        listener = Recorder()

        events.on_immediate("ready", listener)

        assert listener.calls == 1
        assert listener.events[0].type == "ready"

    def test_on_immediate_uses_last_payload(self):
        events = EventCoordinator()
        events.dispatch("moved", {"step": 1})
        events.dispatch("moved", {"step": 2})
        listener = Recorder()

        events.on_immediate("moved", listener)

        assert listener.events[0].step == 2
        assert events.last_payload("moved") == {"step": 2}

    def test_on_immediate_before_dispatch_waits(self):
        events = EventCoordinator()
        listener = Recorder()

        events.on_immediate("ready", listener)
        assert listener.calls == 0

        events.dispatch("ready")
        assert listener.calls == 1

    def test_once_immediate_after_dispatch_fires_once(self):
        events = EventCoordinator()
        events.dispatch("ready")
        listener = Recorder()

        events.once_immediate("ready", listener)
        events.dispatch("ready")

        assert listener.calls == 1


class TestRemoval:

    def test_off_during_dispatch_uses_snapshot(self):
        events = EventCoordinator()
        log = []
        events.on("x", Recorder("first", log))
        events.on("x", lambda event: (log.append("remover"), events.off("x")))
        events.on("x", Recorder("last", log))

        events.dispatch("x")
        events.dispatch("x")

        assert log == ["first", "remover", "last"]

    def test_off_with_callback(self):
        events = EventCoordinator()
        keep, drop = Recorder(), Recorder()
        events.on("x", keep)
        events.on("x", drop)

        events.off("x", drop)
        events.dispatch("x")

        assert keep.calls == 1
        assert drop.calls == 0

    def test_off_with_once_option_only_removes_matching_records(self):
        events = EventCoordinator()
        listener = Recorder()
        events.on("x", listener)
        events.once("x", listener)

        events.off("x", listener, {"once": True})
        events.dispatch("x")
        events.dispatch("x")

        assert listener.calls == 2

    def test_off_everything(self):
        events = EventCoordinator()
        events.on("x", Recorder())
        events.on("y", Recorder())

        events.off()

        assert events.event_types() == []

    def test_bridge_notifications(self):
        bridge = RecordingBridge()
        events = EventCoordinator(bridge=bridge)
        first, second = Recorder(), Recorder()

        events.on("x", first)
        events.on("x", second)
        events.off("x", first)
        events.off("x", second)
        events.once("y", Recorder())
        events.dispatch("y")
        events.off_all()

        assert bridge.calls == [
            ("added", "x"),
            ("cleared", "x"),
            ("added", "y"),
            ("cleared", "y"),
            ("all_cleared",),
        ]


class TestDispatch:

    def test_payload_is_merged_into_event(self):
        events = EventCoordinator()
        listener = Recorder()
        events.on("x", listener)

        events.dispatch("x", {"value": 3})

        event = listener.events[0]
        assert event.type == "x"
        assert event.value == 3
        assert event["value"] == 3
        assert event.missing is None
        assert event == {"type": "x", "value": 3}

    def test_dispatch_returns_owner(self):
        owner = object()
        events = EventCoordinator(owner)
        assert events.dispatch("x") is owner

    def test_dispatch_remembers_types(self):
        events = EventCoordinator()
        assert not events.has_dispatched("x")
        events.dispatch("x")
        assert events.has_dispatched("x")

    def test_native_event_translation(self):
        event = build_event("click", NativeEvent(dom_event="dom", lat_lng=(10, 20), pixel=(3, 4)))

        assert event.dom_event == "dom"
        assert event.lat_lng == LatLng(lat=10, lng=20)
        assert event.pixel == Point(x=3, y=4)
        assert "place_id" not in event

    def test_non_mapping_payload(self):
        event = build_event("x", 42)
        assert event.data == 42
        assert isinstance(build_event("x", Event("y", {"a": 1})), Event)

    def test_errors_propagate_by_default(self):
        events = EventCoordinator()
        events.on("x", lambda event: 1 / 0)

        with pytest.raises(ZeroDivisionError):
            events.dispatch("x")

    def test_isolated_errors_are_logged(self, caplog):
        events = EventCoordinator(isolate_errors=True)
        after = Recorder()
        events.on("x", lambda event: 1 / 0)
        events.on("x", after)

        with caplog.at_level(logging.ERROR, logger="mapbinder"):
            events.dispatch("x")

        assert after.calls == 1
        assert "listener for 'x' raised" in caplog.text

    @pytest.mark.asyncio
    async def test_async_listener_is_scheduled(self):
        events = EventCoordinator()
        received = []

        async def listener(event):
            received.append(event.type)

        events.on("x", listener)
        events.dispatch("x")
        assert received == []

        await asyncio.sleep(0)
        assert received == ["x"]
