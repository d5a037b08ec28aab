"""
Platform boundary tests: native objects, the memory platform and the
import bootstrap.
"""

import textwrap

import pytest

from mapbinder.app.loader import PlatformLoader
from mapbinder.core.exceptions import BootstrapFailure
from mapbinder.platform.base import NativeObject
from mapbinder.platform.importer import ImportBootstrap
from mapbinder.platform.memory import MemoryPlatform

PLATFORM_MODULE = textwrap.dedent('''
    from mapbinder.platform.memory import MemoryPlatform


    def create_platform(api_key, libraries, version):
        return MemoryPlatform(api_key=api_key, libraries=libraries, version=version)


    async def create_platform_async(api_key, libraries, version):
        return MemoryPlatform(api_key=api_key, libraries=libraries, version=version)


    def create_nothing(**options):
        return object()
''')


@pytest.fixture
def platform_module(tmp_path, monkeypatch):
    (tmp_path / "fake_maps_sdk.py").write_text(PLATFORM_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "fake_maps_sdk"


class TestNativeObject:

    def test_properties(self):
        native = NativeObject("marker", title="Home")
        native.set("zIndex", 3)

        assert native.get("title") == "Home"
        assert native.get("missing", "default") == "default"
        assert native.values() == {"title": "Home", "zIndex": 3}

    def test_listeners(self):
        native = NativeObject("marker")
        received = []
        listener = native.add_listener("click", received.append)

        native.emit("click", "event")
        listener.remove()
        native.emit("click", "again")

        assert received == ["event"]
        assert not native.has_listeners("click")

    def test_clear_listeners(self):
        native = NativeObject("marker")
        native.add_listener("click", lambda event: None)
        native.add_listener("click", lambda event: None)
        native.add_listener("drag", lambda event: None)
        assert native.listener_count("click") == 2

        native.clear_listeners("click")
        assert not native.has_listeners("click")
        assert native.has_listeners("drag")

        native.clear_instance_listeners()
        assert not native.has_listeners("drag")

    def test_invoke_is_remembered(self):
        native = NativeObject("info_window")

        native.invoke("open", map="map-handle")
        native.invoke("close")

        assert native.invocations == [("open", {"map": "map-handle"}), ("close", {})]


class TestMemoryPlatform:

    def test_create_records_calls(self):
        platform = MemoryPlatform()
        native = platform.create("marker", title="Home")
        native.set("title", "Work")

        assert platform.calls == [("create", "marker"), ("set", "marker", "title", "Work")]
        assert platform.objects_of("marker") == [native]

    def test_invoke_is_recorded(self):
        platform = MemoryPlatform()
        native = platform.create("info_window")

        native.invoke("open", anchor=None)

        assert platform.calls == [("create", "info_window"), ("invoke", "info_window", "open")]
        assert platform.supports("polyline")

    def test_unsupported_kind(self):
        platform = MemoryPlatform()

        assert not platform.supports("heatmap")
        with pytest.raises(ValueError):
            platform.create("heatmap")


class TestImportBootstrap:

    @pytest.mark.asyncio
    async def test_imports_platform_module(self, platform_module):
        platform_loader = PlatformLoader(api_key="key", libraries=["places"],
                                         bootstrap=ImportBootstrap(platform_module))

        platform = await platform_loader.load()

        assert isinstance(platform, MemoryPlatform)
        assert platform.api_key == "key"
        assert platform.libraries == ["places"]

    @pytest.mark.asyncio
    async def test_async_entry_point(self, platform_module):
        bootstrap = ImportBootstrap(platform_module, factory="create_platform_async")
        platform = await PlatformLoader(api_key="key", bootstrap=bootstrap).load()

        assert isinstance(platform, MemoryPlatform)

    @pytest.mark.asyncio
    async def test_missing_module(self):
        bootstrap = ImportBootstrap("no_such_maps_sdk_module")

        with pytest.raises(BootstrapFailure) as exc_info:
            await PlatformLoader(api_key="key", bootstrap=bootstrap).load()

        assert isinstance(exc_info.value.__cause__, ImportError)

    @pytest.mark.asyncio
    async def test_missing_entry_point(self, platform_module):
        bootstrap = ImportBootstrap(platform_module, factory="nope")

        with pytest.raises(BootstrapFailure):
            await PlatformLoader(api_key="key", bootstrap=bootstrap).load()

    @pytest.mark.asyncio
    async def test_entry_point_must_return_platform(self, platform_module):
        bootstrap = ImportBootstrap(platform_module, factory="create_nothing")

        with pytest.raises(BootstrapFailure):
            await PlatformLoader(api_key="key", bootstrap=bootstrap).load()

    def test_module_name_required(self):
        with pytest.raises(ValueError):
            ImportBootstrap("")
