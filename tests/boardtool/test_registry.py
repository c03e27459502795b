"""Tests for the installed package registry."""

import json

import pytest

from boardtool.primitives.errors import ConfigurationError
from boardtool.runtime.fqbn import FQBN
from boardtool.runtime.registry import (
    PackageRegistry,
    PlatformRelease,
    ToolRelease,
    create_instance,
    destroy_instance,
    get_registry,
)


class TestFromDirectory:
    """PackageRegistry.from_directory()."""

    def test_loads_latest_platform(self, data_dir):
        """The highest installed version is used."""
        registry = PackageRegistry.from_directory(data_dir)
        platform = registry.get_platform("arduino", "samd")
        assert platform.version == "1.8.6"
        assert platform.properties.get("version") == "1.8.6"

    def test_loads_boards(self, data_dir):
        """boards.txt is grouped by board id, menu declarations skipped."""
        platform = PackageRegistry.from_directory(data_dir).get_platform("arduino", "samd")
        assert sorted(platform.boards) == ["mkr1000", "nodebug"]
        assert platform.boards["mkr1000"].name == "Arduino MKR1000"
        assert platform.boards["mkr1000"].platform is platform

    def test_loads_tool_dependencies(self, data_dir):
        """installed.json declares the required tools in order."""
        platform = PackageRegistry.from_directory(data_dir).get_platform("arduino", "samd")
        assert [str(d) for d in platform.tool_dependencies] == [
            "arduino:arm-none-eabi-gcc@7-2017q4",
            "arduino:openocd@0.10.0-arduino7",
        ]

    def test_missing_directory(self, tmp_path):
        """An empty data dir yields an empty registry."""
        assert PackageRegistry.from_directory(tmp_path).packages == {}

    def test_malformed_boards_file(self, data_dir):
        """A broken boards.txt is a configuration error."""
        boards = data_dir / "packages" / "arduino" / "hardware" / "samd" / "1.8.6" / "boards.txt"
        boards.write_text("mkr1000.name=MKR\nbroken line\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="error loading boards.txt"):
            PackageRegistry.from_directory(data_dir)

    def test_incomplete_tool_dependency(self, data_dir):
        """A tool dependency without a packager is a configuration error."""
        installed = data_dir / "packages" / "arduino" / "hardware" / "samd" / "1.8.6" / "installed.json"
        installed.write_text(json.dumps({"packages": [{"platforms": [{
            "architecture": "samd",
            "toolsDependencies": [{"name": "openocd", "version": "0.10.0"}],
        }]}]}), encoding="utf-8")
        with pytest.raises(ConfigurationError, match="invalid tool dependency"):
            PackageRegistry.from_directory(data_dir)


class TestResolveFQBN:
    """resolve_fqbn()."""

    def test_resolves_board(self, data_dir):
        """Known boards resolve with their properties."""
        registry = PackageRegistry.from_directory(data_dir)
        board, props = registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000"))
        assert board.board_id == "mkr1000"
        assert props.get("debug.tool") == "gdb"

    def test_applies_menu_options(self, data_dir):
        """Config options merge the selected menu entry."""
        registry = PackageRegistry.from_directory(data_dir)
        _, props = registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000:cpu=fast"))
        assert props.get("build.f_cpu") == "96000000L"

    def test_invalid_option(self, data_dir):
        """Unknown options are rejected."""
        registry = PackageRegistry.from_directory(data_dir)
        with pytest.raises(ConfigurationError, match="invalid option"):
            registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000:speed=fast"))

    def test_invalid_option_value(self, data_dir):
        """Unknown option values are rejected."""
        registry = PackageRegistry.from_directory(data_dir)
        with pytest.raises(ConfigurationError, match="invalid value 'slow'"):
            registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000:cpu=slow"))

    @pytest.mark.parametrize("fqbn, message", [
        ("acme:samd:mkr1000", "unknown package acme"),
        ("arduino:avr:uno", "platform arduino:avr is not installed"),
        ("arduino:samd:zero", "board zero not found"),
    ])
    def test_unknown(self, data_dir, fqbn, message):
        """Unknown packages, platforms and boards fail."""
        registry = PackageRegistry.from_directory(data_dir)
        with pytest.raises(ConfigurationError, match=message):
            registry.resolve_fqbn(FQBN.parse(fqbn))


class TestRequiredTools:
    """find_tools_required_for_board()."""

    def test_found_in_order(self, data_dir):
        """Tools come back in declaration order."""
        registry = PackageRegistry.from_directory(data_dir)
        board, _ = registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000"))
        tools = registry.find_tools_required_for_board(board)
        assert [t.name for t in tools] == ["arm-none-eabi-gcc", "openocd"]

    def test_missing_tool(self, data_dir):
        """Dependencies that are not installed fail."""
        registry = PackageRegistry.from_directory(data_dir)
        del registry.packages["arduino"].tools["openocd"]
        board, _ = registry.resolve_fqbn(FQBN.parse("arduino:samd:mkr1000"))
        with pytest.raises(ConfigurationError, match="openocd"):
            registry.find_tools_required_for_board(board)


class TestRuntimeProperties:
    """Runtime-derived property layers."""

    def test_platform_runtime(self, tmp_path):
        """runtime.platform.path and runtime.hardware.path."""
        install_dir = tmp_path / "samd" / "1.8.6"
        platform = PlatformRelease("arduino", "samd", "1.8.6", install_dir=install_dir)
        props = platform.runtime_properties()
        assert props.get("runtime.platform.path") == install_dir.as_posix()
        assert props.get("runtime.hardware.path") == install_dir.parent.as_posix()

    def test_tool_runtime(self, tmp_path):
        """runtime.tools.<name>.path with and without version."""
        tool = ToolRelease("arduino", "openocd", "0.10.0", install_dir=tmp_path)
        props = tool.runtime_properties()
        assert props.get("runtime.tools.openocd.path") == tmp_path.as_posix()
        assert props.get("runtime.tools.openocd-0.10.0.path") == tmp_path.as_posix()

    def test_not_installed(self):
        """No install dir, no runtime properties."""
        assert len(PlatformRelease("a", "b", "1").runtime_properties()) == 0


class TestInstances:
    """Instance table."""

    def test_create_and_get(self):
        """Registries are looked up by instance id."""
        registry = PackageRegistry()
        instance = create_instance(registry)
        try:
            assert get_registry(instance) is registry
        finally:
            destroy_instance(instance)

    def test_unknown_instance(self):
        """Unknown ids fail."""
        with pytest.raises(ConfigurationError, match="invalid instance"):
            get_registry(-1)
