"""Tests for tool identifier resolution."""

import pytest

from boardtool.primitives.errors import ConfigurationError
from boardtool.primitives.properties import PropertyStore
from boardtool.runtime.registry import Package, PackageRegistry, PlatformRelease
from boardtool.runtime.tool_reference import ToolReferenceResolver


@pytest.fixture
def registry():
    registry = PackageRegistry()
    arduino = registry.add_package(Package(name="arduino"))
    arduino.add_platform(PlatformRelease(
        "arduino", "samd", "1.8.6",
        properties=PropertyStore({"tools.openocd.cmd": "bin/openocd"}),
    ))
    vendor = registry.add_package(Package(name="vendor"))
    vendor.add_platform(PlatformRelease("vendor", "samd", "2.0.0"))
    return registry


@pytest.fixture
def board_platform(registry):
    return registry.get_platform("vendor", "samd")


class TestToolReferenceResolver:
    """ToolReferenceResolver.resolve()."""

    def test_plain_tool(self, registry, board_platform):
        """No separator: the tool is local to the board platform."""
        ref = ToolReferenceResolver(registry).resolve("openocd", board_platform)
        assert ref.name == "openocd"
        assert ref.package is None
        assert ref.properties is None

    def test_qualified_tool(self, registry, board_platform):
        """package:tool pulls in the package's platform for the board arch."""
        ref = ToolReferenceResolver(registry).resolve("arduino:openocd", board_platform)
        assert ref.name == "openocd"
        assert ref.package == "arduino"
        assert ref.properties.get("tools.openocd.cmd") == "bin/openocd"

    def test_too_many_separators(self, registry, board_platform):
        """More than one ':' is invalid."""
        with pytest.raises(ConfigurationError, match="invalid tool identifier"):
            ToolReferenceResolver(registry).resolve("a:b:c", board_platform)

    def test_unknown_package(self, registry, board_platform):
        """A missing package names the package:arch pair."""
        with pytest.raises(ConfigurationError, match="required platform acme:samd not installed"):
            ToolReferenceResolver(registry).resolve("acme:openocd", board_platform)

    def test_missing_architecture(self, registry):
        """A package without the board's architecture fails."""
        avr = PlatformRelease("vendor", "avr", "1.0.0")
        with pytest.raises(ConfigurationError, match="required platform arduino:avr not installed"):
            ToolReferenceResolver(registry).resolve("arduino:openocd", avr)
