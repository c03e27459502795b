"""Tool identifier resolution.

A board names its debug tool either plainly (``openocd``) or qualified by
the package whose platform provides it (``arduino:openocd``). A qualified
reference pulls that package's platform, for the board's own architecture,
into the property merge.
"""

from dataclasses import dataclass
from typing import Optional

from boardtool.constants import DEBUG_TOOL_KEY
from boardtool.primitives.errors import ConfigurationError
from boardtool.primitives.properties import PropertyStore
from boardtool.runtime.registry import PackageRegistry, PlatformRelease


@dataclass
class ToolReference:
    """A resolved tool identifier.

    Attributes:
        name: Tool name without any package qualifier.
        package: Referenced package name, or None for a local tool.
        platform: Referenced platform release, or None for a local tool.
    """

    name: str
    package: Optional[str] = None
    platform: Optional[PlatformRelease] = None

    @property
    def properties(self) -> Optional[PropertyStore]:
        """Properties of the referenced platform, if any."""
        return self.platform.properties if self.platform else None


class ToolReferenceResolver:
    """Resolves ``[package:]tool`` identifiers against a registry."""

    def __init__(self, registry: PackageRegistry):
        self.registry = registry

    def resolve(self, tool_id: str, board_platform: PlatformRelease) -> ToolReference:
        """Resolve ``tool_id`` for a board of ``board_platform``.

        Raises:
            ConfigurationError: If the identifier has more than one ``:`` or
                the referenced platform is not installed.
        """
        split = tool_id.split(":")
        if len(split) > 2:
            raise ConfigurationError(
                f"invalid tool identifier in '{DEBUG_TOOL_KEY}' property: {tool_id}",
                field=DEBUG_TOOL_KEY,
            )
        if len(split) == 1:
            return ToolReference(name=tool_id)

        package, name = split
        architecture = board_platform.architecture
        platform = self.registry.get_platform(package, architecture)
        if platform is None:
            raise ConfigurationError(
                f"required platform {package}:{architecture} not installed",
                field=DEBUG_TOOL_KEY,
            )
        return ToolReference(name=name, package=package, platform=platform)
