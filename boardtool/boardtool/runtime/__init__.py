"""boardtool runtime services."""

from boardtool.runtime.debug import debug, get_command_line
from boardtool.runtime.fqbn import FQBN
from boardtool.runtime.recipe_builder import LEGACY_PATTERN_FIXES, RecipeBuilder
from boardtool.runtime.registry import (
    Board,
    Package,
    PackageRegistry,
    PlatformRelease,
    ToolDependency,
    ToolRelease,
    create_instance,
    get_registry,
)
from boardtool.runtime.request import DebugRequest, DebugResponse
from boardtool.runtime.sketch import Sketch
from boardtool.runtime.tool_reference import ToolReference, ToolReferenceResolver

__all__ = [
    "debug",
    "get_command_line",
    "DebugRequest",
    "DebugResponse",
    "FQBN",
    "Sketch",
    "Board",
    "Package",
    "PackageRegistry",
    "PlatformRelease",
    "ToolDependency",
    "ToolRelease",
    "create_instance",
    "get_registry",
    "RecipeBuilder",
    "LEGACY_PATTERN_FIXES",
    "ToolReference",
    "ToolReferenceResolver",
]
