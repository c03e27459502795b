"""Recipe builder: from a debug request to a tool command line.

Property layers are merged in a fixed order, later layers overriding
earlier ones:

    1. referenced platform    (when debug.tool is "package:tool")
    2. board platform
    3. board platform runtime (runtime.platform.path, ...)
    4. board
    5. tools.<tool>.*         (the tool sub-tree, lifted to the top level)
    6. required tool runtime  (runtime.tools.<name>.path, one per tool)

Contextual values (build path, project name, port, interpreter) are then
set on top, the debug.pattern recipe is expanded and split into arguments.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from boardtool.constants import (
    BUILD_DIR,
    DEBUG_PATTERN_KEY,
    DEBUG_TOOL_KEY,
    DEFAULT_INTERPRETER,
    PORT_DEVICE_PREFIX,
    SKETCH_EXTENSION,
    InjectedKey,
)
from boardtool.primitives.errors import ConfigurationError, RecipeError
from boardtool.primitives.properties import PropertyStore
from boardtool.primitives.quoting import split_quoted
from boardtool.runtime.fqbn import FQBN
from boardtool.runtime.registry import Board, PackageRegistry
from boardtool.runtime.request import DebugRequest
from boardtool.runtime.sketch import Sketch
from boardtool.runtime.tool_reference import ToolReference, ToolReferenceResolver

# Vendor packages in the wild ship recipes that are broken as released.
# Each entry maps the exact broken pattern to its corrected form.
LEGACY_PATTERN_FIXES: Dict[str, str] = {
    # samd core 1.8.5/1.8.6: hardcoded interpreter, unquoted paths
    '"{path}/{cmd}" --interpreter=mi2 -ex "set pagination off" -ex \'target extended-remote | {tools.openocd.path}/{tools.openocd.cmd} -s "{tools.openocd.path}/share/openocd/scripts/" --file "{runtime.platform.path}/variants/{build.variant}/{build.openocdscript}" -c "gdb_port pipe" -c "telnet_port 0"\' {build.path}/{build.project_name}.elf':
    '"{path}/{cmd}" --interpreter={interpreter} -ex "set remotetimeout 5" -ex "set pagination off" -ex \'target extended-remote | "{tools.openocd.path}/{tools.openocd.cmd}" -s "{tools.openocd.path}/share/openocd/scripts/" --file "{runtime.platform.path}/variants/{build.variant}/{build.openocdscript}" -c "gdb_port pipe" -c "telnet_port 0"\' "{build.path}/{build.project_name}.elf"',
}


def apply_legacy_fixes(pattern: str, fixes: Optional[Dict[str, str]] = None) -> str:
    """Return the corrected recipe if ``pattern`` is a known broken one."""
    fixes = LEGACY_PATTERN_FIXES if fixes is None else fixes
    return fixes.get(pattern, pattern)


def port_file(port: str) -> str:
    """Port without its device directory ("/dev/ttyACM0" -> "ttyACM0")."""
    if port.startswith(PORT_DEVICE_PREFIX):
        return port[len(PORT_DEVICE_PREFIX):]
    return port


@dataclass
class PropertyLayer:
    """One named layer of the precedence chain."""

    name: str
    properties: PropertyStore


class RecipeBuilder:
    """Builds tool command lines from debug requests."""

    def __init__(self, registry: PackageRegistry, logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.resolver = ToolReferenceResolver(registry)
        self._logger = logger or logging.getLogger(__name__)

    def build(self, request: DebugRequest) -> List[str]:
        """Resolve ``request`` into an argument vector.

        Raises:
            ConfigurationError: If the request, board or tool is invalid.
            RecipeError: If the expanded recipe cannot be split.
        """
        return self.command_line(self.build_properties(request))

    def build_properties(self, request: DebugRequest) -> PropertyStore:
        """Merged and injected properties for ``request``."""
        if request.import_file:
            raise ConfigurationError(
                "the import_file parameter has been deprecated, use import_dir instead",
                field="import_file",
            )
        if not request.sketch_path:
            raise ConfigurationError("missing sketch_path", field="sketch_path")

        try:
            sketch = Sketch.from_path(Path(request.sketch_path))
        except ConfigurationError as e:
            raise ConfigurationError("opening sketch", field="sketch_path", cause=e) from e

        fqbn_in = request.fqbn or sketch.metadata_fqbn
        if not fqbn_in:
            raise ConfigurationError("no Fully Qualified Board Name provided", field="fqbn")
        try:
            fqbn = FQBN.parse(fqbn_in)
        except ConfigurationError as e:
            raise ConfigurationError("error parsing FQBN", field="fqbn", cause=e) from e

        try:
            board, board_properties = self.registry.resolve_fqbn(fqbn)
        except ConfigurationError as e:
            raise ConfigurationError("error resolving FQBN", field="fqbn", cause=e) from e

        tool_id = board_properties.get(DEBUG_TOOL_KEY)
        if not tool_id:
            raise ConfigurationError(
                f"cannot get programmer tool: undefined '{DEBUG_TOOL_KEY}' property",
                field=DEBUG_TOOL_KEY,
            )
        tool = self.resolver.resolve(tool_id, board.platform)

        props = self.merge_layers(self.layers(tool, board, board_properties))
        props.merge(props.subtree(f"tools.{tool.name}"))
        for layer in self.required_tool_layers(board):
            props.merge(layer.properties)

        self.inject(props, request, sketch, fqbn)
        return props

    def layers(
        self, tool: ToolReference, board: Board, board_properties: PropertyStore
    ) -> List[PropertyLayer]:
        """Layers 1-4 of the precedence chain, lowest precedence first."""
        layers: List[PropertyLayer] = []
        if tool.platform is not None:
            layers.append(PropertyLayer(f"referenced platform {tool.platform}", tool.platform.properties))
        platform = board.platform
        layers.append(PropertyLayer(f"platform {platform}", platform.properties))
        layers.append(PropertyLayer(f"platform {platform} runtime", platform.runtime_properties()))
        layers.append(PropertyLayer(f"board {board.board_id}", board_properties))
        return layers

    def required_tool_layers(self, board: Board) -> List[PropertyLayer]:
        """Runtime layers of the tools the board's platform requires."""
        try:
            tools = self.registry.find_tools_required_for_board(board)
        except ConfigurationError as e:
            self._logger.warning("Cannot resolve tools required for debug: %s", e)
            return []

        layers = []
        for required in tools:
            self._logger.info("Tool required for debug", extra={"extra": {"tool": str(required)}})
            layers.append(PropertyLayer(f"tool {required} runtime", required.runtime_properties()))
        return layers

    def merge_layers(self, layers: List[PropertyLayer]) -> PropertyStore:
        props = PropertyStore()
        for layer in layers:
            self._logger.debug("Merging %s (%d properties)", layer.name, len(layer.properties))
            props.merge(layer.properties)
        return props

    def inject(
        self, props: PropertyStore, request: DebugRequest, sketch: Sketch, fqbn: FQBN
    ) -> None:
        """Set the values that no property file provides."""
        import_path = self.import_path(request, sketch, fqbn)
        props.set_path(InjectedKey.BUILD_PATH, import_path)
        props.set(InjectedKey.PROJECT_NAME, sketch.name + SKETCH_EXTENSION)

        if request.port:
            props.set(InjectedKey.PORT, request.port)
            props.set(InjectedKey.PORT_FILE, port_file(request.port))

        props.set(InjectedKey.INTERPRETER, request.interpreter or DEFAULT_INTERPRETER)

    def import_path(self, request: DebugRequest, sketch: Sketch, fqbn: FQBN) -> Path:
        """Folder holding the compiled sketch.

        Raises:
            ConfigurationError: If it doesn't exist or is not a directory.
        """
        if request.import_dir:
            path = Path(request.import_dir)
        else:
            suffix = fqbn.string_without_config().replace(":", ".")
            path = sketch.full_path / BUILD_DIR / suffix

        if not path.exists():
            raise ConfigurationError(f"compiled sketch not found in {path}", field="import_dir")
        if not path.is_dir():
            raise ConfigurationError(
                f"expected compiled sketch in directory {path}, but is a file instead",
                field="import_dir",
            )
        return path

    def command_line(self, props: PropertyStore) -> List[str]:
        """Expand the debug recipe in ``props`` and split it into arguments.

        Raises:
            ConfigurationError: If there is no debug recipe.
            RecipeError: If the expanded recipe has unbalanced quotes or no
                arguments at all.
        """
        pattern = props.get(DEBUG_PATTERN_KEY)
        if not pattern:
            raise ConfigurationError(
                f"undefined '{DEBUG_PATTERN_KEY}' property", field=DEBUG_PATTERN_KEY
            )
        pattern = apply_legacy_fixes(pattern)

        cmd_line = props.expand(pattern)
        try:
            args = split_quoted(cmd_line)
        except RecipeError as e:
            raise RecipeError(f"invalid recipe '{pattern}': {e}", pattern=pattern) from e
        if not args:
            raise RecipeError(f"invalid recipe '{pattern}': empty command line", pattern=pattern)
        return args
