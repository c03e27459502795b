"""Installed package/platform/tool registry.

Pure lookup over what is installed; nothing is downloaded or indexed here.

On-disk layout read by ``PackageRegistry.from_directory``:

    <data_dir>/packages/<package>/hardware/<arch>/<version>/
        platform.txt     platform properties
        boards.txt       board properties, grouped by board id
        installed.json   package index entry (tool dependencies)
    <data_dir>/packages/<package>/tools/<tool>/<version>/
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from boardtool.primitives.errors import ConfigurationError
from boardtool.primitives.properties import PropertyStore
from boardtool.runtime.fqbn import FQBN

logger = logging.getLogger(__name__)

PLATFORM_FILE = "platform.txt"
BOARDS_FILE = "boards.txt"
INSTALLED_FILE = "installed.json"


def _version_key(version: str) -> Tuple:
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in re.split(r"[.\-+]", version)
    )


@dataclass(frozen=True)
class ToolDependency:
    """A tool a platform needs, as declared in its package index entry."""

    packager: str
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.packager}:{self.name}@{self.version}"


@dataclass
class ToolRelease:
    """An installed tool version."""

    packager: str
    name: str
    version: str
    install_dir: Optional[Path] = None

    def runtime_properties(self) -> PropertyStore:
        """runtime.tools.<name>.path and runtime.tools.<name>-<version>.path."""
        props = PropertyStore()
        if self.install_dir is not None:
            props.set_path(f"runtime.tools.{self.name}.path", self.install_dir)
            props.set_path(f"runtime.tools.{self.name}-{self.version}.path", self.install_dir)
        return props

    def __str__(self) -> str:
        return f"{self.packager}:{self.name}@{self.version}"


@dataclass
class Board:
    """A board definition inside a platform release."""

    board_id: str
    properties: PropertyStore
    platform: Optional["PlatformRelease"] = None

    @property
    def name(self) -> str:
        return self.properties.get("name", self.board_id)

    def properties_for(self, fqbn: FQBN) -> PropertyStore:
        """Board properties with the FQBN config options applied.

        Each ``option=value`` merges the ``menu.<option>.<value>.*`` subtree
        over the base properties.

        Raises:
            ConfigurationError: If an option or value is not defined.
        """
        props = self.properties.copy()
        for option, value in fqbn.configs.items():
            menu = self.properties.subtree(f"menu.{option}")
            if not len(menu):
                raise ConfigurationError(f"invalid option '{option}'", field="fqbn")
            selected = menu.subtree(value)
            if value not in menu and not len(selected):
                raise ConfigurationError(
                    f"invalid value '{value}' for option '{option}'", field="fqbn"
                )
            props.merge(selected)
        return props


@dataclass
class PlatformRelease:
    """An installed platform (package + architecture) release."""

    package: str
    architecture: str
    version: str
    properties: PropertyStore = field(default_factory=PropertyStore)
    install_dir: Optional[Path] = None
    boards: Dict[str, Board] = field(default_factory=dict)
    tool_dependencies: List[ToolDependency] = field(default_factory=list)

    def add_board(self, board_id: str, properties: PropertyStore) -> Board:
        board = Board(board_id=board_id, properties=properties, platform=self)
        self.boards[board_id] = board
        return board

    def runtime_properties(self) -> PropertyStore:
        """runtime.platform.path and runtime.hardware.path."""
        props = PropertyStore()
        if self.install_dir is not None:
            props.set_path("runtime.platform.path", self.install_dir)
            props.set_path("runtime.hardware.path", self.install_dir.parent)
        return props

    def __str__(self) -> str:
        return f"{self.package}:{self.architecture}@{self.version}"


@dataclass
class Package:
    """A vendor package with its installed platforms and tools."""

    name: str
    platforms: Dict[str, PlatformRelease] = field(default_factory=dict)
    tools: Dict[str, Dict[str, ToolRelease]] = field(default_factory=dict)

    def add_platform(self, platform: PlatformRelease) -> PlatformRelease:
        self.platforms[platform.architecture] = platform
        return platform

    def add_tool(self, tool: ToolRelease) -> ToolRelease:
        self.tools.setdefault(tool.name, {})[tool.version] = tool
        return tool


class PackageRegistry:
    """Lookup over installed packages."""

    def __init__(self, packages: Optional[Dict[str, Package]] = None):
        self.packages: Dict[str, Package] = dict(packages or {})

    def add_package(self, package: Package) -> Package:
        self.packages[package.name] = package
        return package

    def get_platform(self, package: str, architecture: str) -> Optional[PlatformRelease]:
        """Installed platform for ``package:architecture``, or None."""
        pkg = self.packages.get(package)
        if pkg is None:
            return None
        return pkg.platforms.get(architecture)

    def resolve_fqbn(self, fqbn: FQBN) -> Tuple[Board, PropertyStore]:
        """Find the board for ``fqbn`` and its config-applied properties.

        Raises:
            ConfigurationError: If the package, platform or board is unknown.
        """
        pkg = self.packages.get(fqbn.package)
        if pkg is None:
            raise ConfigurationError(f"unknown package {fqbn.package}", field="fqbn")
        platform = pkg.platforms.get(fqbn.architecture)
        if platform is None:
            raise ConfigurationError(
                f"platform {fqbn.package}:{fqbn.architecture} is not installed", field="fqbn"
            )
        board = platform.boards.get(fqbn.board_id)
        if board is None:
            raise ConfigurationError(
                f"board {fqbn.board_id} not found in {platform}", field="fqbn"
            )
        return board, board.properties_for(fqbn)

    def find_tools_required_for_board(self, board: Board) -> List[ToolRelease]:
        """Installed tools the board's platform depends on, in declared order.

        Raises:
            ConfigurationError: If a dependency is not installed.
        """
        required: List[ToolRelease] = []
        for dep in board.platform.tool_dependencies:
            pkg = self.packages.get(dep.packager)
            tool = pkg.tools.get(dep.name, {}).get(dep.version) if pkg else None
            if tool is None:
                raise ConfigurationError(f"tool {dep} not available")
            required.append(tool)
        return required

    @classmethod
    def from_directory(cls, data_dir: Path) -> "PackageRegistry":
        """Build a registry from an installed hardware tree.

        The highest installed version of each platform is used.

        Raises:
            ConfigurationError: If a platform.txt, boards.txt or
                installed.json is malformed.
        """
        registry = cls()
        packages_dir = Path(data_dir) / "packages"
        if not packages_dir.is_dir():
            logger.debug("No packages directory in %s", data_dir)
            return registry

        for package_dir in sorted(p for p in packages_dir.iterdir() if p.is_dir()):
            package = registry.add_package(Package(name=package_dir.name))

            tools_dir = package_dir / "tools"
            if tools_dir.is_dir():
                for tool_dir in sorted(p for p in tools_dir.iterdir() if p.is_dir()):
                    for version_dir in sorted(p for p in tool_dir.iterdir() if p.is_dir()):
                        package.add_tool(ToolRelease(
                            packager=package.name,
                            name=tool_dir.name,
                            version=version_dir.name,
                            install_dir=version_dir,
                        ))

            hardware_dir = package_dir / "hardware"
            if not hardware_dir.is_dir():
                continue
            for arch_dir in sorted(p for p in hardware_dir.iterdir() if p.is_dir()):
                versions = [p for p in arch_dir.iterdir() if p.is_dir()]
                if not versions:
                    continue
                latest = max(versions, key=lambda p: _version_key(p.name))
                package.add_platform(_load_platform(package.name, arch_dir.name, latest))

        logger.debug("Loaded %d packages from %s", len(registry.packages), data_dir)
        return registry


def _load_properties(path: Path) -> PropertyStore:
    try:
        return PropertyStore.load(path)
    except ValueError as e:
        raise ConfigurationError(f"error loading {path.name}", cause=e) from e


def _load_platform(package: str, architecture: str, install_dir: Path) -> PlatformRelease:
    platform = PlatformRelease(
        package=package,
        architecture=architecture,
        version=install_dir.name,
        install_dir=install_dir,
    )

    platform_file = install_dir / PLATFORM_FILE
    if platform_file.is_file():
        platform.properties = _load_properties(platform_file)

    boards_file = install_dir / BOARDS_FILE
    if boards_file.is_file():
        for board_id, props in _load_properties(boards_file).first_level_of().items():
            if board_id == "menu":
                continue
            platform.add_board(board_id, props)

    installed_file = install_dir / INSTALLED_FILE
    if installed_file.is_file():
        platform.tool_dependencies = _load_tool_dependencies(installed_file, architecture)

    return platform


def _load_tool_dependencies(path: Path, architecture: str) -> List[ToolDependency]:
    try:
        index = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Ignoring invalid %s: %s", path, e)
        return []

    deps: List[ToolDependency] = []
    for pkg in index.get("packages", []):
        for release in pkg.get("platforms", []):
            if release.get("architecture", architecture) != architecture:
                continue
            for dep in release.get("toolsDependencies", []):
                try:
                    deps.append(ToolDependency(
                        packager=dep["packager"],
                        name=dep["name"],
                        version=dep["version"],
                    ))
                except (KeyError, TypeError) as e:
                    raise ConfigurationError(
                        f"invalid tool dependency {dep!r} in {path}", cause=e
                    ) from e
    return deps


# Registries opened by callers, keyed by instance id.
_instances: Dict[int, PackageRegistry] = {}


def create_instance(registry: PackageRegistry) -> int:
    """Register ``registry`` and return its instance id."""
    instance_id = max(_instances, default=0) + 1
    _instances[instance_id] = registry
    return instance_id


def get_registry(instance_id: int) -> PackageRegistry:
    """Registry for ``instance_id``.

    Raises:
        ConfigurationError: If the instance is unknown.
    """
    registry = _instances.get(instance_id)
    if registry is None:
        raise ConfigurationError(f"invalid instance {instance_id}", field="instance")
    return registry


def destroy_instance(instance_id: int) -> None:
    _instances.pop(instance_id, None)
