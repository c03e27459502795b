"""Shared fixtures: an installed hardware tree and a compiled sketch."""

import json
import logging
from pathlib import Path

import pytest

from boardtool.primitives.properties import PropertyStore
from boardtool.runtime.registry import (
    Package,
    PackageRegistry,
    PlatformRelease,
)

SAMD_PLATFORM_TXT = """\
# Arduino SAMD Core
name=Arduino SAMD (32-bits ARM Cortex-M0+) Boards
version=1.8.6

tools.gdb.path={runtime.tools.arm-none-eabi-gcc.path}/bin
tools.gdb.cmd=arm-none-eabi-gdb
tools.gdb.debug.pattern="{path}/{cmd}" --interpreter={interpreter} -ex "set pagination off" "{build.path}/{build.project_name}.elf"

tools.openocd.path={runtime.tools.openocd.path}
tools.openocd.cmd=bin/openocd
tools.openocd.cmd.windows=bin/openocd.exe
"""

SAMD_BOARDS_TXT = """\
menu.cpu=Processor

mkr1000.name=Arduino MKR1000
mkr1000.build.variant=mkr1000
mkr1000.build.openocdscript=openocd_scripts/arduino_zero.cfg
mkr1000.debug.tool=gdb
mkr1000.menu.cpu.fast=Fast
mkr1000.menu.cpu.fast.build.f_cpu=96000000L

nodebug.name=Board without debugger
nodebug.build.variant=nodebug
"""


@pytest.fixture(autouse=True)
def restore_boardtool_logger():
    """Undo handlers and level changes made by configure_logging()."""
    root = logging.getLogger("boardtool")
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def data_dir(tmp_path):
    """An installed arduino:samd platform with its tools."""
    root = tmp_path / "data"
    platform_dir = root / "packages" / "arduino" / "hardware" / "samd" / "1.8.6"
    _write(platform_dir / "platform.txt", SAMD_PLATFORM_TXT)
    _write(platform_dir / "boards.txt", SAMD_BOARDS_TXT)
    _write(platform_dir / "installed.json", json.dumps({
        "packages": [{
            "name": "arduino",
            "platforms": [{
                "architecture": "samd",
                "version": "1.8.6",
                "toolsDependencies": [
                    {"packager": "arduino", "name": "arm-none-eabi-gcc", "version": "7-2017q4"},
                    {"packager": "arduino", "name": "openocd", "version": "0.10.0-arduino7"},
                ],
            }],
        }],
    }))
    # An older release that must be ignored
    _write(root / "packages" / "arduino" / "hardware" / "samd" / "1.8.5" / "platform.txt",
           "name=old\n")

    for name, version in [("arm-none-eabi-gcc", "7-2017q4"), ("openocd", "0.10.0-arduino7")]:
        (root / "packages" / "arduino" / "tools" / name / version).mkdir(parents=True)
    return root


@pytest.fixture
def sketch_dir(tmp_path):
    """A sketch compiled for arduino:samd:mkr1000."""
    sketch = tmp_path / "sketches" / "Blink"
    _write(sketch / "Blink.ino", "void setup() {}\nvoid loop() {}\n")
    (sketch / "build" / "arduino.samd.mkr1000").mkdir(parents=True)
    return sketch


def _make_registry(tmp_path: Path, pattern: str, board_props=None) -> PackageRegistry:
    install_dir = tmp_path / "hw" / "test" / "posix" / "1.0.0"
    install_dir.mkdir(parents=True, exist_ok=True)
    platform = PlatformRelease(
        package="test",
        architecture="posix",
        version="1.0.0",
        install_dir=install_dir,
        properties=PropertyStore({
            "tools.runner.cmd": "sh",
            "tools.runner.debug.pattern": pattern,
        }),
    )
    props = {"name": "POSIX board", "debug.tool": "runner"}
    props.update(board_props or {})
    platform.add_board("board", PropertyStore(props))

    registry = PackageRegistry()
    package = registry.add_package(Package(name="test"))
    package.add_platform(platform)
    return registry


@pytest.fixture
def posix_sketch(tmp_path):
    """A sketch compiled for test:posix:board."""
    sketch = tmp_path / "sketches" / "Probe"
    _write(sketch / "Probe.ino", "")
    (sketch / "build" / "test.posix.board").mkdir(parents=True)
    return sketch


@pytest.fixture
def make_registry(tmp_path):
    """Factory for an in-memory registry with one board ``test:posix:board``.

    The board's debug tool is ``runner`` whose recipe is the given pattern.
    """

    def factory(pattern: str, board_props=None) -> PackageRegistry:
        return _make_registry(tmp_path, pattern, board_props)

    return factory
