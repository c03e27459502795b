"""boardtool constants

Well-known property keys and fixed values shared by the recipe builder,
the process session and the CLI.
"""

# Board property naming the debug tool, optionally as "package:tool".
DEBUG_TOOL_KEY = "debug.tool"

# Property holding the debug recipe template.
DEBUG_PATTERN_KEY = "debug.pattern"


class InjectedKey:
    """Properties set by the recipe builder rather than by property files."""

    BUILD_PATH = "build.path"
    PROJECT_NAME = "build.project_name"
    PORT = "debug.port"
    PORT_FILE = "debug.port.file"
    INTERPRETER = "interpreter"

    ALL = [BUILD_PATH, PROJECT_NAME, PORT, PORT_FILE, INTERPRETER]


DEFAULT_INTERPRETER = "console"

# Stripped from the port to derive debug.port.file.
PORT_DEVICE_PREFIX = "/dev/"

SKETCH_EXTENSION = ".ino"

# Conventional compile output folder inside a sketch.
BUILD_DIR = "build"

# Seconds between input exhaustion and the forced kill of the tool.
KILL_GRACE_SECONDS = 1.0

# User-level directory name for settings and logs.
USER_DIR = ".boardtool"

SETTINGS_FILE = "boardtool.yaml"
