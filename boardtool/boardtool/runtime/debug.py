"""Debug entry point.

Launches the debug tool of a board for a sketch and routes its streams:
caller input -> tool stdin, tool stdout/stderr -> caller output.
"""

import logging
from typing import Any, AsyncIterator, List, Optional

from boardtool.constants import KILL_GRACE_SECONDS
from boardtool.primitives.errors import ProcessError
from boardtool.primitives.process import ProcessSession
from boardtool.runtime.recipe_builder import RecipeBuilder
from boardtool.runtime.registry import PackageRegistry, get_registry
from boardtool.runtime.request import DebugRequest, DebugResponse

logger = logging.getLogger(__name__)


def get_command_line(
    request: DebugRequest,
    registry: Optional[PackageRegistry] = None,
    log: Optional[logging.Logger] = None,
) -> List[str]:
    """Resolve the debug tool command line for ``request``.

    Raises:
        ConfigurationError: If the request, board or tool is invalid.
        RecipeError: If the debug recipe cannot be split into arguments.
    """
    registry = registry or get_registry(request.instance)
    return RecipeBuilder(registry, logger=log).build(request)


async def debug(
    request: DebugRequest,
    in_stream: Any,
    out: Any,
    interrupt: Optional[AsyncIterator[int]] = None,
    *,
    registry: Optional[PackageRegistry] = None,
    log: Optional[logging.Logger] = None,
    kill_grace: float = KILL_GRACE_SECONDS,
) -> DebugResponse:
    """Run the debug tool for ``request`` until it exits.

    Construction failures raise before any process exists. Once the tool
    has been launched, failures are returned in ``DebugResponse.error``;
    output already streamed to ``out`` stays delivered.

    Args:
        request: The debug request.
        in_stream: Input forwarded to the tool; the tool is killed
            ``kill_grace`` seconds after it is exhausted.
        out: Sink for the tool's stdout and stderr.
        interrupt: Optional source of signals forwarded to the tool.
        registry: Registry to use instead of the request instance's.
        log: Logger injected into the builder and the session.
        kill_grace: Seconds between input exhaustion and the forced kill.

    Raises:
        ConfigurationError: If the request, board or tool is invalid.
        RecipeError: If the debug recipe cannot be split into arguments.
    """
    log = log or logger
    command_line = get_command_line(request, registry=registry, log=log)

    session = ProcessSession(
        command_line,
        in_stream,
        out,
        interrupt,
        kill_grace=kill_grace,
        logger=log,
    )
    try:
        await session.start()
        await session.wait()
    except ProcessError as e:
        log.warning("Debug tool failed: %s", e)
        return DebugResponse(error=str(e))
    return DebugResponse()
