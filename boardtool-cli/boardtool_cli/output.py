"""Shared output utilities for CLI verbs."""

import asyncio
import json
import sys
from typing import Any, Coroutine, Dict


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync context."""
    return asyncio.run(coro)


def print_result(result: Dict, compact: bool = False) -> None:
    """Print a result dict as JSON to stdout."""
    indent = None if compact else 2
    print(json.dumps(result, indent=indent, default=str))


def die(msg: str, code: int = 1) -> None:
    """Print error to stderr and exit."""
    print(f"error: {msg}", file=sys.stderr)
    sys.exit(code)


class FileReader:
    """Input stream over a regular file, which never blocks."""

    def __init__(self, handle):
        self._handle = handle

    def read(self, n: int) -> bytes:
        return self._handle.read(n)


async def stdin_stream() -> Any:
    """Stdin as an input stream for a process session.

    Pipes and terminals are read asynchronously; regular files (shell
    redirection) are read directly.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    except (ValueError, OSError, NotImplementedError):
        return FileReader(sys.stdin.buffer)
    return reader
