"""Process session primitive.

Runs one external tool as a live session and routes its streams:
- caller input  -> tool stdin
- caller output <- tool stdout
- caller output <- tool stderr

Two background tasks live as long as the session:
- the signal relay forwards every signal from the cancellation source to
  the tool until the source is closed;
- the input pump copies caller input to the tool until the input is
  exhausted, then kills the tool after a grace period.
"""

import asyncio
import inspect
import logging
import signal
from enum import Enum
from typing import Any, AsyncIterator, List, Mapping, Optional, Sequence

from boardtool.constants import KILL_GRACE_SECONDS
from boardtool.primitives.errors import ProcessError

_CHUNK_SIZE = 4096


class SessionState(Enum):
    """Lifecycle of a ProcessSession."""

    CREATED = "created"
    RUNNING = "running"
    TERMINATING = "terminating"
    EXITED = "exited"


class SignalChannel:
    """Closable async source of signal numbers.

    Producers call ``put()``; the session iterates it with ``async for``.
    Iteration ends once ``close()`` is called and queued signals are drained.
    """

    _CLOSED = object()

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, sig: int) -> None:
        if self._closed:
            raise RuntimeError("signal channel is closed")
        self._queue.put_nowait(sig)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._CLOSED)

    def __aiter__(self) -> "SignalChannel":
        return self

    async def __anext__(self) -> int:
        item = await self._queue.get()
        if item is self._CLOSED:
            # Keep the sentinel for any other consumer.
            self._queue.put_nowait(self._CLOSED)
            raise StopAsyncIteration
        return item


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def describe_exit(returncode: int) -> Optional[str]:
    """Describe an abnormal exit status, or None for a clean exit."""
    if returncode == 0:
        return None
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


class ProcessSession:
    """One live external tool process with duplex byte streaming.

    Args:
        command_line: Argument vector; ``command_line[0]`` is the executable.
        in_stream: Caller input. Any object with ``read(n)`` returning bytes
            (or an awaitable of bytes); ``b""`` means exhausted.
        out: Caller sink. Any object with ``write(bytes)``; async writers and
            an optional ``flush()`` are supported. Receives both stdout and
            stderr with no ordering between the two.
        interrupt: Optional async iterable of signal numbers to forward.
        kill_grace: Seconds between input exhaustion and the forced kill.
        logger: Logger for session events (defaults to this module's).
        cwd: Optional working directory for the tool.
        env: Optional environment for the tool.
    """

    def __init__(
        self,
        command_line: Sequence[str],
        in_stream: Any,
        out: Any,
        interrupt: Optional[AsyncIterator[int]] = None,
        *,
        kill_grace: float = KILL_GRACE_SECONDS,
        logger: Optional[logging.Logger] = None,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        if not command_line:
            raise ValueError("command_line must not be empty")
        self.command_line: List[str] = list(command_line)
        self.state = SessionState.CREATED
        self._in_stream = in_stream
        self._out = out
        self._interrupt = interrupt
        self._kill_grace = kill_grace
        self._logger = logger or logging.getLogger(__name__)
        self._cwd = cwd
        self._env = dict(env) if env is not None else None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._background: List[asyncio.Task] = []
        self._output_tasks: List[asyncio.Task] = []

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    async def start(self) -> None:
        """Spawn the tool and start the relay, pump and output tasks.

        Raises:
            ProcessError: If the session was already started or the tool
                could not be spawned.
        """
        if self.state is not SessionState.CREATED:
            raise ProcessError(f"cannot start session in state {self.state.value}")

        self._logger.debug(
            "Executing debugger",
            extra={"extra": {f"param{i}": p for i, p in enumerate(self.command_line)}},
        )

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command_line,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._cwd,
                env=self._env,
            )
        except (OSError, ValueError) as e:
            self.state = SessionState.EXITED
            raise ProcessError("cannot execute debug tool", cause=e) from e

        self.state = SessionState.RUNNING
        self._logger.info("Started %s (pid %d)", self.command_line[0], self._process.pid)

        self._output_tasks = [
            asyncio.create_task(self._copy_output(self._process.stdout)),
            asyncio.create_task(self._copy_output(self._process.stderr)),
        ]
        if self._interrupt is not None:
            self._background.append(asyncio.create_task(self._relay_signals()))
        self._background.append(asyncio.create_task(self._pump_input()))

    async def wait(self) -> None:
        """Block until the tool exits, then release every session resource.

        Raises:
            ProcessError: If the session never started or the tool exited
                abnormally (non-zero status or killed by a signal).
        """
        if self._process is None:
            raise ProcessError("session not started")

        try:
            returncode = await self._process.wait()
            await self._drain_output()
        finally:
            await self._shutdown()

        self._logger.info("%s exited with status %d", self.command_line[0], returncode)
        failure = describe_exit(returncode)
        if failure:
            raise ProcessError(failure)

    def send_signal(self, sig: int) -> None:
        """Deliver ``sig`` to the tool; no-op once it has exited."""
        if self._process is None or self._process.returncode is not None:
            return
        try:
            self._process.send_signal(sig)
        except ProcessLookupError:
            pass

    def kill(self) -> None:
        """Force termination of the tool; no-op once it has exited."""
        if self._process is None or self._process.returncode is not None:
            return
        if self.state is SessionState.RUNNING:
            self.state = SessionState.TERMINATING
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def _relay_signals(self) -> None:
        async for sig in self._interrupt:
            self._logger.debug("Forwarding signal %s to debug tool", sig)
            self.send_signal(sig)
        self._logger.debug("Signal source closed")

    async def _pump_input(self) -> None:
        stdin = self._process.stdin
        try:
            while True:
                chunk = await _maybe_await(self._in_stream.read(_CHUNK_SIZE))
                if not chunk:
                    break
                stdin.write(chunk)
                await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._logger.debug("Debug tool input closed: %s", e)
        except Exception as e:
            self._logger.warning("Debug tool input failed: %s", e)

        # Input is exhausted or broken: terminate the tool after the grace
        # period whatever its state, so no process outlives the session.
        if self.state is SessionState.RUNNING:
            self.state = SessionState.TERMINATING
        await asyncio.sleep(self._kill_grace)
        self.kill()

    async def _copy_output(self, reader: asyncio.StreamReader) -> None:
        # The pipe is drained to EOF even when the sink fails, so the tool
        # never blocks on a full pipe.
        sink_failed = False
        while True:
            chunk = await reader.read(_CHUNK_SIZE)
            if not chunk:
                break
            if sink_failed:
                continue
            try:
                await _maybe_await(self._out.write(chunk))
                flush = getattr(self._out, "flush", None)
                if callable(flush):
                    await _maybe_await(flush())
            except Exception as e:
                sink_failed = True
                self._logger.warning("Writing debug tool output failed, discarding: %s", e)

    async def _drain_output(self) -> None:
        # Children of the tool may keep the pipes open after it exits.
        if self._output_tasks:
            await asyncio.wait(self._output_tasks, timeout=max(self._kill_grace, 0.1))

    async def _shutdown(self) -> None:
        tasks = self._background + self._output_tasks
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                self._logger.warning("Session task failed: %s", result)

        process = self._process
        if process.returncode is None:
            self.kill()
            await process.wait()

        if process.stdin is not None:
            process.stdin.close()
            try:
                await process.stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                pass

        self.state = SessionState.EXITED
