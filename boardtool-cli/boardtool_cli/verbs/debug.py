"""boardtool debug [sketch] -b <fqbn> [-p <port>] [--interpreter <mode>] [--input-dir <dir>] [--dry-run]

Launches the board's debug tool for a compiled sketch. The terminal is
wired to the tool: stdin is forwarded to it, its stdout and stderr are
printed, and Ctrl-C is relayed to it instead of stopping boardtool.
"""

import asyncio
import signal
import sys

from boardtool_cli.output import die, print_result, run_async, stdin_stream


def register(subparsers):
    p = subparsers.add_parser("debug", help="Debug a sketch on a board")
    p.add_argument("sketch_path", nargs="?", default=".",
                   help="Sketch folder (default: current directory)")
    p.add_argument("-b", "--fqbn", default="",
                   help="Fully Qualified Board Name, e.g. arduino:samd:mkr1000")
    p.add_argument("-p", "--port", default="", help="Debug port, e.g. /dev/ttyACM0 or COM3")
    p.add_argument("--interpreter", default="",
                   help="Debugger interpreter, e.g. console, mi, mi1, mi2, mi3 (default: console)")
    p.add_argument("--input-dir", dest="import_dir", default="",
                   help="Folder with the compiled sketch (default: <sketch>/build/<fqbn>)")
    p.add_argument("--dry-run", action="store_true",
                   help="Print the tool command line without running it")
    p.set_defaults(handler=handle)


async def _run(request):
    from boardtool.primitives.process import SignalChannel
    from boardtool.runtime.debug import debug

    loop = asyncio.get_running_loop()
    interrupt = SignalChannel()
    relay_sigint = sys.platform != "win32"
    if relay_sigint:
        loop.add_signal_handler(signal.SIGINT, interrupt.put, signal.SIGINT)
    try:
        return await debug(request, await stdin_stream(), sys.stdout.buffer, interrupt)
    finally:
        if relay_sigint:
            loop.remove_signal_handler(signal.SIGINT)
        interrupt.close()


def handle(args, settings):
    from boardtool.primitives.errors import ConfigurationError, RecipeError
    from boardtool.runtime.debug import get_command_line
    from boardtool.runtime.registry import PackageRegistry, create_instance, destroy_instance
    from boardtool.runtime.request import DebugRequest

    try:
        registry = PackageRegistry.from_directory(settings.data_dir)
    except ConfigurationError as e:
        die(f"loading installed platforms: {e}")

    instance = create_instance(registry)
    request = DebugRequest(
        instance=instance,
        sketch_path=args.sketch_path,
        fqbn=args.fqbn,
        port=args.port,
        interpreter=args.interpreter,
        import_dir=args.import_dir,
    )

    try:
        if args.dry_run:
            print_result({"command_line": get_command_line(request)})
            return
        response = run_async(_run(request))
    except (ConfigurationError, RecipeError) as e:
        die(str(e))
    finally:
        destroy_instance(instance)

    if not response.success:
        die(response.error)
