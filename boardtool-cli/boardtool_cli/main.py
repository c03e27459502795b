"""boardtool entry point.

Maps shell verbs onto boardtool operations:
- debug: launch a board's debug tool for a compiled sketch
- config: inspect the effective settings
"""

import argparse
import sys
from pathlib import Path

from boardtool_cli.verbs import config, debug


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boardtool",
        description="Launch vendor debug tools for sketches",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        help="Settings file (default: ~/.boardtool/boardtool.yaml)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Folder holding installed packages (overrides directories.data)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="verb", required=True)

    debug.register(sub)
    config.register(sub)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    from boardtool.primitives.errors import ConfigurationError
    from boardtool.settings import Settings, load_settings
    from boardtool.utils.logger import configure_logging

    try:
        settings = load_settings(args.config_file)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.data_dir is not None:
        data = settings.as_dict()
        data["directories"]["data"] = str(args.data_dir)
        settings = Settings(data, source=settings.source)

    if args.debug:
        import logging
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(name)s] %(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    else:
        try:
            configure_logging(
                settings.get("logging.level", "info"),
                settings.get("logging.format", "text"),
                log_dir=settings.data_dir / "logs",
            )
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)

    # Dispatch to verb handler
    handler = args.handler
    handler(args, settings)


if __name__ == "__main__":
    main()
