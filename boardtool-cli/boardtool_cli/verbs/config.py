"""boardtool config dump [--format json|yaml]"""

import sys

from boardtool_cli.output import print_result


def register(subparsers):
    p = subparsers.add_parser("config", help="Inspect boardtool settings")
    sub = p.add_subparsers(dest="config_verb", required=True)
    dump = sub.add_parser("dump", help="Print the effective settings")
    dump.add_argument("--format", choices=["json", "yaml"], default="json")
    dump.set_defaults(handler=handle_dump)


def handle_dump(args, settings):
    data = settings.as_dict()
    if args.format == "yaml":
        import yaml

        yaml.safe_dump(data, sys.stdout, default_flow_style=False, sort_keys=False)
        return
    print_result(data)
