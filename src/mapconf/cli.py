"""Command line entry point: build a configuration document and report on it."""

import argparse
import logging
import sys
from typing import Dict, List, Optional

import yaml

from .builder import ConfigBuilder
from .components import ComponentResolver
from .configuration import Configuration
from .exceptions import MapConfError

logger = logging.getLogger(__name__)


def main(args: Optional[List[str]] = None) -> int:
    """Run the command line interface.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parsed_args = _parse_command_line(sys.argv[1:] if args is None else args)
    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Describing a component needs only the default aliases
    if parsed_args.describe:
        resolver = ComponentResolver(Configuration().type_alias_registry)
        try:
            print(resolver.describe_component(parsed_args.describe))
        except MapConfError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        return 0

    if parsed_args.config is None:
        print("error: a configuration document is required", file=sys.stderr)
        return 2

    try:
        builder = ConfigBuilder.from_path(
            parsed_args.config,
            environment=parsed_args.env,
            properties=_parse_variables(parsed_args.define) or None,
        )
        configuration = builder.parse()
    except (MapConfError, OSError) as e:
        logger.debug("Build failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if parsed_args.print_config:
        print(yaml.dump(configuration.summary(), default_flow_style=False, indent=2, sort_keys=False))
    else:
        print(f"Configuration built: environment={builder.environment}")
    return 0


def _parse_command_line(args: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mapconf", description="Build and inspect a mapconf configuration document")
    parser.add_argument("config", nargs="?", help="YAML or XML configuration document.")
    parser.add_argument("--env", help="Id of the environment to select (defaults to the document's default).")
    parser.add_argument(
        "-D",
        dest="define",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Seed variable; wins over properties declared by the document. Repeatable.",
    )
    parser.add_argument("--print", dest="print_config", action="store_true", help="Print the assembled configuration")
    parser.add_argument("--describe", metavar="NAME", help="Show a component's documented properties (alias or path)")
    parser.add_argument("--verbose", action="store_true", help="Log every section and component")
    return parser.parse_args(args)


def _parse_variables(pairs: List[str]) -> Dict[str, str]:
    variables = {}
    for pair in pairs:
        if "=" not in pair:
            raise SystemExit(f"error: -D expects KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


if __name__ == "__main__":
    sys.exit(main())
