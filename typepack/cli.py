"""Command line schema inspection.

Usage:
    typepack-describe module:Name [--config FILE] [--json] [--verbose]

Prints the wire kind tree, type literal, type code and compatibility flag
of an annotation importable as ``module:Name``. Useful for checking that
two services agree on a schema before they exchange messages.

Exit Codes:
    0 - Success
    2 - The annotation or configuration could not be loaded or resolved
"""

import argparse
import importlib
import json
import logging
import sys
from typing import Any, List, Optional

from typepack.config import PackConfig
from typepack.exceptions import TypePackException
from typepack.logging import configure_logging
from typepack.serialization.service import PackService
from typepack.serialization.signature import has_compatible_flag

EXIT_OK = 0
EXIT_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="typepack-describe",
        description="Describe the wire schema of a type annotation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "target",
        help="Annotation to describe, as module:Name",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML configuration file with the integer and float defaults",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the description as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log type code computation to stderr",
    )
    return parser.parse_args(argv)


def load_target(target: str) -> Any:
    """Import ``module:Name`` and return the named attribute.

    Raises:
        ValueError: If the target is not of the form ``module:Name``.
        ImportError: If the module cannot be imported.
        AttributeError: If the module has no such attribute.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Expected module:Name, got {target!r}")
    obj = importlib.import_module(module_name)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


def describe(service: PackService, annotation: Any) -> dict:
    wire_type = service.resolve(annotation)
    code = service.get_type_code(annotation)
    return {
        "kind": wire_type.kind.name,
        "tree": wire_type.describe(),
        "type_literal": service.get_type_literal(annotation).hex(),
        "type_code": f"0x{code:08x}",
        "compatible": has_compatible_flag(code),
        "fixed_size": wire_type.fixed_size,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    if args.verbose:
        configure_logging(level=logging.DEBUG)

    try:
        config = PackConfig.from_yaml(args.config) if args.config else PackConfig()
        annotation = load_target(args.target)
        info = describe(PackService(config), annotation)
    except (TypePackException, ImportError, AttributeError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(json.dumps(info, indent=2))
    else:
        for key, value in info.items():
            print(f"{key:<13} {value}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
