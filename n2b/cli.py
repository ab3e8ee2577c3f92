"""
Command line entry point.

    n2b -s "src/**/*.ts" -v total --to-number
    n2b -c "const x = 1 + 2 * 3;"

Files are converted in place unless ``--dry-run`` is given, in which case
the converted text is printed instead.
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from n2b.converter import Converter, convert_code, keep_in_memory, save_file
from n2b.errors import ConversionError
from n2b.options import ProjectOptions

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="n2b",
        description="Convert numeric expressions in JS/TS sources to big.js method chains",
    )
    parser.add_argument("-s", "--sources", nargs="+", metavar="PATTERN",
                        help="source file(s), directories or glob patterns to convert")
    parser.add_argument("-c", "--code", help="raw source code to convert (printed to stdout)")
    parser.add_argument("-p", "--tsconfig", help="import source files from this tsconfig.json")
    parser.add_argument("--config", help="JSON file with conversion options")
    parser.add_argument("--new", action="store_true", default=None,
                        help="emit `new Big(...)` instead of `Big(...)`")
    parser.add_argument("--to-number", action="store_true", default=None,
                        help="append `.toNumber()` to every converted expression")
    parser.add_argument("-v", "--variables", nargs="+", metavar="NAME",
                        help="variables whose numeric initializer is wrapped in a Big")
    parser.add_argument("--dry-run", action="store_true",
                        help="print converted files instead of writing them")
    parser.add_argument("--verbose", action="store_true", help="enable info logging")
    return parser


def _build_options(args: argparse.Namespace) -> ProjectOptions:
    overrides = {}
    if args.sources:
        overrides["source"] = args.sources
    if args.tsconfig:
        overrides["source_tsconfig"] = args.tsconfig
    if args.new is not None:
        overrides["prepend_new"] = args.new
    if args.to_number is not None:
        overrides["append_to_number"] = args.to_number
    if args.variables:
        overrides["variables"] = frozenset(args.variables)

    if args.config:
        return ProjectOptions.from_file(args.config, **overrides)
    return ProjectOptions(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = _build_options(args)
    except (OSError, ValidationError) as e:
        logger.error("Invalid options: %s", e)
        return 2

    if not (args.code or options.source or options.source_tsconfig or options.source_code):
        parser.print_usage(sys.stderr)
        logger.error("Nothing to convert: pass --sources, --tsconfig or --code")
        return 2

    try:
        if args.code:
            print(convert_code(args.code, options.conversion_options()))
        if options.source or options.source_tsconfig or options.source_code:
            converter = Converter(options)
            files = converter.convert(keep_in_memory if args.dry_run else save_file)
            for source_file in files:
                if args.dry_run or source_file.in_memory:
                    print(f"// {source_file.path}")
                    print(source_file.get_full_text())
            for diagnostic in converter.diagnostics:
                print(f"warning: {diagnostic}", file=sys.stderr)
    except ConversionError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
