# src/pdfexcise/cli.py
"""Command line interface.

Usage::

    pdfexcise [-m | -o | -t | -q | -s | -p] [-v] pattern infile [outfile]

Exit codes: 0 on success, 2 on a usage error or any processing failure.
"""

import argparse
import logging
import re
import sys
from typing import List, Optional

import pikepdf

from .api import RedactionOptions, redact_file
from .scope import Scope

logger = logging.getLogger(__name__)

EXIT_FAILURE = 2

_SCOPE_HELP = {
    Scope.MATCH: "redact only the matching text (default)",
    Scope.OPERATOR: "redact the operator (e.g. Tj) containing the match",
    Scope.TEXT_OBJECT: "redact the text object (BT/ET) containing the match",
    Scope.GRAPHICS_STATE: "redact the graphics state block (q/Q) containing the match",
    Scope.STREAM: "redact the content stream containing the match",
    Scope.PAGE: "redact the page containing the match",
}


def build_parser(prog: str = "pdfexcise") -> argparse.ArgumentParser:
    """Return the argument parser; usage errors make it exit with status 2."""
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Remove text matching a regular expression from a PDF, "
        "together with the enclosing operator, block, stream or page.",
    )
    scopes = parser.add_mutually_exclusive_group()
    for scope in Scope:
        scopes.add_argument(
            f"-{scope.flag}",
            dest="scope",
            action="store_const",
            const=scope,
            help=_SCOPE_HELP[scope],
        )
    parser.set_defaults(scope=Scope.MATCH)
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log redaction decisions"
    )
    parser.add_argument("pattern", help="regular expression to search for")
    parser.add_argument("infile", help="PDF file to redact")
    parser.add_argument(
        "outfile",
        nargs="?",
        help="where to write the result (default: replace infile in place)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return its exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    prog = parser.prog

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    try:
        redact_file(
            args.infile,
            args.pattern,
            args.outfile,
            RedactionOptions(scope=args.scope),
        )
    except re.error as e:
        print(f"{prog}: invalid pattern {args.pattern!r}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except (pikepdf.PdfError, OSError) as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return 0


if __name__ == "__main__":
    sys.exit(main())
