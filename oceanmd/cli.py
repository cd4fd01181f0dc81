#!/usr/bin/env python3
"""
Ocean Convert CLI

Command-line interface for converting text, HTML and web pages into
Ocean Markdown documents.

Usage:
    oceanmd <source> [options]
    oceanmd book.txt                          # print the document
    oceanmd -s book.txt                       # write book.md next to it
    oceanmd -p ./out https://example.com/a    # write into ./out
    oceanmd converted/*.md                    # reconvert in place
"""

import argparse
import logging
import sys

import yaml

from . import __version__
from .converters import CONVERTERS
from .core import OceanConvert
from .logger import setup_logger


def parse_assignment(text: str):
    """Split ``key=value``; the value is read as YAML (numbers, booleans, lists)."""
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    try:
        parsed = yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        parsed = value
    if parsed is None:
        parsed = ""
    return key.strip(), parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oceanmd",
        description=(
            "Ocean Markdown converter\n\n"
            "Converts plain or OCR text, HTML files and web pages into Ocean\n"
            "Markdown: a YAML front matter block followed by Markdown with\n"
            "page markers and footnotes."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  oceanmd -s 'Shoghi Effendi, God Passes By.txt' -e\n"
            "  oceanmd -p ./out https://example.org/book/index.html --set getSubLinks=true\n"
            "  oceanmd -s scan.txt --ch-pattern '/^CHAPTER {*}$/' --pg-pattern '{{{pg}}}'\n"
            "  oceanmd converted/book.md                 # reconvert from _convertedFrom\n"
            "  oceanmd converted/book.md --no-reconvert  # only refresh the metadata\n"
        ),
    )

    parser.add_argument("sources", nargs="*", help="Files, Ocean Markdown documents or URLs")

    output = parser.add_argument_group("output")
    output.add_argument("-s", "--same-folder", action="store_true",
                        help="Save each document as <name>.md next to its source")
    output.add_argument("-p", "--path", dest="output_dir", default=None,
                        help="Save documents into this directory")
    output.add_argument("-e", "--extract-meta", action="store_true",
                        help="Read author and title from file names like 'Author, Title.txt'")

    conversion = parser.add_argument_group("conversion")
    conversion.add_argument("-c", "--converter", choices=sorted(CONVERTERS),
                            help="Converter to use (default: by file type)")
    conversion.add_argument("--encoding", help="Source encoding (default: detected)")
    conversion.add_argument("-r", "--reconvert", dest="reconvert", action="store_true", default=None,
                            help="Reconvert .md documents from their original source")
    conversion.add_argument("--no-reconvert", dest="reconvert", action="store_false",
                            help="Only re-serialize .md documents")
    conversion.add_argument("--fix-meta", action="store_true",
                            help="Repair hand-edited front matter before parsing")
    conversion.add_argument("--skip", action="store_true",
                            help="Mark documents as skipped; their content is emptied")
    conversion.add_argument("--ch-pattern", help="Chapter heading pattern (text converter)")
    conversion.add_argument("--fn-ref-pattern", help="Footnote reference pattern (text converter)")
    conversion.add_argument("--fn-text-pattern", help="Footnote text pattern (text converter)")
    conversion.add_argument("--pg-pattern", help="Page marker pattern (text converter)")
    conversion.add_argument("--set", dest="settings", action="append", default=[],
                            type=parse_assignment, metavar="KEY=VALUE",
                            help="Set any conversion option (value parsed as YAML)")
    conversion.add_argument("--meta", dest="meta", action="append", default=[],
                            type=parse_assignment, metavar="KEY=VALUE",
                            help="Set a metadata field on every document")

    diagnostics = parser.add_argument_group("diagnostics")
    diagnostics.add_argument("-d", "--debug", action="store_true",
                             help="Log details and stop on the first error")
    diagnostics.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    diagnostics.add_argument("--log-file", help="Also write a full debug log here")
    diagnostics.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def collect_options(args) -> dict:
    """Turn parsed arguments into conversion options (camelCase keys)."""
    options = {}
    flags = {
        "converter": args.converter,
        "encoding": args.encoding,
        "reconvert": args.reconvert,
        "chPattern": args.ch_pattern,
        "fnRefPattern": args.fn_ref_pattern,
        "fnTextPattern": args.fn_text_pattern,
        "pgPattern": args.pg_pattern,
    }
    for key, value in flags.items():
        if value is not None:
            options[key] = value
    if args.fix_meta:
        options["fixMeta"] = True
    if args.skip:
        options["skip"] = True
    if args.debug:
        options["debug"] = True
    options.update(dict(args.settings))
    return options


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.sources:
        parser.print_help()
        print("\nError: No sources provided. Specify files, documents or URLs to convert.")
        sys.exit(1)

    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    setup_logger(level, args.log_file)

    engine = OceanConvert(
        options=collect_options(args),
        meta=dict(args.meta),
        output_dir=args.output_dir,
        same_folder=args.same_folder,
        extract_meta=args.extract_meta,
    )
    out = sys.stderr if engine.to_stdout else sys.stdout

    print("=" * 60, file=out)
    print("  OCEAN CONVERT - Ocean Markdown Converter", file=out)
    print("=" * 60, file=out)
    print(file=out)

    results = engine.run(args.sources)

    converted = sum(1 for r in results if r.error is None)
    errors = sum(1 for r in results if r.error is not None)
    for result in results:
        if result.meta_errors:
            print(f"[META] {result.source}: check {', '.join(result.meta_errors)}", file=out)

    print(file=out)
    print("-" * 60, file=out)
    print(f"  Done: {converted} converted, {errors} errors", file=out)
    if args.output_dir:
        print(f"  Output: {args.output_dir}", file=out)
    print("-" * 60, file=out)

    if any(r.failed for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
