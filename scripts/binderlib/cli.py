"""
Command line for markdown-ebook-binder.

Usage:
    python build.py field                     Build epub + mobi
    python build.py field --epub-only         Build epub only
    python build.py field --keep-intermediate Keep the merged .md and .json
    python build.py fetch field               Download remote images only
    python build.py validate field            Run epubcheck on existing epub

Requires: pandoc, kindlegen (or calibre), PyYAML, requests, beautifulsoup4
Optional: epubcheck (validation)
"""

import os
import sys
import argparse
import traceback

from binderlib.assets import AssetFetchError
from binderlib.book import build_book, fetch_images, prepare_articles, section
from binderlib.config import BookConfig, ConfigError
from binderlib.converters import ConversionError
from binderlib.epubcheck import run_epubcheck
from binderlib.loader import DocumentError
from binderlib.pandoc_ast import PandocError
from binderlib.resolve import assemble_inputs, find_book_dir


BUILD_ERRORS = (
    ConfigError,
    DocumentError,
    PandocError,
    AssetFetchError,
    ConversionError,
    OSError,
)


class CommandError(Exception):
    """A command cannot proceed; the message is shown to the user."""
    pass


# ── Resolve book ───────────────────────────────────────────────────────


def resolve_book(identifier):
    """Find book directory and load its config."""
    project_root = os.getcwd()
    book_dir = find_book_dir(identifier, project_root)

    if not book_dir:
        raise CommandError(
            f"Could not find book '{identifier}'\n"
            f"  Searched in: {os.path.join(project_root, 'books')}\n"
            "  Tip: Run from the project root, or pass a direct path."
        )

    return book_dir, BookConfig.load(book_dir)


def resolve_articles(book_dir, config):
    input_files = assemble_inputs(book_dir, config.articles)
    if not input_files:
        raise CommandError(f"No markdown articles found in {book_dir}")
    return input_files


def output_dir_for(args):
    return os.path.abspath(args.output_dir or os.path.join(os.getcwd(), "output"))


def check_epub(epub_file, verbose=False):
    """Run epubcheck and print its verdict. Returns the report, or None."""
    report = run_epubcheck(epub_file)
    if report is None:
        print("  Skipping validation: epubcheck not available")
        print("  Install epubcheck, or set EPUBCHECK_JAR to its jar")
        return None

    mark = "✓" if report.valid else "✗"
    if report.counts:
        fatals, errors, warnings = report.counts
        print(f"  {mark} epubcheck: {fatals} fatal, {errors} error(s), {warnings} warning(s)")
    else:
        print(f"  {mark} epubcheck exited with {report.returncode}")

    if verbose or not report.valid:
        for line in report.messages:
            print(f"    {line}")
    return report


# ── Commands ───────────────────────────────────────────────────────────


def cmd_build(args):
    """Build the epub and, unless --epub-only, the mobi."""
    book_dir, config = resolve_book(args.book)
    config.summary()

    input_files = resolve_articles(book_dir, config)
    output_dir = output_dir_for(args)
    os.makedirs(output_dir, exist_ok=True)
    print(f"  Output: {output_dir}")

    outputs = build_book(
        config,
        input_files,
        output_dir,
        epub_only=args.epub_only,
        keep_intermediate=args.keep_intermediate,
        verbose=args.verbose,
    )

    if args.validate:
        section("Validating EPUB")
        check_epub(outputs["epub"], verbose=args.verbose)

    print(f"\n{'─' * 60}")
    print(f"  Done. {len(outputs)} format(s) built successfully.")
    return 0


def cmd_fetch(args):
    """Prepare articles and download their remote images, nothing else."""
    book_dir, config = resolve_book(args.book)
    config.summary()

    input_files = resolve_articles(book_dir, config)

    section(f"Preparing {len(input_files)} article(s)")
    _, tasks = prepare_articles(config, input_files, verbose=args.verbose)

    section("Image cache")
    fetch_images(config, tasks, verbose=args.verbose)
    return 0


def cmd_validate(args):
    """Run epubcheck on an existing epub."""
    _, config = resolve_book(args.book)

    epub_file = os.path.join(output_dir_for(args), f"{config.prefix}.epub")
    if not os.path.exists(epub_file):
        raise CommandError(f"{epub_file} not found. Build it first.")

    section(f"Validating: {epub_file}")
    report = check_epub(epub_file, verbose=True)
    return 0 if report and report.valid else 1


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        description="Bind markdown articles into an ebook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s field                      Build epub + mobi
  %(prog)s field --epub-only          Build epub only
  %(prog)s 1 --validate               Build, then run epubcheck
  %(prog)s fetch field                Warm the image cache
  %(prog)s validate field             Run epubcheck on existing epub
        """,
    )

    sub = parser.add_subparsers(dest="command")

    # ── build (default when no subcommand) ─────────────────
    build_p = sub.add_parser("build", help="Build epub and mobi (default)")
    _add_book_arg(build_p)
    build_p.add_argument("--output-dir", help="Override output directory")
    build_p.add_argument("--epub-only", action="store_true", help="Skip the mobi conversion")
    build_p.add_argument(
        "--keep-intermediate",
        action="store_true",
        help="Keep the merged markdown and manifest after the epub is built",
    )
    build_p.add_argument("--validate", action="store_true", help="Run epubcheck after the build")
    build_p.add_argument("--verbose", "-v", action="store_true")

    # ── fetch ──────────────────────────────────────────────
    fetch_p = sub.add_parser("fetch", help="Download remote images only")
    _add_book_arg(fetch_p)
    fetch_p.add_argument("--verbose", "-v", action="store_true")

    # ── validate ───────────────────────────────────────────
    val_p = sub.add_parser("validate", help="Run epubcheck on existing epub")
    _add_book_arg(val_p)
    val_p.add_argument("--output-dir", help="Override output directory")

    return parser


def _add_book_arg(parser):
    parser.add_argument("book", help="Book number, keyword, or path")


# ── Main ───────────────────────────────────────────────────────────────


DISPATCH = {
    "build": cmd_build,
    "fetch": cmd_fetch,
    "validate": cmd_validate,
}


def main(argv=None):
    """Parse arguments and run a command. Returns the exit code."""
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    # Bare "build.py field --epub-only" means "build.py build field --epub-only"
    if argv and argv[0] not in DISPATCH and not argv[0].startswith("-"):
        argv = ["build"] + argv

    args = parser.parse_args(argv)

    handler = DISPATCH.get(args.command)
    if not handler:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (CommandError,) + BUILD_ERRORS as e:
        print(f"\nError: {e}")
        return 1


def run():
    """Console entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)
