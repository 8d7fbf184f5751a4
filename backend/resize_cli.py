"""
Console front end for the file resizer.

Shrinks an image until its encoding fits a byte budget and optionally saves the
result next to the source as <file>.jpg (or <file>.png with --png).

Usage:
    python resize_cli.py photo.tif --max-bytes 524288 --save
    python resize_cli.py            # prompts for a file name
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add current directory to path to find the resizer package
sys.path.insert(0, str(Path(__file__).parent))

from resizer.config import get_settings
from resizer.encoders import select_encoder
from resizer.file_resizer import FileResizer
from resizer.search import SearchLimits
from resizer.storage import output_path_for, persist

logger = logging.getLogger("resize_cli")


def build_parser(settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Downscale an image until it encodes within a byte budget."
    )
    parser.add_argument("filename", nargs="?", help="Image file to resize (prompted for when omitted)")
    parser.add_argument(
        "-m",
        "--max-bytes",
        type=int,
        default=settings.max_bytes,
        help=f"Maximum encoded size in bytes (default {settings.max_bytes})",
    )
    parser.add_argument(
        "--png",
        action="store_true",
        default=settings.use_lossless,
        help="Use the lossless PNG encoder instead of JPEG",
    )
    parser.add_argument("-s", "--save", action="store_true", help="Write the result next to the source file")
    parser.add_argument("-o", "--output", help="Write the result to this path (implies --save)")
    parser.add_argument("--max-trials", type=int, default=settings.max_trials, help="Stop the search after N trials")
    parser.add_argument(
        "--time-budget",
        type=float,
        default=settings.time_budget_seconds,
        help="Stop the search after this many seconds",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every search trial")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    settings = get_settings()
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    filename = args.filename
    if not filename:
        print("Hello.")
        filename = input("Please enter a file name: ").strip()

    if args.max_bytes <= 0:
        print("Error: --max-bytes must be a positive number")
        return 2

    limits = None
    if args.max_trials is not None or args.time_budget is not None:
        try:
            limits = SearchLimits(max_trials=args.max_trials, time_budget_seconds=args.time_budget)
        except ValueError as e:
            print(f"Error: {e}")
            return 2

    resizer = FileResizer(logger=logger, limits=limits)
    outcome = resizer.resize(filename, max_bytes=args.max_bytes, use_lossless_encoder=args.png)
    if not outcome.ok:
        print("Unable to process file.")
        return 1

    result = outcome.result
    print(result.size)

    if args.save or args.output:
        target = Path(args.output) if args.output else output_path_for(filename, select_encoder(args.png))
        try:
            saved = persist(result.data, target)
        except OSError as e:
            logger.error(f"Failed to save resized file: {e}")
            print(f"Error: could not save {target}: {e}")
            return 1
        print(f"Saved to {saved}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
