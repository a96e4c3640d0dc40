#!/usr/bin/env python3
"""
huffman_cli.py : compress and decompress files with the Huffman tree codec

Usage:
    huffpress compress INPUT OUTPUT [--verify]   #--verify decodes again and compares
    huffpress decompress INPUT OUTPUT
    huffpress -vv compress INPUT OUTPUT          #log weights and codes too
"""

import argparse
import logging
import sys
from pathlib import Path

from huffman_core import HuffmanError
from huffman_service import HuffmanService

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(prog="huffpress", description="Huffman tree-header file compressor")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="-v logs a summary per call, -vv also logs weights and codes",
    )
    sub = parser.add_subparsers(dest="mode", required=True)

    c = sub.add_parser("compress", help="compress INPUT into OUTPUT")
    c.add_argument("input", type=Path)
    c.add_argument("output", type=Path)
    c.add_argument(
        "--verify", action="store_true",
        help="decompress OUTPUT again and check it matches INPUT",
    )

    d = sub.add_parser("decompress", help="decompress INPUT into OUTPUT")
    d.add_argument("input", type=Path)
    d.add_argument("output", type=Path)
    return parser


def configure_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logging.getLogger().setLevel(level)
    return level


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if not args.input.is_file():
        logger.error("no such file: %s", args.input)
        return 1
    if args.input.resolve() == args.output.resolve() or (
            args.output.exists() and args.input.samefile(args.output)):
        logger.error("refusing to overwrite the input file %s", args.input)
        return 1

    service = HuffmanService()
    try:
        if args.mode == "compress":
            stats = service.compress_file(args.input, args.output)
        else:
            stats = service.decompress_file(args.input, args.output)
    except (HuffmanError, OSError) as exc:
        logger.error("%s failed on %s: %s", args.mode, args.input, exc)
        return 1

    if args.mode == "compress" and args.verify:
        # Single byte mismatch means the codec failed
        try:
            restored = service.decompress(args.output.read_bytes())
        except HuffmanError as exc:
            logger.error("verify failed on %s: %s", args.output, exc)
            return 1
        if restored != args.input.read_bytes():
            logger.error("verify failed: %s does not round-trip", args.input)
            return 1

    print(f"{args.input} ({stats.bytes_in}B) -> {args.output} ({stats.bytes_out}B), ratio {stats.ratio}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
