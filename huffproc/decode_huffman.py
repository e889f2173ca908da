#!/usr/bin/env python3
import argparse
import os
import sys
from typing import List, Optional

from huffproc.bit_io import BitReader, BitWriter
from huffproc.encode_huffman import check_paths, write_json
from huffproc.huffman_utils import HuffError
from huffproc.processor import DEBUG_LEVELS, HuffProcessor


def files_equal(a: str, b: str, block: int = 1 << 16) -> bool:
    if os.path.getsize(a) != os.path.getsize(b):
        return False
    with open(a, "rb") as fa, open(b, "rb") as fb:
        while True:
            ba = fa.read(block)
            if ba != fb.read(block):
                return False
            if not ba:
                return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Decompress a tree-header Huffman file.")
    parser.add_argument("--input", required=True, help="Compressed file.")
    parser.add_argument("--output", required=True, help="Decoded output path.")
    parser.add_argument("--debug", choices=sorted(DEBUG_LEVELS), default="quiet")
    parser.add_argument("--verify", default="", help="Original file to compare the decoded bytes against.")
    parser.add_argument("--stats-json", default="", help="Write run statistics to this JSON file.")
    parser.add_argument("--overwrite", action="store_true")
    args = parser.parse_args(argv)

    problem = check_paths(args.input, args.output, args.overwrite)
    if problem:
        print(problem, file=sys.stderr)
        return 1
    if args.verify and not os.path.isfile(args.verify):
        print(f"Missing original for --verify: {args.verify}", file=sys.stderr)
        return 1

    processor = HuffProcessor(DEBUG_LEVELS[args.debug])
    try:
        with open(args.input, "rb") as src:
            stats = processor.decompress(BitReader(src), BitWriter(open(args.output, "wb")))
    except HuffError as exc:
        print(f"Error {args.input}: {exc}", file=sys.stderr)
        os.remove(args.output)
        return 2

    stats.update({"input": args.input, "output": args.output})
    if args.verify:
        stats["verified"] = files_equal(args.output, args.verify)
    if args.stats_json:
        write_json(args.stats_json, stats)

    print(f"Decoded: {stats['bytes_decoded']} bytes")
    if args.verify:
        if not stats["verified"]:
            print(f"Mismatch: {args.output} != {args.verify}", file=sys.stderr)
            return 2
        print("Verified: OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
