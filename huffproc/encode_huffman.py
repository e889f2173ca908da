#!/usr/bin/env python3
import argparse
import json
import os
import sys
from typing import Dict, List, Optional

from huffproc.bit_io import BitReader, BitWriter
from huffproc.processor import DEBUG_LEVELS, HuffProcessor


def write_json(path: str, payload: Dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


def check_paths(src: str, dst: str, overwrite: bool) -> Optional[str]:
    if not os.path.isfile(src):
        return f"Input not found: {src}"
    if os.path.exists(dst) and not overwrite:
        return f"Output exists (use --overwrite): {dst}"
    if os.path.abspath(src) == os.path.abspath(dst):
        return "Input and output must differ."
    return None


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compress a file with tree-header Huffman coding.")
    parser.add_argument("--input", required=True, help="File to compress.")
    parser.add_argument("--output", required=True, help="Compressed output path.")
    parser.add_argument("--debug", choices=sorted(DEBUG_LEVELS), default="quiet")
    parser.add_argument("--stats-json", default="", help="Write run statistics to this JSON file.")
    parser.add_argument("--overwrite", action="store_true")
    args = parser.parse_args(argv)

    problem = check_paths(args.input, args.output, args.overwrite)
    if problem:
        print(problem, file=sys.stderr)
        return 1

    processor = HuffProcessor(DEBUG_LEVELS[args.debug])
    with open(args.input, "rb") as src:
        stats = processor.compress(BitReader(src), BitWriter(open(args.output, "wb")))

    raw = os.path.getsize(args.input)
    comp = os.path.getsize(args.output)
    stats.update({
        "input": args.input,
        "output": args.output,
        "raw_bytes": raw,
        "compressed_bytes": comp,
        "ratio": raw / comp if comp > 0 else 0.0,
    })
    if args.stats_json:
        write_json(args.stats_json, stats)

    print(f"Compressed {raw} -> {comp} bytes ({stats['ratio']:.3f}x)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
