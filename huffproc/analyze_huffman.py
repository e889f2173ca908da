#!/usr/bin/env python3
import argparse
import csv
import fnmatch
import os
import sys
from typing import Dict, Iterator, List, Optional

import numpy as np
import zstandard as zstd

from huffproc.huffman_utils import (
    BITS_PER_INT,
    code_lengths,
    counts_from_bytes,
    header_bit_length,
    make_codings_from_tree,
    make_tree_from_counts,
)
from huffproc.processor import compress_bytes


def iter_input_files(root: str, pattern: str) -> Iterator[str]:
    for dirpath, _, filenames in os.walk(root):
        for name in sorted(filenames):
            if fnmatch.fnmatch(name, pattern):
                yield os.path.join(dirpath, name)


def entropy_bytes(data: bytes) -> float:
    if not data:
        return 0.0
    arr = np.frombuffer(data, dtype=np.uint8)
    counts = np.bincount(arr, minlength=256)
    probs = counts[counts > 0] / arr.size
    return float(-(probs * np.log2(probs)).sum())


def zstd_ratio(data: bytes, level: int) -> float:
    if not data:
        return 0.0
    compressed = zstd.ZstdCompressor(level=level).compress(data)
    return len(data) / len(compressed) if compressed else 0.0


def ratio(raw: float, comp: float) -> float:
    return raw / comp if comp > 0 else 0.0


def analyze_file(path: str, zstd_level: int) -> Dict:
    with open(path, "rb") as f:
        data = f.read()
    root = make_tree_from_counts(counts_from_bytes(data))
    comp = len(compress_bytes(data))
    ent = entropy_bytes(data)
    return {
        "file": path,
        "raw": len(data),
        "comp": comp,
        "header_bits": BITS_PER_INT + header_bit_length(root),
        "max_code_bits": max(code_lengths(make_codings_from_tree(root))),
        "huffman_ratio": ratio(len(data), comp),
        "entropy_bits": ent,
        "entropy_bound": ent * len(data) / 8.0,
        "zstd_ratio": zstd_ratio(data, zstd_level),
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Analyze Huffman compression ratios against entropy and zstd.")
    parser.add_argument("--input-dir", required=True)
    parser.add_argument("--out-dir", default="out")
    parser.add_argument("--pattern", default="*")
    parser.add_argument("--zstd-level", type=int, default=3)
    args = parser.parse_args(argv)

    files = list(iter_input_files(args.input_dir, args.pattern))
    if not files:
        print(f"No files matching {args.pattern} under {args.input_dir}", file=sys.stderr)
        return 1

    os.makedirs(args.out_dir, exist_ok=True)
    rows = []
    errors = 0
    for path in files:
        try:
            rows.append(analyze_file(path, args.zstd_level))
        except OSError as exc:
            print(f"Error {path}: {exc}", file=sys.stderr)
            errors += 1

    csv_path = os.path.join(args.out_dir, "huffman_metrics.csv")
    with open(csv_path, "w", encoding="utf-8", newline="") as f:
        if rows:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)

    total_raw = sum(r["raw"] for r in rows)
    total_comp = sum(r["comp"] for r in rows)
    total_bound = sum(r["entropy_bound"] for r in rows)
    summary_path = os.path.join(args.out_dir, "huffman_summary.md")
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write("# Huffman Compression Summary\n\n")
        f.write(f"- Files analyzed: {len(rows)}\n")
        f.write(f"- Raw bytes: {total_raw}\n")
        f.write(f"- Compressed bytes: {total_comp}\n\n")
        f.write(f"- Weighted Huffman ratio: {ratio(total_raw, total_comp):.3f}\n")
        f.write(f"- Weighted entropy-bound ratio: {ratio(total_raw, total_bound):.3f}\n")

    print(f"Wrote {csv_path}")
    print(f"Wrote {summary_path}")
    if errors:
        print(f"Errors: {errors}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
