#!/usr/bin/env python3
import heapq
import itertools
from typing import Dict, List, Optional

import numpy as np

from huffproc.bit_io import EOF, BitReader, BitWriter


BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD  # 256
PSEUDO_EOF = ALPH_SIZE
SYMBOL_BITS = BITS_PER_WORD + 1  # wide enough for 0..PSEUDO_EOF
HUFF_NUMBER = 0xFACE8200
HUFF_TREE = HUFF_NUMBER | 1

COUNT_CHUNK = 1 << 16


class HuffError(ValueError):
    """Base class for malformed or truncated compressed input."""


class BadHeaderMagic(HuffError):
    def __init__(self, value: int) -> None:
        super().__init__(f"Illegal header starts with {value:#010x}")
        self.value = value


class StreamTruncated(HuffError):
    pass


class MissingSentinel(StreamTruncated):
    pass


class HeaderFormatError(HuffError):
    pass


class HuffNode:
    __slots__ = ("value", "weight", "left", "right")

    def __init__(self, value: int, weight: int,
                 left: Optional["HuffNode"] = None, right: Optional["HuffNode"] = None) -> None:
        if (left is None) != (right is None):
            raise ValueError("Internal nodes need exactly two children.")
        self.value = value
        self.weight = weight
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None

    def __repr__(self) -> str:
        if self.is_leaf():
            return f"HuffNode(value={self.value}, weight={self.weight})"
        return f"HuffNode(weight={self.weight}, left={self.left!r}, right={self.right!r})"


def counts_from_bytes(data: bytes) -> np.ndarray:
    counts = np.zeros(ALPH_SIZE + 1, dtype=np.int64)
    if data:
        counts[:ALPH_SIZE] = np.bincount(np.frombuffer(data, dtype=np.uint8), minlength=ALPH_SIZE)
    counts[PSEUDO_EOF] = 1
    return counts


def read_for_counts(reader: BitReader) -> np.ndarray:
    """Tally every 8-bit chunk left in ``reader``; the sentinel always counts once.

    The reader only hands out bits, so bytes are pulled one at a time and
    batched for ``np.bincount``. The reader is left exhausted, call
    ``reader.reset()`` before a second pass.
    """
    counts = np.zeros(ALPH_SIZE + 1, dtype=np.int64)
    chunk = bytearray()
    while True:
        val = reader.read(BITS_PER_WORD)
        if val == EOF:
            break
        chunk.append(val)
        if len(chunk) >= COUNT_CHUNK:
            counts[:ALPH_SIZE] += np.bincount(np.frombuffer(bytes(chunk), dtype=np.uint8), minlength=ALPH_SIZE)
            chunk.clear()
    if chunk:
        counts[:ALPH_SIZE] += np.bincount(np.frombuffer(bytes(chunk), dtype=np.uint8), minlength=ALPH_SIZE)
    counts[PSEUDO_EOF] = 1
    return counts


def make_tree_from_counts(counts) -> HuffNode:
    """Merge the two lightest nodes until one remains.

    Ties on weight are broken by sequence number: leaves are numbered in
    ascending symbol order, each merged node takes the next number when it is
    created. The first node popped becomes the left child.
    """
    seq = itertools.count()
    heap = []
    for sym, weight in enumerate(counts):
        if weight > 0:
            heap.append((int(weight), next(seq), HuffNode(sym, int(weight))))
    if not heap:
        raise ValueError("All zero counts.")
    heapq.heapify(heap)

    while len(heap) > 1:
        w1, _, left = heapq.heappop(heap)
        w2, _, right = heapq.heappop(heap)
        heapq.heappush(heap, (w1 + w2, next(seq), HuffNode(0, w1 + w2, left, right)))
    return heap[0][2]


def make_codings_from_tree(root: HuffNode, trace=None) -> Dict[int, str]:
    codings: Dict[int, str] = {}

    def walk(node: HuffNode, path: str) -> None:
        if node.is_leaf():
            codings[node.value] = path
            if trace is not None:
                trace(node.value, path)
            return
        walk(node.left, path + "0")
        walk(node.right, path + "1")

    walk(root, "")
    return codings


def code_lengths(codings: Dict[int, str]) -> List[int]:
    lengths = [0] * (ALPH_SIZE + 1)
    for sym, path in codings.items():
        lengths[sym] = len(path)
    return lengths


def write_header(root: HuffNode, writer: BitWriter) -> None:
    if root.is_leaf():
        writer.write(1, 1)
        writer.write(root.value, SYMBOL_BITS)
        return
    writer.write(0, 1)
    write_header(root.left, writer)
    write_header(root.right, writer)


def header_bit_length(root: HuffNode) -> int:
    if root.is_leaf():
        return 1 + SYMBOL_BITS
    return 1 + header_bit_length(root.left) + header_bit_length(root.right)


def read_tree_header(reader: BitReader, depth: int = 0) -> HuffNode:
    # A full tree over ALPH_SIZE + 1 leaves is at most ALPH_SIZE levels deep.
    if depth > ALPH_SIZE:
        raise HeaderFormatError(f"Tree header deeper than {ALPH_SIZE} levels.")
    bit = reader.read(1)
    if bit == EOF:
        raise StreamTruncated("Could not read header bit, value = -1")
    if bit == 0:
        left = read_tree_header(reader, depth + 1)
        right = read_tree_header(reader, depth + 1)
        return HuffNode(0, 0, left, right)
    value = reader.read(SYMBOL_BITS)
    if value == EOF:
        raise StreamTruncated("Could not read leaf symbol, value = -1")
    if value > PSEUDO_EOF:
        raise HeaderFormatError(f"Leaf symbol {value} out of range.")
    return HuffNode(value, 0)


def write_compressed_bits(codings: Dict[int, str], reader: BitReader, writer: BitWriter) -> int:
    written = 0
    while True:
        val = reader.read(BITS_PER_WORD)
        if val == EOF:
            break
        code = codings[val]
        writer.write(int(code, 2), len(code))
        written += 1
    code = codings[PSEUDO_EOF]
    if code:
        writer.write(int(code, 2), len(code))
    return written


def read_compressed_bits(root: HuffNode, reader: BitReader, writer: BitWriter) -> int:
    """Walk root-to-leaf one bit at a time until the PSEUDO_EOF leaf.

    Leaf-ness is checked before a bit is consumed, so a tree made of a single
    PSEUDO_EOF leaf (empty input) decodes to nothing without reading.
    """
    if root.is_leaf() and root.value != PSEUDO_EOF:
        raise MissingSentinel(f"Tree is a single leaf {root.value}, no PSEUDO_EOF")
    decoded = 0
    current = root
    while True:
        if current.is_leaf():
            if current.value == PSEUDO_EOF:
                return decoded
            writer.write(current.value, BITS_PER_WORD)
            decoded += 1
            current = root
        bit = reader.read(1)
        if bit == EOF:
            raise MissingSentinel("bad input, no PSEUDO_EOF")
        current = current.right if bit else current.left
