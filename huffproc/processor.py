#!/usr/bin/env python3
import sys
from typing import Dict

from huffproc.bit_io import EOF, BitReader, BitWriter
from huffproc.huffman_utils import (
    BITS_PER_INT,
    HUFF_TREE,
    BadHeaderMagic,
    StreamTruncated,
    header_bit_length,
    make_codings_from_tree,
    make_tree_from_counts,
    read_compressed_bits,
    read_for_counts,
    read_tree_header,
    write_compressed_bits,
    write_header,
)


DEBUG_QUIET = 0
DEBUG_LOW = 1
DEBUG_HIGH = 4

DEBUG_LEVELS = {"quiet": DEBUG_QUIET, "low": DEBUG_LOW, "high": DEBUG_HIGH}


class HuffProcessor:
    """Tree-header Huffman compressor.

    Stream layout: 32-bit ``HUFF_TREE`` magic, pre-order tree header (0 bit per
    internal node, 1 bit plus a 9-bit symbol per leaf), one code per input
    byte, then the PSEUDO_EOF code. Both directions close the writer on every
    exit path; the reader stays owned by the caller.
    """

    def __init__(self, debug: int = DEBUG_QUIET) -> None:
        self.debug = debug

    def _trace(self, level: int, msg: str) -> None:
        if self.debug >= level:
            print(msg, file=sys.stderr)

    def _trace_encoding(self, symbol: int, path: str) -> None:
        self._trace(DEBUG_HIGH, f"encoding for {symbol} is {path}")

    def compress(self, reader: BitReader, writer: BitWriter) -> Dict:
        try:
            counts = read_for_counts(reader)
            root = make_tree_from_counts(counts)
            codings = make_codings_from_tree(root, trace=self._trace_encoding)

            writer.write(HUFF_TREE, BITS_PER_INT)
            write_header(root, writer)
            header_bits = writer.bits_written - BITS_PER_INT

            reader.reset()
            symbols = write_compressed_bits(codings, reader, writer)
        finally:
            writer.close()

        stats = {
            "bits_read": reader.bits_read,
            "bits_written": writer.bits_written,
            "header_bits": header_bits,
            "symbols": symbols,
        }
        self._trace(DEBUG_LOW, f"compress: read {stats['bits_read']} bits, wrote {stats['bits_written']} bits "
                               f"({header_bits} header bits, {len(codings)} codes)")
        return stats

    def decompress(self, reader: BitReader, writer: BitWriter) -> Dict:
        try:
            bits = reader.read(BITS_PER_INT)
            if bits == EOF:
                raise StreamTruncated("Input shorter than the 32-bit header tag")
            if bits != HUFF_TREE:
                raise BadHeaderMagic(bits)

            root = read_tree_header(reader)
            self._trace(DEBUG_LOW, f"decompress: tree header is {header_bit_length(root)} bits")
            if self.debug >= DEBUG_HIGH:
                make_codings_from_tree(root, trace=self._trace_encoding)
            decoded = read_compressed_bits(root, reader, writer)
        finally:
            writer.close()

        stats = {
            "bits_read": reader.bits_read,
            "bits_written": writer.bits_written,
            "bytes_decoded": decoded,
        }
        self._trace(DEBUG_LOW, f"decompress: read {stats['bits_read']} bits, wrote {stats['bits_written']} bits")
        return stats


def compress_bytes(data: bytes, debug: int = DEBUG_QUIET) -> bytes:
    writer = BitWriter.to_memory()
    HuffProcessor(debug).compress(BitReader.from_bytes(data), writer)
    return writer.getvalue()


def decompress_bytes(data: bytes, debug: int = DEBUG_QUIET) -> bytes:
    writer = BitWriter.to_memory()
    HuffProcessor(debug).decompress(BitReader.from_bytes(data), writer)
    return writer.getvalue()
