import random

import numpy as np
import pytest

from huffproc.bit_io import BitReader, BitWriter
from huffproc.huffman_utils import (
    ALPH_SIZE,
    PSEUDO_EOF,
    HeaderFormatError,
    HuffNode,
    MissingSentinel,
    StreamTruncated,
    code_lengths,
    counts_from_bytes,
    header_bit_length,
    make_codings_from_tree,
    make_tree_from_counts,
    read_compressed_bits,
    read_for_counts,
    read_tree_header,
    write_compressed_bits,
    write_header,
)


def tree_for(data: bytes) -> HuffNode:
    return make_tree_from_counts(counts_from_bytes(data))


def same_shape(a: HuffNode, b: HuffNode) -> bool:
    if a.is_leaf() or b.is_leaf():
        return a.is_leaf() and b.is_leaf() and a.value == b.value
    return same_shape(a.left, b.left) and same_shape(a.right, b.right)


def header_bytes(root: HuffNode, trailer: int = 0, trailer_bits: int = 0) -> bytes:
    writer = BitWriter.to_memory()
    write_header(root, writer)
    writer.write(trailer, trailer_bits)
    writer.close()
    return writer.getvalue()


def test_counts_include_sentinel_once():
    counts = counts_from_bytes(bytes([65, 65, 66, 65]))
    assert counts.shape == (ALPH_SIZE + 1,)
    assert counts[65] == 3
    assert counts[66] == 1
    assert counts[PSEUDO_EOF] == 1
    assert counts.sum() == 5


def test_read_for_counts_matches_bytes():
    rng = random.Random(7)
    data = bytes(rng.getrandbits(8) for _ in range(70000))
    reader = BitReader.from_bytes(data)
    counts = read_for_counts(reader)
    assert np.array_equal(counts, counts_from_bytes(data))
    assert reader.bits_read == len(data) * 8


def test_empty_counts_only_sentinel():
    counts = read_for_counts(BitReader.from_bytes(b""))
    assert counts.sum() == 1
    assert counts[PSEUDO_EOF] == 1


def test_tree_for_small_example():
    root = tree_for(bytes([65, 65, 66, 65]))
    assert root.weight == 5
    assert make_codings_from_tree(root) == {66: "00", PSEUDO_EOF: "01", 65: "1"}


def test_frequent_symbols_get_shorter_codes():
    data = b"a" * 50 + b"b" * 20 + b"c" * 5 + b"d"
    lengths = code_lengths(make_codings_from_tree(tree_for(data)))
    assert lengths[ord("a")] <= lengths[ord("b")] <= lengths[ord("c")] <= lengths[ord("d")]


def test_tree_has_leaf_per_nonzero_count():
    data = b"mississippi"
    codings = make_codings_from_tree(tree_for(data))
    assert set(codings) == set(data) | {PSEUDO_EOF}


def test_all_zero_counts_rejected():
    with pytest.raises(ValueError):
        make_tree_from_counts(np.zeros(ALPH_SIZE + 1, dtype=np.int64))


def test_internal_node_needs_two_children():
    with pytest.raises(ValueError):
        HuffNode(0, 1, HuffNode(1, 1), None)


def test_empty_input_tree_is_single_sentinel_leaf():
    root = tree_for(b"")
    assert root.is_leaf()
    assert root.value == PSEUDO_EOF
    assert make_codings_from_tree(root) == {PSEUDO_EOF: ""}


def test_codings_idempotent_and_prefix_free():
    rng = random.Random(3)
    data = bytes(rng.choice(b"abcdefgh\x00\xff") for _ in range(2000)) + bytes(range(40))
    root = tree_for(data)
    codings = make_codings_from_tree(root)
    assert codings == make_codings_from_tree(root)
    codes = list(codings.values())
    for i, a in enumerate(codes):
        assert a
        for b in codes[i + 1:]:
            assert not a.startswith(b)
            assert not b.startswith(a)


def test_tree_building_is_deterministic():
    data = bytes(range(256)) * 3
    assert make_codings_from_tree(tree_for(data)) == make_codings_from_tree(tree_for(data))


@pytest.mark.parametrize("data", [b"", b"z", bytes([65, 65, 66, 65]), bytes(range(256))])
def test_header_is_self_delimiting(data):
    root = tree_for(data)
    reader = BitReader.from_bytes(header_bytes(root, trailer=0b1011, trailer_bits=4))
    parsed = read_tree_header(reader)
    assert reader.bits_read == header_bit_length(root)
    assert same_shape(root, parsed)
    assert reader.read(4) == 0b1011


def test_header_bits_for_small_example():
    # 0 0 1[66] 1[256] 1[65]
    assert header_bit_length(tree_for(bytes([65, 65, 66, 65]))) == 2 + 3 * 10


def test_header_truncated():
    data = header_bytes(tree_for(bytes([65, 65, 66, 65])))
    with pytest.raises(StreamTruncated):
        read_tree_header(BitReader.from_bytes(data[:2]))
    with pytest.raises(StreamTruncated):
        read_tree_header(BitReader.from_bytes(b""))


def test_header_symbol_out_of_range():
    writer = BitWriter.to_memory()
    writer.write(1, 1)
    writer.write(300, 9)
    writer.close()
    with pytest.raises(HeaderFormatError):
        read_tree_header(BitReader.from_bytes(writer.getvalue()))


def test_header_too_deep():
    with pytest.raises(HeaderFormatError):
        read_tree_header(BitReader.from_bytes(bytes(64)))


def test_body_round_trip():
    data = b"abracadabra"
    root = tree_for(data)
    codings = make_codings_from_tree(root)
    writer = BitWriter.to_memory()
    assert write_compressed_bits(codings, BitReader.from_bytes(data), writer) == len(data)
    writer.close()

    out = BitWriter.to_memory()
    assert read_compressed_bits(root, BitReader.from_bytes(writer.getvalue()), out) == len(data)
    out.close()
    assert out.getvalue() == data


def test_body_without_sentinel():
    root = tree_for(bytes([65, 65, 66, 65]))
    with pytest.raises(MissingSentinel):
        read_compressed_bits(root, BitReader.from_bytes(b""), BitWriter.to_memory())
    # 1 1 00 1 decodes A A B A, zero padding never reaches PSEUDO_EOF
    writer = BitWriter.to_memory()
    writer.write(0b11001, 5)
    writer.close()
    out = BitWriter.to_memory()
    with pytest.raises(MissingSentinel):
        read_compressed_bits(root, BitReader.from_bytes(writer.getvalue()), out)
    assert out.bits_written >= 4 * 8


def test_sentinel_root_reads_nothing():
    reader = BitReader.from_bytes(b"\xff")
    out = BitWriter.to_memory()
    assert read_compressed_bits(HuffNode(PSEUDO_EOF, 1), reader, out) == 0
    assert reader.bits_read == 0


def test_single_non_sentinel_leaf_rejected():
    with pytest.raises(MissingSentinel):
        read_compressed_bits(HuffNode(65, 1), BitReader.from_bytes(b"\x00"), BitWriter.to_memory())
