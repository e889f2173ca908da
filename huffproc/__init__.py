from huffproc.huffman_utils import (
    HUFF_TREE,
    PSEUDO_EOF,
    BadHeaderMagic,
    HeaderFormatError,
    HuffError,
    MissingSentinel,
    StreamTruncated,
)
from huffproc.processor import HuffProcessor, compress_bytes, decompress_bytes
