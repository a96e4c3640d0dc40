# // filename: huffman_service.py

import logging
import os
from dataclasses import dataclass

from bit_stream import NO_MORE_BITS, BitInputStream, BitOutputStream
from huffman_core import (
    BITS_PER_INT,
    HUFF_TREE,
    HuffmanLogic,
    MalformedHeaderError,
    TruncatedHeaderError,
)

logger = logging.getLogger(__name__)


@dataclass
class CompressionStats:
    bytes_in: int
    bytes_out: int

    @property
    def ratio(self):
        return round(self.bytes_in / self.bytes_out, 3) if self.bytes_out else None


class HuffmanService:
    def __init__(self):
        self.logic = HuffmanLogic()

    def compress_stream(self, reader, writer):
        """Compress everything `reader` holds into `writer`, then close it.

        The reader is consumed twice, once to count and once to encode, so
        it must support reset().
        """
        counts = self.logic.count_frequencies(reader)
        root = self.logic.build_tree(counts)
        codes = self.logic.generate_codes(root)
        if logger.isEnabledFor(logging.DEBUG):
            for value in sorted(codes):
                logger.debug("code %3d = %s", value, codes[value])

        writer.write_bits(BITS_PER_INT, HUFF_TREE)
        self.logic.write_header(root, writer)
        header_bits = getattr(writer, "bits_written", None)

        reader.reset()
        self.logic.write_compressed_bits(codes, reader, writer)
        writer.close()
        logger.info(
            "compressed: %d leaves, header %s bits, read %s bits, wrote %s bits",
            len(codes), header_bits,
            getattr(reader, "bits_read", "?"), getattr(writer, "bits_written", "?"),
        )

    def decompress_stream(self, reader, writer):
        bits = reader.read_bits(BITS_PER_INT)
        if bits == NO_MORE_BITS:
            raise TruncatedHeaderError("input too short for the magic number")
        if bits != HUFF_TREE:
            raise MalformedHeaderError(f"illegal header starts with {bits:#010x}")

        root = self.logic.read_header(reader)
        self.logic.read_compressed_bits(root, reader, writer)
        writer.close()
        logger.info(
            "decompressed: read %s bits, wrote %s bits",
            getattr(reader, "bits_read", "?"), getattr(writer, "bits_written", "?"),
        )

    def compress(self, data):
        out = BitOutputStream()
        self.compress_stream(BitInputStream(data), out)
        return out.getvalue()

    def decompress(self, data):
        out = BitOutputStream()
        self.decompress_stream(BitInputStream(data), out)
        return out.getvalue()

    def compress_file(self, src, dst):
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            writer = BitOutputStream(f_out)
            try:
                self.compress_stream(BitInputStream(f_in), writer)
            finally:
                writer.close()
        return CompressionStats(os.path.getsize(src), os.path.getsize(dst))

    def decompress_file(self, src, dst):
        # bytes decoded before a failure are still flushed to dst
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            writer = BitOutputStream(f_out)
            try:
                self.decompress_stream(BitInputStream(f_in), writer)
            finally:
                writer.close()
        return CompressionStats(os.path.getsize(src), os.path.getsize(dst))
