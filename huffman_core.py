# filename: huffman_core.py

import heapq
import itertools
import logging

from bit_stream import NO_MORE_BITS

logger = logging.getLogger(__name__)

BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE
# Leaf values span 0..PSEUDO_EOF, one bit more than a byte
LEAF_VALUE_BITS = BITS_PER_WORD + 1

HUFF_NUMBER = 0xface8200
HUFF_TREE = HUFF_NUMBER | 1


class HuffmanError(Exception):
    """Base class for every failure reading a compressed stream."""


class MalformedHeaderError(HuffmanError):
    pass


class TruncatedHeaderError(HuffmanError):
    pass


class TruncatedPayloadError(HuffmanError):
    pass


class HuffmanNode:
    def __init__(self, value, weight, left=None, right=None, order=0):
        self.value = value
        self.weight = weight
        self.left = left
        self.right = right
        # creation sequence, breaks weight ties in the heap
        self.order = order

    @property
    def is_leaf(self):
        return self.left is None and self.right is None

    def __lt__(self, other):
        return (self.weight, self.order) < (other.weight, other.order)

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(value={self.value}, weight={self.weight})"
        return f"HuffmanNode(weight={self.weight}, left={self.left!r}, right={self.right!r})"


class HuffmanLogic:
    def count_frequencies(self, reader):
        # Frequency analysis of the input, one 8-bit field at a time
        counts = [0] * (ALPH_SIZE + 1)
        while True:
            bits = reader.read_bits(BITS_PER_WORD)
            if bits == NO_MORE_BITS:
                break
            counts[bits] += 1
        counts[PSEUDO_EOF] = 1
        if logger.isEnabledFor(logging.DEBUG):
            for value, weight in enumerate(counts):
                if weight:
                    logger.debug("weight %3d = %d", value, weight)
        return counts

    def build_tree(self, counts):
        """Merge the two lightest nodes until one root is left.

        Equal weights pop in creation order: leaves in ascending value
        order first, then internal nodes as they are made. Tables with
        fewer than two used values are padded with zero-weight leaves for
        the lowest unused values so the root always has two children.
        """
        sequence = itertools.count()
        priority_queue = [
            HuffmanNode(value, weight, order=next(sequence))
            for value, weight in enumerate(counts)
            if weight > 0
        ]
        used = {node.value for node in priority_queue}
        for value in range(PSEUDO_EOF + 1):
            if len(priority_queue) >= 2:
                break
            if value not in used:
                priority_queue.append(HuffmanNode(value, 0, order=next(sequence)))
        heapq.heapify(priority_queue)

        while len(priority_queue) > 1:
            left = heapq.heappop(priority_queue)
            right = heapq.heappop(priority_queue)
            merged = HuffmanNode(None, left.weight + right.weight, left, right,
                                 order=next(sequence))
            heapq.heappush(priority_queue, merged)

        return priority_queue[0]

    def generate_codes(self, node, current_code="", codes=None):
        if codes is None:
            codes = {}
        if node.is_leaf:
            # a lone root leaf still needs one bit on the wire
            codes[node.value] = current_code or "0"
            return codes
        self.generate_codes(node.left, current_code + "0", codes)
        self.generate_codes(node.right, current_code + "1", codes)
        return codes

    def write_header(self, node, writer):
        if node.is_leaf:
            writer.write_bits(1, 1)
            writer.write_bits(LEAF_VALUE_BITS, node.value)
        else:
            writer.write_bits(1, 0)
            self.write_header(node.left, writer)
            self.write_header(node.right, writer)

    def read_header(self, reader, depth=0):
        bit = reader.read_bits(1)
        if bit == NO_MORE_BITS:
            raise TruncatedHeaderError("input ended inside the tree header")
        if bit == 0:
            # 257 leaves can never sit deeper than this
            if depth >= PSEUDO_EOF:
                raise MalformedHeaderError("tree header nested too deeply")
            left = self.read_header(reader, depth + 1)
            right = self.read_header(reader, depth + 1)
            return HuffmanNode(None, 0, left, right)
        value = reader.read_bits(LEAF_VALUE_BITS)
        if value == NO_MORE_BITS:
            raise TruncatedHeaderError("input ended inside a tree leaf")
        if value > PSEUDO_EOF:
            raise MalformedHeaderError(f"tree leaf value {value} out of range")
        if depth == 0 and value != PSEUDO_EOF:
            # a lone root leaf that is not EOF would repeat forever
            raise MalformedHeaderError(f"tree is a single leaf {value} without end-of-stream")
        return HuffmanNode(value, 0)

    def write_compressed_bits(self, codes, reader, writer):
        while True:
            bits = reader.read_bits(BITS_PER_WORD)
            if bits == NO_MORE_BITS:
                break
            code = codes[bits]
            writer.write_bits(len(code), int(code, 2))

        code = codes[PSEUDO_EOF]
        writer.write_bits(len(code), int(code, 2))

    def read_compressed_bits(self, root, reader, writer):
        current = root
        while True:
            bit = reader.read_bits(1)
            if bit == NO_MORE_BITS:
                raise TruncatedPayloadError("input ended before the end-of-stream code")
            if not root.is_leaf:
                current = current.left if bit == 0 else current.right
            if current.is_leaf:
                if current.value == PSEUDO_EOF:
                    break
                writer.write_bits(BITS_PER_WORD, current.value)
                current = root
