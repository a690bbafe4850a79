"""Compact binary form of a :class:`huffman.CodeTree`.

Layout (big-endian)::

    magic        2 bytes   b"HT"
    version      1 byte    FORMAT_VERSION
    flags        1 byte    bit 0: leaf weights present
    leaf count   4 bytes
    pre-order    bit-packed, MSB first, zero padded to a byte boundary
                 0               internal node, followed by its two subtrees
                 1 <symbol:21>   leaf, followed by <weight:32> when flagged

The leaf symbol is stored as its Unicode scalar value. Internal weights are
never stored; they are recomputed from the leaves.
"""
import logging
import struct
from typing import List, Optional, Tuple

from bitops import BitReader, BitWriter
from errors import MalformedSerializationError
from huffman import CodeTree, Node

logger = logging.getLogger(__name__)

MAGIC = b"HT"
FORMAT_VERSION = 1
FLAG_WEIGHTS = 0x01
HEADER = struct.Struct(">2sBBI")
INTERNAL_BIT = 0
LEAF_BIT = 1
SYMBOL_BITS = 21
WEIGHT_BITS = 32
MAX_SCALAR = 0x10FFFF


def serialize(tree: CodeTree, include_weights: bool = False) -> bytes:
    """Serialize ``tree`` by a pre-order traversal.

    :param tree: Tree to serialize.
    :type tree: CodeTree
    :param include_weights: Also store every leaf's count, so the rebuilt
        tree keeps its weights.
    :type include_weights: bool
    :returns: Serialized tree.
    :rtype: bytes
    :raises ValueError: If weights are requested and one does not fit in
        32 bits or is zero.
    """
    flags = FLAG_WEIGHTS if include_weights else 0
    writer = BitWriter()
    leaves = 0
    for index in tree.preorder():
        node = tree.node(index)
        if not node.is_leaf:
            writer.write_bit(INTERNAL_BIT)
            continue
        leaves += 1
        writer.write_bit(LEAF_BIT)
        writer.write_bits(ord(node.symbol), SYMBOL_BITS)
        if include_weights:
            if node.weight <= 0:
                raise ValueError(f"Leaf {node.symbol!r} has no weight to store")
            writer.write_bits(node.weight, WEIGHT_BITS)

    data = HEADER.pack(MAGIC, FORMAT_VERSION, flags, leaves) + writer.flush()
    logger.debug("Serialized %d leaves into %d bytes", leaves, len(data))
    return data


def _read_header(data: bytes) -> Tuple[int, int]:
    if len(data) < HEADER.size:
        raise MalformedSerializationError(
            f"Serialized tree is {len(data)} bytes, header needs {HEADER.size}"
        )
    magic, version, flags, leaves = HEADER.unpack_from(data)
    if magic != MAGIC:
        raise MalformedSerializationError(f"Bad magic {magic!r}")
    if version != FORMAT_VERSION:
        raise MalformedSerializationError(f"Unsupported tree version: {version}")
    if flags & ~FLAG_WEIGHTS:
        raise MalformedSerializationError(f"Unknown flags: {flags:#04x}")
    if leaves == 0:
        raise MalformedSerializationError("Serialized tree has no leaves")
    return flags, leaves


def _read_preorder(reader: BitReader, with_weights: bool,
                   expected_leaves: int) -> List[Tuple[Optional[str], int]]:
    """Read ``(symbol, weight)`` tokens until the traversal is complete.

    ``open_slots`` counts subtrees announced but not read yet: the root
    opens one, an internal node fills one and opens two, a leaf fills one.
    """
    tokens: List[Tuple[Optional[str], int]] = []
    seen = set()
    open_slots = 1
    while open_slots:
        if reader.read_bit() == INTERNAL_BIT:
            tokens.append((None, 0))
            open_slots += 1
            continue
        scalar = reader.read_bits(SYMBOL_BITS)
        if scalar > MAX_SCALAR:
            raise MalformedSerializationError(
                f"Invalid symbol value {scalar:#x}"
            )
        symbol = chr(scalar)
        if symbol in seen:
            raise MalformedSerializationError(f"Duplicate symbol {symbol!r}")
        seen.add(symbol)
        if len(seen) > expected_leaves:
            raise MalformedSerializationError(
                f"More than {expected_leaves} leaves in serialized tree"
            )
        weight = 0
        if with_weights:
            weight = reader.read_bits(WEIGHT_BITS)
            if weight == 0:
                raise MalformedSerializationError(
                    f"Leaf {symbol!r} has a zero weight"
                )
        tokens.append((symbol, weight))
        open_slots -= 1
    if len(seen) != expected_leaves:
        raise MalformedSerializationError(
            f"Header announces {expected_leaves} leaves, found {len(seen)}"
        )
    return tokens


def deserialize(data: bytes) -> CodeTree:
    """Rebuild a tree from the output of :func:`serialize`.

    :param data: Serialized tree.
    :type data: bytes
    :returns: A tree with the same shape and symbols; weights are ``0`` unless
        they were serialized.
    :rtype: CodeTree
    :raises MalformedSerializationError: If ``data`` is truncated, carries a
        bad header or an invalid symbol, or has bytes past the tree.
    """
    flags, expected_leaves = _read_header(data)
    reader = BitReader(data[HEADER.size:])
    try:
        tokens = _read_preorder(reader, bool(flags & FLAG_WEIGHTS),
                                expected_leaves)
    except EOFError as exc:
        raise MalformedSerializationError(
            "Serialized tree ends before the traversal is complete"
        ) from exc
    if not reader.padding_is_clear() or not reader.at_end():
        raise MalformedSerializationError("Unexpected data after the tree")

    # Reversed pre-order yields every right subtree before its left sibling,
    # so each internal node finds its left child on top of the stack.
    nodes: List[Node] = []
    stack: List[int] = []
    for symbol, weight in reversed(tokens):
        if symbol is not None:
            nodes.append(Node(symbol, weight))
        else:
            left = stack.pop()
            right = stack.pop()
            nodes.append(Node(None, nodes[left].weight + nodes[right].weight,
                              left, right))
        stack.append(len(nodes) - 1)

    tree = CodeTree(nodes, stack.pop())
    logger.debug("Deserialized tree with %d leaves from %d bytes",
                 expected_leaves, len(data))
    return tree
