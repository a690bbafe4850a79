from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from errors import CorruptStreamError, TruncatedStreamError, UnknownSymbolError
from frequency import count_symbols
from huffman import CodeTree, build_tree, derive_table
from treeio import deserialize, serialize


def encode(table: Mapping[str, Tuple[int, ...]], text: Iterable[str]) -> List[int]:
    """Concatenate the codes of every symbol of ``text``.

    :param table: Mapping from symbol to code, see :func:`huffman.derive_table`.
    :type table: Mapping[str, Tuple[int, ...]]
    :param text: Symbols to encode.
    :type text: Iterable[str]
    :returns: The bit stream, no padding and no separators.
    :rtype: List[int]
    :raises UnknownSymbolError: If ``text`` holds a symbol absent from ``table``.
    """
    bits: List[int] = []
    for position, symbol in enumerate(text):
        try:
            code = table[symbol]
        except KeyError:
            raise UnknownSymbolError(symbol, position) from None
        bits.extend(code)
    return bits


def iter_decode(tree: CodeTree, bits: Iterable[int]) -> Iterator[str]:
    """Walk ``tree`` along ``bits``, yielding each symbol as its leaf is reached.

    :param tree: Tree the bits were encoded against.
    :type tree: CodeTree
    :param bits: Sequence of ``0``/``1`` values.
    :type bits: Iterable[int]
    :returns: Iterator over the decoded symbols.
    :rtype: Iterator[str]
    :raises TruncatedStreamError: If the bits end in the middle of a code.
    :raises CorruptStreamError: If a bit is not ``0``/``1`` or leads nowhere.
    """
    nodes = tree.nodes
    root = tree.root

    if nodes[root].is_leaf:
        symbol = nodes[root].symbol
        for position, bit in enumerate(bits):
            if bit != 0:
                raise CorruptStreamError(
                    f"Bit {bit!r} at position {position} is not a code of a "
                    "single-symbol tree"
                )
            yield symbol
        return

    current = root
    consumed = 0
    for position, bit in enumerate(bits):
        node = nodes[current]
        if bit == 0:
            current = node.left
        elif bit == 1:
            current = node.right
        else:
            raise CorruptStreamError(f"Invalid bit {bit!r} at position {position}")
        if not 0 <= current < len(nodes):
            raise CorruptStreamError(f"Missing child at position {position}")
        if nodes[current].is_leaf:
            yield nodes[current].symbol
            current = root
            consumed = position + 1

    if current != root:
        raise TruncatedStreamError(
            f"Bit stream ends inside a code; last complete code ends at bit "
            f"{consumed}"
        )


def decode(tree: CodeTree, bits: Iterable[int]) -> str:
    """Decode a whole bit stream, see :func:`iter_decode`."""
    return "".join(iter_decode(tree, bits))


class HuffmanCode:
    """A code tree paired with its cached encoding table.

    :ivar tree: The code tree.
    :type tree: CodeTree
    :ivar table: Mapping from symbol to code, derived once.
    :type table: Mapping[str, Tuple[int, ...]]
    """

    def __init__(self, tree: CodeTree):
        self.tree = tree
        self.table = derive_table(tree)

    @classmethod
    def from_frequencies(cls, frequencies: Mapping[str, int]) -> "HuffmanCode":
        return cls(build_tree(frequencies))

    @classmethod
    def from_text(cls, text: str) -> "HuffmanCode":
        """Build the code from the character counts of ``text``."""
        return cls(build_tree(count_symbols(text)))

    @classmethod
    def deserialize(cls, data: bytes) -> "HuffmanCode":
        return cls(deserialize(data))

    def serialize(self, include_weights: bool = False) -> bytes:
        return serialize(self.tree, include_weights=include_weights)

    def encode(self, text: Iterable[str]) -> List[int]:
        return encode(self.table, text)

    def decode(self, bits: Iterable[int]) -> str:
        return decode(self.tree, bits)

    def code_lengths(self) -> Dict[str, int]:
        return {symbol: len(code) for symbol, code in self.table.items()}

    def average_code_length(self) -> float:
        """Average bits per symbol, weighted by the leaf counts.

        :returns: Weighted mean code length; ``0.0`` for a tree whose weights
            were not preserved.
        :rtype: float
        """
        total = self.tree.weight
        if total == 0:
            return 0.0
        bits = sum(
            node.weight * len(self.table[node.symbol])
            for node in self.tree.nodes if node.is_leaf
        )
        return bits / total
