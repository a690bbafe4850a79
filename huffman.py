import heapq
import itertools
import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from errors import EmptyAlphabetError, InvalidFrequencyError

logger = logging.getLogger(__name__)

NO_CHILD = -1  #: Child index stored in leaves
SINGLE_SYMBOL_CODE = (0,)  #: Code of the lone symbol of a one-symbol alphabet


class Node(NamedTuple):
    """One entry of a :class:`CodeTree` arena.

    Leaves carry a ``symbol`` and ``NO_CHILD`` children; internal nodes carry
    ``symbol=None`` and the arena indices of both children.
    """

    symbol: Optional[str]
    weight: int
    left: int = NO_CHILD
    right: int = NO_CHILD

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None


class CodeTree:
    """Immutable Huffman tree stored as an arena of :class:`Node` records.

    Children are referenced by index into ``nodes``, so walking the tree
    never needs recursion.

    :ivar nodes: Every node of the tree.
    :type nodes: Tuple[Node, ...]
    :ivar root: Index of the root node.
    :type root: int
    """

    __slots__ = ("nodes", "root")

    def __init__(self, nodes, root: int):
        object.__setattr__(self, "nodes", tuple(nodes))
        object.__setattr__(self, "root", root)

    def __setattr__(self, name, value):
        raise AttributeError("CodeTree is immutable")

    def __delattr__(self, name):
        raise AttributeError("CodeTree is immutable")

    @classmethod
    def leaf(cls, symbol: str, count: int) -> "CodeTree":
        """Build a tree made of a single leaf."""
        return cls([Node(symbol, count)], 0)

    @classmethod
    def merge(cls, left: "CodeTree", right: "CodeTree") -> "CodeTree":
        """Build a tree whose root has ``left`` and ``right`` as subtrees.

        :param left: Subtree reached with bit ``0``.
        :type left: CodeTree
        :param right: Subtree reached with bit ``1``.
        :type right: CodeTree
        :returns: The combined tree; both inputs are left untouched.
        :rtype: CodeTree
        """
        offset = len(left.nodes)
        nodes = list(left.nodes)
        for node in right.nodes:
            if node.is_leaf:
                nodes.append(node)
            else:
                nodes.append(node._replace(left=node.left + offset,
                                           right=node.right + offset))
        nodes.append(Node(None, left.weight + right.weight,
                          left.root, right.root + offset))
        return cls(nodes, len(nodes) - 1)

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return (f"CodeTree(weight={self.weight}, "
                f"leaves={self.leaf_count}, nodes={len(self.nodes)})")

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def is_leaf(self, index: int) -> bool:
        return self.nodes[index].is_leaf

    @property
    def weight(self) -> int:
        return self.nodes[self.root].weight

    @property
    def leaf_count(self) -> int:
        return sum(1 for node in self.nodes if node.is_leaf)

    @property
    def symbols(self) -> List[str]:
        """Leaf symbols in left-to-right order."""
        return [self.nodes[i].symbol for i in self.preorder()
                if self.nodes[i].is_leaf]

    def preorder(self) -> Iterator[int]:
        """Yield node indices in pre-order (node, left subtree, right subtree).

        :returns: Iterator over arena indices.
        :rtype: Iterator[int]
        """
        stack = [self.root]
        while stack:
            index = stack.pop()
            yield index
            node = self.nodes[index]
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)

    def shape(self) -> Tuple[Optional[str], ...]:
        """Pre-order list of leaf symbols, with ``None`` for internal nodes.

        Two trees with equal shapes assign every symbol the same path.
        """
        return tuple(self.nodes[i].symbol for i in self.preorder())

    def depth_of(self, symbol: str) -> int:
        """Number of edges between the root and the leaf holding ``symbol``.

        :raises KeyError: If ``symbol`` is not in the tree.
        """
        stack = [(self.root, 0)]
        while stack:
            index, depth = stack.pop()
            node = self.nodes[index]
            if node.is_leaf:
                if node.symbol == symbol:
                    return depth
            else:
                stack.append((node.right, depth + 1))
                stack.append((node.left, depth + 1))
        raise KeyError(symbol)


def _check_frequencies(frequencies: Mapping[str, int]):
    if not frequencies:
        raise EmptyAlphabetError()
    for symbol, count in frequencies.items():
        if not isinstance(symbol, str) or len(symbol) != 1:
            raise InvalidFrequencyError(
                f"Symbols must be single characters, got {symbol!r}"
            )
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidFrequencyError(
                f"Count of {symbol!r} must be a positive integer, got {count!r}"
            )


def build_tree(frequencies: Mapping[str, int]) -> CodeTree:
    """Build the Huffman tree for a frequency table.

    Nodes wait in a min-heap keyed by ``(weight, sequence)``. Leaves are
    numbered in the iteration order of ``frequencies`` and each merged node
    takes the next number, so among equal weights the node queued first is
    extracted first. The first node popped becomes the left child. Identical
    tables (same insertion order included) always give identical trees.

    :param frequencies: Mapping from symbol to its positive count.
    :type frequencies: Mapping[str, int]
    :returns: The frozen tree.
    :rtype: CodeTree
    :raises EmptyAlphabetError: If ``frequencies`` is empty.
    :raises InvalidFrequencyError: If a symbol is not a single character or a
        count is not a positive integer.
    """
    _check_frequencies(frequencies)

    nodes: List[Node] = []
    sequence = itertools.count()
    heap: List[Tuple[int, int, int]] = []
    for symbol, count in frequencies.items():
        nodes.append(Node(symbol, count))
        heap.append((count, next(sequence), len(nodes) - 1))
    heapq.heapify(heap)

    while len(heap) > 1:
        left_weight, _, left = heapq.heappop(heap)
        right_weight, _, right = heapq.heappop(heap)
        nodes.append(Node(None, left_weight + right_weight, left, right))
        heapq.heappush(
            heap, (left_weight + right_weight, next(sequence), len(nodes) - 1)
        )

    root = heap[0][2]
    tree = CodeTree(nodes, root)
    logger.debug("Built tree with %d symbols and weight %d",
                 len(frequencies), tree.weight)
    return tree


def derive_table(tree: CodeTree) -> Mapping[str, Tuple[int, ...]]:
    """Map every leaf symbol to its root-to-leaf path.

    ``0`` means "go left" and ``1`` "go right". A tree made of a single leaf
    gives its symbol the one-bit code ``(0,)``.

    :param tree: Tree to walk.
    :type tree: CodeTree
    :returns: Read-only mapping from symbol to its code.
    :rtype: Mapping[str, Tuple[int, ...]]
    """
    root = tree.node(tree.root)
    if root.is_leaf:
        return MappingProxyType({root.symbol: SINGLE_SYMBOL_CODE})

    table: Dict[str, Tuple[int, ...]] = {}
    stack = [(tree.root, ())]
    while stack:
        index, path = stack.pop()
        node = tree.node(index)
        if node.is_leaf:
            table[node.symbol] = path
        else:
            stack.append((node.right, path + (1,)))
            stack.append((node.left, path + (0,)))
    return MappingProxyType(table)
