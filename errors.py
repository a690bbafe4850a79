class HuffmanError(ValueError):
    """Base class for every error raised by the Huffman coding engine."""


class EmptyAlphabetError(HuffmanError):
    """Raised when a tree is requested for an empty frequency table."""

    def __init__(self, message: str = "Cannot build a tree from an empty alphabet"):
        super().__init__(message)


class InvalidFrequencyError(HuffmanError):
    """Raised when a frequency table holds a bad symbol or count."""


class UnknownSymbolError(HuffmanError):
    """Raised when text holds a symbol missing from the encoding table.

    :ivar symbol: The offending symbol.
    :type symbol: str
    :ivar position: Index of the symbol in the encoded text.
    :type position: int
    """

    def __init__(self, symbol, position: int):
        self.symbol = symbol
        self.position = position
        super().__init__(
            f"Unknown symbol {symbol!r} at position {position}"
        )


class TruncatedStreamError(HuffmanError, EOFError):
    """Raised when a bit stream ends in the middle of a code."""


class CorruptStreamError(HuffmanError):
    """Raised when a bit stream cannot be walked through the tree."""


class MalformedSerializationError(HuffmanError):
    """Raised when a serialized tree or container is structurally invalid."""
