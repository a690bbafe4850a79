import logging
from typing import Callable, Optional

from bitops import BitReader, BitWriter, pack_bits, unpack_bits
from codec import HuffmanCode, iter_decode
from errors import CorruptStreamError, MalformedSerializationError, TruncatedStreamError
from treeio import deserialize

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class Compressor:
    """Self-contained Huffman container for text.

    Layout, big-endian, written with :class:`bitops.BitWriter`:

    - version: 8 bits
    - symbol count: 32 bits
    - payload bit count: 32 bits
    - serialized tree length: 32 bits
    - serialized tree bytes (see :mod:`treeio`), byte aligned
    - payload bits, zero padded to a byte boundary

    :ivar VERSION: Container format version.
    :type VERSION: int
    :ivar PROGRESS_STEP: Symbols processed between two progress reports.
    :type PROGRESS_STEP: int
    """

    VERSION = 1
    COUNT_BITS = 32
    PROGRESS_STEP = 4096

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], done: int, total: int):
        if on_progress is None:
            return
        try:
            on_progress(done, total)
        except Exception:
            logger.warning("Progress callback failed", exc_info=True)

    def compress(
        self,
        text: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Compress ``text`` into a container.

        :param text: Text to compress.
        :type text: str
        :param on_progress: Optional callback ``on_progress(done, total)``
            called with the number of symbols encoded so far.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Container bytes. Empty text gives a header with zero counts.
        :rtype: bytes
        """
        output = BitWriter()
        output.write_bits(self.VERSION, 8)
        if not text:
            for _ in range(3):
                output.write_bits(0, self.COUNT_BITS)
            return output.flush()

        code = HuffmanCode.from_text(text)
        tree_bytes = code.serialize()

        bits = []
        total = len(text)
        for start in range(0, total, self.PROGRESS_STEP):
            bits.extend(code.encode(text[start:start + self.PROGRESS_STEP]))
            self._report(on_progress,
                         min(start + self.PROGRESS_STEP, total), total)

        payload, nbits = pack_bits(bits)
        output.write_bits(total, self.COUNT_BITS)
        output.write_bits(nbits, self.COUNT_BITS)
        output.write_bits(len(tree_bytes), self.COUNT_BITS)
        output.write_bytes(tree_bytes)
        output.write_bytes(payload)
        data = output.flush()
        logger.debug("Compressed %d symbols into %d bytes (tree %d bytes)",
                     total, len(data), len(tree_bytes))
        return data

    def decompress(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Restore the text stored by :meth:`compress`.

        :param data: Container bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
            called with the number of symbols decoded so far.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: The original text.
        :rtype: str
        :raises MalformedSerializationError: If the version is unsupported, the
            header or tree is cut short, the tree is invalid, or data follows
            the payload.
        :raises TruncatedStreamError: If the payload is cut short.
        :raises CorruptStreamError: If the payload does not decode to the
            announced number of symbols.
        """
        reader = BitReader(data)
        try:
            version = reader.read_bits(8)
            if version != self.VERSION:
                raise MalformedSerializationError(
                    f"Unsupported version: {version}"
                )
            total = reader.read_bits(self.COUNT_BITS)
            nbits = reader.read_bits(self.COUNT_BITS)
            tree_len = reader.read_bits(self.COUNT_BITS)
            if total == 0:
                if nbits or tree_len or not reader.at_end():
                    raise MalformedSerializationError(
                        "Empty container carries a tree or payload"
                    )
                return ""
            tree_bytes = reader.read_bytes(tree_len)
        except EOFError as exc:
            raise MalformedSerializationError(
                "Container ends inside its header"
            ) from exc

        tree = deserialize(tree_bytes)
        try:
            payload = reader.read_bytes(len(data) - reader.pos)
            bits = unpack_bits(payload, nbits, exact=True)
        except EOFError as exc:
            raise TruncatedStreamError(
                f"Container holds fewer than {nbits} payload bits"
            ) from exc
        except ValueError as exc:
            raise MalformedSerializationError(
                "Unexpected data after the payload"
            ) from exc

        out = []
        for symbol in iter_decode(tree, bits):
            out.append(symbol)
            if len(out) > total:
                raise CorruptStreamError(
                    f"Payload decodes to more than {total} symbols"
                )
            if len(out) % self.PROGRESS_STEP == 0:
                self._report(on_progress, len(out), total)
        if len(out) != total:
            raise CorruptStreamError(
                f"Payload decodes to {len(out)} symbols, expected {total}"
            )
        self._report(on_progress, total, total)
        return "".join(out)
