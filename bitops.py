from typing import Iterable, List, Tuple


class BitWriter:
    """MSB-first bit writer backed by a growing byte buffer.

    :ivar buffer: Bytes completed so far.
    :type buffer: bytearray
    :ivar pending: Bits of the byte under construction.
    :type pending: int
    :ivar pending_count: Number of bits held in ``pending`` (0-7).
    :type pending_count: int
    :ivar bits_written: Total number of bits written, padding excluded.
    :type bits_written: int
    """

    def __init__(self):
        self.buffer = bytearray()
        self.pending = 0
        self.pending_count = 0
        self.bits_written = 0

    def write_bit(self, bit: int):
        """Append a single bit.

        :param bit: ``0`` or ``1``; any truthy value counts as ``1``.
        :type bit: int
        :returns: None
        :rtype: None
        """
        self.pending = (self.pending << 1) | (1 if bit else 0)
        self.pending_count += 1
        self.bits_written += 1
        if self.pending_count == 8:
            self.buffer.append(self.pending)
            self.pending = 0
            self.pending_count = 0

    def write_bits(self, value: int, nbits: int):
        """Append the lowest ``nbits`` of ``value``, most significant first.

        :param value: Integer whose bits are written.
        :type value: int
        :param nbits: Field width in bits.
        :type nbits: int
        :returns: None
        :rtype: None
        :raises ValueError: If ``value`` does not fit in ``nbits`` bits.
        """
        if value < 0 or value >> nbits:
            raise ValueError(f"Value {value} does not fit in {nbits} bits")
        for i in range(nbits - 1, -1, -1):
            self.write_bit((value >> i) & 1)

    def write_bytes(self, data: bytes):
        """Pad to the next byte boundary, then append ``data`` verbatim.

        :param data: Raw bytes to append.
        :type data: bytes
        :returns: None
        :rtype: None
        """
        self._align()
        self.buffer.extend(data)
        self.bits_written += 8 * len(data)

    def _align(self):
        if self.pending_count > 0:
            self.buffer.append(self.pending << (8 - self.pending_count))
            self.pending = 0
            self.pending_count = 0

    def flush(self) -> bytes:
        """Zero-pad the last partial byte and return everything written.

        :returns: The packed bytes.
        :rtype: bytes
        """
        self._align()
        return bytes(self.buffer)


class BitReader:
    """MSB-first bit reader over a bytes-like object.

    :ivar data: Source bytes.
    :type data: bytes
    :ivar pos: Index of the next byte to load.
    :type pos: int
    :ivar current: Byte currently being consumed.
    :type current: int
    :ivar remaining: Unread bits left in ``current`` (0-8).
    :type remaining: int
    """

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0
        self.current = 0
        self.remaining = 0

    def read_bit(self) -> int:
        """Read one bit.

        :returns: ``0`` or ``1``.
        :rtype: int
        :raises EOFError: If the data is exhausted.
        """
        if self.remaining == 0:
            if self.pos >= len(self.data):
                raise EOFError("Unexpected end of data")
            self.current = self.data[self.pos]
            self.pos += 1
            self.remaining = 8
        self.remaining -= 1
        return (self.current >> self.remaining) & 1

    def read_bits(self, nbits: int) -> int:
        """Read an ``nbits`` wide unsigned field, most significant bit first.

        :param nbits: Field width in bits.
        :type nbits: int
        :returns: The decoded value.
        :rtype: int
        :raises EOFError: If the data ends before ``nbits`` bits were read.
        """
        result = 0
        for _ in range(nbits):
            result = (result << 1) | self.read_bit()
        return result

    def read_bytes(self, nbytes: int) -> bytes:
        """Skip to the next byte boundary and read ``nbytes`` raw bytes.

        :param nbytes: Number of bytes to read.
        :type nbytes: int
        :returns: Exactly ``nbytes`` bytes.
        :rtype: bytes
        :raises EOFError: If fewer than ``nbytes`` bytes are left.
        """
        self.remaining = 0
        if self.pos + nbytes > len(self.data):
            raise EOFError("Unexpected end of data")
        result = bytes(self.data[self.pos:self.pos + nbytes])
        self.pos += nbytes
        return result

    def padding_is_clear(self) -> bool:
        """Whether the unread bits of the current byte are all zero."""
        return self.current & ((1 << self.remaining) - 1) == 0

    def at_end(self) -> bool:
        """Whether every byte of ``data`` has been loaded."""
        return self.pos >= len(self.data)


def pack_bits(bits: Iterable[int]) -> Tuple[bytes, int]:
    """Pack a bit sequence into bytes, zero padding the last byte.

    :param bits: Sequence of ``0``/``1`` values.
    :type bits: Iterable[int]
    :returns: Tuple ``(packed, bit_count)``.
    :rtype: Tuple[bytes, int]
    """
    writer = BitWriter()
    for bit in bits:
        writer.write_bit(bit)
    return writer.flush(), writer.bits_written


def unpack_bits(data: bytes, nbits: int, exact: bool = False) -> List[int]:
    """Inverse of :func:`pack_bits`.

    :param data: Packed bytes.
    :type data: bytes
    :param nbits: Number of meaningful bits at the start of ``data``.
    :type nbits: int
    :param exact: Require ``data`` to end right after the zero padding of
        the last bit.
    :type exact: bool
    :returns: The first ``nbits`` bits of ``data``.
    :rtype: List[int]
    :raises EOFError: If ``data`` holds fewer than ``nbits`` bits.
    :raises ValueError: If ``exact`` is set and padding bits are set or
        bytes follow the last one.
    """
    reader = BitReader(data)
    bits = [reader.read_bit() for _ in range(nbits)]
    if exact and not (reader.padding_is_clear() and reader.at_end()):
        raise ValueError("Unexpected data after the packed bits")
    return bits
