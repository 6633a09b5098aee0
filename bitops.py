from typing import BinaryIO, Optional, Union


class BitWriter:
    """Bit-packing writer.

    Accumulates individual bits MSB-first into bytes. Complete bytes are
    kept in memory, or handed to ``sink`` in chunks when one is given.

    Usable as a context manager: leaving the ``with`` block (normally or
    through an exception) pads the last partial byte with zero bits and
    pushes everything to the sink.

    :ivar sink: Binary file-like object receiving the bytes, or ``None``
        to keep them in memory.
    :type sink: Optional[BinaryIO]
    :ivar buffer: Complete bytes not yet handed to ``sink``.
    :type buffer: bytearray
    :ivar bit_buffer: 8-bit scratch register for accumulating pending bits.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits currently stored in ``bit_buffer`` (0-7).
    :type bit_count: int
    :ivar bytes_written: Number of complete bytes emitted so far.
    :type bytes_written: int
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, sink: Optional[BinaryIO] = None, close_sink: bool = False):
        """Initialize an empty bit writer.

        :param sink: Destination stream; ``None`` keeps bytes in memory.
        :type sink: Optional[BinaryIO]
        :param close_sink: Close ``sink`` in :meth:`close`.
        :type close_sink: bool
        :returns: None
        :rtype: None
        """
        self.sink = sink
        self.close_sink = close_sink
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self.bytes_written = 0
        self.closed = False

    def __enter__(self) -> "BitWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _emit(self, byte: int):
        self.buffer.append(byte)
        self.bytes_written += 1
        if self.sink is not None and len(self.buffer) >= self.CHUNK_SIZE:
            self._drain()

    def _drain(self) -> bytes:
        data = bytes(self.buffer)
        self.sink.write(data)
        self.buffer.clear()
        return data

    def write_bit(self, bit: int):
        """Append a single bit.

        :param bit: Bit value; any non-zero value counts as ``1``.
        :type bit: int
        :returns: None
        :rtype: None
        """
        if self.closed:
            raise ValueError("write to a closed BitWriter")
        self.bit_buffer = (self.bit_buffer << 1) | (1 if bit else 0)
        self.bit_count += 1
        if self.bit_count == 8:
            self._emit(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value`` to the buffer, MSB first.

        :param value: Integer whose bits will be written.
        :type value: int
        :param nbits: Number of bits from ``value`` to write (0-32 typical).
        :type nbits: int
        :returns: None
        :rtype: None
        """
        for i in range(nbits - 1, -1, -1):
            self.write_bit((value >> i) & 1)

    def write_byte(self, value: int):
        """Write 8 bits.

        Equivalent to eight :meth:`write_bit` calls; takes a shortcut when
        the writer is byte-aligned.

        :param value: Byte value (0-255).
        :type value: int
        :returns: None
        :rtype: None
        :raises ValueError: If ``value`` does not fit in a byte.
        """
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Byte value out of range: {value}")
        if self.bit_count == 0 and not self.closed:
            self._emit(value)
        else:
            self.write_bits(value, 8)

    def write_int32(self, value: int):
        """Write an unsigned 32-bit integer, most significant byte first.

        :param value: Integer in ``0..2**32 - 1``.
        :type value: int
        :returns: None
        :rtype: None
        :raises ValueError: If ``value`` does not fit in 32 bits.
        """
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"Value does not fit in 32 bits: {value}")
        for shift in (24, 16, 8, 0):
            self.write_byte((value >> shift) & 0xFF)

    def write_bytes(self, data: bytes):
        """Write raw bytes, aligning pending bits to the next byte boundary.

        If there are pending bits in ``bit_buffer``, they are left-shifted to
        fill the current byte and appended before writing ``data``.

        :param data: Byte sequence to append to the output.
        :type data: bytes
        :returns: None
        :rtype: None
        """
        self._pad()
        for byte in data:
            self._emit(byte)

    def _pad(self):
        if self.bit_count > 0:
            self.bit_buffer <<= (8 - self.bit_count)
            self._emit(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0

    def flush(self) -> bytes:
        """Flush remaining bits (if any) and return the buffered bytes.

        Any partial byte in ``bit_buffer`` is padded with zeros to complete the
        byte before being appended.

        :returns: Without a sink, every byte written so far. With a sink,
            the bytes handed to it by this call.
        :rtype: bytes
        """
        self._pad()
        if self.sink is None:
            return bytes(self.buffer)
        data = self._drain()
        if hasattr(self.sink, "flush"):
            self.sink.flush()
        return data

    def close(self):
        """Flush and release the writer. Safe to call more than once.

        :returns: None
        :rtype: None
        """
        if self.closed:
            return
        try:
            self.flush()
        finally:
            self.closed = True
            if self.sink is not None and self.close_sink:
                self.sink.close()


class BitReader:
    """Efficient bit-packing reader.

    Reads arbitrary bit lengths, MSB first, from a bytes-like object or
    from a binary stream (pulled in chunks).

    :ivar data: Current chunk of input data.
    :type data: bytes
    :ivar pos: Current position in ``data`` (byte index).
    :type pos: int
    :ivar bit_buffer: Scratch register holding the current source byte.
    :type bit_buffer: int
    :ivar bit_count: Number of unread bits remaining in ``bit_buffer`` (0-8).
    :type bit_count: int
    :ivar bytes_read: Number of source bytes consumed so far.
    :type bytes_read: int
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO]):
        """Create a bit reader for the given ``source``.

        :param source: Source bytes, or a binary file-like object.
        :type source: Union[bytes, bytearray, memoryview, BinaryIO]
        :returns: None
        :rtype: None
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            self.data = bytes(source)
            self.stream = None
        else:
            self.data = b""
            self.stream = source
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0
        self.bytes_read = 0

    def _fill(self) -> bool:
        if self.stream is None:
            return False
        self.data = self.stream.read(self.CHUNK_SIZE)
        self.pos = 0
        return bool(self.data)

    def _next_byte(self) -> int:
        if self.pos >= len(self.data) and not self._fill():
            raise EOFError("Unexpected end of data")
        byte = self.data[self.pos]
        self.pos += 1
        self.bytes_read += 1
        return byte

    def read_bit(self) -> int:
        """Read a single bit.

        :returns: ``0`` or ``1``.
        :rtype: int
        :raises EOFError: If the source is exhausted.
        """
        if self.bit_count == 0:
            self.bit_buffer = self._next_byte()
            self.bit_count = 8
        self.bit_count -= 1
        return (self.bit_buffer >> self.bit_count) & 1

    def read_bits(self, nbits: int) -> int:
        """Read ``nbits`` bits from the stream and return them as an integer.

        Bits are returned MSB-first in the integer.

        :param nbits: Number of bits to read.
        :type nbits: int
        :returns: The integer value composed of the next ``nbits`` bits.
        :rtype: int
        :raises EOFError: If the end of data is reached before reading ``nbits``.
        """
        result = 0
        for _ in range(nbits):
            result = (result << 1) | self.read_bit()
        return result

    def read_byte(self) -> int:
        """Read 8 bits, directly from the source when byte-aligned.

        :returns: Byte value (0-255).
        :rtype: int
        :raises EOFError: If fewer than 8 bits remain.
        """
        if self.bit_count == 0:
            return self._next_byte()
        return self.read_bits(8)

    def read_int32(self) -> int:
        """Read an unsigned 32-bit big-endian integer.

        :returns: Decoded integer.
        :rtype: int
        :raises EOFError: If fewer than 32 bits remain.
        """
        value = 0
        for _ in range(4):
            value = (value << 8) | self.read_byte()
        return value

    def read_bytes(self, nbytes: int) -> bytes:
        """Read ``nbytes`` raw bytes from the stream.

        Any pending bits are discarded (byte-aligns the stream) before reading.

        :param nbytes: Number of bytes to read.
        :type nbytes: int
        :returns: The next ``nbytes`` bytes (may be shorter only if source is shorter).
        :rtype: bytes
        """
        self.bit_count = 0
        result = bytearray()
        while len(result) < nbytes:
            if self.pos >= len(self.data) and not self._fill():
                break
            take = self.data[self.pos:self.pos + nbytes - len(result)]
            self.pos += len(take)
            result.extend(take)
        self.bytes_read += len(result)
        return bytes(result)
