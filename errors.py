class LZ77Error(Exception):
    """Base class for every failure raised by the LZ77 core."""


class ConfigurationError(LZ77Error, ValueError):
    """Invalid window, look-ahead, minimum-match or strategy setting,
    or a value that the frame format cannot represent."""


class InvalidTokenError(LZ77Error, ValueError):
    """A token cannot be replayed against the output produced so far.

    :ivar index: Position of the offending token in the sequence.
    :type index: int
    """

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index


class MalformedFrameError(LZ77Error, EOFError):
    """A frame ended before its header or a token was fully read.

    :ivar index: Index of the token being read, or ``-1`` for the header.
    :type index: int
    """

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index
