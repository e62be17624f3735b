"""Exceptions raised while decoding .vox data."""
from typing import Optional


class VoxError(Exception):
    """Base class for all .vox decoding failures.

    Attributes:
        offset: Absolute byte offset where the failure was detected, if known
        tag: Tag of the chunk being decoded, if known
    """

    def __init__(self, message: str, offset: Optional[int] = None, tag: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.tag = tag

    def __str__(self):
        context = []
        if self.tag is not None:
            context.append(f"chunk {self.tag!r}")
        if self.offset is not None:
            context.append(f"offset {self.offset}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class VoxFormatError(VoxError, ValueError):
    """The input bytes do not form a valid .vox file."""


class InvalidMagicError(VoxFormatError):
    """Leading bytes are not the .vox magic."""


class ChunkParsingError(VoxFormatError):
    """Chunk framing or payload is truncated or malformed."""


class NestingDepthError(ChunkParsingError):
    """Chunks are nested deeper than the parser allows."""


class InvalidTextError(VoxFormatError):
    """A length-prefixed string is not valid UTF-8."""


class NoMainChunkError(VoxFormatError):
    """The root chunk is not MAIN."""


class VoxIOError(VoxError):
    """Reading the input failed. The original OSError is the __cause__."""
