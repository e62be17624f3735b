"""Little-endian primitive readers over an in-memory buffer."""
import struct
from typing import Dict, List

from .vox_errors import ChunkParsingError, InvalidTextError

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_F32 = struct.Struct("<f")


class ByteStream:
    """Forward-only cursor over a byte buffer.

    ``base`` is the absolute file offset of ``data[0]`` so that errors raised
    while decoding a sliced chunk payload still point into the original file.
    """

    def __init__(self, data: bytes, base: int = 0):
        self.data = data
        self.base = base
        self.pos = 0

    @property
    def offset(self) -> int:
        """Absolute offset of the next unread byte."""
        return self.base + self.pos

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def _require(self, count: int, what: str):
        if count > self.remaining:
            raise ChunkParsingError(
                f"Truncated {what}: need {count} bytes, {self.remaining} left",
                offset=self.offset,
            )

    def _unpack(self, fmt: struct.Struct, what: str):
        self._require(fmt.size, what)
        value = fmt.unpack_from(self.data, self.pos)[0]
        self.pos += fmt.size
        return value

    def read_u8(self) -> int:
        return self._unpack(_U8, "u8")

    def read_u32(self) -> int:
        return self._unpack(_U32, "u32")

    def read_i32(self) -> int:
        return self._unpack(_I32, "i32")

    def read_f32(self) -> float:
        return self._unpack(_F32, "f32")

    def read_bytes(self, count: int) -> bytes:
        self._require(count, "byte run")
        chunk = bytes(self.data[self.pos:self.pos + count])
        self.pos += count
        return chunk

    def read_string(self) -> str:
        """Read a u32 length followed by that many UTF-8 bytes.

        Raises:
            ChunkParsingError: If the declared length runs past the buffer
            InvalidTextError: If the bytes are not valid UTF-8
        """
        length = self.read_u32()
        start = self.offset
        self._require(length, "string")
        raw = self.read_bytes(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidTextError(f"Invalid UTF-8 in string: {e.reason}", offset=start + e.start) from e

    def read_dict(self) -> Dict[str, str]:
        """Read a u32 entry count followed by (key, value) string pairs."""
        count = self.read_u32()
        entries = {}
        for _ in range(count):
            key = self.read_string()
            entries[key] = self.read_string()
        return entries

    def read_u32_list(self, count: int) -> List[int]:
        self._require(count * 4, "u32 array")
        values = list(struct.unpack_from(f"<{count}I", self.data, self.pos))
        self.pos += count * 4
        return values
