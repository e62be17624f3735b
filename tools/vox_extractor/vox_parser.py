"""Parser for MagicaVoxel .vox files."""
import logging
import struct
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from .vox_chunks import CHUNK_DECODERS, CHUNK_HEADER_SIZE as FRAME_HEADER_SIZE, MAIN, Chunk
from .vox_errors import (
    ChunkParsingError,
    InvalidMagicError,
    NestingDepthError,
    NoMainChunkError,
    VoxFormatError,
    VoxIOError,
)
from .vox_types import Model, SceneNodeKind, VoxFile, VoxHeader

logger = logging.getLogger(__name__)

SCENE_TAGS = frozenset(kind.value for kind in SceneNodeKind)
AUXILIARY_TAGS = frozenset(["PACK", "rOBJ", "rCAM", "IMAP", "NOTE"])


class VoxParser:
    """Parses MagicaVoxel .vox files held in memory."""

    MAGIC = b"VOX "
    SUPPORTED_VERSIONS = (150, 200)
    HEADER_SIZE = 8
    CHUNK_HEADER_SIZE = FRAME_HEADER_SIZE
    # Root MAIN is depth 0
    MAX_DEPTH = 64

    def __init__(self, max_depth: Optional[int] = None):
        """Initialize parser.

        Args:
            max_depth: Deepest chunk nesting accepted before failing
        """
        self.max_depth = self.MAX_DEPTH if max_depth is None else max_depth

    def parse_header_bytes(self, data: bytes) -> VoxHeader:
        """Parse .vox header from bytes.

        Args:
            data: At least 8 bytes of header data

        Returns:
            VoxHeader with parsed data

        Raises:
            InvalidMagicError: If magic bytes are invalid
            ChunkParsingError: If data is too short for a header
        """
        magic = bytes(data[:4])
        if magic != self.MAGIC:
            raise InvalidMagicError(f"Invalid VOX magic: {magic!r}", offset=0)
        if len(data) < self.HEADER_SIZE:
            raise ChunkParsingError("Header data too short", offset=len(data))

        version = struct.unpack_from("<I", data, 4)[0]
        if version not in self.SUPPORTED_VERSIONS:
            logger.warning(
                f"VOX version {version} (expected one of {self.SUPPORTED_VERSIONS})"
            )
        return VoxHeader(magic=magic, version=version)

    def _read_tag(self, data: bytes, offset: int) -> str:
        try:
            return bytes(data[offset:offset + 4]).decode("ascii")
        except UnicodeDecodeError as e:
            raise ChunkParsingError(f"Invalid chunk tag: {bytes(data[offset:offset + 4])!r}", offset=offset) from e

    def parse_chunk(
        self, data: bytes, offset: int = 0, end: Optional[int] = None, depth: int = 0
    ) -> Tuple[Chunk, int]:
        """Parse one chunk frame and, recursively, its children.

        Args:
            data: Buffer holding the chunk
            offset: Position of the chunk header in ``data``
            end: Position the chunk must not extend past (default: end of data)
            depth: Nesting depth of this chunk

        Returns:
            Tuple of (chunk, offset just past the chunk)

        Raises:
            ChunkParsingError: If the frame is truncated or a child overruns
            NestingDepthError: If depth exceeds max_depth
            VoxFormatError: If the payload decoder fails
        """
        end = len(data) if end is None else min(end, len(data))
        if depth > self.max_depth:
            raise NestingDepthError(
                f"Chunk nesting exceeds maximum depth {self.max_depth}", offset=offset
            )
        if offset + self.CHUNK_HEADER_SIZE > end:
            raise ChunkParsingError(
                f"Truncated chunk header: need {self.CHUNK_HEADER_SIZE} bytes, "
                f"{max(end - offset, 0)} left",
                offset=offset,
            )

        tag = self._read_tag(data, offset)
        content_size, children_size = struct.unpack_from("<II", data, offset + 4)
        logger.debug(
            f"{tag} at {offset}: content {content_size}, children {children_size}"
        )

        content_start = offset + self.CHUNK_HEADER_SIZE
        children_start = content_start + content_size
        chunk_end = children_start + children_size
        if chunk_end > end:
            raise ChunkParsingError(
                f"Chunk declares {content_size + children_size} bytes, "
                f"{end - content_start} left",
                offset=offset,
                tag=tag,
            )

        children: List[Chunk] = []
        if children_size > 0:
            children = self.parse_chunks(data, children_start, chunk_end, depth + 1)

        content_bytes = bytes(data[content_start:children_start])
        decoder = CHUNK_DECODERS.get(tag)
        if tag == MAIN:
            content = None
        elif decoder is None:
            content = content_bytes
        else:
            try:
                content = decoder(content_bytes, content_start)
            except VoxFormatError as e:
                if e.tag is None:
                    e.tag = tag
                raise

        chunk = Chunk(
            tag=tag,
            content=content,
            children=children,
            offset=offset,
            content_size=content_size,
            children_size=children_size,
        )
        return chunk, chunk_end

    def parse_chunks(
        self, data: bytes, offset: int = 0, end: Optional[int] = None, depth: int = 0
    ) -> List[Chunk]:
        """Parse sibling chunks that exactly fill ``data[offset:end]``.

        Raises:
            ChunkParsingError: If the range holds trailing bytes or a chunk
                runs past ``end``
        """
        end = len(data) if end is None else min(end, len(data))
        chunks = []
        while offset < end:
            chunk, offset = self.parse_chunk(data, offset, end, depth)
            chunks.append(chunk)
        return chunks

    def _parse_root(self, data: bytes) -> Chunk:
        root, root_end = self.parse_chunk(data, self.HEADER_SIZE)
        if root_end < len(data):
            logger.debug(f"Ignoring {len(data) - root_end} trailing bytes after root chunk")
        return root

    def parse_chunk_tree(self, data: bytes) -> Tuple[VoxHeader, Chunk]:
        """Parse the header and the root chunk without building a document.

        Returns:
            Tuple of (header, root chunk)
        """
        header = self.parse_header_bytes(data)
        return header, self._parse_root(data)

    def parse_bytes(self, data: bytes) -> VoxFile:
        """Parse a complete .vox file from bytes.

        Args:
            data: Entire file contents

        Returns:
            VoxFile with models, palette, materials and scene graph

        Raises:
            InvalidMagicError: If magic bytes are invalid
            NoMainChunkError: If the root chunk is not MAIN
            ChunkParsingError: If the chunk structure is malformed
            InvalidTextError: If a string is not valid UTF-8
        """
        data = bytes(data)
        header = self.parse_header_bytes(data)

        # Root tag is checked before its payload is decoded
        root_tag = data[self.HEADER_SIZE:self.HEADER_SIZE + 4]
        if len(root_tag) == 4 and root_tag != MAIN.encode("ascii"):
            raise NoMainChunkError(
                f"Root chunk is {root_tag!r}, expected {MAIN!r}", offset=self.HEADER_SIZE
            )

        return self._assemble(header, self._parse_root(data))

    def parse(self, file: BinaryIO) -> VoxFile:
        """Parse a .vox file from an open binary file.

        Raises:
            VoxIOError: If reading the file fails
        """
        try:
            data = file.read()
        except OSError as e:
            raise VoxIOError(f"Failed to read VOX data: {e}") from e
        return self.parse_bytes(data)

    def _assemble(self, header: VoxHeader, main: Chunk) -> VoxFile:
        """Fold the children of MAIN into a VoxFile.

        SIZE is held until the next XYZI, which completes a model. XYZI
        without a pending SIZE is dropped.
        """
        vox = VoxFile(version=header.version)
        pending_size = None

        for chunk in main.children:
            tag = chunk.tag
            if tag == MAIN:
                logger.error(f"MAIN chunk nested inside MAIN at offset {chunk.offset}; skipping")
            elif tag == "SIZE":
                pending_size = chunk.content
            elif tag == "XYZI":
                if pending_size is None:
                    logger.warning(f"Dropping XYZI at offset {chunk.offset}: no preceding SIZE")
                    continue
                vox.models.append(
                    Model(id=len(vox.models), size=pending_size, voxels=chunk.content)
                )
                pending_size = None
            elif tag == "RGBA":
                vox.palette = chunk.content
            elif tag in ("MATT", "MATL"):
                vox.materials.append(chunk.content)
            elif tag in SCENE_TAGS:
                vox.scene_graph.add(chunk.content)
            elif tag == "PACK":
                logger.debug(f"PACK declares {chunk.content.model_count} models")
            elif tag in AUXILIARY_TAGS:
                logger.debug(f"Skipping {tag} chunk")
            else:
                logger.debug(f"Skipping unknown chunk {tag!r} ({chunk.content_size} bytes)")

        if pending_size is not None:
            logger.warning("Discarding SIZE chunk with no following XYZI")

        return vox


def load_vox(source: Union[str, Path, BinaryIO], max_depth: Optional[int] = None) -> VoxFile:
    """Load a .vox file.

    Args:
        source: Path to a .vox file or an open binary file
        max_depth: Deepest chunk nesting accepted (default VoxParser.MAX_DEPTH)

    Returns:
        Decoded VoxFile

    Raises:
        VoxIOError: If the file cannot be read
        VoxFormatError: If the contents are not a valid .vox file
    """
    parser = VoxParser(max_depth=max_depth)
    if isinstance(source, (str, Path)):
        try:
            with open(source, "rb") as f:
                data = f.read()
        except OSError as e:
            raise VoxIOError(f"Failed to read {source}: {e}") from e
        return parser.parse_bytes(data)
    return parser.parse(source)
