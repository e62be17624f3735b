"""Decoders for individual .vox chunk payloads.

Each decoder takes a chunk's content bytes, already sliced to the declared
content size, and returns a typed record. Bytes left over after the record
are ignored. ``offset`` is the absolute position of ``content`` in the file
and is only used for error reporting.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from .vox_stream import ByteStream
from .vox_types import (
    Camera,
    Color,
    GroupNode,
    Layer,
    MaterialV1,
    MaterialV2,
    Pack,
    ShapeNode,
    Size,
    TransformNode,
    Voxel,
)

MAIN = "MAIN"
# Tag, content size, children size
CHUNK_HEADER_SIZE = 12
PALETTE_SIZE = 256

# MATT property mask bits, in the order their values follow the mask
MATT_PROPERTIES = (
    (0x01, "plastic"),
    (0x02, "roughness"),
    (0x04, "specular"),
    (0x08, "ior"),
    (0x10, "attenuation"),
    (0x20, "power"),
    (0x40, "glow"),
)
MATT_TOTAL_POWER = 0x80


@dataclass
class Chunk:
    """One decoded chunk frame.

    For recognized tags ``content`` is the decoded record (None for MAIN).
    For unrecognized tags it is the raw payload bytes.
    """

    tag: str
    content: Any
    children: List["Chunk"] = field(default_factory=list)
    offset: int = 0
    content_size: int = 0
    children_size: int = 0

    @property
    def size(self) -> int:
        """Total bytes spanned by this chunk, header included."""
        return CHUNK_HEADER_SIZE + self.content_size + self.children_size

    @property
    def is_known(self) -> bool:
        return self.tag == MAIN or self.tag in CHUNK_DECODERS


def parse_pack(content: bytes, offset: int = 0) -> Pack:
    stream = ByteStream(content, offset)
    return Pack(model_count=stream.read_u32())


def parse_size(content: bytes, offset: int = 0) -> Size:
    stream = ByteStream(content, offset)
    return Size(x=stream.read_u32(), y=stream.read_u32(), z=stream.read_u32())


def parse_xyzi(content: bytes, offset: int = 0) -> List[Voxel]:
    """Parse XYZI voxel data: u32 count, then (x, y, z, i) byte records."""
    stream = ByteStream(content, offset)
    count = stream.read_u32()
    raw = stream.read_bytes(count * 4)
    return [
        Voxel(x=raw[n], y=raw[n + 1], z=raw[n + 2], i=raw[n + 3])
        for n in range(0, len(raw), 4)
    ]


def parse_rgba(content: bytes, offset: int = 0) -> List[Color]:
    """Parse the 256-entry palette."""
    stream = ByteStream(content, offset)
    raw = stream.read_bytes(PALETTE_SIZE * 4)
    return [
        Color(r=raw[n], g=raw[n + 1], b=raw[n + 2], a=raw[n + 3])
        for n in range(0, len(raw), 4)
    ]


def parse_matt(content: bytes, offset: int = 0) -> MaterialV1:
    """Parse a legacy MATT material.

    Layout: id, kind (u32), weight (f32), property mask (u32), then one f32
    per set bit among bits 0-6. Bit 7 is a flag with no payload.
    """
    stream = ByteStream(content, offset)
    material_id = stream.read_u32()
    kind = stream.read_u32()
    weight = stream.read_f32()
    mask = stream.read_u32()

    properties = {}
    for bit, name in MATT_PROPERTIES:
        if mask & bit:
            properties[name] = stream.read_f32()

    return MaterialV1(
        id=material_id,
        kind=kind,
        weight=weight,
        is_total_power=bool(mask & MATT_TOTAL_POWER),
        **properties,
    )


def parse_matl(content: bytes, offset: int = 0) -> MaterialV2:
    stream = ByteStream(content, offset)
    material_id = stream.read_u32()
    return MaterialV2(id=material_id, properties=stream.read_dict())


def parse_robj(content: bytes, offset: int = 0) -> Dict[str, str]:
    return ByteStream(content, offset).read_dict()


def parse_rcam(content: bytes, offset: int = 0) -> Camera:
    stream = ByteStream(content, offset)
    camera_id = stream.read_u32()
    return Camera(id=camera_id, attributes=stream.read_dict())


def parse_imap(content: bytes, offset: int = 0) -> List[int]:
    """Parse the palette index map (256 raw bytes)."""
    return list(ByteStream(content, offset).read_bytes(PALETTE_SIZE))


def parse_note(content: bytes, offset: int = 0) -> List[str]:
    stream = ByteStream(content, offset)
    count = stream.read_u32()
    return [stream.read_string() for _ in range(count)]


def parse_ntrn(content: bytes, offset: int = 0) -> TransformNode:
    """Parse a transform node.

    Layout: id, attributes, child id, reserved id (i32, -1), layer id,
    frame count, then one attribute dict per frame.
    """
    stream = ByteStream(content, offset)
    node_id = stream.read_u32()
    attributes = stream.read_dict()
    child_id = stream.read_u32()
    reserved_id = stream.read_i32()
    layer_id = stream.read_u32()
    frame_count = stream.read_u32()
    frames = [stream.read_dict() for _ in range(frame_count)]
    return TransformNode(
        id=node_id,
        attributes=attributes,
        child_id=child_id,
        reserved_id=reserved_id,
        layer_id=layer_id,
        frames=frames,
    )


def parse_ngrp(content: bytes, offset: int = 0) -> GroupNode:
    stream = ByteStream(content, offset)
    node_id = stream.read_u32()
    attributes = stream.read_dict()
    child_count = stream.read_u32()
    return GroupNode(id=node_id, attributes=attributes, children=stream.read_u32_list(child_count))


def parse_nshp(content: bytes, offset: int = 0) -> ShapeNode:
    stream = ByteStream(content, offset)
    node_id = stream.read_u32()
    attributes = stream.read_dict()
    model_count = stream.read_u32()
    models = []
    for _ in range(model_count):
        model_id = stream.read_u32()
        models.append((model_id, stream.read_dict()))
    return ShapeNode(id=node_id, attributes=attributes, models=models)


def parse_layr(content: bytes, offset: int = 0) -> Layer:
    stream = ByteStream(content, offset)
    layer_id = stream.read_u32()
    attributes = stream.read_dict()
    return Layer(id=layer_id, attributes=attributes, reserved=stream.read_i32())


CHUNK_DECODERS: Dict[str, Callable[[bytes, int], Any]] = {
    "PACK": parse_pack,
    "SIZE": parse_size,
    "XYZI": parse_xyzi,
    "RGBA": parse_rgba,
    "MATT": parse_matt,
    "MATL": parse_matl,
    "rOBJ": parse_robj,
    "rCAM": parse_rcam,
    "IMAP": parse_imap,
    "NOTE": parse_note,
    "nTRN": parse_ntrn,
    "nGRP": parse_ngrp,
    "nSHP": parse_nshp,
    "LAYR": parse_layr,
}
