"""MagicaVoxel .vox Decoder Package."""
import logging

from .vox_chunks import CHUNK_DECODERS, Chunk
from .vox_errors import (
    ChunkParsingError,
    InvalidMagicError,
    InvalidTextError,
    NestingDepthError,
    NoMainChunkError,
    VoxError,
    VoxFormatError,
    VoxIOError,
)
from .vox_parser import VoxParser, load_vox
from .vox_types import (
    DEFAULT_PALETTE,
    Camera,
    Color,
    GroupNode,
    Layer,
    MaterialV1,
    MaterialV2,
    Model,
    Pack,
    Rotation,
    SceneGraph,
    SceneNodeKind,
    ShapeNode,
    Size,
    TransformNode,
    Voxel,
    VoxFile,
    VoxHeader,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CHUNK_DECODERS",
    "Chunk",
    "ChunkParsingError",
    "InvalidMagicError",
    "InvalidTextError",
    "NestingDepthError",
    "NoMainChunkError",
    "VoxError",
    "VoxFormatError",
    "VoxIOError",
    "VoxParser",
    "load_vox",
    "DEFAULT_PALETTE",
    "Camera",
    "Color",
    "GroupNode",
    "Layer",
    "MaterialV1",
    "MaterialV2",
    "Model",
    "Pack",
    "Rotation",
    "SceneGraph",
    "SceneNodeKind",
    "ShapeNode",
    "Size",
    "TransformNode",
    "Voxel",
    "VoxFile",
    "VoxHeader",
]
