"""Type definitions for the MagicaVoxel .vox format."""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Union


# Ordered string-to-string attribute map (plain dicts keep insertion order)
Dictionary = Dict[str, str]


@dataclass
class Color:
    """RGBA palette entry."""

    r: int
    g: int
    b: int
    a: int
    name: Optional[str] = None

    @classmethod
    def from_u32(cls, value: int) -> "Color":
        """Unpack a palette word stored as 0xAABBGGRR."""
        return cls(
            r=value & 0xFF,
            g=(value >> 8) & 0xFF,
            b=(value >> 16) & 0xFF,
            a=(value >> 24) & 0xFF,
        )

    def to_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


# Default MagicaVoxel palette, used when a file carries no RGBA chunk
DEFAULT_PALETTE_WORDS = [
    0x00000000, 0xffffffff, 0xffccffff, 0xff99ffff, 0xff66ffff, 0xff33ffff, 0xff00ffff, 0xffffccff,
    0xffccccff, 0xff99ccff, 0xff66ccff, 0xff33ccff, 0xff00ccff, 0xffff99ff, 0xffcc99ff, 0xff9999ff,
    0xff6699ff, 0xff3399ff, 0xff0099ff, 0xffff66ff, 0xffcc66ff, 0xff9966ff, 0xff6666ff, 0xff3366ff,
    0xff0066ff, 0xffff33ff, 0xffcc33ff, 0xff9933ff, 0xff6633ff, 0xff3333ff, 0xff0033ff, 0xffff00ff,
    0xffcc00ff, 0xff9900ff, 0xff6600ff, 0xff3300ff, 0xff0000ff, 0xffffffcc, 0xffccffcc, 0xff99ffcc,
    0xff66ffcc, 0xff33ffcc, 0xff00ffcc, 0xffffcccc, 0xffcccccc, 0xff99cccc, 0xff66cccc, 0xff33cccc,
    0xff00cccc, 0xffff99cc, 0xffcc99cc, 0xff9999cc, 0xff6699cc, 0xff3399cc, 0xff0099cc, 0xffff66cc,
    0xffcc66cc, 0xff9966cc, 0xff6666cc, 0xff3366cc, 0xff0066cc, 0xffff33cc, 0xffcc33cc, 0xff9933cc,
    0xff6633cc, 0xff3333cc, 0xff0033cc, 0xffff00cc, 0xffcc00cc, 0xff9900cc, 0xff6600cc, 0xff3300cc,
    0xff0000cc, 0xffffff99, 0xffccff99, 0xff99ff99, 0xff66ff99, 0xff33ff99, 0xff00ff99, 0xffffcc99,
    0xffcccc99, 0xff99cc99, 0xff66cc99, 0xff33cc99, 0xff00cc99, 0xffff9999, 0xffcc9999, 0xff999999,
    0xff669999, 0xff339999, 0xff009999, 0xffff6699, 0xffcc6699, 0xff996699, 0xff666699, 0xff336699,
    0xff006699, 0xffff3399, 0xffcc3399, 0xff993399, 0xff663399, 0xff333399, 0xff003399, 0xffff0099,
    0xffcc0099, 0xff990099, 0xff660099, 0xff330099, 0xff000099, 0xffffff66, 0xffccff66, 0xff99ff66,
    0xff66ff66, 0xff33ff66, 0xff00ff66, 0xffffcc66, 0xffcccc66, 0xff99cc66, 0xff66cc66, 0xff33cc66,
    0xff00cc66, 0xffff9966, 0xffcc9966, 0xff999966, 0xff669966, 0xff339966, 0xff009966, 0xffff6666,
    0xffcc6666, 0xff996666, 0xff666666, 0xff336666, 0xff006666, 0xffff3366, 0xffcc3366, 0xff993366,
    0xff663366, 0xff333366, 0xff003366, 0xffff0066, 0xffcc0066, 0xff990066, 0xff660066, 0xff330066,
    0xff000066, 0xffffff33, 0xffccff33, 0xff99ff33, 0xff66ff33, 0xff33ff33, 0xff00ff33, 0xffffcc33,
    0xffcccc33, 0xff99cc33, 0xff66cc33, 0xff33cc33, 0xff00cc33, 0xffff9933, 0xffcc9933, 0xff999933,
    0xff669933, 0xff339933, 0xff009933, 0xffff6633, 0xffcc6633, 0xff996633, 0xff666633, 0xff336633,
    0xff006633, 0xffff3333, 0xffcc3333, 0xff993333, 0xff663333, 0xff333333, 0xff003333, 0xffff0033,
    0xffcc0033, 0xff990033, 0xff660033, 0xff330033, 0xff000033, 0xffffff00, 0xffccff00, 0xff99ff00,
    0xff66ff00, 0xff33ff00, 0xff00ff00, 0xffffcc00, 0xffcccc00, 0xff99cc00, 0xff66cc00, 0xff33cc00,
    0xff00cc00, 0xffff9900, 0xffcc9900, 0xff999900, 0xff669900, 0xff339900, 0xff009900, 0xffff6600,
    0xffcc6600, 0xff996600, 0xff666600, 0xff336600, 0xff006600, 0xffff3300, 0xffcc3300, 0xff993300,
    0xff663300, 0xff333300, 0xff003300, 0xffff0000, 0xffcc0000, 0xff990000, 0xff660000, 0xff330000,
    0xff0000ee, 0xff0000dd, 0xff0000bb, 0xff0000aa, 0xff000088, 0xff000077, 0xff000055, 0xff000044,
    0xff000022, 0xff000011, 0xff00ee00, 0xff00dd00, 0xff00bb00, 0xff00aa00, 0xff008800, 0xff007700,
    0xff005500, 0xff004400, 0xff002200, 0xff001100, 0xffee0000, 0xffdd0000, 0xffbb0000, 0xffaa0000,
    0xff880000, 0xff770000, 0xff550000, 0xff440000, 0xff220000, 0xff110000, 0xffeeeeee, 0xffdddddd,
    0xffbbbbbb, 0xffaaaaaa, 0xff888888, 0xff777777, 0xff555555, 0xff444444, 0xff222222, 0xff111111,
]

DEFAULT_PALETTE: Tuple[Color, ...] = tuple(Color.from_u32(v) for v in DEFAULT_PALETTE_WORDS)


def default_palette() -> List[Color]:
    """Return a fresh copy of the default 256-entry palette."""
    return [Color(c.r, c.g, c.b, c.a) for c in DEFAULT_PALETTE]


@dataclass
class Pack:
    """PACK chunk: number of models in the file."""

    model_count: int


@dataclass(frozen=True)
class Size:
    """The size of a model in voxels."""

    x: int
    y: int
    z: int

    @property
    def width(self) -> int:
        return self.x

    @property
    def height(self) -> int:
        return self.y

    @property
    def depth(self) -> int:
        return self.z


@dataclass
class Voxel:
    """A single voxel.

    ``i`` is the palette index exactly as stored in the file. The format
    counts palette entries from 1, so ``i - 1`` addresses ``VoxFile.palette``.
    """

    x: int
    y: int
    z: int
    i: int


@dataclass
class Model:
    """A sized voxel grid and its sparse voxel list."""

    id: int
    size: Size
    voxels: List[Voxel] = field(default_factory=list)


@dataclass
class MaterialV1:
    """MATT material record.

    kind: 0 diffuse, 1 metal, 2 glass, 3 emissive.
    Optional properties are None when their bit is clear in the property mask.
    """

    id: int
    kind: int
    weight: float
    plastic: Optional[float] = None
    roughness: Optional[float] = None
    specular: Optional[float] = None
    ior: Optional[float] = None
    attenuation: Optional[float] = None
    power: Optional[float] = None
    glow: Optional[float] = None
    is_total_power: bool = False


@dataclass
class MaterialV2:
    """MATL material record with free-form properties."""

    id: int
    properties: Dictionary = field(default_factory=dict)


Material = Union[MaterialV1, MaterialV2]


@dataclass
class Camera:
    """rCAM render camera."""

    id: int
    attributes: Dictionary = field(default_factory=dict)


class Rotation:
    """Rotation matrix packed into a single byte.

    bit | meaning
    0-1 : column of the non-zero entry in the first row
    2-3 : column of the non-zero entry in the second row
    4   : sign of the first row (0 positive, 1 negative)
    5   : sign of the second row
    6   : sign of the third row
    """

    def __init__(self, value: int):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Rotation) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"Rotation({self.value:#04x})"

    def to_matrix(self) -> List[List[int]]:
        """Decode to a row-major 3x3 matrix.

        Raises:
            ValueError: If the row indices do not form a permutation
        """
        idx0 = self.value & 0x03
        idx1 = (self.value >> 2) & 0x03
        if idx0 > 2 or idx1 > 2 or idx0 == idx1:
            raise ValueError(f"Invalid rotation byte: {self.value:#04x}")
        idx2 = 3 - idx0 - idx1

        matrix = [[0, 0, 0], [0, 0, 0], [0, 0, 0]]
        for row, (col, sign_bit) in enumerate(((idx0, 4), (idx1, 5), (idx2, 6))):
            matrix[row][col] = -1 if self.value & (1 << sign_bit) else 1
        return matrix


class SceneNodeKind(Enum):
    """Scene graph record kinds, valued by their chunk tag."""

    TRANSFORM = "nTRN"
    GROUP = "nGRP"
    SHAPE = "nSHP"
    LAYER = "LAYR"


@dataclass
class TransformNode:
    """nTRN scene node."""

    kind: ClassVar[SceneNodeKind] = SceneNodeKind.TRANSFORM

    id: int
    attributes: Dictionary
    child_id: int
    reserved_id: int
    layer_id: int
    frames: List[Dictionary] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("_name")

    def _frame_attribute(self, frame: int, key: str) -> Optional[str]:
        if not 0 <= frame < len(self.frames):
            return None
        return self.frames[frame].get(key)

    def translation(self, frame: int = 0) -> Optional[Tuple[int, int, int]]:
        """Translation from a frame's "_t" attribute ("x y z").

        Returns:
            (x, y, z) tuple, or None if the frame or attribute is missing

        Raises:
            ValueError: If the attribute is not three integers
        """
        value = self._frame_attribute(frame, "_t")
        if value is None:
            return None
        parts = value.split()
        if len(parts) != 3:
            raise ValueError(f"Invalid translation attribute: {value!r}")
        return (int(parts[0]), int(parts[1]), int(parts[2]))

    def rotation(self, frame: int = 0) -> Optional[Rotation]:
        """Rotation from a frame's "_r" attribute."""
        value = self._frame_attribute(frame, "_r")
        if value is None:
            return None
        return Rotation(int(value))


@dataclass
class GroupNode:
    """nGRP scene node."""

    kind: ClassVar[SceneNodeKind] = SceneNodeKind.GROUP

    id: int
    attributes: Dictionary
    children: List[int] = field(default_factory=list)


@dataclass
class ShapeNode:
    """nSHP scene node. ``models`` holds (model id, attributes) pairs."""

    kind: ClassVar[SceneNodeKind] = SceneNodeKind.SHAPE

    id: int
    attributes: Dictionary
    models: List[Tuple[int, Dictionary]] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("_name")

    @property
    def model_ids(self) -> List[int]:
        return [model_id for model_id, _ in self.models]


@dataclass
class Layer:
    """LAYR record."""

    kind: ClassVar[SceneNodeKind] = SceneNodeKind.LAYER

    id: int
    attributes: Dictionary
    reserved: int = -1

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("_name")

    @property
    def hidden(self) -> bool:
        return self.attributes.get("_hidden") == "1"


SceneNode = Union[TransformNode, GroupNode, ShapeNode, Layer]


@dataclass
class SceneGraph:
    """Scene graph records in arrival order.

    Nodes reference each other by id only. Lookups of ids with no matching
    record return None; resolving the hierarchy is left to the caller.
    Equality compares ``nodes`` only.
    """

    nodes: List[SceneNode] = field(default_factory=list)
    _index: Dict[Tuple[SceneNodeKind, int], SceneNode] = field(
        default_factory=dict, init=False, compare=False, repr=False
    )

    def __post_init__(self):
        for node in self.nodes:
            self._index.setdefault((node.kind, node.id), node)

    def add(self, node: SceneNode):
        self.nodes.append(node)
        # First record wins on duplicate ids
        self._index.setdefault((node.kind, node.id), node)

    def get(self, kind: SceneNodeKind, node_id: int) -> Optional[SceneNode]:
        return self._index.get((kind, node_id))

    def _of_kind(self, kind: SceneNodeKind) -> List[SceneNode]:
        return [n for n in self.nodes if n.kind is kind]

    @property
    def transforms(self) -> List[TransformNode]:
        return self._of_kind(SceneNodeKind.TRANSFORM)

    @property
    def groups(self) -> List[GroupNode]:
        return self._of_kind(SceneNodeKind.GROUP)

    @property
    def shapes(self) -> List[ShapeNode]:
        return self._of_kind(SceneNodeKind.SHAPE)

    @property
    def layers(self) -> List[Layer]:
        return self._of_kind(SceneNodeKind.LAYER)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[SceneNode]:
        return iter(self.nodes)


@dataclass
class VoxHeader:
    """.vox file header."""

    magic: bytes
    version: int


@dataclass
class VoxFile:
    """Decoded .vox document."""

    version: int = 150
    models: List[Model] = field(default_factory=list)
    palette: List[Color] = field(default_factory=default_palette)
    materials: List[Material] = field(default_factory=list)
    scene_graph: SceneGraph = field(default_factory=SceneGraph)

    def get_model(self, model_id: int) -> Optional[Model]:
        """Get model by id."""
        return next((m for m in self.models if m.id == model_id), None)

    def get_voxel_color(self, voxel: Voxel) -> Optional[Color]:
        """Palette color for a voxel.

        Args:
            voxel: Voxel carrying a 1-based palette index

        Returns:
            The color at ``palette[voxel.i - 1]``, or None for index 0
        """
        if 1 <= voxel.i <= len(self.palette):
            return self.palette[voxel.i - 1]
        return None
