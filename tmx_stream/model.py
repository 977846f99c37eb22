"""
In-memory representation of a parsed TMX map.

=============================================================================
STRUCTURE
=============================================================================

    TiledMap
    ├── tilesets: [Tileset, ...]      (document order, ascending firstgid)
    └── layers:   [Layer, ...]        (document order)
                   ├── type="tilelayer"   -> data: GIDs, row-major
                   └── type="objectgroup" -> objects: [TiledObject, ...]

These are plain data holders. TMXParser fills them in while it walks the
document; after parse() returns they are not modified again.

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

    Tileset A (firstgid=1):   tiles 1-100
    Tileset B (firstgid=101): tiles 101-200

    GID 0   = empty tile
    GID 150 = local tile 49 of tileset B

The three highest bits of a GID are flip flags set by the editor. They are
stored as-is in layer data; strip_gid_flags() separates them.
=============================================================================
"""

import array
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


TILE_LAYER = "tilelayer"
OBJECT_GROUP = "objectgroup"

FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
GID_FLAGS_MASK = (FLIPPED_HORIZONTALLY_FLAG | FLIPPED_VERTICALLY_FLAG
                  | FLIPPED_DIAGONALLY_FLAG)


def strip_gid_flags(gid: int) -> Tuple[int, bool, bool, bool]:
    """
    Split a raw GID into (tile_gid, flip_h, flip_v, flip_d).

    Example:
        strip_gid_flags(0x80000005) -> (5, True, False, False)
    """
    return (gid & ~GID_FLAGS_MASK & 0xFFFFFFFF,
            bool(gid & FLIPPED_HORIZONTALLY_FLAG),
            bool(gid & FLIPPED_VERTICALLY_FLAG),
            bool(gid & FLIPPED_DIAGONALLY_FLAG))


# =============================================================================
# TILESET
# =============================================================================

@dataclass
class Tileset:
    """
    A spritesheet tileset: one image cut into a grid of tiles.

    +---+---+---+---+
    | 0 | 1 | 2 | 3 |     columns = 4
    +---+---+---+---+     local id = gid - firstgid
    | 4 | 5 | 6 | 7 |
    +---+---+---+---+

    ``spacing`` is the gap in pixels between neighbouring tiles.
    """
    firstgid: int = 0                   # First global ID of this tileset
    name: str = ""
    tilewidth: int = 0                  # Tile size in pixels
    tileheight: int = 0
    spacing: int = 0                    # Pixels between tiles
    tilecount: int = 0                  # Total number of tiles
    columns: int = 0                    # Tiles per image row
    image: str = ""                     # Image path, relative to the TMX
    imagewidth: int = 0                 # Image size in pixels
    imageheight: int = 0

    def contains_gid(self, gid: int) -> bool:
        """True if the (flag-free) gid falls inside this tileset's range."""
        return self.firstgid <= gid < self.firstgid + self.tilecount

    def get_tile_rect(self, gid: int) -> Optional[Tuple[int, int, int, int]]:
        """
        Source rectangle (x, y, width, height) of a gid in the image.

        Flip flags are ignored. Returns None when the gid belongs to
        another tileset or the column count is unknown.

        Example: col=2, tilewidth=16, spacing=1
            x = 2 * 16 + 2 * 1 = 34
        """
        gid = strip_gid_flags(gid)[0]
        if self.columns <= 0 or not self.contains_gid(gid):
            return None

        tile_id = gid - self.firstgid
        col = tile_id % self.columns
        row = tile_id // self.columns
        x = col * (self.tilewidth + self.spacing)
        y = row * (self.tileheight + self.spacing)
        return (x, y, self.tilewidth, self.tileheight)


# =============================================================================
# OBJECTS
# =============================================================================

@dataclass
class TiledObject:
    """
    A positioned rectangle in an object group (spawn point, trigger, ...).

    Coordinates are pixels relative to the layer origin. Points have
    width and height 0.
    """
    type: str = ""                      # Object type/class tag
    id: int = 0                         # Unique object ID
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


# =============================================================================
# LAYER
# =============================================================================

@dataclass
class Layer:
    """
    One map layer, either a tile grid or an object group.

    ==========================================================================
    KINDS
    ==========================================================================

    type == "tilelayer":
        width, height, opacity, visible and data are used.
        data holds width * height GIDs, row-major: data[y * width + x]

    type == "objectgroup":
        name and objects are used; data stays empty.

    ==========================================================================
    """
    type: str = ""                      # "tilelayer" or "objectgroup"
    name: str = ""
    width: int = 0                      # Width in tiles
    height: int = 0                     # Height in tiles
    opacity: float = 0.0
    visible: bool = False
    data: array.array = field(default_factory=lambda: array.array('I'))
    objects: List[TiledObject] = field(default_factory=list)

    @property
    def is_tile_layer(self) -> bool:
        return self.type == TILE_LAYER

    @property
    def is_object_group(self) -> bool:
        return self.type == OBJECT_GROUP

    def get_tile_gid(self, x: int, y: int) -> int:
        """
        GID at column x, row y.

        Out of bounds (or not yet decoded) positions read as 0 (empty).
        """
        if 0 <= x < self.width and 0 <= y < self.height:
            index = y * self.width + x
            if index < len(self.data):
                return self.data[index]
        return 0

    def as_array(self) -> np.ndarray:
        """
        Tile data as a (height, width) uint32 array, indexed [y, x].

        Raises ValueError if the decoded data does not fill the grid.
        """
        grid = np.frombuffer(self.data, dtype=np.uint32)
        if grid.size != self.width * self.height:
            raise ValueError(
                f"layer {self.name!r} has {grid.size} tiles, "
                f"expected {self.width}x{self.height}"
            )
        # Copy so the result does not pin the array.array buffer
        return grid.reshape(self.height, self.width).copy()


# =============================================================================
# MAP
# =============================================================================

@dataclass
class TiledMap:
    """
    Root of a parsed TMX document.

    Usage:
        tiled_map = tmx_stream.load("level1.tmx")
        ground = tiled_map.get_layer_by_name("Ground")
        gid = ground.get_tile_gid(5, 10)
        tileset = tiled_map.get_tileset_for_gid(gid)
    """
    type: str = ""                      # Always "map" once parsed
    version: int = 0                    # TMX format tag
    tiledversion: str = ""              # Tiled editor version
    orientation: str = ""               # orthogonal, isometric, ...
    width: int = 0                      # Map size in tiles
    height: int = 0
    tilewidth: int = 0                  # Grid cell size in pixels
    tileheight: int = 0
    nextobjectid: int = 0               # Next free object ID
    infinite: bool = False
    backgroundcolor: str = ""           # e.g. "#55aaff", "" when unset
    layers: List[Layer] = field(default_factory=list)
    tilesets: List[Tileset] = field(default_factory=list)

    def get_tileset_for_gid(self, gid: int) -> Optional[Tileset]:
        """
        Tileset that supplies a GID, or None for 0 / unknown GIDs.

        A GID belongs to the tileset with the largest firstgid <= gid.
        Tilesets are kept in document order, which Tiled writes with
        ascending firstgid, so we scan from the end.
        """
        gid = strip_gid_flags(gid)[0]
        if gid == 0:
            return None
        for tileset in reversed(self.tilesets):
            if gid >= tileset.firstgid:
                return tileset
        return None

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    @property
    def tile_layers(self) -> List[Layer]:
        return [layer for layer in self.layers if layer.is_tile_layer]

    @property
    def object_groups(self) -> List[Layer]:
        return [layer for layer in self.layers if layer.is_object_group]
