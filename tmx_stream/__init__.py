"""
tmx_stream - streaming reader for Tiled TMX maps

Usage:
    import tmx_stream

    tiled_map = tmx_stream.load("level1.tmx")
    for layer in tiled_map.tile_layers:
        grid = layer.as_array()     # numpy (height, width) of GIDs

Requisitos:
    pip install numpy               (zstd maps: pip install zstandard)
"""

from .errors import ParseError
from .model import (
    TiledMap, Tileset, Layer, TiledObject,
    TILE_LAYER, OBJECT_GROUP, strip_gid_flags
)
from .data import decode_data
from .parser import (
    TMXParser, TILED_VERSION_LATEST,
    parse, parse_string, load
)

__version__ = "1.0.0"
__all__ = [
    "ParseError",
    "TiledMap",
    "Tileset",
    "Layer",
    "TiledObject",
    "TILE_LAYER",
    "OBJECT_GROUP",
    "strip_gid_flags",
    "decode_data",
    "TMXParser",
    "TILED_VERSION_LATEST",
    "parse",
    "parse_string",
    "load",
]
