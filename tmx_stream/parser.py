"""
Streaming TMX reader.

=============================================================================
HOW IT WORKS
=============================================================================

The document is walked once, front to back, with ElementTree.iterparse().
No full tree is kept: each <tileset>, <layer> and <objectgroup> subtree is
cleared as soon as its end tag has been handled, so memory is bounded by
the largest layer rather than the whole map.

    start <map>          -> map header
    start <tileset>      -> new current tileset
    start <image>        -> image of the current tileset
    end   </tileset>     -> tileset appended to map.tilesets
    start <layer>        -> new current layer (tile grid)
    end   <data>         -> decode text into the current layer's GIDs
    end   </layer>       -> layer appended to map.layers
    start <objectgroup>  -> new current layer (object group)
    start <object>       -> object appended to the current object group
    end   </objectgroup> -> layer appended to map.layers

Every other element is ignored.

=============================================================================
NESTING
=============================================================================

TMX never nests a tileset inside a tileset, or a layer inside a layer, so
one "current" slot per kind is enough. The walker checks this rather than
assuming it; a document that breaks it is rejected.

Object groups inside a tileset (per-tile collision shapes) are not map
layers and are skipped.

=============================================================================
ERRORS
=============================================================================

Malformed XML, corrupt layer data and nesting violations all raise
ParseError; no partially filled map is ever returned. Missing or malformed
attributes are not errors - they read as 0 / 0.0 / "".
=============================================================================
"""

import io
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from .attributes import attr_bool, attr_float, attr_int, attr_str
from .data import decode_data, decode_xml_tiles
from .errors import ParseError
from .model import (OBJECT_GROUP, TILE_LAYER, Layer, TiledMap, TiledObject,
                    Tileset)

logger = logging.getLogger(__name__)

# TMX reference: http://docs.mapeditor.org/en/latest/reference/tmx-map-format/
TILED_VERSION_LATEST = "1.1.2"
TMX_FORMAT_VERSION = 1

Source = Union[str, Path, BinaryIO]


class TMXParser:
    """
    Reads TMX documents into TiledMap objects.

    A parser holds no per-document state, so one instance can be reused
    (and shared between threads).

    Parameters:
    -----------
    supported_version : str
        Tiled version the reader was written against. Maps saved by any
        other version still load, with a warning.
    """

    def __init__(self, supported_version: str = TILED_VERSION_LATEST):
        self.supported_version = supported_version

    def parse(self, source: Source) -> TiledMap:
        """
        Parse a TMX document.

        Parameters:
        -----------
        source : path or binary file object

        Raises:
        -------
        ParseError : the document or its layer data cannot be read
        OSError : the path cannot be opened
        """
        walker = _MapWalker(self.supported_version)
        try:
            return walker.walk(source)
        except ET.ParseError as e:
            raise ParseError(f"malformed xml: {e}") from e

    def parse_string(self, text: Union[str, bytes]) -> TiledMap:
        """Parse a TMX document held in memory."""
        if isinstance(text, str):
            text = text.encode('utf-8')
        return self.parse(io.BytesIO(text))

    def load(self, filepath: Union[str, Path]) -> TiledMap:
        """Open and parse a .tmx file."""
        with open(filepath, 'rb') as f:
            return self.parse(f)


class _MapWalker:
    """Working state of a single parse() call."""

    def __init__(self, supported_version: str):
        self.supported_version = supported_version
        self.map = TiledMap()
        self.layers: List[Layer] = []
        self.tilesets: List[Tileset] = []
        self.current_layer: Optional[Layer] = None
        self.current_tileset: Optional[Tileset] = None
        self.open_tags: List[str] = []

    def walk(self, source: Source) -> TiledMap:
        for event, elem in ET.iterparse(source, events=('start', 'end')):
            tag = _local_name(elem.tag)
            if event == 'start':
                self._start(tag, elem)
            else:
                self._end(tag, elem)

        # Collections are only attached once the whole document has been read
        self.map.layers = self.layers
        self.map.tilesets = self.tilesets
        return self.map

    # -------------------------------------------------------------------------
    # EVENTS
    # -------------------------------------------------------------------------

    def _start(self, tag: str, elem: ET.Element):
        parent = self.open_tags[-1] if self.open_tags else None
        self.open_tags.append(tag)

        if parent is None:
            if tag != 'map':
                raise ParseError(f"root element is <{tag}>, expected <map>")
            self._parse_map(elem)

        elif tag == 'tileset':
            if self.current_tileset is not None:
                raise ParseError("<tileset> nested inside another <tileset>")
            self.current_tileset = Tileset()
            self._parse_tileset(self.current_tileset, elem)

        elif tag == 'image':
            # <image> also appears under <tile> and <imagelayer>
            if parent == 'tileset' and self.current_tileset is not None:
                self._parse_image(self.current_tileset, elem)

        elif tag in ('layer', 'objectgroup'):
            if self.current_tileset is not None:
                return
            if self.current_layer is not None:
                raise ParseError(
                    f"<{tag}> nested inside <{self.current_layer.type}>")
            self.current_layer = Layer()
            if tag == 'layer':
                self._parse_tile_layer(self.current_layer, elem)
            else:
                self._parse_object_group(self.current_layer, elem)

        elif tag == 'object':
            layer = self.current_layer
            if (parent == 'objectgroup' and layer is not None
                    and layer.is_object_group):
                self._parse_object(layer, elem)

    def _end(self, tag: str, elem: ET.Element):
        self.open_tags.pop()
        parent = self.open_tags[-1] if self.open_tags else None

        if tag == 'data':
            layer = self.current_layer
            if parent == 'layer' and layer is not None and layer.is_tile_layer:
                self._parse_data(layer, elem)

        elif tag == 'tileset':
            self.tilesets.append(self.current_tileset)
            logger.debug("Tileset %r, firstgid %d",
                         self.current_tileset.name,
                         self.current_tileset.firstgid)
            self.current_tileset = None
            elem.clear()

        elif (tag in ('layer', 'objectgroup') and self.current_tileset is None
              and self.current_layer is not None):
            self._finish_layer(self.current_layer)
            self.current_layer = None
            elem.clear()

    # -------------------------------------------------------------------------
    # ELEMENT HANDLERS
    # -------------------------------------------------------------------------

    def _parse_map(self, elem: ET.Element):
        tiled_map = self.map
        tiled_map.width = attr_int(elem, 'width')
        tiled_map.height = attr_int(elem, 'height')
        tiled_map.tilewidth = attr_int(elem, 'tilewidth')
        tiled_map.tileheight = attr_int(elem, 'tileheight')
        tiled_map.nextobjectid = attr_int(elem, 'nextobjectid')

        tiled_map.type = "map"
        tiled_map.version = TMX_FORMAT_VERSION
        tiled_map.infinite = attr_bool(elem, 'infinite')
        tiled_map.backgroundcolor = attr_str(elem, 'backgroundcolor')
        tiled_map.orientation = attr_str(elem, 'orientation')
        tiled_map.tiledversion = attr_str(elem, 'tiledversion')

        if tiled_map.tiledversion != self.supported_version:
            logger.warning(
                "TiledMap generated from %s. Supported version: %s. "
                "Some features may not be parsed fully.",
                tiled_map.tiledversion, self.supported_version)

    def _parse_tileset(self, tileset: Tileset, elem: ET.Element):
        tileset.firstgid = attr_int(elem, 'firstgid')
        tileset.name = attr_str(elem, 'name')
        tileset.tilewidth = attr_int(elem, 'tilewidth')
        tileset.tileheight = attr_int(elem, 'tileheight')
        tileset.spacing = attr_int(elem, 'spacing')
        tileset.tilecount = attr_int(elem, 'tilecount')
        tileset.columns = attr_int(elem, 'columns')

    def _parse_image(self, tileset: Tileset, elem: ET.Element):
        tileset.image = attr_str(elem, 'source')
        tileset.imagewidth = attr_int(elem, 'width')
        tileset.imageheight = attr_int(elem, 'height')

    def _parse_tile_layer(self, layer: Layer, elem: ET.Element):
        layer.type = TILE_LAYER
        layer.name = attr_str(elem, 'name')
        layer.width = attr_int(elem, 'width')
        layer.height = attr_int(elem, 'height')
        layer.opacity = attr_float(elem, 'opacity')
        layer.visible = attr_bool(elem, 'visible')

    def _parse_data(self, layer: Layer, elem: ET.Element):
        encoding = elem.get('encoding')
        if encoding is None:
            # Deprecated XML form: one <tile gid="..."/> per cell
            layer.data = decode_xml_tiles(elem)
        else:
            layer.data = decode_data(elem.text, encoding,
                                     elem.get('compression'))

    def _parse_object_group(self, layer: Layer, elem: ET.Element):
        layer.type = OBJECT_GROUP
        layer.name = attr_str(elem, 'name')

    def _parse_object(self, layer: Layer, elem: ET.Element):
        layer.objects.append(TiledObject(
            type=attr_str(elem, 'type'),
            id=attr_int(elem, 'id'),
            x=attr_float(elem, 'x'),
            y=attr_float(elem, 'y'),
            width=attr_float(elem, 'width'),
            height=attr_float(elem, 'height'),
        ))

    def _finish_layer(self, layer: Layer):
        if layer.is_tile_layer:
            expected = layer.width * layer.height
            if len(layer.data) != expected:
                logger.warning(
                    "Layer %r decoded %d tiles, expected %d (%dx%d)",
                    layer.name, len(layer.data), expected,
                    layer.width, layer.height)
        self.layers.append(layer)
        logger.debug("Layer %r (%s)", layer.name, layer.type)


def _local_name(tag: str) -> str:
    """Strip a "{namespace}" prefix from an element tag."""
    return tag.rsplit('}', 1)[-1]


# =============================================================================
# MODULE-LEVEL CONVENIENCE
# =============================================================================

_default_parser = TMXParser()


def parse(source: Source) -> TiledMap:
    """Parse a TMX document from a path or binary file object."""
    return _default_parser.parse(source)


def parse_string(text: Union[str, bytes]) -> TiledMap:
    """Parse a TMX document held in memory."""
    return _default_parser.parse_string(text)


def load(filepath: Union[str, Path]) -> TiledMap:
    """Open and parse a .tmx file."""
    return _default_parser.load(filepath)
