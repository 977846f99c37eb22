"""
Layer data decoding - turns the text of a <data> element into tile GIDs.

=============================================================================
DATA ENCODINGS
=============================================================================

1. CSV:
       <data encoding="csv">
       1,2,3,4,
       5,6,7,8
       </data>

2. Base64 (optionally compressed):
       <data encoding="base64">
       AQAAAAIAAAADAAAABAAAAA==
       </data>

   After base64 and decompression the payload is a packed array of
   little-endian unsigned 32-bit integers, one per tile, row by row.

3. XML (no encoding attribute, deprecated by Tiled):
       <data>
           <tile gid="1"/><tile gid="2"/>...
       </data>

Any other encoding is left undecoded (empty tile list).

=============================================================================
GID FLAGS
=============================================================================

The top bits of a GID carry flip flags. Decoding keeps them untouched; use
tmx_stream.model.strip_gid_flags() when you need the bare tile id.
=============================================================================
"""

import array
import base64
import gzip
import logging
import sys
import xml.etree.ElementTree as ET
import zlib
from typing import Optional

from .attributes import to_int
from .errors import ParseError

logger = logging.getLogger(__name__)

TILE_BYTES = 4                  # One GID = one little-endian uint32
MAX_GID = 0xFFFFFFFF


def decode_data(text: Optional[str], encoding: Optional[str],
                compression: Optional[str] = None) -> array.array:
    """
    Decode the text payload of a <data> element.

    Parameters:
    -----------
    text : str
        Character data of the element (may be None for an empty element)
    encoding : str
        "csv" or "base64"; anything else yields an empty array
    compression : str, optional
        "zlib", "gzip" or "zstd" (base64 only)

    Returns:
    --------
    array.array('I') : GIDs in row-major order

    Raises:
    -------
    ParseError : corrupt base64, corrupt compressed stream, unknown
                 compression, or a binary payload not a multiple of 4 bytes
    """
    text = text or ""

    if encoding == 'csv':
        return decode_csv(text)

    if encoding == 'base64':
        raw_data = decode_base64(text)
        raw_data = decompress(raw_data, compression)
        return unpack_gids(raw_data)

    logger.debug("Layer data encoding %r is not decoded", encoding)
    return array.array('I')


def decode_csv(text: str) -> array.array:
    """
    Parse comma separated GIDs.

    Newlines are removed and whitespace around each token is ignored.
    Empty tokens at the end (a trailing comma, or whitespace-only text)
    are dropped. Any other token that is not a valid GID, including an
    empty one between two commas, becomes 0 so later tiles keep their
    position in the grid.
    """
    tokens = [token.strip() for token in text.replace('\n', '').split(',')]
    while tokens and not tokens[-1]:
        tokens.pop()

    gids = array.array('I')
    for token in tokens:
        gid = to_int(token)
        # Out of uint32 range counts as malformed
        gids.append(gid if 0 <= gid <= MAX_GID else 0)
    return gids


def decode_base64(text: str) -> bytes:
    """Standard base64 to raw bytes."""
    try:
        return base64.b64decode(text.strip())
    # binascii.Error for bad padding, plain ValueError for non-ASCII text
    except ValueError as e:
        raise ParseError(f"invalid base64 layer data: {e}") from e


def decompress(raw_data: bytes, compression: Optional[str]) -> bytes:
    """
    Undo the optional compression of a base64 payload.

    No compression returns the bytes unchanged. The whole stream is
    inflated at once; a corrupt or truncated stream is fatal.
    """
    if not compression:
        return raw_data

    if compression == 'zlib':
        try:
            return zlib.decompress(raw_data)
        except zlib.error as e:
            raise ParseError(f"corrupt zlib layer data: {e}") from e

    if compression == 'gzip':
        try:
            return gzip.decompress(raw_data)
        # BadGzipFile is an OSError; truncated members raise EOFError
        except (OSError, EOFError, zlib.error) as e:
            raise ParseError(f"corrupt gzip layer data: {e}") from e

    if compression == 'zstd':
        return _decompress_zstd(raw_data)

    raise ParseError(f"unsupported layer data compression: {compression!r}")


def _decompress_zstd(raw_data: bytes) -> bytes:
    # zstd is not in the standard library
    try:
        import zstandard
    except ImportError as e:
        raise ParseError(
            "zstd compressed layer data needs the zstandard package "
            "(pip install tmx-stream[zstd])"
        ) from e

    try:
        # decompressobj() copes with frames that omit the content size
        return zstandard.ZstdDecompressor().decompressobj().decompress(raw_data)
    except zstandard.ZstdError as e:
        raise ParseError(f"corrupt zstd layer data: {e}") from e


def unpack_gids(raw_data: bytes) -> array.array:
    """
    Interpret bytes as consecutive little-endian uint32 GIDs.

    Trailing bytes that do not form a whole GID are rejected, not dropped.
    """
    if len(raw_data) % TILE_BYTES:
        raise ParseError(
            f"layer data is {len(raw_data)} bytes, "
            f"not a multiple of {TILE_BYTES}"
        )

    gids = array.array('I')
    gids.frombytes(raw_data)
    if sys.byteorder == 'big':
        gids.byteswap()
    return gids


def decode_xml_tiles(data_elem: ET.Element) -> array.array:
    """GIDs from <tile gid="..."/> children, in document order."""
    gids = array.array('I')
    for tile_elem in data_elem.findall('tile'):
        gid = to_int(tile_elem.get('gid'))
        gids.append(gid if 0 <= gid <= MAX_GID else 0)
    return gids
