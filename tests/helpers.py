from __future__ import annotations

import base64
import struct

from tmx_stream import TILED_VERSION_LATEST


def pack_gids(gids: list[int]) -> bytes:
    """Little-endian uint32 bytes for a list of GIDs."""
    return struct.pack(f"<{len(gids)}I", *gids)


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def tmx_document(body: str, version: str = TILED_VERSION_LATEST, **attrs: str) -> str:
    """Wrap ``body`` in a <map> element with sensible header attributes."""
    header = {
        "version": "1.0",
        "tiledversion": version,
        "orientation": "orthogonal",
        "width": "3",
        "height": "2",
        "tilewidth": "16",
        "tileheight": "16",
        "infinite": "0",
        "nextobjectid": "4",
    }
    header.update(attrs)
    attr_text = " ".join(f'{k}="{v}"' for k, v in header.items())
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<map {attr_text}>\n{body}\n</map>\n"
    )


def tile_layer(data: str, name: str = "Ground", width: int = 3, height: int = 2) -> str:
    """A <layer> element wrapping an already formatted <data> element."""
    return (
        f'<layer name="{name}" width="{width}" height="{height}" visible="1">'
        f"{data}</layer>"
    )
