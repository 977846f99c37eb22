from __future__ import annotations

import pytest

from tests.helpers import tmx_document


@pytest.fixture
def sample_tmx() -> str:
    """A small map with two tilesets, a tile layer and an object group."""
    return tmx_document(
        """
 <tileset firstgid="1" name="terrain" tilewidth="16" tileheight="16"
          spacing="1" tilecount="8" columns="4">
  <image source="terrain.png" width="67" height="33"/>
 </tileset>
 <tileset firstgid="9" name="items" tilewidth="16" tileheight="16"
          tilecount="4" columns="2">
  <image source="items.png" width="32" height="32"/>
 </tileset>
 <layer id="1" name="Ground" width="3" height="2" opacity="0.5" visible="1">
  <data encoding="csv">
1,2,3,
4,5,9
</data>
 </layer>
 <objectgroup id="2" name="Spawns">
  <object id="1" type="player" x="16" y="32" width="16" height="16"/>
  <object id="2" type="enemy" x="40.5" y="8"/>
 </objectgroup>
""",
        backgroundcolor="#55aaff",
    )
