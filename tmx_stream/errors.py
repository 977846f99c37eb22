"""Exceptions raised while reading TMX documents"""


class ParseError(Exception):
    """
    A TMX document could not be turned into a TiledMap.

    Every fatal condition (malformed XML, corrupt base64/zlib/gzip payloads,
    misaligned tile data, broken element nesting) ends up as this one
    exception. The underlying error is kept on ``__cause__``.
    """

    def __init__(self, message: str):
        super().__init__(f"Cannot parse tmx file: {message}")
