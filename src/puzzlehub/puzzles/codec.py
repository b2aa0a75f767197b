"""Puzzle game-data codec.

Game definitions are stored as lz-string ``compressToBase64`` output of
their JSON text, the format the puzzle editor client produces.
"""

from __future__ import annotations

import json
from typing import Any

from lzstring import LZString


class GameDataCodec:
    """Encode/decode puzzle definitions to and from their stored blob form."""

    def __init__(self) -> None:
        self._lz = LZString()

    def encode(self, game: Any) -> str:  # noqa: ANN401
        return self._lz.compressToBase64(json.dumps(game, separators=(",", ":")))

    def decode(self, blob: str) -> Any:  # noqa: ANN401
        """Decode a stored blob.

        Raises:
            ValueError: If the blob is not lz-string base64 of a JSON document.
        """
        try:
            text = self._lz.decompressFromBase64(blob)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            # Characters outside the base64 alphabet surface as KeyError
            msg = f"Invalid game data: {e!r}"
            raise ValueError(msg) from e
        if not text:
            msg = "Invalid game data: blob decompressed to nothing"
            raise ValueError(msg)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Invalid game data: {e}"
            raise ValueError(msg) from e
