"""
Texture cache, so an image used by several meshes (or reloaded with a
project) is read from disk once.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import numpy as np
import pyvista as pv

from bezierwarp.config import resolve_resource_path

logger = logging.getLogger(__name__)


class TextureCache:
    def __init__(self) -> None:
        self.textures: dict[str, pv.Texture] = {}

    def __contains__(self, path: str) -> bool:
        return path in self.textures

    def __len__(self) -> int:
        return len(self.textures)

    def load(self, path: Optional[str]) -> Optional[pv.Texture]:
        """
        Load a texture, reusing the cached one when the path was seen before.

        Args:
            path: Image file path. Relative paths are resolved against the
                assets directory when they do not exist as given.

        Raises:
            FileNotFoundError: If the image cannot be found.

        Returns:
            The texture, or None when no path is given.
        """
        if not path:
            return None

        if path in self:
            return self.textures[path]

        resolved = resolve_resource_path(path)
        if not os.path.exists(resolved):
            raise FileNotFoundError(f"Texture not found: {path}")

        texture = pv.read_texture(resolved)
        self.textures[path] = texture
        logger.info(f"Texture loaded: {resolved}")
        return texture

    def clear(self) -> None:
        logger.debug(f"Clearing {len(self)} cached textures.")
        self.textures.clear()


def checkerboard_texture(size: int = 256, squares: int = 8) -> pv.Texture:
    """A generated black/white checkerboard, handy to visualise the warp."""
    if size < squares or squares < 1:
        raise ValueError(f"Invalid checkerboard: size={size}, squares={squares}.")
    cell = size // squares
    idx = np.arange(size) // cell
    board = ((idx[:, None] + idx[None, :]) % 2).astype(np.uint8) * 255
    image = np.dstack([board, board, board])
    return pv.Texture(image)
