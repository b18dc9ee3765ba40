"""
Source texture bookkeeping.

A TextureObject only knows the pixel dimensions of the textures the mesh was
originally mapped to. Image files are opened through Pillow to read their
size; pixel data is never decoded.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextureSize:
    """Pixel dimensions of a texture."""
    w: int
    h: int


class TextureObject:
    """
    Dimensions of the source textures of a mesh, indexed like face texture ids.

    Examples:
        >>> tex = TextureObject([TextureSize(2048, 2048), TextureSize(1024, 2048)])
        >>> tex.compute_relative_sizes()
        [(1.0, 1.0), (0.5, 1.0)]
    """

    def __init__(self, sizes: Sequence[TextureSize]):
        self.sizes: List[TextureSize] = list(sizes)

    @classmethod
    def from_files(cls, paths: Sequence[Union[str, Path]]) -> "TextureObject":
        sizes = []
        for path in paths:
            if not Path(path).exists():
                raise FileNotFoundError(f"Texture not found: {path}")
            # Image.open is lazy, the header is enough for the size
            with Image.open(path) as img:
                w, h = img.size
            logger.debug(f"Texture {path}: {w}x{h}")
            sizes.append(TextureSize(w, h))
        return cls(sizes)

    def array_size(self) -> int:
        return len(self.sizes)

    def texture_width(self, i: int) -> int:
        return self.sizes[i].w

    def texture_height(self, i: int) -> int:
        return self.sizes[i].h

    def compute_relative_sizes(self) -> List[Tuple[float, float]]:
        """Each texture's sides divided by the largest side over all textures."""
        n = self.array_size()
        max_side = 0
        for i in range(n):
            max_side = max(max_side, self.texture_width(i), self.texture_height(i))
        if max_side == 0:
            return [(0.0, 0.0)] * n
        return [(self.texture_width(i) / max_side, self.texture_height(i) / max_side) for i in range(n)]
