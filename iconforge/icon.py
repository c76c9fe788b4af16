from __future__ import annotations

from dataclasses import dataclass, field
import re
import struct
from pathlib import Path
from typing import Iterable, Iterator

import numpy as np
from PIL import Image


_SCALE_SUFFIX = re.compile(r"@(\d+(?:\.\d+)?)x$")


@dataclass(frozen=True)
class RectPx:
    """Pixel rectangle, origin at the top-left corner."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_size(cls, width: int, height: int) -> "RectPx":
        return cls(0, 0, width, height)

    def right(self) -> int:
        return self.x + self.width

    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class SizePx:
    width: int
    height: int

    def is_square(self) -> bool:
        return self.width == self.height


@dataclass(frozen=True, eq=False)
class IconImage:
    """RGBA pixels plus display scale and the rectangle holding the artwork.

    ``data`` is an ``(h, w, 4)`` uint8 array. The image keeps its own read-only
    copy, so the caller's buffer stays free for reuse; stages copy it again
    before drawing.
    """

    data: np.ndarray
    scale: float
    content_bounds: RectPx

    def __post_init__(self) -> None:
        if self.data.ndim != 3 or self.data.shape[2] != 4 or self.data.dtype != np.uint8:
            raise ValueError("IconImage data must be a (h, w, 4) uint8 array")
        if self.scale <= 0:
            raise ValueError("IconImage scale must be > 0")
        height, width, _ = self.data.shape
        b = self.content_bounds
        if b.x < 0 or b.y < 0 or b.right() > width or b.bottom() > height:
            raise ValueError("IconImage content_bounds must lie inside the image")
        data = np.array(self.data, dtype=np.uint8, copy=True)
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    @classmethod
    def new_full_content(cls, data: np.ndarray, scale: float) -> "IconImage":
        height, width = data.shape[:2]
        return cls(data=data, scale=scale, content_bounds=RectPx.from_size(width, height))

    @classmethod
    def from_pil(cls, image: Image.Image, scale: float = 1.0, content_bounds: RectPx | None = None) -> "IconImage":
        data = np.array(image.convert("RGBA"), dtype=np.uint8)
        if content_bounds is None:
            return cls.new_full_content(data, scale)
        return cls(data=data, scale=scale, content_bounds=content_bounds)

    @classmethod
    def from_file(cls, path: Path) -> "IconImage":
        """Load an image, reading the scale from an ``@2x`` style suffix."""
        match = _SCALE_SUFFIX.search(path.stem)
        scale = float(match.group(1)) if match else 1.0
        with Image.open(path) as image:
            return cls.from_pil(image, scale)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.data), mode="RGBA")

    def with_data(self, data: np.ndarray) -> "IconImage":
        return IconImage(data=data, scale=self.scale, content_bounds=self.content_bounds)

    def pixels_copy(self) -> np.ndarray:
        return np.array(self.data, dtype=np.uint8, copy=True)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.data[y, x])
        return (r, g, b, a)

    def dimensions(self) -> SizePx:
        height, width = self.data.shape[:2]
        return SizePx(width, height)

    def logical_size(self) -> tuple[float, float]:
        size = self.dimensions()
        return (size.width / self.scale, size.height / self.scale)

    def same_pixels(self, other: "IconImage") -> bool:
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))


@dataclass(frozen=True)
class CacheKey:
    """Identifies one concrete rendering: pixel size plus the scale's bit pattern."""

    width: int
    height: int
    scale_bits: int

    @classmethod
    def new(cls, width: int, height: int, scale: float) -> "CacheKey":
        (bits,) = struct.unpack("<Q", struct.pack("<d", float(scale)))
        return cls(width, height, bits)

    @classmethod
    def from_icon(cls, icon: IconImage) -> "CacheKey":
        size = icon.dimensions()
        return cls.new(size.width, size.height, icon.scale)


@dataclass
class IconSet:
    """Ordered collection of resolution variants of one icon."""

    images: list[IconImage] = field(default_factory=list)

    @classmethod
    def from_images(cls, images: Iterable[IconImage]) -> "IconSet":
        return cls(images=list(images))

    def add_image(self, image: IconImage) -> None:
        self.images.append(image)

    def find_by_logical_size(self, target_size: float) -> IconImage | None:
        if not self.images:
            return None
        # min() keeps the first of equally close entries.
        return min(self.images, key=lambda img: abs(img.logical_size()[0] - target_size))

    def is_empty(self) -> bool:
        return not self.images

    def __len__(self) -> int:
        return len(self.images)

    def __iter__(self) -> Iterator[IconImage]:
        return iter(self.images)
