"""
Raster compositing primitives used by the texture compositor.

Rasters are float64 arrays of shape (H, W, 4), straight (non-premultiplied)
RGBA in [0, 1]. Blend maths follow W3C Compositing and Blending Level 1,
which is what an HTML canvas does for the same operations.
"""
from __future__ import annotations

from typing import Protocol, Tuple

import numpy as np
from PIL import Image

from .errors import PatternCreationError


class RasterOps(Protocol):
    def tile_fill(self, size: Tuple[int, int], pattern: Image.Image) -> np.ndarray: ...

    def clip_to_alpha(self, canvas: np.ndarray, mask: Image.Image) -> np.ndarray: ...

    def multiply_blend(self, canvas: np.ndarray, layer: Image.Image) -> np.ndarray: ...

    def draw_over(self, canvas: np.ndarray, layer: Image.Image) -> np.ndarray: ...

    def to_image(self, canvas: np.ndarray) -> Image.Image: ...


def _as_float(im: Image.Image, size: Tuple[int, int]) -> np.ndarray:
    if im.size != size:
        im = im.resize(size, Image.BILINEAR)
    return np.asarray(im.convert("RGBA"), dtype=np.float64) / 255.0


def _source_over(cb: np.ndarray, ab: np.ndarray, cs: np.ndarray, as_: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # premultiplied source-over, then back to straight colour
    ao = as_ + ab * (1.0 - as_)
    co_pm = cs * as_ + cb * ab * (1.0 - as_)
    co = np.divide(co_pm, ao, out=np.zeros_like(co_pm), where=ao > 0)
    return co, ao


class NumpyRaster:
    def tile_fill(self, size: Tuple[int, int], pattern: Image.Image) -> np.ndarray:
        w, h = size
        pw, ph = pattern.size
        if pw <= 0 or ph <= 0:
            raise PatternCreationError("Could not create fabric pattern.")
        tile = np.asarray(pattern.convert("RGBA"), dtype=np.float64) / 255.0
        reps_y = -(-h // ph)
        reps_x = -(-w // pw)
        return np.tile(tile, (reps_y, reps_x, 1))[:h, :w].copy()

    def clip_to_alpha(self, canvas: np.ndarray, mask: Image.Image) -> np.ndarray:
        """destination-in: keep canvas only where the mask is opaque."""
        h, w = canvas.shape[:2]
        m = _as_float(mask, (w, h))
        out = canvas.copy()
        out[..., 3] = canvas[..., 3] * m[..., 3]
        return out

    def multiply_blend(self, canvas: np.ndarray, layer: Image.Image) -> np.ndarray:
        h, w = canvas.shape[:2]
        src = _as_float(layer, (w, h))
        cb, ab = canvas[..., :3], canvas[..., 3:4]
        cs, as_ = src[..., :3], src[..., 3:4]
        # B(cb, cs) = cb * cs; mixed with the source by backdrop alpha
        mixed = (1.0 - ab) * cs + ab * (cb * cs)
        co, ao = _source_over(cb, ab, mixed, as_)
        return np.concatenate([co, ao], axis=-1)

    def draw_over(self, canvas: np.ndarray, layer: Image.Image) -> np.ndarray:
        h, w = canvas.shape[:2]
        src = _as_float(layer, (w, h))
        co, ao = _source_over(canvas[..., :3], canvas[..., 3:4], src[..., :3], src[..., 3:4])
        return np.concatenate([co, ao], axis=-1)

    def to_image(self, canvas: np.ndarray) -> Image.Image:
        arr = np.clip(np.rint(canvas * 255.0), 0, 255).astype("uint8")
        return Image.fromarray(arr)
