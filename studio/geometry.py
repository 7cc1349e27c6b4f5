from __future__ import annotations

import math
from typing import Optional, Tuple

from PIL import Image

from .io_types import Point


def fit_contain(src_size: Tuple[int, int], bounds: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Largest aspect-preserving box inside bounds, centred. Returns (x, y, w, h)."""
    sw, sh = src_size
    bw, bh = bounds
    scale = min(bw / sw, bh / sh)
    w = max(1, int(round(sw * scale)))
    h = max(1, int(round(sh * scale)))
    return (bw - w) // 2, (bh - h) // 2, w, h


def viewport_to_stage(point: Point, stage_origin: Point, css_scale: float = 1.0) -> Point:
    """
    Translate a viewport pointer position into stage space.
    css_scale is rendered stage width over logical stage width.
    """
    if css_scale <= 0:
        raise ValueError("css_scale must be positive")
    return Point((point.x - stage_origin.x) / css_scale, (point.y - stage_origin.y) / css_scale)


def render_layer(
    canvas_size: Tuple[int, int],
    im: Image.Image,
    center: Point,
    base_width: float,
    scale: float,
    rotation: float,
    pixel_ratio: float = 1.0,
) -> Optional[Image.Image]:
    """
    Render a layer onto a transparent canvas-sized image.
    - The box is base_width * |scale| wide and keeps the image aspect ratio.
    - Rotation is clockwise in degrees about the box centre (y axis points
      down). A negative scale mirrors both axes.
    - Only canvas pixels are sampled, so memory stays bounded by the canvas
      whatever the scale.
    Returns None when the layer renders to nothing or lies off the canvas.
    """
    if not all(math.isfinite(v) for v in (center.x, center.y, scale, rotation)):
        return None
    if scale == 0 or im.width == 0 or im.height == 0:
        return None
    box_w = base_width * abs(scale) * pixel_ratio
    box_h = box_w * im.height / im.width
    if not (math.isfinite(box_w) and math.isfinite(box_h)) or box_w < 1 or box_h < 1:
        return None
    cw, ch = canvas_size
    reach = math.hypot(box_w, box_h) / 2.0
    if center.x + reach < 0 or center.y + reach < 0 or center.x - reach > cw or center.y - reach > ch:
        return None

    if box_w < im.width:
        # shrink with a proper filter first; the affine sampler does not antialias
        im = im.resize((max(1, int(round(box_w))), max(1, int(round(box_h)))), Image.LANCZOS)
    f = math.copysign(box_w / im.width, scale)
    theta = math.radians(rotation)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    # canvas -> source: u = src_centre + R(-theta) (p - centre) / f
    a, b = cos_t / f, sin_t / f
    d, e = -sin_t / f, cos_t / f
    c = im.width / 2.0 - a * center.x - b * center.y
    g = im.height / 2.0 - d * center.x - e * center.y
    return im.transform(canvas_size, Image.AFFINE, (a, b, c, d, e, g), resample=Image.BICUBIC)
