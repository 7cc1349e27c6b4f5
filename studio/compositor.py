from __future__ import annotations

import logging
from typing import Optional

from .assets import ComposedGarmentImage, ImageSource, encode_png, load_image
from .raster import NumpyRaster, RasterOps


log = logging.getLogger(__name__)


def compose(
    mask: ImageSource,
    fabric: ImageSource,
    shading: ImageSource,
    border: ImageSource,
    template_id: Optional[str] = None,
    ops: Optional[RasterOps] = None,
) -> ComposedGarmentImage:
    """
    Texture a garment template with a fabric swatch.
    - Canvas is sized to the mask; shading and border are resampled to it.
    - Fabric is tiled from the origin at its native size.
    - Fabric is clipped to the mask alpha, multiplied by shading, then the
      border is drawn on top.
    The canvas is private until fully encoded, so callers get either a
    complete image or an exception. Inputs are decoded first, so a
    zero-sized fabric raises AssetLoadError; PatternCreationError comes from
    the raster backend refusing to tile a decoded fabric.
    """
    ops = ops or NumpyRaster()
    # a degenerate mask fails here, before anything else is decoded
    mask_im = load_image(mask, "mask")
    fabric_im = load_image(fabric, "fabric")
    shading_im = load_image(shading, "shading")
    border_im = load_image(border, "border")

    canvas = ops.tile_fill(mask_im.size, fabric_im)
    canvas = ops.clip_to_alpha(canvas, mask_im)
    canvas = ops.multiply_blend(canvas, shading_im)
    canvas = ops.draw_over(canvas, border_im)
    out = ops.to_image(canvas)

    data = encode_png(out)
    log.debug("composed garment %s at %dx%d", template_id or "<adhoc>", out.width, out.height)
    return ComposedGarmentImage(data=data, width=out.width, height=out.height, template_id=template_id)
