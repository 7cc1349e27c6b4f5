from __future__ import annotations

import io
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from .base import ProviderError


class LocalBackgroundRemover:
    """
    Offline stand-in for remove.bg.
    - Estimates the background colour from the four image corners.
    - Builds alpha from the distance to that colour (near-bg -> transparent).
    Good enough for studio shots on a plain backdrop.
    """

    def __init__(self, threshold: float | None = None) -> None:
        self.threshold = max(10.0, float(threshold if threshold is not None else os.environ.get("LOCAL_BG_THRESH", "28")))

    def remove_background(self, image: bytes, filename: str = "person.jpg") -> bytes:
        try:
            rgb = Image.open(io.BytesIO(image)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ProviderError("Background removal failed", detail=f"cannot decode {filename}: {e}") from e
        w, h = rgb.size
        corners = [rgb.getpixel((cx, cy)) for cx, cy in [(0, 0), (w - 1, 0), (0, h - 1), (w - 1, h - 1)]]
        bg = tuple(int(sum(c[i] for c in corners) / 4) for i in range(3))

        arr = np.array(rgb).astype("int16")
        bg_arr = np.array(bg, dtype="int16")[None, None, :]
        dist = np.linalg.norm(arr - bg_arr, axis=-1)
        thr = self.threshold
        alpha = (np.clip((dist - thr) / (255 - thr), 0, 1) * 255).astype("uint8")
        rgba = np.dstack([arr.astype("uint8"), alpha])

        buf = io.BytesIO()
        Image.fromarray(rgba).save(buf, format="PNG")
        return buf.getvalue()
