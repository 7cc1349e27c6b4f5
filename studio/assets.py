from __future__ import annotations

import base64
import hashlib
import io
import os
from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .errors import AssetLoadError


ImageSource = Union[bytes, str, "os.PathLike[str]", Image.Image, "ImageAsset"]


def content_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def file_sha256(path: str, chunk: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        while True:
            b = f.read(chunk)
            if not b:
                break
            h.update(b)
    return h.hexdigest()


@dataclass(frozen=True)
class ImageAsset:
    """Self-contained encoded image. Treated as opaque by the scene."""

    data: bytes
    width: int
    height: int
    media_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        return f"data:{self.media_type};base64," + base64.b64encode(self.data).decode("ascii")

    @property
    def sha256(self) -> str:
        return content_sha256(self.data)

    def to_image(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data)).convert("RGBA")

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "image") -> "ImageAsset":
        im = load_image(data, name)
        # load_image succeeded, so the header is readable
        with Image.open(io.BytesIO(data)) as probe:
            media_type = Image.MIME.get(probe.format or "", "image/png")
        return cls(data=bytes(data), width=im.width, height=im.height, media_type=media_type)

    @classmethod
    def from_image(cls, im: Image.Image) -> "ImageAsset":
        return cls(data=encode_png(im), width=im.width, height=im.height)


@dataclass(frozen=True)
class ComposedGarmentImage(ImageAsset):
    template_id: Optional[str] = None


def encode_png(im: Image.Image) -> bytes:
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


def load_image(source: ImageSource, name: str = "image") -> Image.Image:
    """
    Decode any supported source to an RGBA Pillow image.
    Raises AssetLoadError for undecodable input or a zero-sized image.
    """
    if isinstance(source, ImageAsset):
        source = source.data
    try:
        if isinstance(source, Image.Image):
            if source.width == 0 or source.height == 0:
                raise AssetLoadError(f"{name} has zero dimensions. Is it a valid PNG?")
            im = source.convert("RGBA")
        elif isinstance(source, (bytes, bytearray)):
            if not source:
                raise AssetLoadError(f"Failed to load {name}: empty payload")
            with Image.open(io.BytesIO(bytes(source))) as opened:
                im = opened.convert("RGBA")
        else:
            with Image.open(os.fspath(source)) as opened:
                im = opened.convert("RGBA")
    except AssetLoadError:
        raise
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetLoadError(f"Failed to load {name}: {e}") from e
    if im.width == 0 or im.height == 0:
        raise AssetLoadError(f"{name} has zero dimensions. Is it a valid PNG?")
    return im
