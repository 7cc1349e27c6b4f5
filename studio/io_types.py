from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import NamedTuple, Optional

from PIL import Image

from .assets import encode_png


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class Placement:
    x: float = 260.0
    y: float = 350.0
    scale: float = 1.5
    rotation: float = 0.0
    z: int = 10


@dataclass(frozen=True)
class LayerPatch:
    x: Optional[float] = None
    y: Optional[float] = None
    scale: Optional[float] = None
    rotation: Optional[float] = None
    z: Optional[int] = None

    def items(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class Stage:
    # 3:4 stage, 520px wide
    width: float = 520.0
    height: float = 693.0
    export_scale: float = 2.0
    layer_base_width: float = 300.0

    @property
    def pixel_size(self) -> tuple[int, int]:
        return int(round(self.width * self.export_scale)), int(round(self.height * self.export_scale))


@dataclass(frozen=True)
class DragState:
    layer_id: str
    pointer_start: Point
    baseline: Point


@dataclass
class FlattenedImage:
    image: Image.Image
    paint_order: list[str] = field(default_factory=list)

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def to_png(self) -> bytes:
        return encode_png(self.image)
