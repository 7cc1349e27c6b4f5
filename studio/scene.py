from __future__ import annotations

import copy
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image

from .assets import ImageAsset
from .errors import LayerRangeError, RenderTargetError, UnknownLayerError
from .geometry import fit_contain, render_layer
from .io_types import DragState, FlattenedImage, LayerPatch, Placement, Point, Stage


log = logging.getLogger(__name__)


@dataclass
class Layer:
    id: str
    label: str
    image: ImageAsset
    x: float
    y: float
    scale: float
    rotation: float
    z: int


@dataclass(frozen=True)
class LayerBounds:
    """
    Slider ranges for layer edits and what to do with values outside them:
    accept (store as-is), clamp, or reject with LayerRangeError.
    """

    scale: tuple[float, float] = (0.2, 3.0)
    rotation: tuple[float, float] = (-45.0, 45.0)
    z: tuple[int, int] = (1, 30)
    policy: str = "accept"

    def __post_init__(self) -> None:
        if self.policy not in ("accept", "clamp", "reject"):
            raise ValueError(f"Unknown range policy: {self.policy}")

    def apply(self, changes: dict) -> dict:
        for key, v in changes.items():
            if isinstance(v, float) and not math.isfinite(v):
                raise LayerRangeError(f"{key}={v} is not a finite number")
        if self.policy == "accept":
            return changes
        out = dict(changes)
        for key in ("scale", "rotation", "z"):
            if key not in out:
                continue
            lo, hi = getattr(self, key)
            v = out[key]
            if lo <= v <= hi:
                continue
            if self.policy == "reject":
                raise LayerRangeError(f"{key}={v} outside [{lo}, {hi}]")
            out[key] = type(v)(min(hi, max(lo, v)))
        return out


@dataclass
class Scene:
    stage: Stage = field(default_factory=Stage)
    bounds: LayerBounds = field(default_factory=LayerBounds)
    photo: Optional[ImageAsset] = None
    cutout: Optional[ImageAsset] = None
    layers: list[Layer] = field(default_factory=list)
    active_id: Optional[str] = None
    drag: Optional[DragState] = None

    @property
    def base(self) -> Optional[ImageAsset]:
        return self.cutout if self.cutout is not None else self.photo

    @property
    def active_layer(self) -> Optional[Layer]:
        if self.active_id is None:
            return None
        return self.get_layer(self.active_id)

    def get_layer(self, layer_id: str) -> Layer:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        raise UnknownLayerError(layer_id)

    def has_layer(self, layer_id: str) -> bool:
        return any(layer.id == layer_id for layer in self.layers)

    # Base photo

    def reset_base(self, photo: Optional[ImageAsset]) -> None:
        self.photo = photo
        self.cutout = None
        self.layers = []
        self.active_id = None
        self.drag = None

    def set_cutout(self, cutout: Optional[ImageAsset]) -> None:
        self.cutout = cutout

    # Layers

    def add_layer(
        self,
        image: ImageAsset,
        label: str,
        placement: Optional[Placement] = None,
        layer_id: Optional[str] = None,
    ) -> Layer:
        p = placement or Placement()
        lid = layer_id or str(uuid.uuid4())
        if self.has_layer(lid):
            raise ValueError(f"Duplicate layer id: {lid}")
        layer = Layer(
            id=lid,
            label=label,
            image=image,
            x=p.x,
            y=p.y,
            scale=p.scale,
            rotation=p.rotation,
            z=p.z,
        )
        self.layers.append(layer)
        self.active_id = layer.id
        return layer

    def set_active(self, layer_id: Optional[str]) -> None:
        if layer_id is not None and not self.has_layer(layer_id):
            raise UnknownLayerError(layer_id)
        self.active_id = layer_id

    def update_active_layer(self, patch: LayerPatch) -> Optional[Layer]:
        layer = self.active_layer
        if layer is None:
            return None
        changes = self.bounds.apply(patch.items())
        for key, value in changes.items():
            setattr(layer, key, value)
        return layer

    def remove_layer(self, layer_id: str) -> None:
        layer = self.get_layer(layer_id)
        self.layers = [l for l in self.layers if l is not layer]
        if self.active_id == layer_id:
            self.active_id = None
        if self.drag and self.drag.layer_id == layer_id:
            self.drag = None

    def remove_active(self) -> None:
        if self.active_id is None:
            return
        self.remove_layer(self.active_id)

    # Drag gesture, all points in stage coordinates

    def begin_drag(self, layer_id: str, pointer: Point) -> None:
        layer = self.get_layer(layer_id)
        # one gesture at a time; a new one replaces any in flight
        self.drag = DragState(
            layer_id=layer.id,
            pointer_start=Point(*pointer),
            baseline=Point(layer.x, layer.y),
        )
        self.active_id = layer.id

    def update_drag(self, pointer: Point) -> Optional[Layer]:
        if self.drag is None:
            return None
        d = self.drag
        layer = self.get_layer(d.layer_id)
        layer.x = d.baseline.x + (pointer[0] - d.pointer_start.x)
        layer.y = d.baseline.y + (pointer[1] - d.pointer_start.y)
        return layer

    def end_drag(self) -> None:
        self.drag = None

    # Export

    def paint_order(self) -> list[Layer]:
        # sorted() is stable: equal z keeps insertion order
        return sorted(self.layers, key=lambda l: l.z)

    def flatten(self) -> FlattenedImage:
        stage = self.stage
        size = stage.pixel_size
        if size[0] <= 0 or size[1] <= 0:
            raise RenderTargetError(f"Stage has zero area: {stage.width}x{stage.height} @ {stage.export_scale}x")
        base = self.base
        layers = [copy.copy(l) for l in self.paint_order()]

        canvas = Image.new("RGBA", size, (0, 0, 0, 0))
        if base is not None:
            base_im = base.to_image()
            x, y, w, h = fit_contain(base_im.size, size)
            canvas.alpha_composite(base_im.resize((w, h), Image.LANCZOS), (x, y))
        k = stage.export_scale
        for layer in layers:
            im = render_layer(
                size,
                layer.image.to_image(),
                Point(layer.x * k, layer.y * k),
                stage.layer_base_width,
                layer.scale,
                layer.rotation,
                k,
            )
            if im is not None:
                canvas.alpha_composite(im)
        log.info("flattened scene: %d layer(s) at %dx%d", len(layers), size[0], size[1])
        return FlattenedImage(image=canvas, paint_order=[l.id for l in layers])
