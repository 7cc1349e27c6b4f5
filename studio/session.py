from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from .assets import ComposedGarmentImage, ImageAsset
from .compositor import compose
from .errors import MissingSelectionError
from .io_types import Placement
from .scene import Layer, Scene
from .templates import GarmentTemplate, TemplateCatalog


log = logging.getLogger(__name__)


# (template_id, fabric sha256) -> cached garment or None
CacheGet = Callable[[str, str], Optional[ComposedGarmentImage]]
CacheSet = Callable[[str, str, ComposedGarmentImage], None]


@dataclass
class TrialSession:
    """
    One shopper's virtual-trial state: a scene plus the current garment
    design inputs (selected template and uploaded fabric).
    """

    templates: TemplateCatalog
    scene: Scene = field(default_factory=Scene)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    product_id: Optional[str] = None
    fabric: Optional[ImageAsset] = None
    template: Optional[GarmentTemplate] = None
    placement: Placement = field(default_factory=Placement)
    cache_get: Optional[CacheGet] = None
    cache_set: Optional[CacheSet] = None

    def upload_photo(self, data: Optional[bytes]) -> Optional[ImageAsset]:
        """New base photo; discards the cutout and every placed layer."""
        photo = ImageAsset.from_bytes(data, "photo") if data else None
        self.scene.reset_base(photo)
        return photo

    def apply_cutout(self, data: bytes) -> ImageAsset:
        cutout = ImageAsset.from_bytes(data, "cutout")
        self.scene.set_cutout(cutout)
        return cutout

    def upload_fabric(self, data: Optional[bytes]) -> Optional[ImageAsset]:
        # replaces (and releases) any previous swatch
        self.fabric = ImageAsset.from_bytes(data, "fabric") if data else None
        return self.fabric

    def select_template(self, template_id: str) -> GarmentTemplate:
        self.template = self.templates.get(template_id)
        return self.template

    def generate_garment(self, template_id: Optional[str] = None) -> Layer:
        if template_id is not None:
            self.select_template(template_id)
        template = self.template
        fabric = self.fabric
        if template is None or fabric is None:
            raise MissingSelectionError("Please select a garment and upload a fabric.")

        garment = self._cached(template.id, fabric.sha256)
        if garment is None:
            garment = compose(template.mask, fabric, template.shading, template.border, template_id=template.id)
            if self.cache_set is not None:
                self.cache_set(template.id, fabric.sha256, garment)
        layer = self.scene.add_layer(
            garment,
            template.label,
            self.placement,
            layer_id=f"{template.id}-{uuid.uuid4()}",
        )
        log.info("session %s: placed %s as %s", self.id, template.label, layer.id)
        return layer

    def place_image(self, data: bytes, label: str) -> Layer:
        """Place a ready-made garment image (catalog or AI output) as a layer."""
        image = ImageAsset.from_bytes(data, label)
        return self.scene.add_layer(image, label, self.placement)

    def export_png(self) -> bytes:
        return self.scene.flatten().to_png()

    def _cached(self, template_id: str, fabric_hash: str) -> Optional[ComposedGarmentImage]:
        if self.cache_get is None:
            return None
        return self.cache_get(template_id, fabric_hash)
