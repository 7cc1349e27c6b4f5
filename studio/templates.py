from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import UnknownTemplateError


@dataclass(frozen=True)
class GarmentTemplate:
    id: str
    label: str
    mask: str
    shading: str
    border: str

    def resolve(self, assets_dir: str) -> "GarmentTemplate":
        def _p(rel: str) -> str:
            return rel if os.path.isabs(rel) else os.path.join(assets_dir, rel)

        return GarmentTemplate(self.id, self.label, _p(self.mask), _p(self.shading), _p(self.border))


def _cloth(template_id: str, label: str, stem: str) -> GarmentTemplate:
    return GarmentTemplate(
        id=template_id,
        label=label,
        mask=f"cloth/{stem}_mask.png",
        shading=f"cloth/{stem}_shading.png",
        border=f"cloth/{stem}_border.png",
    )


DEFAULT_TEMPLATES = (
    _cloth("kurta-template", "Kurta", "kurtanew"),
    _cloth("blazer-template", "Blazer", "blazer1"),
    _cloth("sherwani-template", "Sherwani", "sherwani1"),
    _cloth("pants-template", "Pants", "pants1"),
)


class TemplateCatalog:
    """Garment cuts available for texturing, keyed by id."""

    def __init__(self, templates: Iterable[GarmentTemplate] = DEFAULT_TEMPLATES, assets_dir: Optional[str] = None) -> None:
        self.assets_dir = assets_dir or os.environ.get("STUDIO_ASSETS_DIR", "assets")
        self._by_id: dict[str, GarmentTemplate] = {}
        for t in templates:
            self._by_id[t.id] = t.resolve(self.assets_dir)

    def get(self, template_id: str) -> GarmentTemplate:
        t = self._by_id.get(template_id)
        if t is None:
            raise UnknownTemplateError(f"Unknown garment template: {template_id}")
        return t

    def all(self) -> list[GarmentTemplate]:
        return list(self._by_id.values())

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._by_id
