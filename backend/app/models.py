from typing import Literal

from pydantic import BaseModel, Field, FiniteFloat

from providers.base import GarmentType


class SessionCreateRequest(BaseModel):
    product_id: str | None = None


class LayerView(BaseModel):
    id: str
    label: str
    x: float
    y: float
    scale: float
    rotation: float
    z: int
    width: int
    height: int
    image_url: str | None = None


class SceneView(BaseModel):
    session_id: str
    product_id: str | None = None
    has_photo: bool
    has_cutout: bool
    has_fabric: bool
    template_id: str | None = None
    active_id: str | None = None
    dragging: str | None = None
    layers: list[LayerView] = Field(default_factory=list)


class TemplateView(BaseModel):
    id: str
    label: str


class GenerateGarmentRequest(BaseModel):
    template_id: str | None = None


class AIGarmentRequest(BaseModel):
    garment_type: GarmentType
    label: str | None = None


class SetActiveRequest(BaseModel):
    layer_id: str | None = None


class LayerPatchRequest(BaseModel):
    x: FiniteFloat | None = None
    y: FiniteFloat | None = None
    scale: FiniteFloat | None = None
    rotation: FiniteFloat | None = None
    z: int | None = None


class PointerRequest(BaseModel):
    x: FiniteFloat
    y: FiniteFloat
    # "viewport" points are translated with origin/css_scale before reaching the scene
    space: Literal["stage", "viewport"] = "stage"
    origin_x: FiniteFloat = 0.0
    origin_y: FiniteFloat = 0.0
    css_scale: FiniteFloat = 1.0


class DragStartRequest(PointerRequest):
    layer_id: str


class CritiqueRequest(BaseModel):
    prompt: str | None = None


class CritiqueResponse(BaseModel):
    feedback: str
