import logging
import mimetypes
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import make_asgi_app as make_prom_app

from providers.base import BackgroundRemover, GarmentGenerator, OutfitCritic, ProviderError
from providers.gemini import GeminiGarmentGenerator, GeminiOutfitCritic
from providers.local_stub import LocalBackgroundRemover
from providers.remote import RemoteImageFetcher
from providers.remove_bg import RemoveBgClient
from studio.errors import (
    AssetLoadError,
    InputError,
    PatternCreationError,
    RenderTargetError,
    UnknownLayerError,
    UnknownTemplateError,
)
from studio.geometry import viewport_to_stage
from studio.io_types import LayerPatch, Point
from studio.session import TrialSession
from studio.templates import TemplateCatalog

from .cache import GarmentCache
from .catalog import filter_options, filter_products, get_product
from .config import Settings, settings as default_settings
from .logging_config import setup_logging
from .metrics import compose_failures, exports, provider_failures
from .models import (
    AIGarmentRequest,
    CritiqueRequest,
    CritiqueResponse,
    DragStartRequest,
    GenerateGarmentRequest,
    LayerPatchRequest,
    LayerView,
    PointerRequest,
    SceneView,
    SessionCreateRequest,
    SetActiveRequest,
    TemplateView,
)
from .sessions import SessionRegistry, UnknownSessionError
from .validators import enforce_max_upload_size, read_image_upload

load_dotenv()


log = logging.getLogger(__name__)

EXPORT_FILENAME = "dubai-royal-attire-try-on.png"


def build_background_remover(cfg: Settings) -> BackgroundRemover:
    backend = str(cfg.get("providers.background_removal", "removebg")).lower()
    if backend == "local":
        return LocalBackgroundRemover()
    return RemoveBgClient(api_key=cfg.get("remove_bg.api_key"))


def create_app(
    cfg: Optional[Settings] = None,
    background_remover: Optional[BackgroundRemover] = None,
    garment_generator: Optional[GarmentGenerator] = None,
    outfit_critic: Optional[OutfitCritic] = None,
    image_fetcher: Optional[RemoteImageFetcher] = None,
    templates: Optional[TemplateCatalog] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    app = FastAPI(title="Attire Studio API", version="0.1.0")

    templates = templates or TemplateCatalog(assets_dir=cfg.get("templates.assets_dir"))
    app.state.settings = cfg
    app.state.templates = templates
    app.state.sessions = SessionRegistry(
        cfg,
        templates,
        cache=GarmentCache(url=cfg.get("cache.redis_url") or os.environ.get("REDIS_URL")),
        ttl=float(cfg.get("sessions.ttl_seconds", 3600)),
    )
    app.state.background_remover = background_remover or build_background_remover(cfg)
    app.state.garment_generator = garment_generator or GeminiGarmentGenerator(api_key=cfg.get("gemini.api_key"))
    app.state.outfit_critic = outfit_critic or GeminiOutfitCritic(api_key=cfg.get("gemini.api_key"))
    app.state.image_fetcher = image_fetcher or RemoteImageFetcher()

    origins = os.environ.get("CORS_ORIGINS", "*")
    origin_list = [o.strip() for o in origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount("/metrics", make_prom_app())
    _install_error_handlers(app)
    app.include_router(_routes())

    @app.on_event("startup")
    def _startup() -> None:
        setup_logging()

    return app


def _install_error_handlers(app: FastAPI) -> None:
    def _detail(status: int):
        async def handler(_request: Request, exc: Exception) -> JSONResponse:
            return JSONResponse({"detail": str(exc)}, status_code=status)

        return handler

    async def _invalid_request(_request: Request, exc: RequestValidationError) -> JSONResponse:
        # rejected input is not echoed back; it may be NaN, which JSON cannot carry
        errors = [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        return JSONResponse({"detail": jsonable_encoder(errors)}, status_code=422)

    async def _unknown_session(_request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse({"detail": "Session not found"}, status_code=404)

    async def _provider(_request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse({"detail": str(exc), "details": getattr(exc, "detail", None)}, status_code=502)

    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(UnknownSessionError, _unknown_session)
    app.add_exception_handler(UnknownLayerError, _detail(404))
    app.add_exception_handler(UnknownTemplateError, _detail(404))
    app.add_exception_handler(InputError, _detail(422))
    app.add_exception_handler(RenderTargetError, _detail(409))
    app.add_exception_handler(ProviderError, _provider)


def _scene_view(s: TrialSession) -> SceneView:
    scene = s.scene
    return SceneView(
        session_id=s.id,
        product_id=s.product_id,
        has_photo=scene.photo is not None,
        has_cutout=scene.cutout is not None,
        has_fabric=s.fabric is not None,
        template_id=s.template.id if s.template else None,
        active_id=scene.active_id,
        dragging=scene.drag.layer_id if scene.drag else None,
        layers=[
            LayerView(
                id=l.id,
                label=l.label,
                x=l.x,
                y=l.y,
                scale=l.scale,
                rotation=l.rotation,
                z=l.z,
                width=l.image.width,
                height=l.image.height,
                image_url=f"/v1/sessions/{s.id}/layers/{l.id}/image",
            )
            for l in scene.layers
        ],
    )


def _upload_name(stem: str, media_type: str) -> str:
    return stem + (mimetypes.guess_extension(media_type) or ".jpg")


def _stage_point(body: PointerRequest) -> Point:
    p = Point(body.x, body.y)
    if body.space == "viewport":
        try:
            return viewport_to_stage(p, Point(body.origin_x, body.origin_y), body.css_scale)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    return p


def _routes() -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @router.get("/v1/config")
    def get_config(request: Request) -> dict:
        cfg: Settings = request.app.state.settings
        stage = cfg.stage()
        bounds = cfg.layer_bounds()
        placement = cfg.placement()
        return {
            "stage": {
                "width": stage.width,
                "height": stage.height,
                "export_scale": stage.export_scale,
                "layer_base_width": stage.layer_base_width,
            },
            "layers": {
                "scale_range": list(bounds.scale),
                "rotation_range": list(bounds.rotation),
                "z_range": list(bounds.z),
                "range_policy": bounds.policy,
                "default": {
                    "x": placement.x,
                    "y": placement.y,
                    "scale": placement.scale,
                    "rotation": placement.rotation,
                    "z": placement.z,
                },
            },
        }

    @router.get("/v1/templates", response_model=list[TemplateView])
    def list_templates(request: Request):
        return [TemplateView(id=t.id, label=t.label) for t in request.app.state.templates.all()]

    # Catalog

    @router.get("/v1/products")
    def list_products(category: str | None = None, color: str | None = None, occasion: str | None = None):
        return filter_products(category=category, color=color, occasion=occasion)

    @router.get("/v1/products/filters")
    def product_filters() -> dict:
        return filter_options()

    @router.get("/v1/products/{product_id}")
    def product_detail(product_id: str):
        p = get_product(product_id)
        if not p:
            raise HTTPException(status_code=404, detail="Product not found")
        return p

    # Sessions

    @router.post("/v1/sessions", response_model=SceneView)
    def create_session(request: Request, body: SessionCreateRequest | None = None):
        product_id = body.product_id if body else None
        if product_id is not None and get_product(product_id) is None:
            raise HTTPException(status_code=404, detail="Product not found")
        s = request.app.state.sessions.create(product_id=product_id)
        log.info("session %s created", s.id, extra={"session_id": s.id})
        return _scene_view(s)

    @router.get("/v1/sessions/{session_id}", response_model=SceneView)
    def get_session(session_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            return _scene_view(s)

    @router.delete("/v1/sessions/{session_id}")
    def delete_session(session_id: str, request: Request) -> dict:
        request.app.state.sessions.discard(session_id)
        return {"ok": True}

    @router.post("/v1/sessions/{session_id}/photo", response_model=SceneView)
    def upload_photo(
        session_id: str,
        request: Request,
        photo: UploadFile = File(...),
        _lim=Depends(enforce_max_upload_size),
    ):
        data = read_image_upload(photo)
        with request.app.state.sessions.locked(session_id) as s:
            s.upload_photo(data)
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/photo/remove-background", response_model=SceneView)
    def remove_background(session_id: str, request: Request):
        remover: BackgroundRemover = request.app.state.background_remover
        with request.app.state.sessions.locked(session_id) as s:
            photo = s.scene.photo
            if photo is None:
                raise HTTPException(status_code=422, detail="Upload a photo first")
            try:
                cutout = remover.remove_background(photo.data, _upload_name("photo", photo.media_type))
            except ProviderError:
                provider_failures.labels(provider="background_removal").inc()
                raise
            s.apply_cutout(cutout)
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/fabric", response_model=SceneView)
    def upload_fabric(
        session_id: str,
        request: Request,
        fabric: UploadFile = File(...),
        _lim=Depends(enforce_max_upload_size),
    ):
        data = read_image_upload(fabric)
        with request.app.state.sessions.locked(session_id) as s:
            s.upload_fabric(data)
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/garments", response_model=SceneView)
    def generate_garment(session_id: str, request: Request, body: GenerateGarmentRequest | None = None):
        template_id = body.template_id if body else None
        with request.app.state.sessions.locked(session_id) as s:
            try:
                s.generate_garment(template_id)
            except (AssetLoadError, PatternCreationError):
                compose_failures.inc()
                raise
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/garments/ai", response_model=SceneView)
    def generate_garment_ai(session_id: str, body: AIGarmentRequest, request: Request):
        generator: GarmentGenerator = request.app.state.garment_generator
        with request.app.state.sessions.locked(session_id) as s:
            if s.fabric is None:
                raise HTTPException(status_code=422, detail="Please upload a fabric.")
            try:
                data = generator.generate(s.fabric.data, body.garment_type)
            except ProviderError:
                provider_failures.labels(provider="garment_generation").inc()
                raise
            s.place_image(data, body.label or body.garment_type.value.capitalize())
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/layers/catalog/{product_id}", response_model=SceneView)
    def place_catalog_item(session_id: str, product_id: str, request: Request):
        product = get_product(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        fetcher: RemoteImageFetcher = request.app.state.image_fetcher
        try:
            data = fetcher.fetch(product.image_src)
        except ProviderError:
            provider_failures.labels(provider="catalog_image").inc()
            raise
        with request.app.state.sessions.locked(session_id) as s:
            s.place_image(data, product.name)
            return _scene_view(s)

    @router.get("/v1/sessions/{session_id}/layers/{layer_id}/image")
    def layer_image(session_id: str, layer_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            layer = s.scene.get_layer(layer_id)
            return Response(content=layer.image.data, media_type=layer.image.media_type)

    @router.delete("/v1/sessions/{session_id}/layers/{layer_id}", response_model=SceneView)
    def remove_layer(session_id: str, layer_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.remove_layer(layer_id)
            return _scene_view(s)

    # Active layer

    @router.put("/v1/sessions/{session_id}/active", response_model=SceneView)
    def set_active(session_id: str, body: SetActiveRequest, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.set_active(body.layer_id)
            return _scene_view(s)

    @router.patch("/v1/sessions/{session_id}/active", response_model=SceneView)
    def update_active(session_id: str, body: LayerPatchRequest, request: Request):
        patch = LayerPatch(x=body.x, y=body.y, scale=body.scale, rotation=body.rotation, z=body.z)
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.update_active_layer(patch)
            return _scene_view(s)

    @router.delete("/v1/sessions/{session_id}/active", response_model=SceneView)
    def remove_active(session_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.remove_active()
            return _scene_view(s)

    # Drag gesture

    @router.post("/v1/sessions/{session_id}/drag/start", response_model=SceneView)
    def drag_start(session_id: str, body: DragStartRequest, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.begin_drag(body.layer_id, _stage_point(body))
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/drag/move", response_model=SceneView)
    def drag_move(session_id: str, body: PointerRequest, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.update_drag(_stage_point(body))
            return _scene_view(s)

    @router.post("/v1/sessions/{session_id}/drag/end", response_model=SceneView)
    def drag_end(session_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            s.scene.end_drag()
            return _scene_view(s)

    # Export

    @router.get("/v1/sessions/{session_id}/export")
    def export_png(session_id: str, request: Request):
        with request.app.state.sessions.locked(session_id) as s:
            png = s.export_png()
        exports.inc()
        return Response(
            content=png,
            media_type="image/png",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"', "Cache-Control": "no-store"},
        )

    @router.post("/v1/sessions/{session_id}/critique", response_model=CritiqueResponse)
    def critique(session_id: str, request: Request, body: CritiqueRequest | None = None):
        critic: OutfitCritic = request.app.state.outfit_critic
        with request.app.state.sessions.locked(session_id) as s:
            png = s.export_png()
        try:
            feedback = critic.critique(png, body.prompt if body else None)
        except ProviderError:
            provider_failures.labels(provider="outfit_critic").inc()
            raise
        return CritiqueResponse(feedback=feedback)

    return router


app = create_app()
