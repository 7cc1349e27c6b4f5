from __future__ import annotations

import io
import logging
import os
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from PIL import Image, UnidentifiedImageError

from .base import GarmentType, ProviderError


log = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash-latest"

GARMENT_PROMPT = """You are an expert fashion designer's assistant. Your task is to generate a photorealistic image of a single garment.

Instructions:
1.  Create a men's {garment_type}.
2.  Use the exact texture and color from the provided fabric image.
3.  The garment should be displayed flat, front-facing, as if on a mannequin or for a product catalog.
4.  **Crucially, the output image MUST have a transparent background.**
5.  Do not include any people, models, or body parts in the image. Only the garment."""

CRITIC_PROMPT = (
    "You are a world-class fashion critic for a royal clientele. Look at the image of the person "
    "wearing the outfit. Provide brief, constructive feedback. Is it a good fit? Does it look "
    "luxurious? What could be improved?"
)


class GeminiError(ProviderError):
    pass


class NoImageReturned(GeminiError):
    pass


class _GeminiClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        self.model_name = model or os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
        self.timeout = float(timeout or os.environ.get("GEMINI_TIMEOUT", "120"))
        self._model: Optional[genai.GenerativeModel] = None

    def _get_model(self) -> genai.GenerativeModel:
        if not self.api_key:
            raise GeminiError("Missing GEMINI_API_KEY")
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(model_name=self.model_name)
        return self._model

    def _generate(self, prompt: str, image: bytes, generation_config: Optional[dict] = None) -> list[Any]:
        model = self._get_model()
        try:
            picture = Image.open(io.BytesIO(image))
            picture.load()
        except (UnidentifiedImageError, OSError) as e:
            raise GeminiError("Gemini input is not an image", detail=str(e)) from e
        try:
            response = model.generate_content(
                [prompt, picture],
                generation_config=generation_config,
                request_options={"timeout": self.timeout},
            )
        except google_exceptions.GoogleAPIError as e:
            raise GeminiError("Gemini request failed", detail=str(e)) from e
        parts: list[Any] = []
        for cand in response.candidates or []:
            content = getattr(cand, "content", None)
            parts.extend(getattr(content, "parts", None) or [])
        return parts


class GeminiGarmentGenerator(_GeminiClient):
    """
    Prompt-driven garment rendering from a fabric swatch. Non-deterministic
    and best-effort; the deterministic path is studio.compositor.compose.
    """

    def generate(self, fabric: bytes, garment_type: GarmentType) -> bytes:
        prompt = GARMENT_PROMPT.format(garment_type=GarmentType(garment_type).value)
        parts = self._generate(prompt, fabric, generation_config={"temperature": 0.4, "candidate_count": 1})
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if inline and inline.data:
                return inline.data
        log.warning("Gemini returned no image part for %s", garment_type)
        raise NoImageReturned("AI did not return an image.")


class GeminiOutfitCritic(_GeminiClient):
    def critique(self, image: bytes, prompt: Optional[str] = None) -> str:
        parts = self._generate(prompt or CRITIC_PROMPT, image)
        text = "".join(getattr(p, "text", "") or "" for p in parts).strip()
        if not text:
            raise GeminiError("AI did not return any feedback.")
        return text
