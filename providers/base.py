from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol


class ProviderError(Exception):
    """A remote collaborator failed. Always recoverable; retry is up to the user."""

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail


class GarmentType(str, Enum):
    KURTA = "kurta"
    BLAZER = "blazer"
    SHERWANI = "sherwani"
    PANTS = "pants"


class BackgroundRemover(Protocol):
    def remove_background(self, image: bytes, filename: str = "person.jpg") -> bytes: ...


class GarmentGenerator(Protocol):
    def generate(self, fabric: bytes, garment_type: GarmentType) -> bytes: ...


class OutfitCritic(Protocol):
    def critique(self, image: bytes, prompt: Optional[str] = None) -> str: ...
