from __future__ import annotations

import os
from typing import Optional

import requests

from .base import ProviderError


class RemoteError(ProviderError):
    pass


class RemoteImageFetcher:
    """Downloads catalog imagery so it can be placed as a scene layer."""

    def __init__(self, timeout: Optional[float] = None, max_bytes: Optional[int] = None) -> None:
        self.timeout = float(timeout or os.environ.get("IMAGE_FETCH_TIMEOUT", "30"))
        self.max_bytes = int(max_bytes or int(os.environ.get("MAX_UPLOAD_MB", "25")) * 1024 * 1024)

    def fetch(self, url: str) -> bytes:
        try:
            r = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError("Image download failed", detail=str(e)) from e
        if r.status_code >= 400:
            raise RemoteError(f"Image download failed: {r.status_code}", detail=r.text[:200])
        ctype = r.headers.get("content-type", "")
        if ctype and not ctype.startswith("image/"):
            raise RemoteError("Image download failed", detail=f"unexpected content-type {ctype}")
        if len(r.content) > self.max_bytes:
            raise RemoteError("Image download failed", detail="image too large")
        return r.content
