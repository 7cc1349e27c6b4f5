from __future__ import annotations

import logging
import mimetypes
import os
from typing import Optional

import requests

from .base import ProviderError


log = logging.getLogger(__name__)

REMOVE_BG_ENDPOINT = "https://api.remove.bg/v1.0/removebg"


class RemoveBgError(ProviderError):
    pass


class RemoveBgClient:
    """
    Background removal through the remove.bg HTTP API.
    - Sends the photo as multipart `image_file` with `size=auto`.
    - Returns PNG bytes with a transparent background.
    """

    def __init__(self, api_key: Optional[str] = None, endpoint: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.api_key = api_key or os.environ.get("REMOVE_BG_API_KEY")
        self.endpoint = endpoint or os.environ.get("REMOVE_BG_ENDPOINT", REMOVE_BG_ENDPOINT)
        self.timeout = float(timeout or os.environ.get("REMOVE_BG_TIMEOUT", "60"))

    def remove_background(self, image: bytes, filename: str = "person.jpg") -> bytes:
        if not self.api_key:
            raise RemoveBgError("Missing REMOVE_BG_API_KEY")
        ctype = mimetypes.guess_type(filename)[0] or "image/jpeg"
        files = {"image_file": (filename, image, ctype)}
        data = {"size": "auto"}
        try:
            resp = requests.post(
                self.endpoint,
                headers={"X-Api-Key": self.api_key},
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoveBgError("remove.bg request failed", detail=str(e)) from e
        if resp.status_code >= 400:
            log.warning("remove.bg returned %s", resp.status_code)
            raise RemoveBgError("remove.bg failed", detail=resp.text[:500])
        return resp.content
