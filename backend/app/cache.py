from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from typing import Optional

import redis

from studio.assets import ComposedGarmentImage, ImageAsset

from .metrics import garment_cache_hits, garments_composed


log = logging.getLogger(__name__)

REDIS_URL = os.environ.get("REDIS_URL")
CACHE_TTL = int(os.environ.get("GARMENT_CACHE_TTL", "3600"))
CACHE_MAX_ITEMS = int(os.environ.get("GARMENT_CACHE_MAX_ITEMS", "64"))


def _client(url: Optional[str]) -> Optional[redis.Redis]:
    if not url:
        return None
    try:
        return redis.from_url(url)
    except ValueError:
        log.warning("invalid REDIS_URL, garment cache stays in-process")
        return None


class GarmentCache:
    """
    Memo of composed garments keyed by (template id, fabric sha256).
    Redis when REDIS_URL is set, otherwise a small in-process LRU.
    """

    def __init__(self, url: Optional[str] = REDIS_URL, ttl: int = CACHE_TTL, max_items: int = CACHE_MAX_ITEMS) -> None:
        self._redis = _client(url)
        self.ttl = ttl
        self.max_items = max_items
        self._local: "OrderedDict[str, ComposedGarmentImage]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def key(template_id: str, fabric_hash: str) -> str:
        return f"garment:{template_id}:{fabric_hash}"

    def get(self, template_id: str, fabric_hash: str) -> Optional[ComposedGarmentImage]:
        k = self.key(template_id, fabric_hash)
        if self._redis is not None:
            try:
                raw = self._redis.get(k)
            except redis.RedisError as e:
                log.warning("garment cache read failed: %s", e)
                return None
            if not raw:
                return None
            garment_cache_hits.inc()
            asset = ImageAsset.from_bytes(raw)
            return ComposedGarmentImage(data=asset.data, width=asset.width, height=asset.height, template_id=template_id)
        with self._lock:
            hit = self._local.get(k)
            if hit is not None:
                garment_cache_hits.inc()
                self._local.move_to_end(k)
            return hit

    def set(self, template_id: str, fabric_hash: str, garment: ComposedGarmentImage) -> None:
        # called once per fresh composition
        garments_composed.inc()
        k = self.key(template_id, fabric_hash)
        if self._redis is not None:
            try:
                self._redis.setex(k, self.ttl, garment.data)
            except redis.RedisError as e:
                log.warning("garment cache write failed: %s", e)
            return
        with self._lock:
            self._local[k] = garment
            self._local.move_to_end(k)
            while len(self._local) > self.max_items:
                self._local.popitem(last=False)
