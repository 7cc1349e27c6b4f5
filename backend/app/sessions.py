from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Iterator, Optional

from studio.scene import Scene
from studio.session import TrialSession
from studio.templates import TemplateCatalog

from .cache import GarmentCache
from .config import Settings
from .metrics import active_sessions


@dataclass
class _Entry:
    session: TrialSession
    lock: threading.Lock = field(default_factory=threading.Lock)
    touched: float = field(default_factory=time.time)


class UnknownSessionError(KeyError):
    pass


class SessionRegistry:
    """
    In-memory trial sessions. Each session is mutated by one request at a
    time; idle sessions are dropped after `ttl` seconds.
    """

    def __init__(self, settings: Settings, templates: TemplateCatalog, cache: Optional[GarmentCache] = None, ttl: float = 3600.0) -> None:
        self.settings = settings
        self.templates = templates
        self.cache = cache
        self.ttl = ttl
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def create(self, product_id: Optional[str] = None) -> TrialSession:
        scene = Scene(stage=self.settings.stage(), bounds=self.settings.layer_bounds())
        s = TrialSession(
            templates=self.templates,
            scene=scene,
            product_id=product_id,
            placement=self.settings.placement(),
            cache_get=self.cache.get if self.cache else None,
            cache_set=self.cache.set if self.cache else None,
        )
        with self._lock:
            self._evict_idle()
            self._entries[s.id] = _Entry(session=s)
            active_sessions.set(len(self._entries))
        return s

    def discard(self, session_id: str) -> None:
        with self._lock:
            if self._entries.pop(session_id, None) is None:
                raise UnknownSessionError(session_id)
            active_sessions.set(len(self._entries))

    @contextlib.contextmanager
    def locked(self, session_id: str) -> Iterator[TrialSession]:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                raise UnknownSessionError(session_id)
            entry.touched = time.time()
        with entry.lock:
            yield entry.session

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_idle(self) -> None:
        cutoff = time.time() - self.ttl
        for sid in [sid for sid, e in self._entries.items() if e.touched < cutoff and not e.lock.locked()]:
            del self._entries[sid]
