from __future__ import annotations

from prometheus_client import Counter, Gauge

garments_composed = Counter("studio_garments_composed_total", "Garments textured by the compositor")
garment_cache_hits = Counter("studio_garment_cache_hits_total", "Composed garments served from cache")
compose_failures = Counter("studio_compose_failures_total", "Garment compositions rejected for bad input")
exports = Counter("studio_exports_total", "Scenes flattened to PNG")
provider_failures = Counter("studio_provider_failures_total", "Remote provider calls that failed", ["provider"])
active_sessions = Gauge("studio_active_sessions", "Trial sessions currently held in memory")
