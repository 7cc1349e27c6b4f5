import os
import yaml
from typing import Any

from studio.io_types import Placement, Stage
from studio.scene import LayerBounds


CONFIG_PATH = os.environ.get("STUDIO_CONFIG", "configs/studio.yaml")


class Settings:
    def __init__(self, path: str | None = None) -> None:
        self.path = path or CONFIG_PATH
        self._cfg: dict[str, Any] = {}
        if os.path.exists(self.path):
            with open(self.path, "r", encoding="utf-8") as f:
                self._cfg = yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        # Env wins over YAML
        env_key = key.upper().replace(".", "_")
        if env_key in os.environ:
            return os.environ[env_key]

        # Dot path lookup in YAML
        parts = key.split(".")
        cur: Any = self._cfg
        for p in parts:
            if isinstance(cur, dict) and p in cur:
                cur = cur[p]
            else:
                return default
        return cur

    def get_float(self, key: str, default: float) -> float:
        return float(self.get(key, default))

    def get_range(self, key: str, default: tuple) -> tuple:
        v = self.get(key, default)
        if isinstance(v, str):
            lo, hi = (s.strip() for s in v.split(",", 1))
            return type(default[0])(lo), type(default[1])(hi)
        return type(default[0])(v[0]), type(default[1])(v[1])

    def stage(self) -> Stage:
        return Stage(
            width=self.get_float("stage.width", 520.0),
            height=self.get_float("stage.height", 693.0),
            export_scale=self.get_float("stage.export_scale", 2.0),
            layer_base_width=self.get_float("stage.layer_base_width", 300.0),
        )

    def layer_bounds(self) -> LayerBounds:
        return LayerBounds(
            scale=self.get_range("layers.scale_range", (0.2, 3.0)),
            rotation=self.get_range("layers.rotation_range", (-45.0, 45.0)),
            z=self.get_range("layers.z_range", (1, 30)),
            policy=str(self.get("layers.range_policy", "accept")).lower(),
        )

    def placement(self) -> Placement:
        return Placement(
            x=self.get_float("layers.default.x", 260.0),
            y=self.get_float("layers.default.y", 350.0),
            scale=self.get_float("layers.default.scale", 1.5),
            rotation=self.get_float("layers.default.rotation", 0.0),
            z=int(self.get("layers.default.z", 10)),
        )


settings = Settings()
