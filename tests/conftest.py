import io
import os

import pytest
from PIL import Image

from studio.templates import TemplateCatalog


def png(size, color) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def decode(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data)).convert("RGBA")


@pytest.fixture
def template_assets(tmp_path):
    """Writes a fully opaque kurta template with neutral shading and no border."""
    cloth = tmp_path / "cloth"
    cloth.mkdir()
    stems = {
        "kurtanew": (20, 40),
        "blazer1": (30, 30),
        "sherwani1": (20, 50),
        "pants1": (16, 40),
    }
    for stem, size in stems.items():
        Image.new("RGBA", size, (0, 0, 0, 255)).save(cloth / f"{stem}_mask.png")
        Image.new("RGBA", size, (255, 255, 255, 255)).save(cloth / f"{stem}_shading.png")
        Image.new("RGBA", size, (0, 0, 0, 0)).save(cloth / f"{stem}_border.png")
    return str(tmp_path)


@pytest.fixture
def templates(template_assets):
    return TemplateCatalog(assets_dir=template_assets)


@pytest.fixture
def no_config(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith(("STAGE_", "LAYERS_", "PROVIDERS_", "CACHE_")):
            monkeypatch.delenv(key, raising=False)
    return str(tmp_path / "missing.yaml")
