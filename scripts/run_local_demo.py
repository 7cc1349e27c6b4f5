import argparse
import os

from backend.app.config import settings
from backend.app.logging_config import setup_logging
from studio.io_types import LayerPatch
from studio.session import TrialSession
from studio.templates import TemplateCatalog
from studio.scene import Scene


def main():
    parser = argparse.ArgumentParser(description="Texture a garment template and composite it onto a photo")
    parser.add_argument("--photo", required=True, help="Path to user photo")
    parser.add_argument("--fabric", required=True, help="Path to fabric swatch")
    parser.add_argument("--template", default="kurta-template", help="Garment template id")
    parser.add_argument("--assets", default=None, help="Template asset root (defaults to config)")
    parser.add_argument("--cutout", default=None, help="Optional background-removed photo")
    parser.add_argument("--scale", type=float, default=None)
    parser.add_argument("--rotation", type=float, default=None)
    parser.add_argument("--garment-out", default=None, help="Also save the textured garment PNG")
    parser.add_argument("--out", required=True, help="Output PNG path")
    args = parser.parse_args()

    setup_logging()
    templates = TemplateCatalog(assets_dir=args.assets or settings.get("templates.assets_dir"))
    session = TrialSession(
        templates=templates,
        scene=Scene(stage=settings.stage(), bounds=settings.layer_bounds()),
        placement=settings.placement(),
    )
    with open(args.photo, "rb") as f:
        session.upload_photo(f.read())
    if args.cutout:
        with open(args.cutout, "rb") as f:
            session.apply_cutout(f.read())
    with open(args.fabric, "rb") as f:
        session.upload_fabric(f.read())
    layer = session.generate_garment(args.template)
    session.scene.update_active_layer(LayerPatch(scale=args.scale, rotation=args.rotation))

    if args.garment_out:
        os.makedirs(os.path.dirname(args.garment_out) or ".", exist_ok=True)
        with open(args.garment_out, "wb") as f:
            f.write(layer.image.data)

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "wb") as f:
        f.write(session.export_png())
    print(f"Saved: {args.out}")


if __name__ == "__main__":
    main()
