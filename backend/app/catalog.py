from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


Category = Literal["Kurtas", "Blazers", "Sherwanis", "Indo-western"]
Color = Literal["Blue", "Gold", "Ivory", "Black", "Red"]
Occasion = Literal["Wedding", "Party", "Formal"]


class Product(BaseModel):
    id: str
    name: str
    description: str
    category: Category
    price: float
    color: Color
    occasion: Occasion
    image_src: str
    image_hint: str


PRODUCTS: list[Product] = [
    Product(
        id="1",
        name="Royal Blue Velvet Blazer",
        description="A masterpiece of tailoring, this velvet blazer in a deep royal blue is perfect for making a statement at any formal event.",
        category="Blazers",
        price=499,
        color="Blue",
        occasion="Formal",
        image_src="https://picsum.photos/id/10/600/800",
        image_hint="man blazer",
    ),
    Product(
        id="2",
        name="Golden Silk Kurta",
        description="Woven from the finest silk, this golden kurta shines with elegance and tradition. Ideal for weddings and festive celebrations.",
        category="Kurtas",
        price=299,
        color="Gold",
        occasion="Wedding",
        image_src="https://picsum.photos/id/17/600/800",
        image_hint="man kurta",
    ),
    Product(
        id="3",
        name="Classic Ivory Sherwani",
        description="Embody timeless grace with our classic ivory sherwani, featuring intricate hand-embroidery and a majestic silhouette.",
        category="Sherwanis",
        price=899,
        color="Ivory",
        occasion="Wedding",
        image_src="https://picsum.photos/id/21/600/800",
        image_hint="man sherwani",
    ),
    Product(
        id="4",
        name="Modern Indo-Western Fusion",
        description="A bold fusion of classic cuts and contemporary design, this Indo-western outfit is for the man who dares to be different.",
        category="Indo-western",
        price=650,
        color="Black",
        occasion="Party",
        image_src="https://picsum.photos/id/29/600/800",
        image_hint="man fashion",
    ),
    Product(
        id="5",
        name="Regal Red Sherwani",
        description="Command attention in this stunning red sherwani, adorned with gold accents. The perfect choice for a groom.",
        category="Sherwanis",
        price=950,
        color="Red",
        occasion="Wedding",
        image_src="https://picsum.photos/id/40/600/800",
        image_hint="man sherwani",
    ),
    Product(
        id="6",
        name="Charcoal Linen Kurta",
        description="Sophisticated and comfortable, this charcoal black linen kurta is a versatile addition to any wardrobe, suitable for casual and formal gatherings.",
        category="Kurtas",
        price=250,
        color="Black",
        occasion="Party",
        image_src="https://picsum.photos/id/48/600/800",
        image_hint="man kurta",
    ),
    Product(
        id="7",
        name="Azure Blue Indo-Western",
        description="A striking azure blue outfit that blends traditional aesthetics with a modern, tailored fit. Perfect for reception parties.",
        category="Indo-western",
        price=720,
        color="Blue",
        occasion="Party",
        image_src="https://picsum.photos/id/57/600/800",
        image_hint="man fashion",
    ),
    Product(
        id="8",
        name="Gold-Trimmed Navy Blazer",
        description="Exude confidence in this sharp navy blazer, highlighted with subtle gold trim for a touch of opulence.",
        category="Blazers",
        price=550,
        color="Blue",
        occasion="Formal",
        image_src="https://picsum.photos/id/64/600/800",
        image_hint="man blazer",
    ),
]


def get_product(product_id: str) -> Optional[Product]:
    for p in PRODUCTS:
        if p.id == product_id:
            return p
    return None


def _matches(value: str, wanted: Optional[str]) -> bool:
    return not wanted or wanted == "All" or value == wanted


def filter_products(
    category: Optional[str] = None,
    color: Optional[str] = None,
    occasion: Optional[str] = None,
) -> list[Product]:
    return [
        p
        for p in PRODUCTS
        if _matches(p.category, category) and _matches(p.color, color) and _matches(p.occasion, occasion)
    ]


def filter_options() -> dict[str, list[str]]:
    def distinct(attr: str) -> list[str]:
        seen: list[str] = []
        for p in PRODUCTS:
            v = getattr(p, attr)
            if v not in seen:
                seen.append(v)
        return ["All"] + seen

    return {"category": distinct("category"), "color": distinct("color"), "occasion": distinct("occasion")}
