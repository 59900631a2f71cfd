"""
View Models for rotation payloads
Strict mapping layer that converts catalog items into presentation-ready cards.
"""
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

from app.utils.helpers import format_number, safe_str


# =============================================================================
# PAYLOAD CONTRACTS (UI-Stable View Models)
# =============================================================================
# The hero banner renders these cards as-is; field names are part of the
# public response shape.


@dataclass
class PromoCardPayload:
    """
    Promotional card derived from one catalog item.
    UI relies on these exact field names.
    """
    id: int
    title: str
    description: str
    discount: str
    cta_text: str
    link: str
    brand: Optional[str] = None
    product_id: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_product(cls, product: Dict[str, Any], position: int) -> "PromoCardPayload":
        """Map a raw catalog item to a card; position is 1-based."""
        offers = product.get("offers") or []
        offer = offers[0] if offers else {}

        coupon_type = offer.get("coupon_type")
        coupon_value = offer.get("coupon_value")
        is_coupon = bool(coupon_type and coupon_value)

        if is_coupon:
            if coupon_type == "fixed":
                discount = f"${format_number(coupon_value)} Coupon"
            else:
                discount = f"{format_number(coupon_value)}% Coupon"
        elif offer.get("savings_percentage"):
            discount = f"{format_number(offer['savings_percentage'])}% OFF"
        else:
            discount = ""

        # "Brand · Binding", skipping whichever part is missing
        description = safe_str(product.get("brand"))
        if product.get("binding"):
            description += (" · " if description else "") + product["binding"]

        return cls(
            id=position,
            title=safe_str(product.get("title")),
            description=description,
            discount=discount,
            cta_text="Get Coupon" if is_coupon else "Shop Now",
            link=safe_str(product.get("url")),
            brand=product.get("brand"),
            product_id=product.get("asin"),
            image=product.get("main_image"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        result = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "discount": self.discount,
            "ctaText": self.cta_text,
            "link": self.link,
            "brand": self.brand,
            "productId": self.product_id,
        }
        if self.image is not None:
            result["image"] = self.image
        return result


def products_to_promo_cards(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Project a rotated product list into promo card dicts."""
    return [
        PromoCardPayload.from_product(product, index + 1).to_dict()
        for index, product in enumerate(products)
    ]


# Served by the hero rotation when the catalog is unreachable
FALLBACK_PROMO_CARDS: List[PromoCardPayload] = [
    PromoCardPayload(
        id=1,
        title="Flash Sale",
        description="Kitchen Appliances Promotion",
        discount="Up to 70% OFF",
        cta_text="Shop Now",
        link="/category/kitchen-appliances",
        brand="Kitchen Appliances",
        product_id="fallback-product-1",
    ),
    PromoCardPayload(
        id=2,
        title="New Arrivals",
        description="Smart Home Device Specials",
        discount="15% OFF First Order",
        cta_text="Learn More",
        link="/category/smart-home",
        brand="Smart Home",
        product_id="fallback-product-2",
    ),
    PromoCardPayload(
        id=3,
        title="Member Exclusive",
        description="Electronics Coupon Deal",
        discount="Extra 10% OFF",
        cta_text="Get Coupon",
        link="/coupons/electronics",
        brand="Electronics",
        product_id="fallback-product-3",
    ),
]


def fallback_promo_cards() -> List[Dict[str, Any]]:
    return [card.to_dict() for card in FALLBACK_PROMO_CARDS]
