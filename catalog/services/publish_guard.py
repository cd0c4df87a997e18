from typing import Any, Dict, List

from catalog.exceptions import ValidationFailure
from catalog.utils.identifiers import is_ean13


def is_publishing(data: Dict[str, Any]) -> bool:
    return bool(data.get("publishedAt"))


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def missing_publish_requirements(data: Dict[str, Any]) -> List[str]:
    """Every requirement a product still misses before it can be published."""
    missing = []

    if not data.get("name"):
        missing.append("name")
    if not data.get("slug"):
        missing.append("slug")
    if not _non_empty_list(data.get("categories")):
        missing.append("category")
    if not (_non_empty_list(data.get("images")) or _non_empty_list(data.get("gallery"))):
        missing.append("image (images or gallery)")

    # Only checked when the write touches the price
    if "selling_price" in data and data["selling_price"] in (None, ""):
        missing.append("selling_price")

    if not data.get("currency"):
        missing.append("currency")
    if not data.get("product_code"):
        missing.append("product_code")
    if not is_ean13(data.get("barcode")):
        missing.append("barcode (EAN-13)")

    variants = data.get("product_variants") if isinstance(data.get("product_variants"), list) else []
    if not any(isinstance(v, dict) and _non_empty_list(v.get("size_stocks")) for v in variants):
        missing.append("at least one color + size variant")

    return missing


def pre_publish_guard(data: Dict[str, Any]) -> None:
    """
    Refuse to publish an incomplete product.

    Does nothing unless the write sets ``publishedAt``; otherwise raises a single
    ValidationFailure naming every missing requirement.
    """
    if not is_publishing(data):
        return

    missing = missing_publish_requirements(data)
    if missing:
        raise ValidationFailure(f"Cannot publish product: missing {', '.join(missing)}", errors=missing)
