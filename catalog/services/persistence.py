"""
Mapping between product payloads (the write vocabulary) and Product rows.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.models.product import Category, Product

IDENTIFIER_FIELDS = (
    "uuid",
    "product_code",
    "base_sku",
    "generated_sku",
    "barcode",
    "factory_batch_code",
    "label_serial_code",
    "tag_serial_code",
    "hs_code",
    "color_code",
)

COLUMN_FIELDS = IDENTIFIER_FIELDS + (
    "name",
    "slug",
    "short_description",
    "description",
    "selling_price",
    "compare_price",
    "currency",
    "inventory",
    "status",
    "country_of_origin",
    "size_system",
    "images",
    "gallery",
    "product_variants",
    "seo",
    "alt_names_entries",
    "translations",
)


def parse_published_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


# Relation and media fields a write may empty; normalization drops them from the payload
CLEARABLE_FIELDS = ("categories", "factory", "images", "gallery")


def cleared_fields(changes: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Relation/media keys the write sent (e.g. `categories: []`, `factory: null`)
    that normalization removed, mapped to None so apply_payload clears them.
    """
    return {field: None for field in CLEARABLE_FIELDS if field in changes and field not in data}


def _as_id_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def apply_payload(session: Session, product: Product, data: Dict[str, Any]) -> Product:
    """Copy a generated payload onto a Product row. Unknown keys are ignored."""
    for field in COLUMN_FIELDS:
        if field in data:
            setattr(product, field, data[field])

    if "categories" in data:
        ids = [int(i) for i in _as_id_list(data["categories"]) if str(i).isdigit()]
        found = {
            c.id: c for c in session.execute(select(Category).where(Category.id.in_(ids))).scalars()
        } if ids else {}
        product.categories = [found[i] for i in ids if i in found]

    if "factory" in data:
        factory = data["factory"]
        product.factory_id = int(factory) if str(factory).isdigit() else None

    if "publishedAt" in data:
        product.published_at = parse_published_at(data["publishedAt"])

    return product


def product_to_payload(product: Product, include_variants: bool = True) -> Dict[str, Any]:
    """Snapshot of a row in payload vocabulary (relations as ids)."""
    data = {field: getattr(product, field) for field in COLUMN_FIELDS}
    data["id"] = product.id
    data["categories"] = [c.id for c in product.categories]
    data["factory"] = product.factory_id
    data["publishedAt"] = product.published_at.isoformat() if product.published_at else None
    if not include_variants:
        data.pop("product_variants")
    return data
