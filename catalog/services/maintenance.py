"""
Catalog maintenance jobs: identifier backfill, duplicate variant cleanup,
legacy size string cleanup and product duplication.

Functions take a session and leave committing to the caller.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.models.product import Product
from catalog.services.codegen import CREATE, UPDATE, generate_all
from catalog.services.persistence import IDENTIFIER_FIELDS, apply_payload, product_to_payload
from catalog.utils.identifiers import upper
from catalog.utils.sizes import normalize_size_name

logger = logging.getLogger(__name__)


def _all_products(session: Session) -> List[Product]:
    return list(session.execute(select(Product).order_by(Product.id)).scalars())


def backfill_product_codes(session: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Fill missing identifiers on every stored product.

    Runs generation in update mode on a snapshot without variants and writes back
    identifier columns only.
    """
    products = _all_products(session)
    updated = 0

    for product in products:
        snapshot = product_to_payload(product, include_variants=False)
        generated = generate_all(snapshot, UPDATE, session=session, now=now)

        codes = {field: generated.get(field) for field in IDENTIFIER_FIELDS}
        changed = any(getattr(product, field) != value for field, value in codes.items())
        if changed:
            apply_payload(session, product, codes)
            session.flush()
            updated += 1
            logger.info(
                f"[maintenance] Backfilled product {product.id} \"{product.name}\": "
                f"product_code={codes['product_code']} base_sku={codes['base_sku']}"
            )

    return {"products": len(products), "updated": updated}


def _variant_image_key(variant: Dict[str, Any]) -> Any:
    image = variant.get("variant_image")
    if isinstance(image, dict):
        image = image.get("id")
    if isinstance(image, list):
        image = tuple(i.get("id") if isinstance(i, dict) else i for i in image) or None
    return image if image is not None else "NO_IMG"


def dedupe_size_stocks(stocks: Any, color: Any = None) -> List[Dict[str, Any]]:
    """
    Unique size stocks by normalized size name, first occurrence kept.

    Entries without a size name are dropped; duplicates are dropped with a warning.
    Component ids are stripped so the rows are written fresh.
    """
    seen = set()
    clean = []
    for stock in stocks if isinstance(stocks, list) else []:
        size_name = normalize_size_name(stock)
        if not size_name:
            continue
        if size_name in seen:
            logger.warning(f"[maintenance] Dropping duplicate size {size_name} for color \"{color or ''}\"")
            continue
        seen.add(size_name)
        rest = {k: v for k, v in stock.items() if k != "id"}
        clean.append({**rest, "size_name": size_name})
    return clean


def dedupe_variants(variants: Any) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Drop variants repeating an earlier (color, variant image) pair.

    Returns (clean variants, removed variants).
    """
    seen = set()
    clean: List[Dict[str, Any]] = []
    removed: List[Dict[str, Any]] = []

    for variant in variants if isinstance(variants, list) else []:
        if not isinstance(variant, dict):
            continue
        color = upper(variant.get("color")).strip() or "(NO_COLOR)"
        key = (color, _variant_image_key(variant))
        if key in seen:
            removed.append(variant)
            continue
        seen.add(key)

        rest = {k: v for k, v in variant.items() if k not in ("id", "size_stocks")}
        clean.append({**rest, "size_stocks": dedupe_size_stocks(variant.get("size_stocks"), variant.get("color"))})

    return clean, removed


def cleanup_duplicate_variants(session: Session) -> Dict[str, int]:
    products = _all_products(session)
    affected = 0
    removed_total = 0

    for product in products:
        variants = product.product_variants or []
        if not variants:
            continue

        clean, removed = dedupe_variants(variants)
        if not removed and clean == variants:
            continue

        affected += 1
        removed_total += len(removed)
        logger.info(
            f"[maintenance] Product #{product.id} \"{product.name}\": input variants={len(variants)}, "
            f"unique variants={len(clean)}, removed duplicates={len(removed)}"
        )
        product.product_variants = clean

    session.flush()
    return {"products": len(products), "affected": affected, "removed": removed_total}


def dedupe_size_csv(value: str) -> str:
    """
    Remove repeated sizes from "S, M, m, L" (case-insensitive), keeping the first spelling.
    """
    seen = set()
    kept = []
    for part in value.split(","):
        raw = part.strip()
        if not raw or raw.upper() in seen:
            continue
        seen.add(raw.upper())
        kept.append(raw)
    return ", ".join(kept)


def fix_duplicate_csv_sizes(session: Session) -> Dict[str, int]:
    products = _all_products(session)
    updated = 0
    touched = 0

    for product in products:
        changed = False
        variants = []
        for index, variant in enumerate(product.product_variants or []):
            csv_size = variant.get("size") if isinstance(variant, dict) else None
            if not isinstance(csv_size, str) or not csv_size.strip():
                variants.append(variant)
                continue

            fixed = dedupe_size_csv(csv_size)
            if fixed == csv_size.strip():
                variants.append(variant)
                continue

            changed = True
            touched += 1
            logger.info(
                f"[maintenance] Product #{product.id} \"{product.name}\", variant {index} "
                f"color=\"{variant.get('color') or '(no color)'}\": \"{csv_size}\" -> \"{fixed}\""
            )
            variants.append({**variant, "size": fixed})

        if changed:
            updated += 1
            product.product_variants = variants

    session.flush()
    return {"products": len(products), "updated": updated, "variants": touched}


def duplicate_product(session: Session, product_id: int, now: Optional[datetime] = None) -> Product:
    """
    Copy a product as an unpublished draft with fresh identifiers.

    Raises LookupError when the source product does not exist.
    """
    source = session.get(Product, product_id)
    if source is None:
        raise LookupError(f"Product {product_id} not found")

    now = now or datetime.now()
    data = product_to_payload(source)
    data.pop("id")
    for field in IDENTIFIER_FIELDS:
        if field not in ("hs_code", "color_code"):
            data[field] = None

    data["name"] = f"{source.name} (copy)"
    data["slug"] = f"{source.slug or source.name}-copy-{int(now.timestamp() * 1000)}".lower()
    data["status"] = "Draft"
    data["publishedAt"] = None
    data["product_variants"] = [
        {
            "color": v.get("color"),
            "size": v.get("size"),
            "variant_image": v.get("variant_image"),
            "size_stocks": [
                {k: val for k, val in s.items() if k not in ("id", "generated_sku", "barcode")}
                for s in v.get("size_stocks") or []
                if isinstance(s, dict)
            ],
        }
        for v in source.product_variants or []
        if isinstance(v, dict)
    ]
    # Defaults are rebuilt from the new name
    for field in ("seo", "alt_names_entries", "translations"):
        data[field] = None

    generated = generate_all(data, CREATE, session=session, now=now)
    duplicate = apply_payload(session, Product(), generated)
    session.add(duplicate)
    session.flush()
    return duplicate
