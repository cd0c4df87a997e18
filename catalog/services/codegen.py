"""
Product code generation.

generate_all() turns a product write (create or update) into a fully populated
payload: relation/media references reduced to ids, identifiers filled in where
absent (uuid, product code, SKUs, EAN-13 barcodes, batch and serial codes),
variants and size stocks enriched, and SEO / translation defaults applied.

Identifiers are only generated when missing, so running generate_all() again on
its own output changes nothing. The input payload is never mutated; each step
receives the previous step's dict and returns a new one.
"""

import copy
import logging
import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.content_types import PRODUCT_UID, ContentSchema, SchemaRegistry, build_default_registry
from catalog.exceptions import ValidationFailure
from catalog.services.lookups import (
    CategoryInfo, inline_category_hint, lookup_factory_code, lookup_first_category,
)
from catalog.services.sequences import SequenceAllocator
from catalog.utils.identifiers import (
    alnum, category_prefix, is_ean13, is_product_code, make_ean13, upper,
    variant_size_sku, variant_sku, year2, yymm, yyyymmdd,
)
from catalog.utils.relations import log_non_scalar_relations, sanitize_relations
from catalog.utils.seo import build_default_seo, default_alt_names, default_translations
from catalog.utils.sizes import (
    normalize_size_name, normalize_size_system_label, parse_size_for_system,
    split_size_csv,
)

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
MODES = (CREATE, UPDATE)

_default_registry: Optional[SchemaRegistry] = None


def default_registry() -> SchemaRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry


@dataclass
class GenerationContext:
    session: Session
    registry: SchemaRegistry
    schema: Optional[ContentSchema]
    mode: str
    now: datetime
    sequences: SequenceAllocator
    category_hint: Optional[CategoryInfo] = None
    category: CategoryInfo = field(default_factory=CategoryInfo)

    @property
    def is_update(self) -> bool:
        return self.mode == UPDATE


Step = Callable[[Dict[str, Any], GenerationContext], Dict[str, Any]]


# ---------------------------------------------------------------- relations


def normalize_relations(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    return sanitize_relations(ctx.schema, data, ctx.registry)


def report_non_scalar_relations(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    log_non_scalar_relations(ctx.schema, data, ctx.registry)
    return data


# ---------------------------------------------------------------- defaults


def apply_defaults(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    data = dict(data)
    if not data.get("status"):
        data["status"] = settings.default_status
    if not data.get("currency"):
        data["currency"] = settings.default_currency
    if not data.get("country_of_origin"):
        data["country_of_origin"] = settings.default_country_of_origin

    # Legacy price field names
    if data.get("selling_price") is None and data.get("base_price") is not None:
        data["selling_price"] = data["base_price"]
    if data.get("compare_price") is None and data.get("discount_price") is not None:
        data["compare_price"] = data["discount_price"]
    return data


def apply_size_system(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    return {**data, "size_system": normalize_size_system_label(data.get("size_system"))}


def ensure_uuid(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    if data.get("uuid"):
        return data
    return {**data, "uuid": str(uuid_lib.uuid4())}


# ---------------------------------------------------------------- product identifiers


def resolve_category(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    fallback = ctx.category_hint or CategoryInfo()
    ctx.category = lookup_first_category(ctx.session, data).recover(fallback, context="codegen")
    return data


def ensure_product_code(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    if is_product_code(data.get("product_code")):
        return data
    prefix = f"{category_prefix(ctx.category.seed)}-{year2(ctx.now)}-"
    return {**data, "product_code": ctx.sequences.next_code(prefix, "product_code")}


def ensure_skus(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    data = dict(data)
    if not data.get("base_sku"):
        data["base_sku"] = f"{category_prefix(ctx.category.seed)}-{str(data['product_code'])[-4:]}"
    if not data.get("generated_sku"):
        data["generated_sku"] = data["base_sku"]
    return data


def ensure_barcode(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    if is_ean13(data.get("barcode")):
        return data
    return {**data, "barcode": make_ean13(f"{data['uuid']}:{data['product_code']}")}


def ensure_hs_code(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    if data.get("hs_code") or not ctx.category.hs_code:
        return data
    return {**data, "hs_code": str(ctx.category.hs_code)}


def ensure_batch_code(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    if data.get("factory_batch_code"):
        return data
    factory = lookup_factory_code(ctx.session, data).recover("NA", context="codegen")
    prefix = f"FB-{factory}-{yyyymmdd(ctx.now)}-"
    return {**data, "factory_batch_code": ctx.sequences.next_code(prefix, "factory_batch_code")}


def ensure_serial_codes(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    data = dict(data)
    if not data.get("label_serial_code"):
        data["label_serial_code"] = ctx.sequences.next_code(f"LBL-{yymm(ctx.now)}-", "label_serial_code")
    if not data.get("tag_serial_code"):
        data["tag_serial_code"] = ctx.sequences.next_code(f"TAG-{yymm(ctx.now)}-", "tag_serial_code")
    return data


# ---------------------------------------------------------------- variants / size stocks


def size_stocks_from_csv(variant: Dict[str, Any], data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One size stock row per unique size in a legacy "S, M, L" string."""
    sizes, duplicates = split_size_csv(variant.get("size"))
    for size in duplicates:
        logger.warning(
            f"[codegen] Duplicate size \"{size}\" in variant color=\"{variant.get('color')}\" "
            f"of product \"{data.get('name')}\"; keeping one and ignoring the rest"
        )
    inventory = data.get("inventory")
    return [
        {
            "size_name": size,
            "stock_quantity": inventory if inventory is not None else 0,
            "price": data.get("selling_price"),
            "compare_at_price": data.get("compare_price"),
            "price_override": None,
            "is_active": True,
        }
        for size in sizes
    ]


def reconcile_size_stocks(
    stocks: List[Any], variant: Dict[str, Any], variant_index: int, data: Dict[str, Any]
) -> List[Dict[str, Any]]:
    """
    Normalize, de-duplicate and fill identifiers for one variant's size stocks.

    The first entry for a (color, size) pair wins; later ones are dropped with a warning.
    An entry without a size name fails validation.
    """
    color_label = variant.get("color") or "COLOR"
    seen = set()
    result = []

    for size_index, stock in enumerate(stocks):
        size_name = normalize_size_name(stock)
        if not size_name:
            raise ValidationFailure(
                f"Variant at index {variant_index} is missing size_name for one of its size_stocks"
            )

        key = (upper(color_label), size_name)
        if key in seen:
            logger.warning(
                f"[codegen] Duplicate size_stocks entry ({color_label} / {size_name}) in the same "
                f"variant for product \"{data.get('name')}\"; keeping the first occurrence"
            )
            continue
        seen.add(key)

        sku = stock.get("generated_sku") or variant_size_sku(data["base_sku"], color_label, size_name)
        barcode = stock.get("barcode")
        if not is_ean13(barcode):
            barcode = make_ean13(f"{data['uuid']}:{sku}:{variant_index}:{size_index}")

        effective_system = stock.get("size_system") or variant.get("size_system") or data["size_system"]
        is_active = stock.get("is_active")

        result.append({
            **stock,
            "size_name": size_name,
            "generated_sku": sku,
            "barcode": barcode,
            "is_active": is_active if isinstance(is_active, bool) else True,
            **parse_size_for_system(effective_system, size_name),
        })

    return result


def build_variant(variant: Dict[str, Any], index: int, data: Dict[str, Any]) -> Dict[str, Any]:
    v = dict(variant)

    if v.get("color") and not v.get("color_key"):
        v["color_key"] = alnum(v["color"])
    if not v.get("generated_sku"):
        v["generated_sku"] = variant_sku(data["base_sku"], v.get("color") or "COLOR")
    if not is_ean13(v.get("barcode")):
        v["barcode"] = make_ean13(f"{data['uuid']}:{data['product_code']}:VARIANT:{index}")

    stocks = list(v["size_stocks"]) if isinstance(v.get("size_stocks"), list) else []
    if not stocks and isinstance(v.get("size"), str) and v["size"].strip():
        stocks = size_stocks_from_csv(v, data)

    v["size_stocks"] = reconcile_size_stocks(stocks, v, index, data)
    return v


def build_variants(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    # Updates leave variants alone so hand-edited variant data is never overwritten
    if ctx.is_update or not isinstance(data.get("product_variants"), list):
        return data
    variants = [
        build_variant(variant, index, data) if isinstance(variant, dict) else variant
        for index, variant in enumerate(data["product_variants"])
    ]
    return {**data, "product_variants": variants}


# ---------------------------------------------------------------- content defaults


def apply_content_defaults(data: Dict[str, Any], ctx: GenerationContext) -> Dict[str, Any]:
    schema = ctx.schema
    if schema is None:
        return data
    data = dict(data)

    if schema.has_component("seo") and not data.get("seo"):
        data["seo"] = [build_default_seo(
            data,
            ctx.category.name,
            ctx.category.code,
            brand=settings.brand_name,
            brand_keywords=settings.brand_keywords,
        )]

    if schema.has_component("alt_names_entries") and not data.get("alt_names_entries") and data.get("name"):
        data["alt_names_entries"] = default_alt_names(data)

    if schema.has_component("translations") and not data.get("translations"):
        data["translations"] = default_translations(data)

    return data


GENERATION_STEPS: Tuple[Step, ...] = (
    apply_defaults,
    apply_size_system,
    ensure_uuid,
    resolve_category,
    ensure_product_code,
    ensure_skus,
    ensure_barcode,
    ensure_hs_code,
    ensure_batch_code,
    ensure_serial_codes,
    build_variants,
    apply_content_defaults,
    normalize_relations,
    report_non_scalar_relations,
)


def generate_all(
    payload: Optional[Dict[str, Any]],
    mode: str = CREATE,
    *,
    session: Session,
    registry: Optional[SchemaRegistry] = None,
    now: Optional[datetime] = None,
    uid: str = PRODUCT_UID,
) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with every missing product identifier generated.

    ``mode`` is "create" or "update". A create without a name only gets its
    relations normalized. Raises ValidationFailure for a size stock entry
    without a size name; lookup problems fall back to defaults and are logged.
    Generated values are not persisted here.
    """
    if mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")

    registry = registry or default_registry()
    data = copy.deepcopy(payload) if payload else {}

    ctx = GenerationContext(
        session=session,
        registry=registry,
        schema=registry.lookup(uid).recover(None, context="codegen"),
        mode=mode,
        now=now or datetime.now(),
        sequences=SequenceAllocator(session),
        category_hint=inline_category_hint(data),
    )

    data = normalize_relations(data, ctx)
    if mode == CREATE and not data.get("name"):
        return data

    for step in GENERATION_STEPS:
        data = step(data, ctx)
    return data
