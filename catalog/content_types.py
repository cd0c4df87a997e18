"""
Typed description of the product content type and its components.

The relation normalizer walks payloads with these schemas: every attribute is a
relation, media, component, dynamic zone or plain scalar, with its cardinality.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from catalog.exceptions import LookupFailure, LookupResult


PRODUCT_UID = "api::product.product"

MANY_RELATIONS = frozenset({"oneToMany", "manyToMany", "manyToManyMorph", "morphToMany"})


class FieldKind(str, Enum):
    RELATION = "relation"
    MEDIA = "media"
    COMPONENT = "component"
    DYNAMICZONE = "dynamiczone"
    SCALAR = "scalar"


@dataclass(frozen=True)
class Attribute:
    kind: FieldKind = FieldKind.SCALAR
    relation: Optional[str] = None
    component: Optional[str] = None
    components: Tuple[str, ...] = ()
    multiple: bool = False
    repeatable: bool = False

    @property
    def is_reference(self) -> bool:
        return self.kind in (FieldKind.RELATION, FieldKind.MEDIA)

    @property
    def is_many(self) -> bool:
        if self.kind == FieldKind.MEDIA:
            return self.multiple
        return self.relation in MANY_RELATIONS


@dataclass(frozen=True)
class ContentSchema:
    uid: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    def has_component(self, name: str) -> bool:
        attr = self.attributes.get(name)
        return attr is not None and attr.kind == FieldKind.COMPONENT


def scalar() -> Attribute:
    return Attribute()


def relation(kind: str) -> Attribute:
    return Attribute(kind=FieldKind.RELATION, relation=kind)


def media(multiple: bool = False) -> Attribute:
    return Attribute(kind=FieldKind.MEDIA, multiple=multiple)


def component(uid: str, repeatable: bool = False) -> Attribute:
    return Attribute(kind=FieldKind.COMPONENT, component=uid, repeatable=repeatable)


def dynamic_zone(*uids: str) -> Attribute:
    return Attribute(kind=FieldKind.DYNAMICZONE, components=tuple(uids))


class SchemaRegistry:
    """Content types and components addressable by uid."""

    def __init__(self):
        self._schemas: Dict[str, ContentSchema] = {}

    def register(self, schema: ContentSchema) -> ContentSchema:
        self._schemas[schema.uid] = schema
        return schema

    def get(self, uid: str) -> ContentSchema:
        try:
            return self._schemas[uid]
        except KeyError:
            raise LookupFailure("schema", uid) from None

    def lookup(self, uid: str) -> LookupResult[ContentSchema]:
        return LookupResult.attempt(lambda: self.get(uid), "schema", uid)

    def __contains__(self, uid: str) -> bool:
        return uid in self._schemas


def build_default_registry() -> SchemaRegistry:
    registry = SchemaRegistry()

    registry.register(ContentSchema("common.keyword", {
        "value": scalar(),
        "lang": scalar(),
        "usage": scalar(),
        "is_primary": scalar(),
    }))
    registry.register(ContentSchema("common.seo-meta", {
        "title": scalar(),
        "description": scalar(),
        "lang": scalar(),
        "channel": scalar(),
        "keywords": component("common.keyword", repeatable=True),
    }))
    registry.register(ContentSchema("common.alt-name", {
        "value": scalar(),
        "lang": scalar(),
        "usage": scalar(),
        "is_primary": scalar(),
    }))
    registry.register(ContentSchema("common.translation", {
        "locale": scalar(),
        "name": scalar(),
        "short_description": scalar(),
        "description": scalar(),
    }))
    registry.register(ContentSchema("supplier.supplier-info", {
        "name": scalar(),
        "contact_email": scalar(),
        "contact_phone": scalar(),
        "notes": scalar(),
    }))
    registry.register(ContentSchema("variant.size-stock", {
        "size_name": scalar(),
        "size_system": scalar(),
        "primary_value": scalar(),
        "secondary_value": scalar(),
        "generated_sku": scalar(),
        "barcode": scalar(),
        "stock_quantity": scalar(),
        "price": scalar(),
        "compare_at_price": scalar(),
        "price_override": scalar(),
        "is_active": scalar(),
        "backorder_allowed": scalar(),
        "reorder_level": scalar(),
        "sold_count": scalar(),
    }))
    registry.register(ContentSchema("variant.product-variant", {
        "color": scalar(),
        "color_code": scalar(),
        "color_key": scalar(),
        "generated_sku": scalar(),
        "barcode": scalar(),
        "size": scalar(),
        "size_system": scalar(),
        "size_stocks": component("variant.size-stock", repeatable=True),
        "variant_image": media(multiple=True),
    }))

    registry.register(ContentSchema(PRODUCT_UID, {
        "uuid": scalar(),
        "product_code": scalar(),
        "base_sku": scalar(),
        "generated_sku": scalar(),
        "barcode": scalar(),
        "factory_batch_code": scalar(),
        "label_serial_code": scalar(),
        "tag_serial_code": scalar(),
        "hs_code": scalar(),
        "color_code": scalar(),
        "name": scalar(),
        "slug": scalar(),
        "short_description": scalar(),
        "description": scalar(),
        "selling_price": scalar(),
        "compare_price": scalar(),
        "currency": scalar(),
        "inventory": scalar(),
        "status": scalar(),
        "country_of_origin": scalar(),
        "size_system": scalar(),
        "categories": relation("manyToMany"),
        "sub_categories": relation("manyToMany"),
        "tags": relation("manyToMany"),
        "reviews": relation("oneToMany"),
        "factory": relation("oneToOne"),
        "images": media(multiple=True),
        "gallery": media(multiple=True),
        "product_variants": component("variant.product-variant", repeatable=True),
        "seo": component("common.seo-meta", repeatable=True),
        "alt_names_entries": component("common.alt-name", repeatable=True),
        "translations": component("common.translation", repeatable=True),
        "supplier": component("supplier.supplier-info"),
    }))
    return registry
