"""
Relation / media normalization.

Writes accept several reference shapes for the same thing:

    7
    {"id": 7}
    {"data": 7} / {"data": {"id": 7}} / {"data": [{"id": 7}, 8]}
    {"connect": [...]} / {"set": [...]}

Before a payload is persisted every relation and media field, including those
nested in components and dynamic zones, is reduced to a scalar id or a list of
scalar ids. Fields that reduce to nothing are dropped.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from catalog.content_types import Attribute, ContentSchema, FieldKind, SchemaRegistry

logger = logging.getLogger(__name__)


def is_scalar_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _id_of(item: Any) -> Optional[Any]:
    if is_scalar_id(item):
        return item
    if isinstance(item, dict) and is_scalar_id(item.get("id")):
        return item["id"]
    return None


def normalize_id_value(value: Any) -> Optional[Any]:
    """Reduce one id-ish value to a scalar id, or None."""
    if value is None:
        return None
    if is_scalar_id(value):
        return value
    if not isinstance(value, dict):
        return None

    if is_scalar_id(value.get("id")):
        return value["id"]

    data = value.get("data")
    if isinstance(data, list):
        return _id_of(data[0]) if data else None
    return _id_of(data)


def _ids(items: List[Any]) -> Optional[List[Any]]:
    ids = [i for i in (normalize_id_value(item) for item in items) if i is not None]
    return ids or None


def normalize_relation_field(value: Any) -> Optional[Any]:
    """
    Reduce arbitrary relation/media input to a scalar id, a list of ids, or None.
    """
    if value is None:
        return None

    if isinstance(value, dict):
        data = value.get("data")
        if isinstance(data, list):
            return _ids(data)
        if data is not None:
            return _id_of(data)
        for key in ("connect", "set"):
            if isinstance(value.get(key), list):
                return _ids(value[key])

    if isinstance(value, list):
        return _ids(value)

    return normalize_id_value(value)


def _normalize_reference(attr: Attribute, value: Any) -> Optional[Any]:
    normalized = normalize_relation_field(value)
    if normalized is None:
        return None

    if attr.is_many:
        if not isinstance(normalized, list):
            normalized = [normalized]
        unique = []
        for item in normalized:
            if is_scalar_id(item) and item not in unique:
                unique.append(item)
        return unique or None

    if isinstance(normalized, list):
        normalized = normalized[0]
    return normalized if is_scalar_id(normalized) else None


def _component_schema(registry: SchemaRegistry, uid: Optional[str]) -> Optional[ContentSchema]:
    if not uid or uid not in registry:
        return None
    return registry.get(uid)


def sanitize_relations(schema: Optional[ContentSchema], value: Any, registry: SchemaRegistry) -> Any:
    """
    Return a copy of ``value`` in which every relation/media field described by
    ``schema`` holds only scalar ids. Unknown components are left untouched.
    """
    if schema is None or not isinstance(value, dict):
        return value

    result = dict(value)
    for key, attr in schema.attributes.items():
        if key not in result:
            continue
        field_value = result[key]

        if attr.is_reference:
            normalized = _normalize_reference(attr, field_value)
            if normalized is None:
                del result[key]
            else:
                result[key] = normalized

        elif attr.kind == FieldKind.COMPONENT:
            comp = _component_schema(registry, attr.component)
            if comp is None:
                continue
            if attr.repeatable:
                if isinstance(field_value, list):
                    result[key] = [sanitize_relations(comp, item, registry) for item in field_value]
            elif isinstance(field_value, dict):
                result[key] = sanitize_relations(comp, field_value, registry)

        elif attr.kind == FieldKind.DYNAMICZONE and isinstance(field_value, list):
            entries = []
            for entry in field_value:
                comp = None
                if isinstance(entry, dict):
                    comp = _component_schema(registry, entry.get("__component"))
                entries.append(sanitize_relations(comp, entry, registry) if comp else entry)
            result[key] = entries

    return result


def _is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def find_non_scalar_relations(
    schema: Optional[ContentSchema], value: Any, registry: SchemaRegistry, path: str = ""
) -> List[Tuple[str, Any]]:
    """Collect (path, sample) for relation/media fields still holding objects."""
    if schema is None or not isinstance(value, dict):
        return []

    bad: List[Tuple[str, Any]] = []
    for key, attr in schema.attributes.items():
        if key not in value:
            continue
        field_value = value[key]
        field_path = f"{path}.{key}" if path else key

        if attr.is_reference:
            if _is_plain_object(field_value):
                bad.append((field_path, field_value))
            elif isinstance(field_value, list):
                sample = next((item for item in field_value if _is_plain_object(item)), None)
                if sample is not None:
                    bad.append((field_path, sample))

        elif attr.kind == FieldKind.COMPONENT:
            comp = _component_schema(registry, attr.component)
            if comp is None:
                continue
            if attr.repeatable and isinstance(field_value, list):
                for idx, item in enumerate(field_value):
                    bad.extend(find_non_scalar_relations(comp, item, registry, f"{field_path}[{idx}]"))
            elif not attr.repeatable:
                bad.extend(find_non_scalar_relations(comp, field_value, registry, field_path))

        elif attr.kind == FieldKind.DYNAMICZONE and isinstance(field_value, list):
            for idx, entry in enumerate(field_value):
                if not isinstance(entry, dict):
                    continue
                comp = _component_schema(registry, entry.get("__component"))
                bad.extend(find_non_scalar_relations(comp, entry, registry, f"{field_path}[{idx}]"))

    return bad


def log_non_scalar_relations(
    schema: Optional[ContentSchema], data: Dict[str, Any], registry: SchemaRegistry
) -> List[Tuple[str, Any]]:
    """Log every leftover non-scalar relation/media value. Diagnostic only."""
    bad = find_non_scalar_relations(schema, data, registry)
    if not bad:
        return bad

    logger.error("[relations] Found non-scalar relation/media values before write")
    logger.error(
        f"[relations] product name=\"{data.get('name') or ''}\", slug=\"{data.get('slug') or ''}\", "
        f"product_code=\"{data.get('product_code') or ''}\""
    )
    for field_path, sample in bad:
        try:
            rendered = json.dumps(sample)
        except (TypeError, ValueError):
            rendered = "[unserializable]"
        logger.error(f"[relations] path=\"{field_path}\" sample={rendered}")
    return bad
