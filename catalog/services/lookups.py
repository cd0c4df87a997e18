"""
Reference lookups used during code generation.

Each lookup returns a LookupResult; code generation recovers with a fixed
default ("GEN" category prefix, "NA" factory code) and keeps going. Queries run
inside a savepoint so a failed statement (e.g. a non-integer id on PostgreSQL)
leaves the surrounding transaction usable for sequencing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from catalog.exceptions import LookupResult
from catalog.models.product import Category, Factory
from catalog.utils.identifiers import alnum
from catalog.utils.relations import normalize_id_value, normalize_relation_field


@dataclass(frozen=True)
class CategoryInfo:
    name: Optional[str] = None
    code: Optional[str] = None
    hs_code: Optional[str] = None

    @property
    def seed(self) -> str:
        return self.code or self.name or "GEN"


def _first_category(data: Dict[str, Any]) -> Any:
    categories = data.get("categories")
    if isinstance(categories, list) and categories:
        return categories[0]
    return None


def inline_category_hint(data: Dict[str, Any]) -> Optional[CategoryInfo]:
    """
    Category fields sent inline with the write, e.g. {"id": 1, "code": "TSH"}.
    Captured before relation normalization reduces the entry to its id.
    """
    first = _first_category(data)
    if not isinstance(first, dict):
        return None
    hint = CategoryInfo(
        name=first.get("name"),
        code=first.get("code") or first.get("category_code"),
        hs_code=first.get("hs_code"),
    )
    if not (hint.name or hint.code or hint.hs_code):
        return None
    return hint


def lookup_first_category(session: Session, data: Dict[str, Any]) -> LookupResult[CategoryInfo]:
    first = _first_category(data)
    category_id = normalize_id_value(first)
    if category_id is None:
        hint = inline_category_hint(data)
        if hint is not None:
            return LookupResult.found(hint)
        # No category on the product: nothing to look up
        return LookupResult.found(CategoryInfo())

    def load():
        with session.begin_nested():
            category = session.get(Category, category_id)
        if category is None:
            return None
        return CategoryInfo(name=category.name, code=category.code, hs_code=category.hs_code)

    return LookupResult.attempt(load, "category", category_id)


def lookup_factory_code(session: Session, data: Dict[str, Any]) -> LookupResult[str]:
    """Short (six character) code of the product's factory."""
    factory_id = normalize_relation_field(data.get("factory"))
    if isinstance(factory_id, list):
        factory_id = factory_id[0]
    if factory_id is None:
        return LookupResult.found("NA")

    def load():
        with session.begin_nested():
            factory = session.get(Factory, factory_id)
        if factory is None:
            return None
        return alnum(factory.code or factory.name or "NA")[:6] or "NA"

    return LookupResult.attempt(load, "factory", factory_id)
